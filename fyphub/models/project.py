import enum

from sqlalchemy import Column, String, Integer, ForeignKey, DateTime, Enum, Text, JSON, UniqueConstraint

from fyphub.db.base import Base
from fyphub.utils.time import utc_now


class ProjectStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    SUBMITTED = "SUBMITTED"
    COMPLETED = "COMPLETED"
    ARCHIVED = "ARCHIVED"


class Project(Base):
    __tablename__ = "projects"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, index=True, nullable=False)
    description = Column(Text, nullable=True)
    status = Column(Enum(ProjectStatus), default=ProjectStatus.ACTIVE, nullable=False)
    group_id = Column(Integer, ForeignKey("groups.id", ondelete="CASCADE"), nullable=False)
    advisor_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    milestones = Column(JSON, default=list)
    submission_date = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utc_now)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)


class ProjectEvaluator(Base):
    __tablename__ = "project_evaluators"
    __table_args__ = (UniqueConstraint("project_id", "evaluator_id", name="uq_project_evaluator"),)

    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    evaluator_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    assigned_at = Column(DateTime(timezone=True), default=utc_now)


class ProjectRepository(Base):
    __tablename__ = "project_repositories"
    __table_args__ = (UniqueConstraint("project_id", "repository_id", name="uq_project_repository"),)

    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    repository_id = Column(Integer, ForeignKey("repositories.id", ondelete="CASCADE"), nullable=False)
    assigned_at = Column(DateTime(timezone=True), default=utc_now)
