import enum

from sqlalchemy import Column, String, Integer, ForeignKey, DateTime, Enum, Text, Boolean, JSON, UniqueConstraint

from fyphub.db.base import Base
from fyphub.utils.time import utc_now

DEFAULT_BRANCH = "main"


class ChangeType(str, enum.Enum):
    ADDED = "ADDED"
    MODIFIED = "MODIFIED"
    DELETED = "DELETED"


class Repository(Base):
    __tablename__ = "repositories"
    __table_args__ = (UniqueConstraint("name", "group_id", name="uq_repository_name_group"),)

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, index=True, nullable=False)
    description = Column(Text, nullable=True)
    is_private = Column(Boolean, default=False, nullable=False)
    group_id = Column(Integer, ForeignKey("groups.id", ondelete="CASCADE"), nullable=False)
    owner_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utc_now)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)

    @property
    def visibility(self) -> str:
        return "private" if self.is_private else "public"


class Commit(Base):
    __tablename__ = "commits"

    id = Column(String(40), primary_key=True)
    message = Column(Text, nullable=False)
    repository_id = Column(Integer, ForeignKey("repositories.id", ondelete="CASCADE"), nullable=False, index=True)
    author_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    parent_commit_ids = Column(JSON, default=list)
    timestamp = Column(DateTime(timezone=True), default=utc_now)


class Branch(Base):
    __tablename__ = "branches"
    __table_args__ = (UniqueConstraint("repository_id", "name", name="uq_branch_repository_name"),)

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    repository_id = Column(Integer, ForeignKey("repositories.id", ondelete="CASCADE"), nullable=False)
    head_commit_id = Column(String(40), ForeignKey("commits.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utc_now)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)


class FileChange(Base):
    __tablename__ = "file_changes"

    id = Column(Integer, primary_key=True, index=True)
    commit_id = Column(String(40), ForeignKey("commits.id", ondelete="CASCADE"), nullable=False)
    file_path = Column(String, nullable=False)
    change_type = Column(Enum(ChangeType), nullable=False)
    file_content_hash = Column(String, nullable=True)
    previous_file_content_hash = Column(String, nullable=True)
