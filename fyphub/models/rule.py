from sqlalchemy import Column, Integer, DateTime

from fyphub.db.base import Base


class Rule(Base):
    __tablename__ = "rules"

    id = Column(Integer, primary_key=True, index=True)
    max_group_size = Column(Integer, nullable=False, default=5)
    advisor_request_deadline = Column(DateTime(timezone=True), nullable=True)
    project_submission_deadline = Column(DateTime(timezone=True), nullable=True)
