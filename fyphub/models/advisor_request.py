import enum

from sqlalchemy import Column, Integer, ForeignKey, DateTime, Enum, Text

from fyphub.db.base import Base
from fyphub.utils.time import utc_now


class AdvisorRequestStatus(str, enum.Enum):
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"


class AdvisorRequest(Base):
    __tablename__ = "advisor_requests"

    id = Column(Integer, primary_key=True, index=True)
    group_id = Column(Integer, ForeignKey("groups.id", ondelete="CASCADE"), nullable=False)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    requested_advisor_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    request_message = Column(Text, nullable=True)
    response_message = Column(Text, nullable=True)
    status = Column(Enum(AdvisorRequestStatus), default=AdvisorRequestStatus.PENDING, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utc_now)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)
