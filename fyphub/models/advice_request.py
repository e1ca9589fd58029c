import enum

from sqlalchemy import Column, String, Integer, ForeignKey, DateTime, Enum, Text

from fyphub.db.base import Base
from fyphub.utils.time import utc_now


class AdviceStatus(str, enum.Enum):
    PENDING = "PENDING"
    ANSWERED = "ANSWERED"


class AdviceRequest(Base):
    __tablename__ = "advice_requests"

    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    requester_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    topic = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    status = Column(Enum(AdviceStatus), default=AdviceStatus.PENDING, nullable=False)
    response = Column(Text, nullable=True)
    responded_by_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    responded_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utc_now)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)
