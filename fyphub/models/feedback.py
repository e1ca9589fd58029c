import enum

from sqlalchemy import Column, String, Integer, ForeignKey, DateTime, Enum, Text

from fyphub.db.base import Base
from fyphub.utils.time import utc_now


class FeedbackStatus(str, enum.Enum):
    OPEN = "OPEN"
    ADDRESSED = "ADDRESSED"
    CLOSED = "CLOSED"


class Feedback(Base):
    __tablename__ = "feedback"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    content = Column(Text, nullable=False)
    status = Column(Enum(FeedbackStatus), default=FeedbackStatus.OPEN, nullable=False)
    response = Column(Text, nullable=True)
    author_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    # Отзыв относится к проекту, к репозиторию или к обоим
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=True, index=True)
    repository_id = Column(Integer, ForeignKey("repositories.id", ondelete="CASCADE"), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), default=utc_now)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)
