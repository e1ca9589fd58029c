from sqlalchemy import Column, String, Integer, ForeignKey, DateTime, Text

from fyphub.db.base import Base
from fyphub.utils.time import utc_now


class Document(Base):
    __tablename__ = "documents"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    content = Column(Text, nullable=True)
    type = Column(String, nullable=True)
    url = Column(String, nullable=True)
    size = Column(Integer, nullable=True)
    category = Column(String, nullable=False, default="GENERAL")
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    uploaded_by_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utc_now)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)
