import enum

from sqlalchemy import Column, Integer, ForeignKey, DateTime, Enum, Text, Float, JSON

from fyphub.db.base import Base
from fyphub.utils.time import utc_now


class EvaluationKind(str, enum.Enum):
    EVALUATION = "EVALUATION"
    ADVISOR_RATING = "ADVISOR_RATING"


class Evaluation(Base):
    __tablename__ = "evaluations"

    id = Column(Integer, primary_key=True, index=True)
    kind = Column(Enum(EvaluationKind), default=EvaluationKind.EVALUATION, nullable=False)
    score = Column(Float, nullable=False)
    comments = Column(Text, nullable=False)
    criteria_data = Column(JSON, default=dict)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    author_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utc_now)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)
