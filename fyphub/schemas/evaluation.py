from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator

from fyphub.models.evaluation import EvaluationKind


class EvaluatorAssign(BaseModel):
    evaluator_id: int


class ProjectEvaluator(BaseModel):
    id: int
    project_id: int
    evaluator_id: int
    assigned_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class EvaluationCreate(BaseModel):
    score: float = Field(..., ge=0, le=100)
    comments: str = Field(..., max_length=5000)
    criteria_data: Dict[str, Any] = {}

    @field_validator("comments")
    @classmethod
    def comments_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Comments are required")
        return value.strip()


class Evaluation(BaseModel):
    id: int
    kind: EvaluationKind
    score: float
    comments: str
    criteria_data: Optional[Dict[str, Any]] = None
    project_id: int
    author_id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
