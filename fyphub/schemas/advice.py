from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from fyphub.models.advice_request import AdviceStatus


class AdviceRequestCreate(BaseModel):
    topic: str = Field(..., min_length=3, max_length=255)
    description: str = Field(..., min_length=10, max_length=5000)


class AdviceResponseCreate(BaseModel):
    content: str = Field(..., min_length=5, max_length=5000)


class AdviceRequest(BaseModel):
    id: int
    project_id: int
    requester_id: Optional[int] = None
    topic: str
    description: str
    status: AdviceStatus
    response: Optional[str] = None
    responded_by_id: Optional[int] = None
    responded_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
