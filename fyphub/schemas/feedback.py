from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from fyphub.models.feedback import FeedbackStatus


class FeedbackCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    content: str = Field(..., min_length=1, max_length=5000)


class RepositoryFeedbackCreate(FeedbackCreate):
    project_id: Optional[int] = None


class FeedbackUpdate(BaseModel):
    status: Optional[FeedbackStatus] = None
    response: Optional[str] = Field(None, max_length=5000)


class Feedback(BaseModel):
    id: int
    title: str
    content: str
    status: FeedbackStatus
    response: Optional[str] = None
    author_id: Optional[int] = None
    project_id: Optional[int] = None
    repository_id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# Отзывы во внешнем сервисе репозиториев
class ExplorerFeedbackCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    content: str = Field(..., min_length=1, max_length=5000)


class ExplorerFeedbackUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    content: Optional[str] = Field(None, min_length=1, max_length=5000)
    status: Optional[str] = Field(None, min_length=1, max_length=50)
