from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from fyphub.schemas.user import UserSummary


class ProjectActivity(BaseModel):
    id: str
    type: str
    title: str
    status: Optional[str] = None
    timestamp: Optional[datetime] = None
    actor: Optional[UserSummary] = None
    related_to: Optional[str] = None


class UserActivity(BaseModel):
    id: str
    type: str
    title: str
    description: Optional[str] = None
    timestamp: Optional[datetime] = None
    time_ago: str
    project_id: Optional[int] = None
    project_title: Optional[str] = None
    # Имя репозитория для коммитов, название проекта для задач и отзывов
    related_to: Optional[str] = None


class UserActivityPage(BaseModel):
    items: List[UserActivity]
    total: int
    limit: int
    offset: int
    has_more: bool
