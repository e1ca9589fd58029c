from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel


class Notification(BaseModel):
    id: int
    message: str
    link: Optional[str] = None
    read: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class NotificationList(BaseModel):
    notifications: List[Notification]
    unread_count: int


class MarkRead(BaseModel):
    notification_ids: Optional[List[int]] = None
    mark_all: bool = False


class MarkReadResult(BaseModel):
    updated: int
    unread_count: int
