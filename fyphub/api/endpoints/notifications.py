from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from fyphub.api.endpoints.auth import get_current_user
from fyphub.db.session import get_db
from fyphub.models.user import User
from fyphub.schemas.notification import MarkRead, MarkReadResult, NotificationList
from fyphub.services import notification as notification_service

router = APIRouter()


@router.get("/", response_model=NotificationList)
async def read_notifications(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Any:
    """
    Десять последних уведомлений и количество непрочитанных.
    """
    return {
        "notifications": await notification_service.get_recent(db, user_id=current_user.id),
        "unread_count": await notification_service.count_unread(db, user_id=current_user.id),
    }


@router.post("/mark-read", response_model=MarkReadResult)
async def mark_notifications_read(
    *,
    db: AsyncSession = Depends(get_db),
    mark_in: MarkRead,
    current_user: User = Depends(get_current_user),
) -> Any:
    """
    Пометить прочитанными выбранные (notification_ids) или все (mark_all) уведомления.
    """
    if not mark_in.mark_all and not mark_in.notification_ids:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Provide notification_ids or set mark_all",
        )

    ids = None if mark_in.mark_all else mark_in.notification_ids
    updated = await notification_service.mark_read(db, user_id=current_user.id, ids=ids)
    return {"updated": updated, "unread_count": await notification_service.count_unread(db, user_id=current_user.id)}
