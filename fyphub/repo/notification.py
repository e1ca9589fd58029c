from typing import List, Optional

from sqlalchemy import func, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from fyphub.models.notification import Notification


async def get_recent_notifications(db: AsyncSession, recipient_id: int, limit: int = 10) -> List[Notification]:
    """Последние уведомления пользователя"""
    result = await db.execute(
        select(Notification)
        .where(Notification.recipient_id == recipient_id)
        .order_by(Notification.created_at.desc(), Notification.id.desc())
        .limit(limit)
    )
    return result.scalars().all()


async def count_unread(db: AsyncSession, recipient_id: int) -> int:
    result = await db.execute(
        select(func.count(Notification.id)).where(
            Notification.recipient_id == recipient_id, Notification.read.is_(False)
        )
    )
    return result.scalar_one()


async def create_notifications_in_db(db: AsyncSession, notifications: List[Notification]) -> None:
    db.add_all(notifications)
    await db.commit()
    for notification in notifications:
        await db.refresh(notification)


async def mark_read(db: AsyncSession, recipient_id: int, ids: Optional[List[int]] = None) -> int:
    """Помечает уведомления прочитанными; только уведомления получателя"""
    query = update(Notification).where(Notification.recipient_id == recipient_id, Notification.read.is_(False))
    if ids is not None:
        query = query.where(Notification.id.in_(ids))
    result = await db.execute(query.values(read=True).execution_options(synchronize_session=False))
    await db.commit()
    return result.rowcount
