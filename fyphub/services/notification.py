import logging
from typing import Iterable, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

import fyphub.repo.notification as notification_repo
import fyphub.repo.user as user_repo
from fyphub.messaging import producers
from fyphub.models.notification import Notification

logger = logging.getLogger(__name__)


async def notify(
    db: AsyncSession, *, recipient_ids: Iterable[int], message: str, link: Optional[str] = None
) -> List[Notification]:
    """Создает уведомления получателям и публикует событие для email-доставки"""
    unique_ids = sorted({recipient_id for recipient_id in recipient_ids if recipient_id})
    if not unique_ids:
        return []

    notifications = [Notification(recipient_id=recipient_id, message=message, link=link) for recipient_id in unique_ids]
    await notification_repo.create_notifications_in_db(db, notifications)

    users = {user.id: user for user in await user_repo.get_users_by_ids(db, unique_ids)}
    for notification in notifications:
        user = users.get(notification.recipient_id)
        await producers.send_event(
            topic=producers.NOTIFICATION_EVENTS,
            event_type="notification_created",
            data={
                "id": notification.id,
                "recipient_id": notification.recipient_id,
                "email": user.email if user else None,
                "message": message,
                "link": link,
            },
        )

    logger.info(f"Created {len(notifications)} notifications")
    return notifications


async def get_recent(db: AsyncSession, *, user_id: int, limit: int = 10) -> List[Notification]:
    return await notification_repo.get_recent_notifications(db, user_id, limit)


async def count_unread(db: AsyncSession, *, user_id: int) -> int:
    return await notification_repo.count_unread(db, user_id)


async def mark_read(db: AsyncSession, *, user_id: int, ids: Optional[List[int]] = None) -> int:
    """Помечает прочитанными выбранные или все уведомления пользователя"""
    return await notification_repo.mark_read(db, user_id, ids)
