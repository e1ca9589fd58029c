import logging
import secrets
from datetime import timedelta
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

import fyphub.repo.group as group_repo
from fyphub.core.config import settings
from fyphub.models.group import Group, GroupInvite, GroupMember
from fyphub.services import notification as notification_service
from fyphub.utils.time import ensure_utc, utc_now

logger = logging.getLogger(__name__)


def generate_code() -> str:
    """12 символов hex в верхнем регистре"""
    return secrets.token_hex(6).upper()


def is_usable(invite: GroupInvite) -> bool:
    """Приглашение не использовано и не просрочено"""
    return invite.used_at is None and ensure_utc(invite.expires_at) > utc_now()


async def get_by_code(db: AsyncSession, code: str) -> Optional[GroupInvite]:
    return await group_repo.get_invite_by_code(db, code.strip().upper())


async def get_active(db: AsyncSession, *, group_id: int) -> List[GroupInvite]:
    return await group_repo.get_active_invites(db, group_id, utc_now())


async def create(db: AsyncSession, *, group: Group, created_by_id: int, email: Optional[str] = None) -> GroupInvite:
    """Создает код приглашения в группу"""
    code = generate_code()
    while await group_repo.get_invite_by_code(db, code):
        code = generate_code()

    invite = GroupInvite(
        code=code,
        group_id=group.id,
        email=email,
        created_by_id=created_by_id,
        expires_at=utc_now() + timedelta(hours=settings.INVITE_EXPIRATION_HOURS),
    )
    await group_repo.create_invite_in_db(db, invite)
    logger.info(f"Invite created for group {group.group_user_name}")
    return invite


async def join(db: AsyncSession, *, invite: GroupInvite, group: Group, user_id: int) -> GroupMember:
    """Вступление в группу по приглашению"""
    member = await group_repo.join_group_by_invite_in_db(db, invite, user_id, utc_now())

    await notification_service.notify(
        db,
        recipient_ids=[group.leader_id],
        message=f"A new member joined {group.name} with an invite code",
        link=f"/groups/{group.group_user_name}",
    )
    return member
