from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import delete, exists, func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload

from fyphub.models.group import Group, GroupMember, GroupInvite
from fyphub.models.project import Project
from fyphub.models.repository import Repository
from fyphub.models.user import User


async def get_group_by_id(db: AsyncSession, id: int) -> Optional[Group]:
    """Получает группу по идентификатору"""
    result = await db.execute(select(Group).where(Group.id == id))
    return result.scalars().first()


async def get_group_by_user_name(db: AsyncSession, group_user_name: str) -> Optional[Group]:
    """Получает группу по уникальному имени group_user_name"""
    result = await db.execute(select(Group).where(Group.group_user_name == group_user_name))
    return result.scalars().first()


async def get_group_by_name(db: AsyncSession, name: str) -> Optional[Group]:
    """Получает группу по отображаемому имени"""
    result = await db.execute(select(Group).where(Group.name == name))
    return result.scalars().first()


async def get_group_with_details(db: AsyncSession, group_id: int) -> Optional[Group]:
    """Получает группу вместе с лидером, участниками, проектами и репозиториями"""
    result = await db.execute(
        select(Group)
        .where(Group.id == group_id)
        .options(
            selectinload(Group.leader),
            selectinload(Group.members).selectinload(GroupMember.user),
            selectinload(Group.projects),
            selectinload(Group.repositories),
            selectinload(Group.advisor_requests),
        )
        .execution_options(populate_existing=True)
    )
    return result.scalars().first()


async def search_groups(
    db: AsyncSession, name: Optional[str] = None, skip: int = 0, limit: int = 10
) -> Tuple[List[Group], int]:
    """Ищет группы по подстроке имени без учета регистра"""
    query = select(Group)
    count_query = select(func.count(Group.id))
    if name:
        condition = func.lower(Group.name).contains(name.lower())
        query = query.where(condition)
        count_query = count_query.where(condition)

    total = (await db.execute(count_query)).scalar_one()
    result = await db.execute(
        query.options(selectinload(Group.leader)).order_by(Group.created_at.desc(), Group.id.desc()).offset(skip).limit(limit)
    )
    return result.scalars().all(), total


def _count_by_group(column):
    return select(func.count()).where(column == Group.id).correlate_except(column.class_.__table__).scalar_subquery()


async def filter_groups(
    db: AsyncSession,
    query: Optional[str] = None,
    has_member: Optional[int] = None,
    has_projects: bool = False,
    has_repositories: bool = False,
    skip: int = 0,
    limit: int = 20,
) -> Tuple[List[Tuple[Group, int, int, int]], int]:
    """
    Группы по подстроке имени или описания, отсортированные по имени.
    Строки (Group, участники, проекты, репозитории).
    """
    conditions = []
    if query:
        needle = query.lower()
        conditions.append(
            or_(
                func.lower(Group.name).contains(needle, autoescape=True),
                func.lower(Group.description).contains(needle, autoescape=True),
            )
        )
    if has_member is not None:
        conditions.append(exists().where(GroupMember.group_id == Group.id, GroupMember.user_id == has_member))
    if has_projects:
        conditions.append(exists().where(Project.group_id == Group.id))
    if has_repositories:
        conditions.append(exists().where(Repository.group_id == Group.id))

    total = (await db.execute(select(func.count(Group.id)).where(*conditions))).scalar_one()
    result = await db.execute(
        select(
            Group,
            _count_by_group(GroupMember.group_id),
            _count_by_group(Project.group_id),
            _count_by_group(Repository.group_id),
        )
        .options(selectinload(Group.leader))
        .where(*conditions)
        .order_by(Group.name.asc(), Group.id.asc())
        .offset(skip)
        .limit(limit)
    )
    return result.all(), total


async def group_user_name_exists(db: AsyncSession, group_user_name: str) -> bool:
    result = await db.execute(select(Group.id).where(Group.group_user_name == group_user_name))
    return result.first() is not None


async def count_groups(db: AsyncSession) -> int:
    result = await db.execute(select(func.count(Group.id)))
    return result.scalar_one()


async def update_group_in_db(db: AsyncSession, group: Group) -> None:
    """Обновляет группу в базе данных"""
    db.add(group)
    await db.commit()
    await db.refresh(group)


async def delete_group_from_db(db: AsyncSession, id: int) -> bool:
    """Удаляет группу из базы данных (участники, проекты и репозитории удаляются каскадно)"""
    result = await db.execute(delete(Group).where(Group.id == id))
    await db.commit()
    return result.rowcount > 0


# Участники группы
async def get_group_member(db: AsyncSession, group_id: int, user_id: int) -> Optional[GroupMember]:
    """Получает запись о членстве в группе"""
    result = await db.execute(
        select(GroupMember).where((GroupMember.group_id == group_id) & (GroupMember.user_id == user_id))
    )
    return result.scalars().first()


async def get_membership_by_user(db: AsyncSession, user_id: int) -> Optional[GroupMember]:
    """Получает членство пользователя в любой группе"""
    result = await db.execute(select(GroupMember).where(GroupMember.user_id == user_id))
    return result.scalars().first()


async def get_group_for_user(db: AsyncSession, user_id: int) -> Optional[Group]:
    """Получает группу, в которой состоит пользователь"""
    result = await db.execute(
        select(Group).join(GroupMember, GroupMember.group_id == Group.id).where(GroupMember.user_id == user_id)
    )
    return result.scalars().first()


async def get_members_with_users(db: AsyncSession, group_id: int) -> List[Tuple[GroupMember, User]]:
    """Получает участников группы вместе с пользователями"""
    result = await db.execute(
        select(GroupMember, User)
        .join(User, User.id == GroupMember.user_id)
        .where(GroupMember.group_id == group_id)
        .order_by(GroupMember.joined_at, GroupMember.id)
    )
    return result.all()


async def get_member_ids(db: AsyncSession, group_id: int) -> List[int]:
    result = await db.execute(select(GroupMember.user_id).where(GroupMember.group_id == group_id))
    return result.scalars().all()


async def count_members(db: AsyncSession, group_id: int) -> int:
    result = await db.execute(select(func.count(GroupMember.id)).where(GroupMember.group_id == group_id))
    return result.scalar_one()


async def create_group_member_in_db(db: AsyncSession, group_member: GroupMember) -> None:
    """Создает членство в группе"""
    db.add(group_member)
    await db.commit()
    await db.refresh(group_member)


async def delete_group_member_from_db(db: AsyncSession, group_id: int, user_id: int) -> bool:
    """Удаляет пользователя из группы"""
    result = await db.execute(
        delete(GroupMember).where((GroupMember.group_id == group_id) & (GroupMember.user_id == user_id))
    )
    await db.commit()
    return result.rowcount > 0


# Приглашения
async def get_invite_by_code(db: AsyncSession, code: str) -> Optional[GroupInvite]:
    result = await db.execute(select(GroupInvite).where(GroupInvite.code == code))
    return result.scalars().first()


async def get_active_invites(db: AsyncSession, group_id: int, now: datetime) -> List[GroupInvite]:
    """Получает неиспользованные и непросроченные приглашения группы"""
    result = await db.execute(
        select(GroupInvite)
        .where(
            GroupInvite.group_id == group_id,
            GroupInvite.used_at.is_(None),
            GroupInvite.expires_at > now,
        )
        .order_by(GroupInvite.created_at.desc())
    )
    return result.scalars().all()


async def create_invite_in_db(db: AsyncSession, invite: GroupInvite) -> None:
    db.add(invite)
    await db.commit()
    await db.refresh(invite)


async def delete_expired_invites(db: AsyncSession, now: datetime) -> int:
    """Удаляет просроченные и использованные приглашения"""
    result = await db.execute(
        delete(GroupInvite).where((GroupInvite.expires_at <= now) | (GroupInvite.used_at.is_not(None)))
    )
    await db.commit()
    return result.rowcount


async def create_group_with_leader_in_db(db: AsyncSession, group: Group, leader_id: int) -> None:
    """Создает группу и добавляет лидера первым участником в одной транзакции"""
    try:
        group.leader_id = leader_id
        db.add(group)
        await db.flush()
        db.add(GroupMember(group_id=group.id, user_id=leader_id))
        await db.commit()
    except Exception:
        await db.rollback()
        raise
    await db.refresh(group)


async def join_group_by_invite_in_db(db: AsyncSession, invite: GroupInvite, user_id: int, used_at: datetime) -> GroupMember:
    """Добавляет участника и помечает приглашение использованным в одной транзакции"""
    member = GroupMember(group_id=invite.group_id, user_id=user_id)
    try:
        db.add(member)
        invite.used_at = used_at
        db.add(invite)
        await db.commit()
    except Exception:
        await db.rollback()
        raise
    await db.refresh(member)
    return member
