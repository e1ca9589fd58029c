import logging
import math
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

import fyphub.repo.group as group_repo
import fyphub.repo.repository as repository_repo
import fyphub.repo.user as user_repo
from fyphub.models.group import Group, GroupMember
from fyphub.models.user import User
from fyphub.schemas.group import GroupCreate, GroupUpdate
from fyphub.services import explorer as explorer_service
from fyphub.services import notification as notification_service
from fyphub.utils.time import ensure_utc

logger = logging.getLogger(__name__)


async def get(db: AsyncSession, id: int) -> Optional[Group]:
    """Получает группу по идентификатору"""
    return await group_repo.get_group_by_id(db, id)


async def get_by_user_name(db: AsyncSession, group_user_name: str) -> Optional[Group]:
    """Получает группу по group_user_name"""
    return await group_repo.get_group_by_user_name(db, group_user_name)


async def get_by_name(db: AsyncSession, name: str) -> Optional[Group]:
    return await group_repo.get_group_by_name(db, name)


async def get_user_group(db: AsyncSession, *, user_id: int) -> Optional[Group]:
    """Группа, в которой состоит пользователь"""
    return await group_repo.get_group_for_user(db, user_id)


async def search(db: AsyncSession, *, name: Optional[str] = None, page: int = 1, limit: int = 10) -> Dict[str, Any]:
    """Список групп с пагинацией по страницам"""
    groups, total = await group_repo.search_groups(db, name=name, skip=(page - 1) * limit, limit=limit)
    items = []
    for group in groups:
        items.append(
            {
                "id": group.id,
                "name": group.name,
                "group_user_name": group.group_user_name,
                "description": group.description,
                "leader_id": group.leader_id,
                "created_at": group.created_at,
                "updated_at": group.updated_at,
                "leader": group.leader,
                "members_count": await group_repo.count_members(db, group.id),
            }
        )
    return {
        "groups": items,
        "pagination": {
            "total": total,
            "pages": math.ceil(total / limit) if total else 0,
            "current_page": page,
            "limit": limit,
        },
    }


RECENT_MEMBERS_LIMIT = 5


async def filter_search(
    db: AsyncSession,
    *,
    query: str = "",
    has_member: Optional[int] = None,
    has_projects: bool = False,
    has_repositories: bool = False,
    page: int = 1,
    limit: int = 20,
) -> Dict[str, Any]:
    """Поиск групп с фильтрами, статистикой и первыми участниками"""
    rows, total = await group_repo.filter_groups(
        db,
        query=query.strip() or None,
        has_member=has_member,
        has_projects=has_projects,
        has_repositories=has_repositories,
        skip=(page - 1) * limit,
        limit=limit,
    )
    groups = []
    for group, member_count, project_count, repository_count in rows:
        members = await group_repo.get_members_with_users(db, group.id)
        groups.append(
            {
                "id": group.id,
                "name": group.name,
                "group_user_name": group.group_user_name,
                "description": group.description,
                "created_at": group.created_at,
                "leader": group.leader,
                "stats": {
                    "member_count": member_count,
                    "project_count": project_count,
                    "repository_count": repository_count,
                },
                "recent_members": [
                    {
                        "id": user.id,
                        "username": user.username,
                        "first_name": user.first_name,
                        "last_name": user.last_name,
                        "is_leader": user.id == group.leader_id,
                    }
                    for _, user in members[:RECENT_MEMBERS_LIMIT]
                ],
            }
        )
    return {
        "groups": groups,
        "pagination": {
            "total": total,
            "pages": math.ceil(total / limit) if total else 0,
            "current_page": page,
            "limit": limit,
        },
        "filters": {
            "query": query,
            "has_member": has_member,
            "has_projects": has_projects,
            "has_repositories": has_repositories,
        },
    }


async def create(db: AsyncSession, *, obj_in: GroupCreate, leader_id: int) -> Group:
    """Создает группу; создатель становится лидером и первым участником"""
    db_obj = Group(
        name=obj_in.name,
        group_user_name=obj_in.group_user_name,
        description=obj_in.description,
    )
    await group_repo.create_group_with_leader_in_db(db, db_obj, leader_id)
    logger.info(f"Group {db_obj.group_user_name} created by user {leader_id}")
    return db_obj


async def update(db: AsyncSession, *, db_obj: Group, obj_in: GroupUpdate) -> Group:
    """Обновляет информацию о группе"""
    obj_data = obj_in.model_dump(exclude_unset=True)
    for field, value in obj_data.items():
        if value is not None:
            setattr(db_obj, field, value)

    await group_repo.update_group_in_db(db, db_obj)
    return db_obj


async def delete(db: AsyncSession, *, group: Group) -> bool:
    """Удаляет группу и сбрасывает кэш обозревателя по ее репозиториям"""
    repository_names = await repository_repo.get_repository_names_by_group(db, group.id)
    group_user_name = group.group_user_name
    deleted = await group_repo.delete_group_from_db(db, group.id)
    for name in repository_names:
        await explorer_service.invalidate(group_user_name, name)
    return deleted


# Функции для управления участниками группы
async def is_user_in_group(db: AsyncSession, *, group_id: int, user_id: int) -> bool:
    """Проверяет, является ли пользователь участником группы"""
    member = await group_repo.get_group_member(db, group_id, user_id)
    return member is not None


async def is_user_in_any_group(db: AsyncSession, *, user_id: int) -> bool:
    return await group_repo.get_membership_by_user(db, user_id) is not None


async def count_members(db: AsyncSession, *, group_id: int) -> int:
    return await group_repo.count_members(db, group_id)


async def get_member_ids(db: AsyncSession, *, group_id: int) -> List[int]:
    return await group_repo.get_member_ids(db, group_id)


def _member_dict(member: GroupMember, user: User, leader_id: Optional[int]) -> Dict[str, Any]:
    return {
        "id": member.id,
        "user_id": user.id,
        "username": user.username,
        "email": user.email,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "role": user.role,
        "is_leader": user.id == leader_id,
        "joined_at": member.joined_at,
    }


async def get_group_members(db: AsyncSession, *, group: Group) -> List[Dict[str, Any]]:
    """Участники группы с признаком лидера"""
    rows = await group_repo.get_members_with_users(db, group.id)
    return [_member_dict(member, user, group.leader_id) for member, user in rows]


async def add_user_to_group(db: AsyncSession, *, group: Group, user: User) -> Dict[str, Any]:
    """Добавляет пользователя в группу и уведомляет его"""
    db_obj = GroupMember(group_id=group.id, user_id=user.id)
    await group_repo.create_group_member_in_db(db, db_obj)

    await notification_service.notify(
        db,
        recipient_ids=[user.id],
        message=f"You have been added to group {group.name}",
        link=f"/groups/{group.group_user_name}",
    )
    return _member_dict(db_obj, user, group.leader_id)


async def remove_user_from_group(db: AsyncSession, *, group_id: int, user_id: int) -> bool:
    """Удаляет пользователя из группы"""
    return await group_repo.delete_group_member_from_db(db, group_id, user_id)


async def transfer_leadership(db: AsyncSession, *, group: Group, new_leader_id: int) -> Group:
    """Передает лидерство другому участнику"""
    previous_leader_id = group.leader_id
    group.leader_id = new_leader_id
    await group_repo.update_group_in_db(db, group)

    await notification_service.notify(
        db,
        recipient_ids=[new_leader_id],
        message=f"You are now the leader of group {group.name}",
        link=f"/groups/{group.group_user_name}",
    )
    logger.info(f"Leadership of {group.group_user_name} moved from {previous_leader_id} to {new_leader_id}")
    return group


async def get_detail(
    db: AsyncSession, *, group: Group, max_group_size: int, include_private: bool = False
) -> Dict[str, Any]:
    """
    Группа вместе с лидером, участниками, проектами, репозиториями и запросами.
    Приватные репозитории попадают в ответ только при include_private.
    """
    detailed = await group_repo.get_group_with_details(db, group.id)
    repositories = [repository for repository in detailed.repositories if include_private or not repository.is_private]
    return {
        "id": detailed.id,
        "name": detailed.name,
        "group_user_name": detailed.group_user_name,
        "description": detailed.description,
        "leader_id": detailed.leader_id,
        "created_at": detailed.created_at,
        "updated_at": detailed.updated_at,
        "leader": detailed.leader,
        "members": [_member_dict(member, member.user, detailed.leader_id) for member in detailed.members],
        "projects": detailed.projects,
        "repositories": repositories,
        "advisor_requests": detailed.advisor_requests,
        "max_group_size": max_group_size,
    }


ACTIVITY_LIMIT = 10


def _actor(user: Optional[User]) -> Optional[Dict[str, Any]]:
    if user is None:
        return None
    return {"id": user.id, "username": user.username, "first_name": user.first_name, "last_name": user.last_name}


async def get_activities(db: AsyncSession, *, group: Group, include_private: bool = False) -> List[Dict[str, Any]]:
    """
    Лента событий группы: созданные проекты и репозитории, вступившие участники.
    Каждый вид событий ограничен ACTIVITY_LIMIT последними записями, лента отсортирована от новых к старым.
    """
    detailed = await group_repo.get_group_with_details(db, group.id)
    leader = _actor(detailed.leader)

    projects = sorted(detailed.projects, key=lambda item: (ensure_utc(item.created_at), item.id), reverse=True)[:ACTIVITY_LIMIT]
    repositories = sorted(
        (item for item in detailed.repositories if include_private or not item.is_private),
        key=lambda item: (ensure_utc(item.created_at), item.id),
        reverse=True,
    )[:ACTIVITY_LIMIT]
    members = sorted(detailed.members, key=lambda item: (ensure_utc(item.joined_at), item.id), reverse=True)[:ACTIVITY_LIMIT]
    owner_ids = [item.owner_id for item in repositories if item.owner_id]
    owners = {user.id: user for user in await user_repo.get_users_by_ids(db, owner_ids)}

    activities = [
        {
            "id": f"project_{project.id}",
            "type": "project_created",
            "timestamp": project.created_at,
            "actor": leader,
            "entity_name": project.title,
            "entity_id": str(project.id),
        }
        for project in projects
    ]
    activities += [
        {
            "id": f"repo_{repository.name}",
            "type": "repository_created",
            "timestamp": repository.created_at,
            "actor": _actor(owners.get(repository.owner_id)),
            "entity_name": repository.name,
            "entity_id": repository.name,
        }
        for repository in repositories
    ]
    activities += [
        {
            "id": f"member_{member.user_id}",
            "type": "member_added",
            "timestamp": member.joined_at,
            "actor": leader,
            "entity_name": member.user.full_name or member.user.username,
            "entity_id": str(member.user_id),
        }
        for member in members
    ]
    activities.sort(key=lambda item: ensure_utc(item["timestamp"]), reverse=True)
    return activities
