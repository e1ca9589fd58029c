import json
import logging
import math
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

import fyphub.cache.client as cache
import fyphub.repo.search as search_repo
from fyphub.core.config import settings
from fyphub.models.group import Group
from fyphub.models.project import Project, ProjectStatus
from fyphub.models.repository import Repository
from fyphub.models.user import User, UserRole
from fyphub.schemas.search import (
    GroupStats,
    RepositoryStats,
    SearchGroup,
    SearchGroupRef,
    SearchProject,
    SearchRepository,
    SearchResponse,
    SearchUser,
    UserStats,
)
from fyphub.schemas.user import UserSummary
from fyphub.utils.time import format_time_ago

logger = logging.getLogger(__name__)

SEARCH_TYPES = ("projects", "repositories", "groups", "users", "students", "advisors")
RESULT_TYPES = {
    "projects": "project",
    "repositories": "repository",
    "groups": "group",
    "users": "user",
    "students": "student",
    "advisors": "advisor",
}


def parse_roles(role: Optional[str]) -> List[UserRole]:
    """Роли через запятую, неизвестные и недоступные для поиска отбрасываются"""
    if not role or not role.strip():
        return list(search_repo.SEARCHABLE_ROLES)
    roles = []
    for value in role.split(","):
        value = value.strip().upper()
        for searchable in search_repo.SEARCHABLE_ROLES:
            if searchable.value == value and searchable not in roles:
                roles.append(searchable)
    return roles or list(search_repo.SEARCHABLE_ROLES)


def _project_item(project: Project) -> Dict[str, Any]:
    return SearchProject(
        id=project.id,
        title=project.title,
        description=project.description,
        status=project.status,
        group=SearchGroupRef(name=project.group.name, group_user_name=project.group.group_user_name),
        advisor=UserSummary.model_validate(project.advisor) if project.advisor else None,
        created_at=project.created_at,
        updated_at=project.updated_at,
    ).model_dump(mode="json")


def _repository_item(repository: Repository, commits: int, branches: int, projects: int) -> Dict[str, Any]:
    return SearchRepository(
        id=repository.id,
        name=repository.name,
        description=repository.description,
        is_private=repository.is_private,
        group_user_name=repository.group.group_user_name,
        group_name=repository.group.name,
        last_activity=format_time_ago(repository.updated_at),
        stats=RepositoryStats(commits=commits, branches=branches, projects=projects),
        created_at=repository.created_at,
        updated_at=repository.updated_at,
    ).model_dump(mode="json")


def _group_item(group: Group, members: int, projects: int) -> Dict[str, Any]:
    return SearchGroup(
        id=group.id,
        name=group.name,
        group_user_name=group.group_user_name,
        description=group.description,
        leader=UserSummary.model_validate(group.leader) if group.leader else None,
        stats=GroupStats(members=members, projects=projects),
        created_at=group.created_at,
    ).model_dump(mode="json")


def _user_item(user: User, groups: int, advised_projects: int) -> Dict[str, Any]:
    return SearchUser(
        id=user.id,
        username=user.username,
        first_name=user.first_name,
        last_name=user.last_name,
        role=user.role,
        profile_info=user.profile_info,
        stats=UserStats(groups=groups, advised_projects=advised_projects),
    ).model_dump(mode="json")


async def _search_type(
    db: AsyncSession,
    *,
    search_type: str,
    query: Optional[str],
    status: Optional[ProjectStatus],
    advisor_id: Optional[int],
    roles: List[UserRole],
    skip: int,
    limit: int,
    sort_by: str,
    sort_order: str,
):
    if search_type == "projects":
        conditions = search_repo.project_filters(query, status, advisor_id)
        ordering = search_repo.order_by("projects", sort_by, sort_order, Project)
        rows, total = await search_repo.search_projects(db, conditions, ordering, skip, limit)
        return [_project_item(row[0]) for row in rows], total

    if search_type == "repositories":
        conditions = search_repo.repository_filters(query)
        ordering = search_repo.order_by("repositories", sort_by, sort_order, Repository)
        rows, total = await search_repo.search_repositories(db, conditions, ordering, skip, limit)
        return [_repository_item(*row) for row in rows], total

    if search_type == "groups":
        conditions = search_repo.group_filters(query)
        ordering = search_repo.order_by("groups", sort_by, sort_order, Group)
        rows, total = await search_repo.search_groups(db, conditions, ordering, skip, limit)
        return [_group_item(*row) for row in rows], total

    if search_type == "students":
        roles = [UserRole.STUDENT]
    elif search_type == "advisors":
        roles = [UserRole.ADVISOR]
    conditions = search_repo.user_filters(query, roles)
    ordering = search_repo.order_by("users", sort_by, sort_order, User)
    rows, total = await search_repo.search_users(db, conditions, ordering, skip, limit)
    return [_user_item(*row) for row in rows], total


async def sidebar_counts(db: AsyncSession, query: Optional[str]) -> Dict[str, int]:
    """Количество совпадений по каждому виду результатов без дополнительных фильтров"""
    return {
        "projects": await search_repo.count_rows(db, Project, search_repo.project_filters(query)),
        "repositories": await search_repo.count_rows(db, Repository, search_repo.repository_filters(query)),
        "groups": await search_repo.count_rows(db, Group, search_repo.group_filters(query)),
        "students": await search_repo.count_rows(db, User, search_repo.user_filters(query, [UserRole.STUDENT])),
        "advisors": await search_repo.count_rows(db, User, search_repo.user_filters(query, [UserRole.ADVISOR])),
        "users": await search_repo.count_rows(db, User, search_repo.user_filters(query, search_repo.SEARCHABLE_ROLES)),
    }


async def search(
    db: AsyncSession,
    *,
    query: Optional[str] = None,
    search_type: str = "projects",
    status: Optional[ProjectStatus] = None,
    advisor_id: Optional[int] = None,
    role: Optional[str] = None,
    page: int = 1,
    limit: int = 10,
    sort_by: str = "created_at",
    sort_order: str = "desc",
    include_counts: bool = False,
) -> Dict[str, Any]:
    """
    Единый поиск по проектам, репозиториям, группам и пользователям.
    Результат кэшируется в Redis на SEARCH_CACHE_TTL секунд.
    Счетчики для боковой панели считаются на первой странице или по include_counts.
    """
    filters = {
        "status": status.value if status else None,
        "advisor_id": advisor_id,
        "role": role,
    }
    params = {
        "query": query,
        "type": search_type,
        "page": page,
        "limit": limit,
        "sort_by": sort_by,
        "sort_order": sort_order,
        "include_counts": include_counts,
        **filters,
    }
    cache_key = f"search:{json.dumps(params, sort_keys=True)}"
    cached = await cache.get_cache(cache_key)
    if cached is not None:
        return cached

    data, total = await _search_type(
        db,
        search_type=search_type,
        query=query,
        status=status,
        advisor_id=advisor_id,
        roles=parse_roles(role),
        skip=(page - 1) * limit,
        limit=limit,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    total_pages = math.ceil(total / limit) or 1

    response = SearchResponse(
        data=data,
        type=RESULT_TYPES[search_type],
        pagination={
            "total_count": total,
            "total_pages": total_pages,
            "current_page": page,
            "limit": limit,
            "has_next_page": page < total_pages,
            "has_prev_page": page > 1,
        },
        meta={
            "query": query,
            "type": search_type,
            "filters": filters,
            "sidebar_counts": await sidebar_counts(db, query) if page == 1 or include_counts else None,
        },
    ).model_dump(mode="json")

    await cache.set_cache(cache_key, response, expires=settings.SEARCH_CACHE_TTL)
    logger.info(f"Search {search_type!r} for {query!r}: {total} results")
    return response
