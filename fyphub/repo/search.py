from typing import Any, List, Optional, Sequence, Tuple

from sqlalchemy import func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload

from fyphub.models.group import Group, GroupMember
from fyphub.models.project import Project, ProjectRepository, ProjectStatus
from fyphub.models.repository import Branch, Commit, Repository
from fyphub.models.user import User, UserRole

SEARCHABLE_ROLES = (UserRole.STUDENT, UserRole.ADVISOR, UserRole.EVALUATOR)

# Поля сортировки для каждого вида результатов
SORT_COLUMNS = {
    "projects": {
        "created_at": Project.created_at,
        "updated_at": Project.updated_at,
        "title": Project.title,
        "name": Project.title,
    },
    "repositories": {
        "created_at": Repository.created_at,
        "updated_at": Repository.updated_at,
        "title": Repository.name,
        "name": Repository.name,
    },
    "groups": {
        "created_at": Group.created_at,
        "updated_at": Group.updated_at,
        "title": Group.name,
        "name": Group.name,
    },
    "users": {
        "created_at": User.created_at,
        "updated_at": User.created_at,
        "title": User.first_name,
        "name": User.first_name,
    },
}


def text_condition(query: Optional[str], columns: Sequence[Any]):
    """Поиск подстроки без учета регистра хотя бы в одном из полей"""
    if not query or not query.strip():
        return None
    needle = query.strip().lower()
    return or_(*[func.lower(column).contains(needle, autoescape=True) for column in columns])


def _with_text(conditions: List[Any], query: Optional[str], columns: Sequence[Any]) -> List[Any]:
    condition = text_condition(query, columns)
    if condition is not None:
        conditions.append(condition)
    return conditions


def project_filters(
    query: Optional[str], status: Optional[ProjectStatus] = None, advisor_id: Optional[int] = None
) -> List[Any]:
    # Архивные проекты показываются только при явном фильтре по статусу
    conditions = [Project.status == status] if status else [Project.status != ProjectStatus.ARCHIVED]
    if advisor_id is not None:
        conditions.append(Project.advisor_id == advisor_id)
    return _with_text(conditions, query, [Project.title, Project.description])


def repository_filters(query: Optional[str]) -> List[Any]:
    return _with_text([Repository.is_private.is_(False)], query, [Repository.name, Repository.description])


def group_filters(query: Optional[str]) -> List[Any]:
    return _with_text([], query, [Group.name, Group.description, Group.group_user_name])


def user_filters(query: Optional[str], roles: Sequence[UserRole]) -> List[Any]:
    return _with_text(
        [User.role.in_(list(roles))], query, [User.first_name, User.last_name, User.username, User.email]
    )


def order_by(kind: str, sort_by: str, sort_order: str, model) -> List[Any]:
    column = SORT_COLUMNS[kind][sort_by]
    if sort_order == "asc":
        return [column.asc(), model.id.asc()]
    return [column.desc(), model.id.desc()]


async def count_rows(db: AsyncSession, model, conditions: List[Any]) -> int:
    result = await db.execute(select(func.count(model.id)).where(*conditions))
    return result.scalar_one()


async def _page(db: AsyncSession, statement, model, conditions, ordering, skip: int, limit: int) -> Tuple[List[Any], int]:
    total = await count_rows(db, model, conditions)
    result = await db.execute(statement.where(*conditions).order_by(*ordering).offset(skip).limit(limit))
    return result.all(), total


def _count_of(column, key) -> Any:
    return select(func.count()).where(column == key).correlate_except(column.class_.__table__).scalar_subquery()


async def search_projects(
    db: AsyncSession, conditions: List[Any], ordering: List[Any], skip: int, limit: int
) -> Tuple[List[Any], int]:
    """Строки (Project,) с загруженными группой и руководителем"""
    statement = select(Project).options(selectinload(Project.group), selectinload(Project.advisor))
    return await _page(db, statement, Project, conditions, ordering, skip, limit)


async def search_repositories(
    db: AsyncSession, conditions: List[Any], ordering: List[Any], skip: int, limit: int
) -> Tuple[List[Any], int]:
    """Строки (Repository, commits, branches, projects)"""
    statement = select(
        Repository,
        _count_of(Commit.repository_id, Repository.id),
        _count_of(Branch.repository_id, Repository.id),
        _count_of(ProjectRepository.repository_id, Repository.id),
    ).options(selectinload(Repository.group))
    return await _page(db, statement, Repository, conditions, ordering, skip, limit)


async def search_groups(
    db: AsyncSession, conditions: List[Any], ordering: List[Any], skip: int, limit: int
) -> Tuple[List[Any], int]:
    """Строки (Group, members, projects)"""
    statement = select(
        Group,
        _count_of(GroupMember.group_id, Group.id),
        _count_of(Project.group_id, Group.id),
    ).options(selectinload(Group.leader))
    return await _page(db, statement, Group, conditions, ordering, skip, limit)


async def search_users(
    db: AsyncSession, conditions: List[Any], ordering: List[Any], skip: int, limit: int
) -> Tuple[List[Any], int]:
    """Строки (User, groups, advised_projects)"""
    statement = select(
        User,
        _count_of(GroupMember.user_id, User.id),
        _count_of(Project.advisor_id, User.id),
    )
    return await _page(db, statement, User, conditions, ordering, skip, limit)
