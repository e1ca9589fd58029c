from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from fyphub.models.group import Group
from fyphub.models.project import Project
from fyphub.models.repository import Repository
from fyphub.models.user import User, UserRole, FACULTY_ROLES
from fyphub.services import group as group_service
from fyphub.services import project as project_service
from fyphub.services import repository as repository_service

FORBIDDEN = "Not enough permissions"


def is_admin(user: User) -> bool:
    return user.role == UserRole.ADMINISTRATOR


# Проверка прав администратора
def check_admin_rights(current_user: User):
    if not is_admin(current_user):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=FORBIDDEN)


def check_role(current_user: User, role: UserRole):
    if current_user.role != role:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=f"Only users with role {role.value} can do this")


async def get_group_or_404(db: AsyncSession, group_user_name: str) -> Group:
    group = await group_service.get_by_user_name(db, group_user_name)
    if not group:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Group {group_user_name} not found")
    return group


async def get_project_or_404(db: AsyncSession, group: Group, project_id: int) -> Project:
    """Проект должен принадлежать группе"""
    project = await project_service.get(db, project_id)
    if not project or project.group_id != group.id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Project {project_id} not found")
    return project


async def get_repository_or_404(db: AsyncSession, group: Group, repository_name: str) -> Repository:
    repository = await repository_service.get_by_name(db, group_id=group.id, name=repository_name)
    if not repository:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Repository {repository_name} not found")
    return repository


async def is_member(db: AsyncSession, group: Group, user: User) -> bool:
    return await group_service.is_user_in_group(db=db, group_id=group.id, user_id=user.id)


def is_leader(group: Group, user: User) -> bool:
    return group.leader_id == user.id


# Проверка членства в группе
async def check_member_rights(db: AsyncSession, group: Group, current_user: User):
    # Администратор имеет полные права
    if is_admin(current_user):
        return
    if not await is_member(db, group, current_user):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You are not a member of this group")


# Проверка прав лидера группы
def check_leader_rights(group: Group, current_user: User):
    if is_admin(current_user) or is_leader(group, current_user):
        return
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only the group leader can do this")


# Чтение проектов: участник, администратор или преподаватель
async def check_read_access(db: AsyncSession, group: Group, current_user: User):
    if is_admin(current_user) or current_user.role in FACULTY_ROLES:
        return
    await check_member_rights(db, group, current_user)


async def check_repository_access(db: AsyncSession, group: Group, repository: Repository, current_user) -> None:
    """
    Публичный репозиторий доступен всем.
    Приватный: без токена 401, иначе нужен участник, администратор,
    руководитель или оценщик проекта группы.
    """
    if not repository.is_private:
        return
    if current_user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if is_admin(current_user) or await is_member(db, group, current_user):
        return
    if await project_service.has_project_role_in_group(db, group_id=group.id, user_id=current_user.id):
        return
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You do not have access to this repository")
