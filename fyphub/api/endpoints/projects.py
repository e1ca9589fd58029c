from typing import Any, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from fyphub.api.access import (
    get_group_or_404,
    get_project_or_404,
    get_repository_or_404,
    check_leader_rights,
    check_member_rights,
    check_read_access,
    is_admin,
    is_leader,
)
from fyphub.api.endpoints.auth import get_current_user
from fyphub.db.session import get_db
from fyphub.models.project import ProjectStatus
from fyphub.models.user import User
from fyphub.schemas.activity import ProjectActivity
from fyphub.schemas.project import (
    Project,
    ProjectCreate,
    ProjectRepositoryLink,
    ProjectStats,
    ProjectUpdate,
    ProjectWithCounters,
    TopProject,
)
from fyphub.schemas.repository import Repository
from fyphub.services import activity as activity_service
from fyphub.services import project as project_service

router = APIRouter()
# /api/projects
top_router = APIRouter()


@router.get("/", response_model=List[ProjectWithCounters])
async def read_projects(
    *,
    db: AsyncSession = Depends(get_db),
    group_user_name: str,
    status_filter: Optional[ProjectStatus] = Query(None, alias="status"),
    include_archived: bool = False,
    current_user: User = Depends(get_current_user),
) -> Any:
    """
    Получить проекты группы.
    Доступно участникам, преподавателям и администраторам.
    """
    group = await get_group_or_404(db, group_user_name)
    await check_read_access(db, group, current_user)
    return await project_service.get_for_group(
        db, group_id=group.id, status=status_filter, include_archived=include_archived
    )


@router.post("/", response_model=Project, status_code=status.HTTP_201_CREATED)
async def create_project(
    *,
    db: AsyncSession = Depends(get_db),
    group_user_name: str,
    project_in: ProjectCreate,
    current_user: User = Depends(get_current_user),
) -> Any:
    """
    Создать проект группы.
    Доступно лидеру группы и администраторам.
    """
    group = await get_group_or_404(db, group_user_name)
    check_leader_rights(group, current_user)
    return await project_service.create(db, obj_in=project_in, group_id=group.id)


@router.get("/{project_id}", response_model=Project)
async def read_project(
    *,
    db: AsyncSession = Depends(get_db),
    group_user_name: str,
    project_id: int,
    current_user: User = Depends(get_current_user),
) -> Any:
    """
    Получить проект по ID.
    """
    group = await get_group_or_404(db, group_user_name)
    await check_read_access(db, group, current_user)
    return await get_project_or_404(db, group, project_id)


@router.patch("/{project_id}", response_model=Project)
async def update_project(
    *,
    db: AsyncSession = Depends(get_db),
    group_user_name: str,
    project_id: int,
    project_in: ProjectUpdate,
    current_user: User = Depends(get_current_user),
) -> Any:
    """
    Обновить проект.
    Доступно лидеру группы, руководителю проекта и администраторам.
    """
    group = await get_group_or_404(db, group_user_name)
    project = await get_project_or_404(db, group, project_id)

    if not (is_admin(current_user) or is_leader(group, current_user) or project.advisor_id == current_user.id):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not enough permissions")

    return await project_service.update(db, db_obj=project, obj_in=project_in)


@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_project(
    *,
    db: AsyncSession = Depends(get_db),
    group_user_name: str,
    project_id: int,
    current_user: User = Depends(get_current_user),
) -> None:
    """
    Удалить проект.
    """
    group = await get_group_or_404(db, group_user_name)
    project = await get_project_or_404(db, group, project_id)
    check_leader_rights(group, current_user)

    await project_service.delete(db, id=project.id)
    return None


@router.get("/{project_id}/stats", response_model=ProjectStats)
async def read_project_stats(
    *,
    db: AsyncSession = Depends(get_db),
    group_user_name: str,
    project_id: int,
    current_user: User = Depends(get_current_user),
) -> Any:
    """
    Статистика проекта: задачи, отзывы, оценки, коммиты, участники.
    """
    group = await get_group_or_404(db, group_user_name)
    await check_read_access(db, group, current_user)
    project = await get_project_or_404(db, group, project_id)
    return await project_service.get_stats(db, project=project)


@router.get("/{project_id}/activities", response_model=List[ProjectActivity])
async def read_project_activities(
    *,
    db: AsyncSession = Depends(get_db),
    group_user_name: str,
    project_id: int,
    current_user: User = Depends(get_current_user),
) -> Any:
    """
    Последние задачи, оценки, отзывы и коммиты проекта.
    """
    group = await get_group_or_404(db, group_user_name)
    await check_read_access(db, group, current_user)
    project = await get_project_or_404(db, group, project_id)
    return await activity_service.get_project_activities(db, project=project)


@router.get("/{project_id}/repositories", response_model=List[Repository])
async def read_project_repositories(
    *,
    db: AsyncSession = Depends(get_db),
    group_user_name: str,
    project_id: int,
    current_user: User = Depends(get_current_user),
) -> Any:
    group = await get_group_or_404(db, group_user_name)
    await check_read_access(db, group, current_user)
    project = await get_project_or_404(db, group, project_id)
    return await project_service.get_repositories(db, project_id=project.id)


@router.post("/{project_id}/repositories", response_model=Repository, status_code=status.HTTP_201_CREATED)
async def link_project_repository(
    *,
    db: AsyncSession = Depends(get_db),
    group_user_name: str,
    project_id: int,
    link_in: ProjectRepositoryLink,
    current_user: User = Depends(get_current_user),
) -> Any:
    """
    Привязать репозиторий группы к проекту.
    """
    group = await get_group_or_404(db, group_user_name)
    await check_member_rights(db, group, current_user)
    project = await get_project_or_404(db, group, project_id)
    repository = await get_repository_or_404(db, group, link_in.repository_name)

    if await project_service.is_repository_linked(db, project_id=project.id, repository_id=repository.id):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Repository is already linked to this project")

    await project_service.link_repository(db, project_id=project.id, repository_id=repository.id)
    return repository


@router.delete("/{project_id}/repositories/{repository_name}", status_code=status.HTTP_204_NO_CONTENT)
async def unlink_project_repository(
    *,
    db: AsyncSession = Depends(get_db),
    group_user_name: str,
    project_id: int,
    repository_name: str,
    current_user: User = Depends(get_current_user),
) -> None:
    group = await get_group_or_404(db, group_user_name)
    await check_member_rights(db, group, current_user)
    project = await get_project_or_404(db, group, project_id)
    repository = await get_repository_or_404(db, group, repository_name)

    if not await project_service.unlink_repository(db, project_id=project.id, repository_id=repository.id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Repository is not linked to this project")
    return None


@top_router.get("/top", response_model=List[TopProject])
async def read_top_projects(
    db: AsyncSession = Depends(get_db),
    limit: int = Query(5, ge=1, le=50),
) -> Any:
    """
    Последние неархивные проекты всех групп. Доступно без авторизации.
    """
    return await project_service.get_top(db, limit=limit)
