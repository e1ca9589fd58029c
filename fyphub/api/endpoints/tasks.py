from typing import Any, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from fyphub.api.access import (
    get_group_or_404,
    get_project_or_404,
    check_member_rights,
    check_read_access,
    is_admin,
    is_leader,
)
from fyphub.api.endpoints.auth import get_current_user
from fyphub.db.session import get_db
from fyphub.models.group import Group
from fyphub.models.project import Project, ProjectStatus
from fyphub.models.task import Task as TaskModel, TaskStatus, TaskPriority
from fyphub.models.user import User
from fyphub.schemas.task import Task, TaskCreate, TaskUpdate
from fyphub.services import group as group_service
from fyphub.services import task as task_service

router = APIRouter()


async def get_task_or_404(db: AsyncSession, project: Project, task_id: int) -> TaskModel:
    task = await task_service.get(db, task_id)
    if not task or task.project_id != project.id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Task {task_id} not found")
    return task


async def check_assignee(db: AsyncSession, group: Group, assignee_id: Optional[int]) -> None:
    """Исполнитель должен быть участником группы"""
    if assignee_id is None:
        return
    if not await group_service.is_user_in_group(db, group_id=group.id, user_id=assignee_id):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Assignee must be a member of the group")


@router.get("/", response_model=List[Task])
async def read_tasks(
    *,
    db: AsyncSession = Depends(get_db),
    group_user_name: str,
    project_id: int,
    status_filter: Optional[TaskStatus] = Query(None, alias="status"),
    priority: Optional[TaskPriority] = None,
    assignee_id: Optional[int] = None,
    current_user: User = Depends(get_current_user),
) -> Any:
    """
    Получить задачи проекта с фильтрацией.
    """
    group = await get_group_or_404(db, group_user_name)
    await check_read_access(db, group, current_user)
    project = await get_project_or_404(db, group, project_id)

    filters = {"status": status_filter, "priority": priority, "assignee_id": assignee_id}
    return await task_service.get_multi(db, project_id=project.id, filters=filters)


@router.post("/", response_model=Task, status_code=status.HTTP_201_CREATED)
async def create_task(
    *,
    db: AsyncSession = Depends(get_db),
    group_user_name: str,
    project_id: int,
    task_in: TaskCreate,
    current_user: User = Depends(get_current_user),
) -> Any:
    """
    Создать задачу в активном проекте.
    """
    group = await get_group_or_404(db, group_user_name)
    await check_member_rights(db, group, current_user)
    project = await get_project_or_404(db, group, project_id)

    if project.status != ProjectStatus.ACTIVE:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Tasks can only be added to active projects")

    await check_assignee(db, group, task_in.assignee_id)
    return await task_service.create(db, obj_in=task_in, project_id=project.id, creator_id=current_user.id)


@router.get("/{task_id}", response_model=Task)
async def read_task(
    *,
    db: AsyncSession = Depends(get_db),
    group_user_name: str,
    project_id: int,
    task_id: int,
    current_user: User = Depends(get_current_user),
) -> Any:
    group = await get_group_or_404(db, group_user_name)
    await check_read_access(db, group, current_user)
    project = await get_project_or_404(db, group, project_id)
    return await get_task_or_404(db, project, task_id)


@router.patch("/{task_id}", response_model=Task)
async def update_task(
    *,
    db: AsyncSession = Depends(get_db),
    group_user_name: str,
    project_id: int,
    task_id: int,
    task_in: TaskUpdate,
    current_user: User = Depends(get_current_user),
) -> Any:
    """
    Обновить задачу.
    Доступно лидеру группы, автору, исполнителю и администраторам.
    """
    group = await get_group_or_404(db, group_user_name)
    project = await get_project_or_404(db, group, project_id)
    task = await get_task_or_404(db, project, task_id)

    allowed = (
        is_admin(current_user)
        or is_leader(group, current_user)
        or current_user.id in (task.creator_id, task.assignee_id)
    )
    if not allowed:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not enough permissions")

    if "assignee_id" in task_in.model_fields_set:
        await check_assignee(db, group, task_in.assignee_id)

    return await task_service.update(db, db_obj=task, obj_in=task_in)


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_task(
    *,
    db: AsyncSession = Depends(get_db),
    group_user_name: str,
    project_id: int,
    task_id: int,
    current_user: User = Depends(get_current_user),
) -> None:
    """
    Удалить задачу.
    Доступно лидеру группы, автору и администраторам.
    """
    group = await get_group_or_404(db, group_user_name)
    project = await get_project_or_404(db, group, project_id)
    task = await get_task_or_404(db, project, task_id)

    if not (is_admin(current_user) or is_leader(group, current_user) or task.creator_id == current_user.id):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not enough permissions")

    await task_service.delete(db, id=task.id)
    return None
