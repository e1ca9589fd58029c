import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

import fyphub.repo.task as task_repo
import fyphub.repo.user as user_repo
from fyphub.messaging import producers
from fyphub.models.task import Task
from fyphub.schemas.task import TaskCreate, TaskUpdate
from fyphub.utils.time import ensure_utc

log = logging.getLogger(__name__)


async def get(db: AsyncSession, id: int) -> Optional[Task]:
    return await task_repo.get_task_by_id(db, id)


async def get_multi(db: AsyncSession, *, project_id: int, filters: Optional[Dict[str, Any]] = None) -> List[Task]:
    return await task_repo.get_tasks_with_filters(db, project_id, filters)


async def get_for_user(db: AsyncSession, *, user_id: int) -> List[Task]:
    """Задачи, назначенные пользователю или созданные им"""
    return await task_repo.get_tasks_for_user(db, user_id)


async def _event_payload(db: AsyncSession, task: Task) -> Dict[str, Any]:
    assignee_email = None
    if task.assignee_id:
        user = await user_repo.get_user_by_id(db, task.assignee_id)
        if user:
            assignee_email = user.email

    return {
        "id": task.id,
        "title": task.title,
        "status": task.status.value,
        "priority": task.priority.value,
        "project_id": task.project_id,
        "creator_id": task.creator_id,
        "assignee_id": task.assignee_id,
        "assignee_email": assignee_email,
        "deadline": task.deadline.isoformat() if task.deadline else None,
    }


async def create(db: AsyncSession, *, obj_in: TaskCreate, project_id: int, creator_id: int) -> Task:
    """Создает задачу и публикует событие task_created"""
    db_obj = Task(
        title=obj_in.title,
        description=obj_in.description,
        status=obj_in.status,
        priority=obj_in.priority,
        deadline=ensure_utc(obj_in.deadline),
        assignee_id=obj_in.assignee_id,
        creator_id=creator_id,
        project_id=project_id,
    )
    await task_repo.create_task_in_db(db, db_obj)

    await producers.send_event(
        topic=producers.TASK_EVENTS,
        event_type="task_created",
        data=await _event_payload(db, db_obj),
    )
    return db_obj


async def update(db: AsyncSession, *, db_obj: Task, obj_in: TaskUpdate) -> Task:
    """Обновляет задачу и публикует событие task_updated"""
    update_data = obj_in.model_dump(exclude_unset=True)
    if "deadline" in update_data:
        update_data["deadline"] = ensure_utc(update_data["deadline"])

    for field, value in update_data.items():
        if value is None and field in ("title", "status", "priority"):
            continue
        setattr(db_obj, field, value)

    await task_repo.update_task_in_db(db, db_obj)
    log.info(f"Task {db_obj.id} updated: {sorted(update_data)}")

    await producers.send_event(
        topic=producers.TASK_EVENTS,
        event_type="task_updated",
        data=await _event_payload(db, db_obj),
    )
    return db_obj


async def delete(db: AsyncSession, *, id: int) -> bool:
    return await task_repo.delete_task_from_db(db, id)
