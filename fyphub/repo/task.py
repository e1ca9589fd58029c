from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import delete, func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from fyphub.models.task import Task, TaskStatus, OPEN_TASK_STATUSES


async def get_task_by_id(db: AsyncSession, id: int) -> Optional[Task]:
    """Получает задачу по идентификатору"""
    result = await db.execute(select(Task).where(Task.id == id))
    return result.scalars().first()


async def get_tasks_with_filters(
    db: AsyncSession, project_id: int, filters: Optional[Dict[str, Any]] = None
) -> List[Task]:
    """Получает задачи проекта с фильтрацией"""
    query = select(Task).where(Task.project_id == project_id)

    if filters:
        if filters.get("status"):
            query = query.where(Task.status == filters["status"])
        if filters.get("priority"):
            query = query.where(Task.priority == filters["priority"])
        if filters.get("assignee_id"):
            query = query.where(Task.assignee_id == filters["assignee_id"])

    result = await db.execute(query.order_by(Task.created_at.desc(), Task.id.desc()))
    return result.scalars().all()


async def get_tasks_for_user(db: AsyncSession, user_id: int) -> List[Task]:
    """Получает задачи, назначенные пользователю или созданные им"""
    result = await db.execute(
        select(Task)
        .where(or_(Task.assignee_id == user_id, Task.creator_id == user_id))
        .order_by(Task.deadline.is_(None), Task.deadline, Task.id)
    )
    return result.scalars().all()


async def count_tasks_by_status(db: AsyncSession, *, project_id: Optional[int] = None, assignee_id: Optional[int] = None) -> Dict[str, int]:
    """Количество задач по статусам"""
    counts = {status.value: 0 for status in TaskStatus}
    query = select(Task.status, func.count(Task.id))
    if project_id is not None:
        query = query.where(Task.project_id == project_id)
    if assignee_id is not None:
        query = query.where(Task.assignee_id == assignee_id)
    result = await db.execute(query.group_by(Task.status))
    for status, count in result.all():
        counts[status.value] = count
    return counts


async def get_open_tasks_due_between(
    db: AsyncSession, start: datetime, end: datetime, assignee_id: Optional[int] = None
) -> List[Task]:
    """Незавершенные задачи со сроком в заданном интервале"""
    query = select(Task).where(
        Task.deadline >= start,
        Task.deadline <= end,
        Task.status.in_(OPEN_TASK_STATUSES),
    )
    if assignee_id is not None:
        query = query.where(Task.assignee_id == assignee_id)
    result = await db.execute(query.order_by(Task.deadline))
    return result.scalars().all()


async def create_task_in_db(db: AsyncSession, task: Task) -> None:
    """Создает задачу в базе данных"""
    db.add(task)
    await db.commit()
    await db.refresh(task)


async def update_task_in_db(db: AsyncSession, task: Task) -> None:
    """Обновляет задачу в базе данных"""
    db.add(task)
    await db.commit()
    await db.refresh(task)


async def delete_task_from_db(db: AsyncSession, id: int) -> bool:
    """Удаляет задачу из базы данных"""
    result = await db.execute(delete(Task).where(Task.id == id))
    await db.commit()
    return result.rowcount > 0
