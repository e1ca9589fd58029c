from typing import List, Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from fyphub.models.evaluation import Evaluation
from fyphub.models.feedback import Feedback
from fyphub.models.project import Project
from fyphub.models.repository import Commit, Repository
from fyphub.models.task import Task


async def get_recent_project_tasks(db: AsyncSession, project_id: int, limit: int) -> List[Task]:
    result = await db.execute(
        select(Task).where(Task.project_id == project_id).order_by(Task.created_at.desc(), Task.id.desc()).limit(limit)
    )
    return result.scalars().all()


async def get_recent_project_evaluations(db: AsyncSession, project_id: int, limit: int) -> List[Evaluation]:
    result = await db.execute(
        select(Evaluation)
        .where(Evaluation.project_id == project_id)
        .order_by(Evaluation.created_at.desc(), Evaluation.id.desc())
        .limit(limit)
    )
    return result.scalars().all()


async def get_recent_project_feedback(db: AsyncSession, project_id: int, limit: int) -> List[Feedback]:
    result = await db.execute(
        select(Feedback)
        .where(Feedback.project_id == project_id)
        .order_by(Feedback.created_at.desc(), Feedback.id.desc())
        .limit(limit)
    )
    return result.scalars().all()


async def get_recent_commits(
    db: AsyncSession,
    *,
    limit: int,
    repository_ids: Optional[List[int]] = None,
    author_id: Optional[int] = None,
) -> List[Tuple[Commit, str]]:
    """Последние коммиты вместе с именем репозитория"""
    if repository_ids is not None and not repository_ids:
        return []
    query = select(Commit, Repository.name).join(Repository, Repository.id == Commit.repository_id)
    if repository_ids is not None:
        query = query.where(Commit.repository_id.in_(repository_ids))
    if author_id is not None:
        query = query.where(Commit.author_id == author_id)
    result = await db.execute(query.order_by(Commit.timestamp.desc(), Commit.id).limit(limit))
    return result.all()


async def get_recent_user_tasks(db: AsyncSession, user_id: int, limit: int) -> List[Tuple[Task, str]]:
    """Задачи, назначенные пользователю или созданные им, с названием проекта"""
    result = await db.execute(
        select(Task, Project.title)
        .join(Project, Project.id == Task.project_id)
        .where(or_(Task.assignee_id == user_id, Task.creator_id == user_id))
        .order_by(Task.updated_at.desc(), Task.id.desc())
        .limit(limit)
    )
    return result.all()


async def get_recent_user_feedback(db: AsyncSession, author_id: int, limit: int) -> List[Tuple[Feedback, Optional[str]]]:
    result = await db.execute(
        select(Feedback, Project.title)
        .outerjoin(Project, Project.id == Feedback.project_id)
        .where(Feedback.author_id == author_id)
        .order_by(Feedback.created_at.desc(), Feedback.id.desc())
        .limit(limit)
    )
    return result.all()
