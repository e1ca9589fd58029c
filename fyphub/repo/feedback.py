from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from fyphub.models.feedback import Feedback, FeedbackStatus
from fyphub.models.project import Project


async def get_feedback_by_id(db: AsyncSession, id: int) -> Optional[Feedback]:
    result = await db.execute(select(Feedback).where(Feedback.id == id))
    return result.scalars().first()


async def get_feedback_for_project(db: AsyncSession, project_id: int) -> List[Feedback]:
    """Отзывы по проекту, новые первыми"""
    result = await db.execute(
        select(Feedback).where(Feedback.project_id == project_id).order_by(Feedback.created_at.desc(), Feedback.id.desc())
    )
    return result.scalars().all()


async def get_feedback_for_repository(db: AsyncSession, repository_id: int) -> List[Feedback]:
    result = await db.execute(
        select(Feedback)
        .where(Feedback.repository_id == repository_id)
        .order_by(Feedback.created_at.desc(), Feedback.id.desc())
    )
    return result.scalars().all()


async def get_recent_feedback_by_advisor(db: AsyncSession, advisor_id: int, limit: int = 5) -> List[Feedback]:
    """Последние отзывы по проектам, которые курирует руководитель"""
    result = await db.execute(
        select(Feedback)
        .join(Project, Project.id == Feedback.project_id)
        .where(Project.advisor_id == advisor_id)
        .order_by(Feedback.created_at.desc(), Feedback.id.desc())
        .limit(limit)
    )
    return result.scalars().all()


async def count_feedback_by_status(db: AsyncSession, project_id: int) -> dict:
    counts = {status.value: 0 for status in FeedbackStatus}
    result = await db.execute(
        select(Feedback.status, func.count(Feedback.id)).where(Feedback.project_id == project_id).group_by(Feedback.status)
    )
    for status, count in result.all():
        counts[status.value] = count
    return counts


async def save_feedback_in_db(db: AsyncSession, feedback: Feedback) -> None:
    db.add(feedback)
    await db.commit()
    await db.refresh(feedback)
