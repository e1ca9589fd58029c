from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

import fyphub.repo.feedback as feedback_repo
import fyphub.repo.group as group_repo
from fyphub.models.feedback import Feedback, FeedbackStatus
from fyphub.models.group import Group
from fyphub.models.project import Project
from fyphub.models.repository import Repository
from fyphub.schemas.feedback import FeedbackCreate, FeedbackUpdate
from fyphub.services import notification as notification_service


async def get(db: AsyncSession, id: int) -> Optional[Feedback]:
    return await feedback_repo.get_feedback_by_id(db, id)


async def get_for_project(db: AsyncSession, *, project_id: int) -> List[Feedback]:
    return await feedback_repo.get_feedback_for_project(db, project_id)


async def get_for_repository(db: AsyncSession, *, repository_id: int) -> List[Feedback]:
    return await feedback_repo.get_feedback_for_repository(db, repository_id)


async def get_recent_for_advisor(db: AsyncSession, *, advisor_id: int, limit: int = 5) -> List[Feedback]:
    return await feedback_repo.get_recent_feedback_by_advisor(db, advisor_id, limit)


async def create(db: AsyncSession, *, obj_in: FeedbackCreate, project: Project, group: Group, author_id: int) -> Feedback:
    """Создает отзыв и уведомляет участников группы"""
    db_obj = Feedback(
        title=obj_in.title,
        content=obj_in.content,
        status=FeedbackStatus.OPEN,
        author_id=author_id,
        project_id=project.id,
    )
    await feedback_repo.save_feedback_in_db(db, db_obj)

    await notification_service.notify(
        db,
        recipient_ids=await group_repo.get_member_ids(db, group.id),
        message=f"New feedback on '{project.title}': {obj_in.title}",
        link=f"/groups/{group.group_user_name}/projects/{project.id}/feedback",
    )
    return db_obj


async def create_for_repository(
    db: AsyncSession,
    *,
    obj_in: FeedbackCreate,
    repository: Repository,
    group: Group,
    author_id: int,
    project: Optional[Project] = None,
) -> Feedback:
    """
    Отзыв к репозиторию группы, при необходимости привязанный к проекту.
    Участники группы получают уведомление.
    """
    db_obj = Feedback(
        title=obj_in.title,
        content=obj_in.content,
        status=FeedbackStatus.OPEN,
        author_id=author_id,
        project_id=project.id if project else None,
        repository_id=repository.id,
    )
    await feedback_repo.save_feedback_in_db(db, db_obj)

    await notification_service.notify(
        db,
        recipient_ids=await group_repo.get_member_ids(db, group.id),
        message=f"New feedback on repository {repository.name}: {obj_in.title}",
        link=f"/groups/{group.group_user_name}/repositories/{repository.name}/feedback",
    )
    return db_obj


async def update(db: AsyncSession, *, db_obj: Feedback, obj_in: FeedbackUpdate) -> Feedback:
    for field, value in obj_in.model_dump(exclude_unset=True).items():
        if field == "status" and value is None:
            continue
        setattr(db_obj, field, value)

    await feedback_repo.save_feedback_in_db(db, db_obj)
    return db_obj
