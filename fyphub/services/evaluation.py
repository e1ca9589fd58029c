import logging
from typing import List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

import fyphub.repo.evaluation as evaluation_repo
import fyphub.repo.group as group_repo
from fyphub.models.evaluation import Evaluation, EvaluationKind
from fyphub.models.group import Group
from fyphub.models.project import Project
from fyphub.schemas.evaluation import EvaluationCreate
from fyphub.services import notification as notification_service

logger = logging.getLogger(__name__)


async def get_for_project(db: AsyncSession, *, project_id: int) -> List[Evaluation]:
    return await evaluation_repo.get_evaluations_for_project(db, project_id, EvaluationKind.EVALUATION)


async def get_by_author(db: AsyncSession, *, project_id: int, author_id: int) -> Optional[Evaluation]:
    return await evaluation_repo.get_evaluation_by_author(db, project_id, author_id)


async def get_completed(db: AsyncSession, *, author_id: int) -> List[Evaluation]:
    return await evaluation_repo.get_evaluations_by_author(db, author_id)


async def upsert(
    db: AsyncSession, *, obj_in: EvaluationCreate, project: Project, group: Group, author_id: int
) -> Tuple[Evaluation, bool]:
    """Создает или обновляет оценку оценщика; возвращает (оценка, создана ли)"""
    db_obj = await evaluation_repo.get_evaluation_by_author(db, project.id, author_id)
    created = db_obj is None
    if created:
        db_obj = Evaluation(kind=EvaluationKind.EVALUATION, project_id=project.id, author_id=author_id)

    db_obj.score = obj_in.score
    db_obj.comments = obj_in.comments
    db_obj.criteria_data = obj_in.criteria_data
    await evaluation_repo.save_evaluation_in_db(db, db_obj)

    await notification_service.notify(
        db,
        recipient_ids=await group_repo.get_member_ids(db, group.id),
        message=f"'{project.title}' has been {'evaluated' if created else 're-evaluated'}",
        link=f"/groups/{group.group_user_name}/projects/{project.id}/evaluation",
    )
    logger.info(f"Evaluation for project {project.id} by {author_id} {'created' if created else 'updated'}")
    return db_obj, created
