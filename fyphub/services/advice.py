import logging
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

import fyphub.repo.advice_request as advice_repo
from fyphub.models.advice_request import AdviceRequest, AdviceStatus
from fyphub.models.group import Group
from fyphub.models.project import Project
from fyphub.models.user import User
from fyphub.schemas.advice import AdviceRequestCreate
from fyphub.services import notification as notification_service
from fyphub.utils.time import utc_now

logger = logging.getLogger(__name__)


async def get(db: AsyncSession, id: int) -> Optional[AdviceRequest]:
    return await advice_repo.get_advice_by_id(db, id)


async def get_for_project(db: AsyncSession, *, project_id: int) -> List[AdviceRequest]:
    return await advice_repo.get_advice_for_project(db, project_id)


async def create(
    db: AsyncSession, *, obj_in: AdviceRequestCreate, project: Project, group: Group, requester: User
) -> AdviceRequest:
    """Создает запрос совета и уведомляет руководителя проекта"""
    db_obj = AdviceRequest(
        project_id=project.id,
        requester_id=requester.id,
        topic=obj_in.topic,
        description=obj_in.description,
        status=AdviceStatus.PENDING,
    )
    await advice_repo.save_advice_in_db(db, db_obj)

    await notification_service.notify(
        db,
        recipient_ids=[project.advisor_id],
        message=f"{requester.username} asked for advice on '{project.title}': {obj_in.topic}",
        link=f"/groups/{group.group_user_name}/projects/{project.id}/advisor/advice",
    )
    return db_obj


async def respond(
    db: AsyncSession, *, advice: AdviceRequest, project: Project, group: Group, advisor: User, content: str
) -> AdviceRequest:
    """
    Сохраняет ответ руководителя.
    Запрос переходит в ANSWERED, автор запроса получает уведомление.
    """
    advice.response = content
    advice.status = AdviceStatus.ANSWERED
    advice.responded_by_id = advisor.id
    advice.responded_at = utc_now()
    await advice_repo.save_advice_in_db(db, advice)

    if advice.requester_id is not None:
        await notification_service.notify(
            db,
            recipient_ids=[advice.requester_id],
            message=f"Your advisor answered '{advice.topic}'",
            link=f"/groups/{group.group_user_name}/projects/{project.id}/advisor/advice",
        )
    logger.info(f"Advice request {advice.id} answered by user {advisor.id}")
    return advice
