import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

import fyphub.repo.advisor_request as request_repo
import fyphub.repo.evaluation as evaluation_repo
import fyphub.repo.group as group_repo
import fyphub.repo.project as project_repo
import fyphub.repo.user as user_repo
from fyphub.models.advisor_request import AdvisorRequest, AdvisorRequestStatus
from fyphub.models.evaluation import Evaluation, EvaluationKind
from fyphub.models.group import Group
from fyphub.models.project import Project
from fyphub.models.user import User, UserRole
from fyphub.schemas.advisor import AdvisorRating
from fyphub.services import notification as notification_service

logger = logging.getLogger(__name__)


async def get_available(db: AsyncSession) -> List[Dict[str, Any]]:
    """Руководители и количество курируемых ими проектов"""
    advisors = await user_repo.get_users_by_role(db, UserRole.ADVISOR)
    counts = await project_repo.count_projects_by_advisor(db, [advisor.id for advisor in advisors])
    return [
        {
            "id": advisor.id,
            "username": advisor.username,
            "email": advisor.email,
            "first_name": advisor.first_name,
            "last_name": advisor.last_name,
            "profile_info": advisor.profile_info,
            "advised_projects": counts.get(advisor.id, 0),
        }
        for advisor in advisors
    ]


async def get(db: AsyncSession, id: int) -> Optional[AdvisorRequest]:
    return await request_repo.get_request_by_id(db, id)


async def get_latest(db: AsyncSession, *, project_id: int) -> Optional[AdvisorRequest]:
    return await request_repo.get_latest_request_for_project(db, project_id)


async def get_pending(db: AsyncSession, *, project_id: int) -> Optional[AdvisorRequest]:
    return await request_repo.get_pending_request_for_project(db, project_id)


async def get_for_advisor(
    db: AsyncSession, *, advisor_id: int, status: Optional[AdvisorRequestStatus] = AdvisorRequestStatus.PENDING
) -> List[AdvisorRequest]:
    return await request_repo.get_requests_for_advisor(db, advisor_id, status)


async def count_pending(db: AsyncSession, *, advisor_id: int) -> int:
    return await request_repo.count_pending_for_advisor(db, advisor_id)


async def create_request(
    db: AsyncSession, *, group: Group, project: Project, advisor: User, message: Optional[str]
) -> AdvisorRequest:
    """Отправляет запрос руководителю и уведомляет его"""
    db_obj = AdvisorRequest(
        group_id=group.id,
        project_id=project.id,
        requested_advisor_id=advisor.id,
        request_message=message,
        status=AdvisorRequestStatus.PENDING,
    )
    await request_repo.save_request_in_db(db, db_obj)

    await notification_service.notify(
        db,
        recipient_ids=[advisor.id],
        message=f"Group {group.name} requested you as advisor for '{project.title}'",
        link="/advisor/requests",
    )
    return db_obj


async def cancel_request(db: AsyncSession, *, request: AdvisorRequest, group: Group) -> None:
    """Отзывает ожидающий запрос"""
    advisor_id = request.requested_advisor_id
    await request_repo.delete_request_from_db(db, request)
    await notification_service.notify(
        db,
        recipient_ids=[advisor_id],
        message=f"Group {group.name} withdrew its advisor request",
        link="/advisor/requests",
    )


async def respond(db: AsyncSession, *, request: AdvisorRequest, accept: bool, message: Optional[str]) -> AdvisorRequest:
    """
    Принимает или отклоняет запрос.
    При принятии руководитель назначается проекту, участники группы уведомляются в любом случае.
    """
    request.status = AdvisorRequestStatus.ACCEPTED if accept else AdvisorRequestStatus.REJECTED
    request.response_message = message
    await request_repo.save_request_in_db(db, request)

    project = await project_repo.get_project_by_id(db, request.project_id)
    if accept and project:
        project.advisor_id = request.requested_advisor_id
        await project_repo.update_project_in_db(db, project)

    group = await group_repo.get_group_by_id(db, request.group_id)
    verb = "accepted" if accept else "rejected"
    title = project.title if project else "your project"
    await notification_service.notify(
        db,
        recipient_ids=await group_repo.get_member_ids(db, request.group_id),
        message=f"Your advisor request for '{title}' was {verb}",
        link=f"/groups/{group.group_user_name}/projects/{request.project_id}" if group else None,
    )
    logger.info(f"Advisor request {request.id} {verb} by user {request.requested_advisor_id}")
    return request


async def rate_advisor(db: AsyncSession, *, project: Project, author_id: int, obj_in: AdvisorRating) -> Evaluation:
    """Сохраняет оценку руководителя участником группы"""
    db_obj = Evaluation(
        kind=EvaluationKind.ADVISOR_RATING,
        score=float(obj_in.rating),
        comments=obj_in.comments or "",
        criteria_data={"advisor_id": obj_in.advisor_id, "rating": obj_in.rating},
        project_id=project.id,
        author_id=author_id,
    )
    await evaluation_repo.save_evaluation_in_db(db, db_obj)

    await notification_service.notify(
        db,
        recipient_ids=[obj_in.advisor_id],
        message=f"You received a {obj_in.rating}/5 rating for '{project.title}'",
    )
    return db_obj
