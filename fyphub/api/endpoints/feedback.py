from typing import Any, List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from fyphub.api.access import get_group_or_404, get_project_or_404, check_read_access, is_admin, is_member
from fyphub.api.endpoints.auth import get_current_user
from fyphub.db.session import get_db
from fyphub.models.feedback import FeedbackStatus
from fyphub.models.user import User
from fyphub.schemas.feedback import Feedback, FeedbackCreate, FeedbackUpdate
from fyphub.services import feedback as feedback_service
from fyphub.services import project as project_service

router = APIRouter()


@router.get("/", response_model=List[Feedback])
async def read_feedback(
    *,
    db: AsyncSession = Depends(get_db),
    group_user_name: str,
    project_id: int,
    current_user: User = Depends(get_current_user),
) -> Any:
    """
    Отзывы по проекту, новые первыми.
    """
    group = await get_group_or_404(db, group_user_name)
    await check_read_access(db, group, current_user)
    project = await get_project_or_404(db, group, project_id)
    return await feedback_service.get_for_project(db, project_id=project.id)


@router.post("/", response_model=Feedback, status_code=status.HTTP_201_CREATED)
async def create_feedback(
    *,
    db: AsyncSession = Depends(get_db),
    group_user_name: str,
    project_id: int,
    feedback_in: FeedbackCreate,
    current_user: User = Depends(get_current_user),
) -> Any:
    """
    Оставить отзыв.
    Доступно руководителю проекта, назначенному оценщику и администраторам.
    """
    group = await get_group_or_404(db, group_user_name)
    project = await get_project_or_404(db, group, project_id)

    allowed = (
        is_admin(current_user)
        or project.advisor_id == current_user.id
        or await project_service.is_evaluator_assigned(db, project_id=project.id, evaluator_id=current_user.id)
    )
    if not allowed:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the project advisor or an assigned evaluator can give feedback",
        )

    return await feedback_service.create(
        db, obj_in=feedback_in, project=project, group=group, author_id=current_user.id
    )


@router.patch("/{feedback_id}", response_model=Feedback)
async def update_feedback(
    *,
    db: AsyncSession = Depends(get_db),
    group_user_name: str,
    project_id: int,
    feedback_id: int,
    feedback_in: FeedbackUpdate,
    current_user: User = Depends(get_current_user),
) -> Any:
    """
    Обновить отзыв.
    Участники группы могут отметить его как ADDRESSED с ответом,
    автор и администратор могут выставить любой статус.
    """
    group = await get_group_or_404(db, group_user_name)
    project = await get_project_or_404(db, group, project_id)

    feedback = await feedback_service.get(db, feedback_id)
    if not feedback or feedback.project_id != project.id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Feedback {feedback_id} not found")

    if is_admin(current_user) or feedback.author_id == current_user.id:
        return await feedback_service.update(db, db_obj=feedback, obj_in=feedback_in)

    if not await is_member(db, group, current_user):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not enough permissions")
    if feedback_in.status not in (None, FeedbackStatus.ADDRESSED):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Group members can only mark feedback as addressed",
        )

    member_update = FeedbackUpdate(status=FeedbackStatus.ADDRESSED, **feedback_in.model_dump(include={"response"}, exclude_unset=True))
    return await feedback_service.update(db, db_obj=feedback, obj_in=member_update)
