from typing import Any, List

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from fyphub.api.access import (
    get_group_or_404,
    get_project_or_404,
    check_admin_rights,
    check_read_access,
    check_role,
)
from fyphub.api.endpoints.auth import get_current_user
from fyphub.db.session import get_db
from fyphub.models.user import User, UserRole
from fyphub.schemas.evaluation import Evaluation, EvaluationCreate, EvaluatorAssign, ProjectEvaluator
from fyphub.schemas.project import Project
from fyphub.services import evaluation as evaluation_service
from fyphub.services import project as project_service
from fyphub.services import user as user_service

# /api/evaluator
router = APIRouter()
# /api/groups/{group_user_name}/projects/{project_id}
project_router = APIRouter()


@project_router.post("/evaluators", response_model=ProjectEvaluator, status_code=status.HTTP_201_CREATED)
async def assign_evaluator(
    *,
    db: AsyncSession = Depends(get_db),
    group_user_name: str,
    project_id: int,
    assign_in: EvaluatorAssign,
    current_user: User = Depends(get_current_user),
) -> Any:
    """
    Назначить оценщика проекту. Только для администраторов.
    """
    check_admin_rights(current_user)
    group = await get_group_or_404(db, group_user_name)
    project = await get_project_or_404(db, group, project_id)

    evaluator = await user_service.get(db, id=assign_in.evaluator_id)
    if not evaluator:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"User {assign_in.evaluator_id} not found")
    if evaluator.role != UserRole.EVALUATOR:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="User is not an evaluator")
    if await project_service.is_evaluator_assigned(db, project_id=project.id, evaluator_id=evaluator.id):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Evaluator is already assigned to this project")

    return await project_service.assign_evaluator(db, project_id=project.id, evaluator_id=evaluator.id)


@project_router.get("/evaluation", response_model=List[Evaluation])
async def read_evaluations(
    *,
    db: AsyncSession = Depends(get_db),
    group_user_name: str,
    project_id: int,
    current_user: User = Depends(get_current_user),
) -> Any:
    group = await get_group_or_404(db, group_user_name)
    await check_read_access(db, group, current_user)
    project = await get_project_or_404(db, group, project_id)
    return await evaluation_service.get_for_project(db, project_id=project.id)


@project_router.post("/evaluation", response_model=Evaluation, status_code=status.HTTP_201_CREATED)
async def submit_evaluation(
    *,
    db: AsyncSession = Depends(get_db),
    group_user_name: str,
    project_id: int,
    evaluation_in: EvaluationCreate,
    response: Response,
    current_user: User = Depends(get_current_user),
) -> Any:
    """
    Выставить или обновить оценку проекта (0-100).
    Возвращает 201 для новой оценки и 200 для обновленной.
    """
    check_role(current_user, UserRole.EVALUATOR)
    group = await get_group_or_404(db, group_user_name)
    project = await get_project_or_404(db, group, project_id)

    if not await project_service.is_evaluator_assigned(db, project_id=project.id, evaluator_id=current_user.id):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You are not assigned to evaluate this project")

    evaluation, created = await evaluation_service.upsert(
        db, obj_in=evaluation_in, project=project, group=group, author_id=current_user.id
    )
    if not created:
        response.status_code = status.HTTP_200_OK
    return evaluation


@router.get("/assigned-projects", response_model=List[Project])
async def read_assigned_projects(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Any:
    """
    Проекты, назначенные текущему оценщику.
    """
    check_role(current_user, UserRole.EVALUATOR)
    return await project_service.get_for_evaluator(db, evaluator_id=current_user.id)


@router.get("/completed-evaluations", response_model=List[Evaluation])
async def read_completed_evaluations(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Any:
    check_role(current_user, UserRole.EVALUATOR)
    return await evaluation_service.get_completed(db, author_id=current_user.id)
