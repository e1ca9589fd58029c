from typing import Any

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from fyphub.api.access import check_role
from fyphub.api.endpoints.auth import get_current_user
from fyphub.db.session import get_db
from fyphub.models.user import User, UserRole
from fyphub.services import dashboard as dashboard_service

router = APIRouter()

ROLE_DASHBOARDS = {
    UserRole.STUDENT: dashboard_service.student_dashboard,
    UserRole.ADVISOR: dashboard_service.advisor_dashboard,
    UserRole.EVALUATOR: dashboard_service.evaluator_dashboard,
    UserRole.ADMINISTRATOR: dashboard_service.admin_dashboard,
}


@router.get("/")
async def read_dashboard(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Any:
    """
    Сводка для роли текущего пользователя.
    """
    return await ROLE_DASHBOARDS[current_user.role](db, user=current_user)


@router.get("/student")
async def read_student_dashboard(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Any:
    check_role(current_user, UserRole.STUDENT)
    return await dashboard_service.student_dashboard(db, user=current_user)


@router.get("/advisor")
async def read_advisor_dashboard(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Any:
    check_role(current_user, UserRole.ADVISOR)
    return await dashboard_service.advisor_dashboard(db, user=current_user)


@router.get("/evaluator")
async def read_evaluator_dashboard(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Any:
    check_role(current_user, UserRole.EVALUATOR)
    return await dashboard_service.evaluator_dashboard(db, user=current_user)
