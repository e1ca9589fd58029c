from typing import Any, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from fyphub.api.access import (
    get_group_or_404,
    get_project_or_404,
    check_member_rights,
    check_read_access,
    check_role,
)
from fyphub.api.endpoints.auth import get_current_user
from fyphub.db.session import get_db
from fyphub.models.advice_request import AdviceStatus
from fyphub.models.advisor_request import AdvisorRequestStatus
from fyphub.models.user import User, UserRole
from fyphub.schemas.advice import AdviceRequest, AdviceRequestCreate, AdviceResponseCreate
from fyphub.schemas.advisor import (
    AdvisorRating,
    AdvisorRequest,
    AdvisorRequestCreate,
    AdvisorRequestResponse,
    AvailableAdvisor,
)
from fyphub.schemas.evaluation import Evaluation
from fyphub.services import advice as advice_service
from fyphub.services import advisor as advisor_service
from fyphub.services import user as user_service

# /api/advisor
router = APIRouter()
# /api/groups/{group_user_name}/projects/{project_id}
project_router = APIRouter()


@router.get("/available", response_model=List[AvailableAdvisor])
async def read_available_advisors(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Any:
    """
    Руководители и количество курируемых ими проектов.
    """
    return await advisor_service.get_available(db)


@router.get("/requests", response_model=List[AdvisorRequest])
async def read_advisor_requests(
    db: AsyncSession = Depends(get_db),
    status_filter: Optional[AdvisorRequestStatus] = Query(AdvisorRequestStatus.PENDING, alias="status"),
    current_user: User = Depends(get_current_user),
) -> Any:
    """
    Запросы, адресованные текущему руководителю.
    """
    check_role(current_user, UserRole.ADVISOR)
    return await advisor_service.get_for_advisor(db, advisor_id=current_user.id, status=status_filter)


@router.post("/requests/{request_id}/respond", response_model=AdvisorRequest)
async def respond_to_request(
    *,
    db: AsyncSession = Depends(get_db),
    request_id: int,
    response_in: AdvisorRequestResponse,
    current_user: User = Depends(get_current_user),
) -> Any:
    """
    Принять или отклонить запрос на руководство.
    """
    check_role(current_user, UserRole.ADVISOR)

    request = await advisor_service.get(db, request_id)
    if not request:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Advisor request {request_id} not found")
    if request.requested_advisor_id != current_user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="This request is not addressed to you")
    if request.status != AdvisorRequestStatus.PENDING:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Request has already been processed")

    return await advisor_service.respond(
        db, request=request, accept=response_in.action == "accept", message=response_in.message
    )


@project_router.get("/advisor-request", response_model=Optional[AdvisorRequest])
async def read_advisor_request(
    *,
    db: AsyncSession = Depends(get_db),
    group_user_name: str,
    project_id: int,
    current_user: User = Depends(get_current_user),
) -> Any:
    """
    Последний запрос на руководство по проекту.
    """
    group = await get_group_or_404(db, group_user_name)
    await check_read_access(db, group, current_user)
    project = await get_project_or_404(db, group, project_id)
    return await advisor_service.get_latest(db, project_id=project.id)


@project_router.post("/advisor-request", response_model=AdvisorRequest, status_code=status.HTTP_201_CREATED)
async def create_advisor_request(
    *,
    db: AsyncSession = Depends(get_db),
    group_user_name: str,
    project_id: int,
    request_in: AdvisorRequestCreate,
    current_user: User = Depends(get_current_user),
) -> Any:
    """
    Запросить руководителя для проекта.
    """
    group = await get_group_or_404(db, group_user_name)
    await check_member_rights(db, group, current_user)
    project = await get_project_or_404(db, group, project_id)

    if project.advisor_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Project already has an advisor")
    if await advisor_service.get_pending(db, project_id=project.id):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="A pending advisor request already exists")

    advisor = await user_service.get(db, id=request_in.advisor_id)
    if not advisor or advisor.role != UserRole.ADVISOR:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Advisor not found")

    return await advisor_service.create_request(
        db, group=group, project=project, advisor=advisor, message=request_in.message
    )


@project_router.delete("/advisor-request/{request_id}", status_code=status.HTTP_204_NO_CONTENT)
async def cancel_advisor_request(
    *,
    db: AsyncSession = Depends(get_db),
    group_user_name: str,
    project_id: int,
    request_id: int,
    current_user: User = Depends(get_current_user),
) -> Response:
    """
    Отозвать ожидающий запрос.
    """
    group = await get_group_or_404(db, group_user_name)
    await check_member_rights(db, group, current_user)
    project = await get_project_or_404(db, group, project_id)

    request = await advisor_service.get(db, request_id)
    if not request or request.project_id != project.id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Advisor request {request_id} not found")
    if request.status != AdvisorRequestStatus.PENDING:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Only pending requests can be cancelled")

    await advisor_service.cancel_request(db, request=request, group=group)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@project_router.post("/advisor/rating", response_model=Evaluation, status_code=status.HTTP_201_CREATED)
async def rate_advisor(
    *,
    db: AsyncSession = Depends(get_db),
    group_user_name: str,
    project_id: int,
    rating_in: AdvisorRating,
    current_user: User = Depends(get_current_user),
) -> Any:
    """
    Оценить руководителя проекта (1-5).
    """
    group = await get_group_or_404(db, group_user_name)
    await check_member_rights(db, group, current_user)
    project = await get_project_or_404(db, group, project_id)

    if project.advisor_id is None or project.advisor_id != rating_in.advisor_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="User is not the advisor of this project")

    return await advisor_service.rate_advisor(db, project=project, author_id=current_user.id, obj_in=rating_in)


@project_router.get("/advisor/advice", response_model=List[AdviceRequest])
async def read_advice_requests(
    *,
    db: AsyncSession = Depends(get_db),
    group_user_name: str,
    project_id: int,
    current_user: User = Depends(get_current_user),
) -> Any:
    """
    Запросы совета по проекту, новые первыми.
    """
    group = await get_group_or_404(db, group_user_name)
    await check_read_access(db, group, current_user)
    project = await get_project_or_404(db, group, project_id)
    return await advice_service.get_for_project(db, project_id=project.id)


@project_router.post("/advisor/advice", response_model=AdviceRequest, status_code=status.HTTP_201_CREATED)
async def create_advice_request(
    *,
    db: AsyncSession = Depends(get_db),
    group_user_name: str,
    project_id: int,
    advice_in: AdviceRequestCreate,
    current_user: User = Depends(get_current_user),
) -> Any:
    """
    Попросить совета у руководителя проекта.
    """
    group = await get_group_or_404(db, group_user_name)
    await check_member_rights(db, group, current_user)
    project = await get_project_or_404(db, group, project_id)

    if project.advisor_id is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Project has no advisor")

    return await advice_service.create(db, obj_in=advice_in, project=project, group=group, requester=current_user)


@project_router.post("/advisor/advice/{advice_id}/respond", response_model=AdviceRequest)
async def respond_to_advice_request(
    *,
    db: AsyncSession = Depends(get_db),
    group_user_name: str,
    project_id: int,
    advice_id: int,
    response_in: AdviceResponseCreate,
    current_user: User = Depends(get_current_user),
) -> Any:
    """
    Ответить на запрос совета. Доступно только руководителю проекта.
    """
    group = await get_group_or_404(db, group_user_name)
    project = await get_project_or_404(db, group, project_id)

    if project.advisor_id != current_user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only the project advisor can respond")

    advice = await advice_service.get(db, advice_id)
    if not advice or advice.project_id != project.id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Advice request {advice_id} not found")
    if advice.status != AdviceStatus.PENDING:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Advice request has already been answered")

    return await advice_service.respond(
        db, advice=advice, project=project, group=group, advisor=current_user, content=response_in.content
    )
