from typing import Any, Literal, Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from fyphub.core.config import settings
from fyphub.db.session import get_db
from fyphub.models.project import ProjectStatus
from fyphub.schemas.search import SearchResponse
from fyphub.services import search as search_service

router = APIRouter()


@router.get("", response_model=SearchResponse)
async def search(
    *,
    db: AsyncSession = Depends(get_db),
    response: Response,
    query: Optional[str] = Query(None, max_length=255),
    search_type: Literal["projects", "repositories", "groups", "users", "students", "advisors"] = Query(
        "projects", alias="type"
    ),
    status: Optional[ProjectStatus] = None,
    advisor_id: Optional[int] = None,
    role: Optional[str] = Query(None, max_length=100),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=50),
    sort_by: Literal["created_at", "title", "name", "updated_at"] = "created_at",
    sort_order: Literal["asc", "desc"] = "desc",
    include_counts: bool = False,
) -> Any:
    """
    Поиск по проектам, публичным репозиториям, группам и пользователям.
    Доступен без авторизации.
    """
    response.headers["Cache-Control"] = f"public, max-age={settings.SEARCH_CACHE_TTL}"
    return await search_service.search(
        db,
        query=query,
        search_type=search_type,
        status=status,
        advisor_id=advisor_id,
        role=role,
        page=page,
        limit=limit,
        sort_by=sort_by,
        sort_order=sort_order,
        include_counts=include_counts,
    )
