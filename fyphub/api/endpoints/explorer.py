from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from fyphub.api.access import (
    get_group_or_404,
    get_repository_or_404,
    check_repository_access,
    is_admin,
    is_member,
)
from fyphub.api.endpoints.auth import get_current_user, get_current_user_optional
from fyphub.db.session import get_db
from fyphub.explorer.client import UpstreamNotFound, UpstreamUnavailable
from fyphub.explorer.endpoints import InvalidPathError
from fyphub.models.user import User
from fyphub.schemas.feedback import ExplorerFeedbackCreate, ExplorerFeedbackUpdate
from fyphub.services import explorer as explorer_service
from fyphub.services import project as project_service

router = APIRouter()


async def check_explorer_access(db: AsyncSession, group_user_name: str, repository_name: str, current_user):
    """Репозиторий должен существовать локально и быть доступен пользователю"""
    group = await get_group_or_404(db, group_user_name)
    repository = await get_repository_or_404(db, group, repository_name)
    await check_repository_access(db, group, repository, current_user)
    return group


async def proxy(call) -> Any:
    try:
        return await call
    except InvalidPathError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except UpstreamNotFound:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found in repository service")
    except UpstreamUnavailable:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Repository service is unavailable")


@router.get("/overview")
async def read_overview(
    *,
    db: AsyncSession = Depends(get_db),
    group_user_name: str,
    repository_name: str,
    current_user: Optional[User] = Depends(get_current_user_optional),
) -> Any:
    """
    Обзор репозитория из внешнего сервиса.
    """
    await check_explorer_access(db, group_user_name, repository_name, current_user)
    return await proxy(explorer_service.get_overview(group_user_name, repository_name))


@router.get("/tree/{ref}")
async def read_tree_root(
    *,
    db: AsyncSession = Depends(get_db),
    group_user_name: str,
    repository_name: str,
    ref: str,
    current_user: Optional[User] = Depends(get_current_user_optional),
) -> Any:
    await check_explorer_access(db, group_user_name, repository_name, current_user)
    return await proxy(explorer_service.get_tree(group_user_name, repository_name, ref))


@router.get("/tree/{ref}/{path:path}")
async def read_tree(
    *,
    db: AsyncSession = Depends(get_db),
    group_user_name: str,
    repository_name: str,
    ref: str,
    path: str,
    current_user: Optional[User] = Depends(get_current_user_optional),
) -> Any:
    """
    Содержимое каталога в ветке или коммите.
    """
    await check_explorer_access(db, group_user_name, repository_name, current_user)
    return await proxy(explorer_service.get_tree(group_user_name, repository_name, ref, path))


@router.get("/blob/{ref}/{path:path}")
async def read_blob(
    *,
    db: AsyncSession = Depends(get_db),
    group_user_name: str,
    repository_name: str,
    ref: str,
    path: str,
    current_user: Optional[User] = Depends(get_current_user_optional),
) -> Any:
    """
    Содержимое файла.
    """
    await check_explorer_access(db, group_user_name, repository_name, current_user)
    return await proxy(explorer_service.get_blob(group_user_name, repository_name, ref, path))


@router.get("/commits")
async def read_commits(
    *,
    db: AsyncSession = Depends(get_db),
    group_user_name: str,
    repository_name: str,
    ref: Optional[str] = Query(None, max_length=255),
    current_user: Optional[User] = Depends(get_current_user_optional),
) -> Any:
    await check_explorer_access(db, group_user_name, repository_name, current_user)
    return await proxy(explorer_service.get_commits(group_user_name, repository_name, ref))


@router.get("/branches")
async def read_branches(
    *,
    db: AsyncSession = Depends(get_db),
    group_user_name: str,
    repository_name: str,
    current_user: Optional[User] = Depends(get_current_user_optional),
) -> Any:
    await check_explorer_access(db, group_user_name, repository_name, current_user)
    return await proxy(explorer_service.get_branches(group_user_name, repository_name))


@router.get("/readme/{ref}")
async def read_readme(
    *,
    db: AsyncSession = Depends(get_db),
    group_user_name: str,
    repository_name: str,
    ref: str,
    current_user: Optional[User] = Depends(get_current_user_optional),
) -> Any:
    await check_explorer_access(db, group_user_name, repository_name, current_user)
    return await proxy(explorer_service.get_readme(group_user_name, repository_name, ref))


@router.get("/feedback")
async def read_feedback_list(
    *,
    db: AsyncSession = Depends(get_db),
    group_user_name: str,
    repository_name: str,
    current_user: Optional[User] = Depends(get_current_user_optional),
) -> Any:
    """
    Отзывы о репозитории из внешнего сервиса.
    """
    await check_explorer_access(db, group_user_name, repository_name, current_user)
    return await proxy(explorer_service.get_feedback_list(group_user_name, repository_name))


@router.get("/feedback/{feedback_id}")
async def read_feedback(
    *,
    db: AsyncSession = Depends(get_db),
    group_user_name: str,
    repository_name: str,
    feedback_id: int,
    current_user: Optional[User] = Depends(get_current_user_optional),
) -> Any:
    await check_explorer_access(db, group_user_name, repository_name, current_user)
    return await proxy(explorer_service.get_feedback(group_user_name, repository_name, feedback_id))


@router.post("/feedback", status_code=status.HTTP_201_CREATED)
async def create_feedback(
    *,
    db: AsyncSession = Depends(get_db),
    group_user_name: str,
    repository_name: str,
    feedback_in: ExplorerFeedbackCreate,
    current_user: User = Depends(get_current_user),
) -> Any:
    """
    Оставить отзыв о репозитории во внешнем сервисе.
    Требуется авторизация и доступ к репозиторию.
    """
    await check_explorer_access(db, group_user_name, repository_name, current_user)
    payload = {**feedback_in.model_dump(), "author": current_user.username}
    return await proxy(explorer_service.create_feedback(group_user_name, repository_name, payload))


@router.patch("/feedback/{feedback_id}")
async def update_feedback(
    *,
    db: AsyncSession = Depends(get_db),
    group_user_name: str,
    repository_name: str,
    feedback_id: int,
    feedback_in: ExplorerFeedbackUpdate,
    current_user: User = Depends(get_current_user),
) -> Any:
    """
    Изменить отзыв во внешнем сервисе.
    Доступно участникам группы, ее руководителям и оценщикам, администраторам.
    """
    group = await check_explorer_access(db, group_user_name, repository_name, current_user)
    allowed = (
        is_admin(current_user)
        or await is_member(db, group, current_user)
        or await project_service.has_project_role_in_group(db, group_id=group.id, user_id=current_user.id)
    )
    if not allowed:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not enough permissions")
    payload = feedback_in.model_dump(exclude_unset=True)
    return await proxy(explorer_service.update_feedback(group_user_name, repository_name, feedback_id, payload))
