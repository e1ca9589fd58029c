from typing import Any, List

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from fyphub.api.access import check_admin_rights, is_admin
from fyphub.api.endpoints.auth import get_current_user
from fyphub.db.session import get_db
from fyphub.models.user import User
from fyphub.schemas.activity import UserActivityPage
from fyphub.schemas.task import Task
from fyphub.schemas.user import User as UserSchema, UserPublic, UserUpdate, UsernameAvailability
from fyphub.services import activity as activity_service
from fyphub.services import task as task_service
from fyphub.services import user as user_service

router = APIRouter()


@router.get("/", response_model=List[UserSchema])
async def read_users(
    db: AsyncSession = Depends(get_db),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    current_user: User = Depends(get_current_user),
) -> Any:
    """
    Получить список пользователей.
    Доступно только для администраторов.
    """
    check_admin_rights(current_user)
    return await user_service.get_multi(db, skip=skip, limit=limit)


@router.get("/check-username", response_model=UsernameAvailability)
async def check_username(
    *,
    db: AsyncSession = Depends(get_db),
    username: str = Query(..., min_length=3, max_length=50),
) -> Any:
    """
    Проверить, свободно ли имя (среди пользователей и групп).
    """
    return {"username": username, "available": await user_service.is_username_available(db, username)}


@router.get("/me", response_model=UserSchema)
async def read_user_me(current_user: User = Depends(get_current_user)) -> Any:
    """
    Получить текущего пользователя.
    """
    return current_user


@router.patch("/me", response_model=UserSchema)
async def update_user_me(
    *,
    db: AsyncSession = Depends(get_db),
    user_in: UserUpdate,
    current_user: User = Depends(get_current_user),
) -> Any:
    """
    Обновить собственный профиль.
    """
    return await user_service.update(db, db_obj=current_user, obj_in=user_in)


@router.get("/me/tasks", response_model=List[Task])
async def read_my_tasks(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Any:
    """
    Задачи, назначенные текущему пользователю или созданные им.
    """
    return await task_service.get_for_user(db, user_id=current_user.id)


@router.get("/{user_id}", response_model=UserPublic)
async def read_user_by_id(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Any:
    """
    Получить публичный профиль пользователя по ID.
    """
    user = await user_service.get(db, id=user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"User {user_id} not found")
    return user


@router.get("/{user_id}/activities", response_model=UserActivityPage)
async def read_user_activities(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    limit: int = Query(10, ge=1, le=50),
    offset: int = Query(0, ge=0),
    current_user: User = Depends(get_current_user),
) -> Any:
    """
    Лента действий пользователя: коммиты, задачи и отзывы.
    Доступно самому пользователю и администраторам.
    """
    if current_user.id != user_id and not is_admin(current_user):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You can only view your own activities")

    user = await user_service.get(db, id=user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"User {user_id} not found")
    return await activity_service.get_user_activities(db, user=user, limit=limit, offset=offset)
