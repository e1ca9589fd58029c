from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

import fyphub.repo.group as group_repo
import fyphub.repo.user as user_repo
from fyphub.core.security import get_password_hash, verify_password
from fyphub.models.user import User, UserRole
from fyphub.schemas.user import UserCreate, UserUpdate


async def get(db: AsyncSession, id: int) -> Optional[User]:
    """Получает пользователя по идентификатору"""
    return await user_repo.get_user_by_id(db, id)


async def get_by_email(db: AsyncSession, email: str) -> Optional[User]:
    return await user_repo.get_user_by_email(db, email)


async def get_by_username(db: AsyncSession, username: str) -> Optional[User]:
    return await user_repo.get_user_by_username(db, username)


async def get_multi(db: AsyncSession, skip: int = 0, limit: int = 100) -> List[User]:
    """Получает список пользователей с пагинацией"""
    return await user_repo.get_all_users(db, skip, limit)


async def get_by_role(db: AsyncSession, role: UserRole) -> List[User]:
    return await user_repo.get_users_by_role(db, role)


async def create(db: AsyncSession, *, obj_in: UserCreate) -> User:
    """Создает нового пользователя с хешированным паролем"""
    db_obj = User(
        username=obj_in.username,
        email=obj_in.email.lower(),
        password_hash=get_password_hash(obj_in.password),
        first_name=obj_in.first_name,
        last_name=obj_in.last_name,
        role=obj_in.role,
        is_active=True,
    )
    await user_repo.create_user_in_db(db, db_obj)
    return db_obj


async def update(db: AsyncSession, *, db_obj: User, obj_in: UserUpdate) -> User:
    """Обновляет профиль пользователя"""
    update_data = obj_in.model_dump(exclude_unset=True)
    password = update_data.pop("password", None)
    if password:
        db_obj.password_hash = get_password_hash(password)

    for field, value in update_data.items():
        # Имя и фамилия обязательны, null их не стирает
        if field in ("first_name", "last_name") and value is None:
            continue
        setattr(db_obj, field, value)

    await user_repo.update_user_in_db(db, db_obj)
    return db_obj


async def authenticate(db: AsyncSession, *, username_or_email: str, password: str) -> Optional[User]:
    """Аутентифицирует пользователя по имени или email"""
    user = await user_repo.get_user_by_username_or_email(db, username_or_email)
    if not user:
        user = await user_repo.get_user_by_email(db, username_or_email.lower())
    if not user or not verify_password(password, user.password_hash):
        return None
    return user


async def is_username_available(db: AsyncSession, username: str) -> bool:
    """Имя свободно, если его нет ни у пользователей, ни у групп"""
    if await user_repo.get_user_by_username(db, username):
        return False
    return not await group_repo.group_user_name_exists(db, username)