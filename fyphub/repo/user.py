from typing import List, Optional

from sqlalchemy import func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from fyphub.models.user import User, UserRole


async def get_user_by_id(db: AsyncSession, id: int) -> Optional[User]:
    """Получает пользователя по идентификатору"""
    result = await db.execute(select(User).where(User.id == id))
    return result.scalars().first()


async def get_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
    """Получает пользователя по email"""
    result = await db.execute(select(User).where(User.email == email))
    return result.scalars().first()


async def get_user_by_username(db: AsyncSession, username: str) -> Optional[User]:
    """Получает пользователя по имени пользователя"""
    result = await db.execute(select(User).where(User.username == username))
    return result.scalars().first()


async def get_user_by_username_or_email(db: AsyncSession, username_or_email: str) -> Optional[User]:
    """Получает пользователя по имени пользователя или email"""
    result = await db.execute(
        select(User).where(or_(User.username == username_or_email, User.email == username_or_email))
    )
    return result.scalars().first()


async def get_all_users(db: AsyncSession, skip: int = 0, limit: int = 100) -> List[User]:
    """Получает список всех пользователей с пагинацией"""
    result = await db.execute(select(User).order_by(User.id).offset(skip).limit(limit))
    return result.scalars().all()


async def get_users_by_role(db: AsyncSession, role: UserRole) -> List[User]:
    """Получает активных пользователей с указанной ролью"""
    result = await db.execute(
        select(User).where(User.role == role, User.is_active.is_(True)).order_by(User.first_name, User.last_name)
    )
    return result.scalars().all()


async def get_users_by_ids(db: AsyncSession, ids: List[int]) -> List[User]:
    if not ids:
        return []
    result = await db.execute(select(User).where(User.id.in_(ids)))
    return result.scalars().all()


async def count_users(db: AsyncSession) -> int:
    result = await db.execute(select(func.count(User.id)))
    return result.scalar_one()


async def create_user_in_db(db: AsyncSession, user: User) -> None:
    """Создает пользователя в базе данных"""
    db.add(user)
    await db.commit()
    await db.refresh(user)


async def update_user_in_db(db: AsyncSession, user: User) -> None:
    """Обновляет пользователя в базе данных"""
    db.add(user)
    await db.commit()
    await db.refresh(user)
