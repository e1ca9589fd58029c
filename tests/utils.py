import random
import string
from typing import Dict, Iterable, Optional

import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from fyphub.core.security import create_access_token, get_password_hash
from fyphub.models.group import Group, GroupMember
from fyphub.models.project import Project, ProjectStatus
from fyphub.models.user import User, UserRole

API = "/api"


def random_string(length: int = 10) -> str:
    """Генерирует случайную строку заданной длины."""
    return "".join(random.choices(string.ascii_lowercase, k=length))


def random_email() -> str:
    """Генерирует случайный email."""
    return f"{random_string(8)}@example.com"


async def create_test_user(
    db: AsyncSession, role: UserRole = UserRole.STUDENT, password: str = "testpassword", **kwargs
) -> User:
    """Создает тестового пользователя в БД."""
    user = User(
        username=kwargs.pop("username", random_string()),
        email=kwargs.pop("email", random_email()),
        password_hash=get_password_hash(password),
        first_name=kwargs.pop("first_name", "Test"),
        last_name=kwargs.pop("last_name", random_string(5).capitalize()),
        role=role,
        is_active=True,
        **kwargs,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


def auth_headers(user: User) -> Dict[str, str]:
    """Заголовки с токеном без обращения к /auth/login."""
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


async def get_async_auth_headers(client: httpx.AsyncClient, username: str, password: str) -> Dict[str, str]:
    """Выполняет авторизацию через API и возвращает заголовки с токеном."""
    response = await client.post(f"{API}/auth/login", data={"username": username, "password": password})
    token = response.json()["access_token"]
    return {"Authorization": f"Bearer {token}"}


async def create_test_group(
    db: AsyncSession,
    leader: User,
    members: Iterable[User] = (),
    group_user_name: Optional[str] = None,
) -> Group:
    """Создает группу с лидером и участниками."""
    group = Group(
        name=f"Group {random_string(6)}",
        group_user_name=group_user_name or random_string(8),
        description="Test group",
        leader_id=leader.id,
    )
    db.add(group)
    await db.flush()
    db.add(GroupMember(group_id=group.id, user_id=leader.id))
    for member in members:
        db.add(GroupMember(group_id=group.id, user_id=member.id))
    await db.commit()
    await db.refresh(group)
    return group


async def create_test_project(
    db: AsyncSession,
    group: Group,
    status: ProjectStatus = ProjectStatus.ACTIVE,
    advisor: Optional[User] = None,
) -> Project:
    """Создает проект группы."""
    project = Project(
        title=f"Project {random_string(6)}",
        description="Test project",
        status=status,
        group_id=group.id,
        advisor_id=advisor.id if advisor else None,
        milestones=[],
    )
    db.add(project)
    await db.commit()
    await db.refresh(project)
    return project
