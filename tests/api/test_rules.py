import pytest
import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from fyphub.core.config import settings
from fyphub.models.user import UserRole
from fyphub.services.rule import RULES_CACHE_KEY
from tests.utils import API, create_test_user, auth_headers


@pytest.mark.asyncio
async def test_read_default_rules(async_client: httpx.AsyncClient, db_session: AsyncSession):
    """Без сохраненных правил возвращаются значения по умолчанию."""
    user = await create_test_user(db_session)

    response = await async_client.get(f"{API}/rules/", headers=auth_headers(user))
    assert response.status_code == 200
    assert response.json()["max_group_size"] == settings.DEFAULT_MAX_GROUP_SIZE


@pytest.mark.asyncio
async def test_update_rules_as_admin(async_client: httpx.AsyncClient, db_session: AsyncSession, mock_redis):
    """Администратор меняет правила, кэш сбрасывается."""
    admin = await create_test_user(db_session, role=UserRole.ADMINISTRATOR)
    headers = auth_headers(admin)

    await async_client.get(f"{API}/rules/", headers=headers)
    assert RULES_CACHE_KEY in mock_redis.cache

    response = await async_client.put(f"{API}/rules/", json={"max_group_size": 3}, headers=headers)
    assert response.status_code == 200
    assert response.json()["max_group_size"] == 3
    assert RULES_CACHE_KEY not in mock_redis.cache

    response = await async_client.get(f"{API}/rules/", headers=headers)
    assert response.json()["max_group_size"] == 3


@pytest.mark.asyncio
async def test_update_rules_as_student_forbidden(async_client: httpx.AsyncClient, db_session: AsyncSession):
    """Студент не может менять правила."""
    student = await create_test_user(db_session)

    response = await async_client.put(f"{API}/rules/", json={"max_group_size": 3}, headers=auth_headers(student))
    assert response.status_code == 403
