import pytest
import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from fyphub.models.project import ProjectStatus
from fyphub.models.repository import Branch, Repository
from fyphub.models.user import UserRole
from tests.utils import API, create_test_user, create_test_group, create_test_project


SEARCH_URL = f"{API}/search"


@pytest.mark.asyncio
async def test_search_projects(async_client: httpx.AsyncClient, db_session: AsyncSession, mock_redis):
    """Поиск проектов по названию, архивные скрыты без фильтра по статусу."""
    leader = await create_test_user(db_session)
    advisor = await create_test_user(db_session, role=UserRole.ADVISOR)
    group = await create_test_group(db_session, leader)
    active = await create_test_project(db_session, group, advisor=advisor)
    archived = await create_test_project(db_session, group, status=ProjectStatus.ARCHIVED)
    active.title = "Smart Irrigation"
    archived.title = "Irrigation Legacy"
    await db_session.commit()

    response = await async_client.get(SEARCH_URL, params={"query": "irrigation"})
    assert response.status_code == 200
    assert response.headers["cache-control"] == "public, max-age=60"

    data = response.json()
    assert data["type"] == "project"
    assert [item["id"] for item in data["data"]] == [active.id]
    item = data["data"][0]
    assert item["group"] == {"name": group.name, "group_user_name": group.group_user_name}
    assert item["advisor"]["id"] == advisor.id
    assert data["pagination"] == {
        "total_count": 1,
        "total_pages": 1,
        "current_page": 1,
        "limit": 10,
        "has_next_page": False,
        "has_prev_page": False,
    }
    assert data["meta"]["sidebar_counts"]["projects"] == 1

    response = await async_client.get(SEARCH_URL, params={"query": "irrigation", "status": "ARCHIVED"})
    assert [item["id"] for item in response.json()["data"]] == [archived.id]

    response = await async_client.get(SEARCH_URL, params={"advisor_id": advisor.id})
    assert [item["id"] for item in response.json()["data"]] == [active.id]

    assert all(key.startswith("search:") for key in mock_redis.cache)
    assert set(mock_redis.ttls.values()) == {60}


@pytest.mark.asyncio
async def test_search_public_repositories_only(async_client: httpx.AsyncClient, db_session: AsyncSession):
    """В поиск попадают только публичные репозитории."""
    leader = await create_test_user(db_session)
    group = await create_test_group(db_session, leader)
    public = Repository(name="ml-pipeline", is_private=False, group_id=group.id, owner_id=leader.id)
    hidden = Repository(name="ml-secrets", is_private=True, group_id=group.id, owner_id=leader.id)
    db_session.add_all([public, hidden])
    await db_session.commit()
    db_session.add(Branch(name="main", repository_id=public.id))
    await db_session.commit()

    response = await async_client.get(SEARCH_URL, params={"query": "ml-", "type": "repositories"})
    assert response.status_code == 200

    data = response.json()
    assert data["type"] == "repository"
    assert [item["name"] for item in data["data"]] == ["ml-pipeline"]
    assert data["data"][0]["group_user_name"] == group.group_user_name
    assert data["data"][0]["stats"] == {"commits": 0, "branches": 1, "projects": 0}
    assert data["meta"]["sidebar_counts"]["repositories"] == 1


@pytest.mark.asyncio
async def test_search_users_by_role(async_client: httpx.AsyncClient, db_session: AsyncSession):
    """Пользователи ищутся по имени, email не раскрывается, администраторы скрыты."""
    student = await create_test_user(db_session, first_name="Ada", last_name="Amaranthine")
    advisor = await create_test_user(db_session, role=UserRole.ADVISOR, first_name="Bo", last_name="Amaranth")
    await create_test_user(db_session, role=UserRole.ADMINISTRATOR, first_name="Cy", last_name="Amaranth")

    response = await async_client.get(
        SEARCH_URL, params={"query": "amaranth", "type": "users", "sort_by": "name", "sort_order": "asc"}
    )
    assert response.status_code == 200
    data = response.json()
    assert [item["id"] for item in data["data"]] == [student.id, advisor.id]
    assert all("email" not in item for item in data["data"])

    response = await async_client.get(
        SEARCH_URL, params={"query": "amaranth", "type": "users", "role": "advisor,unknown"}
    )
    assert [item["id"] for item in response.json()["data"]] == [advisor.id]

    response = await async_client.get(SEARCH_URL, params={"query": "amaranth", "type": "students"})
    data = response.json()
    assert data["type"] == "student"
    assert [item["id"] for item in data["data"]] == [student.id]
    assert data["meta"]["sidebar_counts"] == {
        "projects": 0,
        "repositories": 0,
        "groups": 0,
        "students": 1,
        "advisors": 1,
        "users": 2,
    }


@pytest.mark.asyncio
async def test_search_groups_pagination(async_client: httpx.AsyncClient, db_session: AsyncSession):
    """Пагинация результатов, счетчики только на первой странице."""
    for _ in range(3):
        await create_test_group(db_session, await create_test_user(db_session))

    response = await async_client.get(SEARCH_URL, params={"type": "groups", "limit": 2, "page": 2})
    assert response.status_code == 200
    data = response.json()
    assert len(data["data"]) == 1
    assert data["data"][0]["stats"] == {"members": 1, "projects": 0}
    assert data["pagination"]["total_pages"] == 2
    assert data["pagination"]["has_prev_page"] is True
    assert data["pagination"]["has_next_page"] is False
    assert data["meta"]["sidebar_counts"] is None

    response = await async_client.get(
        SEARCH_URL, params={"type": "groups", "limit": 2, "page": 2, "include_counts": "true"}
    )
    assert response.json()["meta"]["sidebar_counts"]["groups"] == 3


@pytest.mark.asyncio
async def test_search_invalid_parameters(async_client: httpx.AsyncClient):
    """Неизвестный тип, статус и лимит вне диапазона дают 400."""
    for params in ({"type": "tasks"}, {"status": "DONE"}, {"limit": 100}, {"sort_by": "score"}):
        response = await async_client.get(SEARCH_URL, params=params)
        assert response.status_code == 400
