import json
from unittest.mock import patch

import pytest
import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from fyphub.core.config import settings
from fyphub.models.repository import Repository
from tests.utils import API, create_test_user, create_test_group, auth_headers


class UpstreamStub:
    """Подменяет внешний сервис репозиториев через httpx.MockTransport."""

    def __init__(self, routes):
        self.routes = routes
        self.requests = []
        self.payloads = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request.url.path)
        # Маршруты не-GET задаются как "POST /path"
        key = request.url.path if request.method == "GET" else f"{request.method} {request.url.path}"
        if request.content:
            self.payloads.append(json.loads(request.content))
        if key not in self.routes:
            return httpx.Response(404, json={"detail": "not found"})
        return self.routes[key]()

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


@pytest.fixture
def upstream():
    stub = UpstreamStub(
        {
            "/g1/demo": lambda: httpx.Response(200, json={"name": "demo", "default_branch": "main"}),
            "/g1/demo/tree/main": lambda: httpx.Response(200, json=[{"name": "src", "type": "dir"}]),
            "/g1/demo/tree/main/src": lambda: httpx.Response(200, json=[{"name": "app.py", "type": "file"}]),
            "/g1/demo/blob/main/src/app.py": lambda: httpx.Response(200, text="print('hi')\n"),
            "/g1/demo/blob/main/README.md": lambda: httpx.Response(200, text="# Demo\n"),
            "/g1/demo/branches": lambda: httpx.Response(200, json=[{"name": "main"}]),
            "/g1/demo/commits": lambda: httpx.Response(500, json={"detail": "boom"}),
            "/g1/demo/feedback": lambda: httpx.Response(200, json=[{"id": 1, "title": "Docs"}]),
            "/g1/demo/feedback/1": lambda: httpx.Response(200, json={"id": 1, "title": "Docs"}),
            "POST /g1/demo/feedback": lambda: httpx.Response(201, json={"id": 2, "title": "Tests"}),
            "PATCH /g1/demo/feedback/1": lambda: httpx.Response(200, json={"id": 1, "status": "closed"}),
            "/victim/secret/blob/main/keys.txt": lambda: httpx.Response(200, json={"leak": "private content"}),
        }
    )
    with patch("fyphub.explorer.client.create_http_client", side_effect=stub.client):
        yield stub


async def setup_repository(db: AsyncSession, is_private: bool = False):
    leader = await create_test_user(db)
    group = await create_test_group(db, leader, group_user_name="g1")
    db.add(Repository(name="demo", is_private=is_private, group_id=group.id, owner_id=leader.id))
    await db.commit()
    return leader


EXPLORER = f"{API}/explorer/g1/demo"


@pytest.mark.asyncio
async def test_overview_and_tree(async_client: httpx.AsyncClient, db_session: AsyncSession, upstream):
    """Обзор и дерево каталогов проксируются из внешнего сервиса."""
    await setup_repository(db_session)

    response = await async_client.get(f"{EXPLORER}/overview")
    assert response.status_code == 200
    assert response.json()["default_branch"] == "main"

    response = await async_client.get(f"{EXPLORER}/tree/main")
    assert response.json() == [{"name": "src", "type": "dir"}]

    response = await async_client.get(f"{EXPLORER}/tree/main/src")
    assert response.json() == [{"name": "app.py", "type": "file"}]

    response = await async_client.get(f"{EXPLORER}/branches")
    assert response.json() == [{"name": "main"}]


@pytest.mark.asyncio
async def test_blob_and_readme_text(async_client: httpx.AsyncClient, db_session: AsyncSession, upstream):
    """Текстовые ответы оборачиваются в {"content": ...}."""
    await setup_repository(db_session)

    response = await async_client.get(f"{EXPLORER}/blob/main/src/app.py")
    assert response.status_code == 200
    assert response.json() == {"content": "print('hi')\n"}

    response = await async_client.get(f"{EXPLORER}/readme/main")
    assert response.json() == {"content": "# Demo\n"}


@pytest.mark.asyncio
async def test_upstream_errors(async_client: httpx.AsyncClient, db_session: AsyncSession, upstream):
    """404 внешнего сервиса дает 404, прочие ошибки дают 502."""
    await setup_repository(db_session)

    response = await async_client.get(f"{EXPLORER}/blob/main/missing.txt")
    assert response.status_code == 404

    response = await async_client.get(f"{EXPLORER}/commits")
    assert response.status_code == 502


@pytest.mark.asyncio
async def test_upstream_connection_error(async_client: httpx.AsyncClient, db_session: AsyncSession):
    """Сбой соединения с сервисом дает 502."""
    await setup_repository(db_session)

    def refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with patch(
        "fyphub.explorer.client.create_http_client",
        side_effect=lambda: httpx.AsyncClient(transport=httpx.MockTransport(refuse)),
    ):
        response = await async_client.get(f"{EXPLORER}/overview")
    assert response.status_code == 502


@pytest.mark.asyncio
async def test_responses_are_cached(async_client: httpx.AsyncClient, db_session: AsyncSession, upstream, mock_redis):
    """Повторный запрос берется из кэша с TTL обозревателя."""
    await setup_repository(db_session)

    await async_client.get(f"{EXPLORER}/overview")
    await async_client.get(f"{EXPLORER}/overview")

    assert upstream.requests == ["/g1/demo"]
    assert mock_redis.ttls["explorer:g1:demo:overview"] == settings.EXPLORER_CACHE_TTL


@pytest.mark.asyncio
async def test_private_repository_explorer_access(async_client: httpx.AsyncClient, db_session: AsyncSession, upstream):
    """Обозреватель проверяет доступ к приватному репозиторию."""
    leader = await setup_repository(db_session, is_private=True)
    outsider = await create_test_user(db_session)

    response = await async_client.get(f"{EXPLORER}/overview")
    assert response.status_code == 401

    response = await async_client.get(f"{EXPLORER}/overview", headers=auth_headers(outsider))
    assert response.status_code == 403

    response = await async_client.get(f"{EXPLORER}/overview", headers=auth_headers(leader))
    assert response.status_code == 200
    assert upstream.requests == ["/g1/demo"]


@pytest.mark.asyncio
async def test_unknown_repository(async_client: httpx.AsyncClient, db_session: AsyncSession, upstream):
    """Репозиторий, неизвестный локально, не запрашивается у внешнего сервиса."""
    await setup_repository(db_session)

    response = await async_client.get(f"{API}/explorer/g1/other/overview")
    assert response.status_code == 404
    assert upstream.requests == []


@pytest.mark.asyncio
async def test_dot_segments_rejected(async_client: httpx.AsyncClient, db_session: AsyncSession, upstream, mock_redis):
    """Путь с ".." не выходит за пределы публичного репозитория в чужой приватный."""
    await setup_repository(db_session)
    victim = await create_test_user(db_session)
    victim_group = await create_test_group(db_session, victim, group_user_name="victim")
    db_session.add(Repository(name="secret", is_private=True, group_id=victim_group.id, owner_id=victim.id))
    await db_session.commit()

    response = await async_client.get(f"{API}/explorer/victim/secret/tree/main")
    assert response.status_code == 401

    escaping = "..%2F..%2F..%2F..%2Fvictim%2Fsecret%2Fblob%2Fmain%2Fkeys.txt"
    response = await async_client.get(f"{EXPLORER}/blob/main/{escaping}")
    assert response.status_code == 400

    response = await async_client.get(f"{EXPLORER}/tree/main/src%2F.%2Fapp.py")
    assert response.status_code == 400

    assert upstream.requests == []
    assert mock_redis.cache == {}


@pytest.mark.asyncio
async def test_upstream_feedback(async_client: httpx.AsyncClient, db_session: AsyncSession, upstream):
    """Отзывы во внешнем сервисе: список, чтение, создание и изменение."""
    leader = await setup_repository(db_session)
    headers = auth_headers(leader)

    response = await async_client.get(f"{EXPLORER}/feedback")
    assert response.status_code == 200
    assert response.json() == [{"id": 1, "title": "Docs"}]

    response = await async_client.get(f"{EXPLORER}/feedback/1")
    assert response.json()["title"] == "Docs"

    response = await async_client.post(f"{EXPLORER}/feedback", json={"title": "Tests", "content": "Add more"})
    assert response.status_code == 401

    response = await async_client.post(
        f"{EXPLORER}/feedback", json={"title": "Tests", "content": "Add more"}, headers=headers
    )
    assert response.status_code == 201
    assert response.json()["id"] == 2
    assert upstream.payloads[-1] == {"title": "Tests", "content": "Add more", "author": leader.username}

    response = await async_client.patch(f"{EXPLORER}/feedback/1", json={"status": "closed"}, headers=headers)
    assert response.status_code == 200
    assert upstream.payloads[-1] == {"status": "closed"}


@pytest.mark.asyncio
async def test_upstream_feedback_update_forbidden(async_client: httpx.AsyncClient, db_session: AsyncSession, upstream):
    """Посторонний пользователь не может менять отзывы репозитория."""
    await setup_repository(db_session)
    outsider = await create_test_user(db_session)

    response = await async_client.patch(
        f"{EXPLORER}/feedback/1", json={"status": "closed"}, headers=auth_headers(outsider)
    )
    assert response.status_code == 403
    assert upstream.requests == []
