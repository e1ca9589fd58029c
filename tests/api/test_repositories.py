import pytest
import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from fyphub.models.project import ProjectEvaluator
from fyphub.models.repository import Repository
from fyphub.models.user import UserRole
from tests.utils import API, create_test_user, create_test_group, create_test_project, auth_headers


def repos_url(group) -> str:
    return f"{API}/groups/{group.group_user_name}/repositories"


async def create_repository(db: AsyncSession, group, name: str, is_private: bool) -> Repository:
    repository = Repository(name=name, is_private=is_private, group_id=group.id, owner_id=group.leader_id)
    db.add(repository)
    await db.commit()
    await db.refresh(repository)
    return repository


@pytest.mark.asyncio
async def test_create_repository_with_initial_commit(async_client: httpx.AsyncClient, db_session: AsyncSession):
    """Новый репозиторий получает начальный коммит и ветку main."""
    leader = await create_test_user(db_session)
    group = await create_test_group(db_session, leader)
    headers = auth_headers(leader)

    response = await async_client.post(
        f"{repos_url(group)}/", json={"name": "thesis", "description": "LaTeX", "visibility": "private"}, headers=headers
    )
    assert response.status_code == 201

    data = response.json()
    assert data["name"] == "thesis"
    assert data["is_private"] is True
    assert data["visibility"] == "private"
    assert data["owner_id"] == leader.id

    response = await async_client.get(f"{repos_url(group)}/thesis/branches", headers=headers)
    branches = response.json()
    assert [branch["name"] for branch in branches] == ["main"]

    response = await async_client.get(f"{repos_url(group)}/thesis/commits", headers=headers)
    commits = response.json()
    assert len(commits) == 1
    assert commits[0]["message"] == "Initial commit"
    assert commits[0]["parent_commit_ids"] == []
    assert branches[0]["head_commit_id"] == commits[0]["id"]


@pytest.mark.asyncio
async def test_create_repository_requires_visibility(async_client: httpx.AsyncClient, db_session: AsyncSession):
    """Видимость обязательна: visibility или is_private."""
    leader = await create_test_user(db_session)
    group = await create_test_group(db_session, leader)

    response = await async_client.post(f"{repos_url(group)}/", json={"name": "code"}, headers=auth_headers(leader))
    assert response.status_code == 400

    response = await async_client.post(
        f"{repos_url(group)}/", json={"name": "code", "is_private": False}, headers=auth_headers(leader)
    )
    assert response.status_code == 201
    assert response.json()["visibility"] == "public"


@pytest.mark.asyncio
async def test_create_repository_non_member_forbidden(async_client: httpx.AsyncClient, db_session: AsyncSession):
    """Только участники группы создают репозитории."""
    leader = await create_test_user(db_session)
    outsider = await create_test_user(db_session)
    group = await create_test_group(db_session, leader)

    response = await async_client.post(
        f"{repos_url(group)}/", json={"name": "code", "visibility": "public"}, headers=auth_headers(outsider)
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_create_repository_duplicate_name(async_client: httpx.AsyncClient, db_session: AsyncSession):
    """Имя репозитория уникально в пределах группы."""
    leader = await create_test_user(db_session)
    group = await create_test_group(db_session, leader)
    other_leader = await create_test_user(db_session)
    other_group = await create_test_group(db_session, other_leader)
    await create_repository(db_session, group, "code", is_private=False)

    response = await async_client.post(
        f"{repos_url(group)}/", json={"name": "code", "visibility": "public"}, headers=auth_headers(leader)
    )
    assert response.status_code == 409

    response = await async_client.post(
        f"{repos_url(other_group)}/", json={"name": "code", "visibility": "public"}, headers=auth_headers(other_leader)
    )
    assert response.status_code == 201


@pytest.mark.asyncio
async def test_public_repository_anonymous_access(async_client: httpx.AsyncClient, db_session: AsyncSession):
    """Публичный репозиторий g1/demo доступен без авторизации."""
    leader = await create_test_user(db_session)
    group = await create_test_group(db_session, leader, group_user_name="g1")
    await create_repository(db_session, group, "demo", is_private=False)

    response = await async_client.get(f"{API}/groups/g1/repositories/demo")
    assert response.status_code == 200
    assert response.json()["visibility"] == "public"


@pytest.mark.asyncio
async def test_private_repository_access(async_client: httpx.AsyncClient, db_session: AsyncSession):
    """Приватный репозиторий: 401 без токена, 403 для постороннего."""
    leader = await create_test_user(db_session)
    member = await create_test_user(db_session)
    outsider = await create_test_user(db_session)
    admin = await create_test_user(db_session, role=UserRole.ADMINISTRATOR)
    group = await create_test_group(db_session, leader, members=[member])
    await create_repository(db_session, group, "secret", is_private=True)
    url = f"{repos_url(group)}/secret"

    response = await async_client.get(url)
    assert response.status_code == 401

    response = await async_client.get(url, headers=auth_headers(outsider))
    assert response.status_code == 403

    for user in (leader, member, admin):
        response = await async_client.get(url, headers=auth_headers(user))
        assert response.status_code == 200


@pytest.mark.asyncio
async def test_private_repository_evaluator_access(async_client: httpx.AsyncClient, db_session: AsyncSession):
    """Оценщик проекта группы видит ее приватные репозитории."""
    leader = await create_test_user(db_session)
    evaluator = await create_test_user(db_session, role=UserRole.EVALUATOR)
    group = await create_test_group(db_session, leader)
    project = await create_test_project(db_session, group)
    db_session.add(ProjectEvaluator(project_id=project.id, evaluator_id=evaluator.id))
    await db_session.commit()
    await create_repository(db_session, group, "secret", is_private=True)

    response = await async_client.get(f"{repos_url(group)}/secret", headers=auth_headers(evaluator))
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_list_repositories_hides_private(async_client: httpx.AsyncClient, db_session: AsyncSession):
    """Посторонние видят только публичные репозитории группы."""
    leader = await create_test_user(db_session)
    group = await create_test_group(db_session, leader)
    await create_repository(db_session, group, "open", is_private=False)
    await create_repository(db_session, group, "closed", is_private=True)

    response = await async_client.get(f"{repos_url(group)}/")
    assert response.status_code == 200
    data = response.json()
    assert [repo["name"] for repo in data["repositories"]] == ["open"]
    assert data["pagination"]["total"] == 1
    assert data["repositories"][0]["updated_ago"] == "just now"

    response = await async_client.get(f"{repos_url(group)}/", headers=auth_headers(leader))
    assert response.json()["pagination"]["total"] == 2

    response = await async_client.get(f"{repos_url(group)}/", params={"name": "CLO"}, headers=auth_headers(leader))
    assert [repo["name"] for repo in response.json()["repositories"]] == ["closed"]

    response = await async_client.get(f"{repos_url(group)}/", params={"limit": 1}, headers=auth_headers(leader))
    assert response.json()["pagination"]["has_more"] is True


@pytest.mark.asyncio
async def test_update_repository_visibility(async_client: httpx.AsyncClient, db_session: AsyncSession, mock_redis):
    """Смена видимости сбрасывает кэш обозревателя."""
    leader = await create_test_user(db_session)
    group = await create_test_group(db_session, leader)
    await create_repository(db_session, group, "code", is_private=False)
    cache_key = f"explorer:{group.group_user_name}:code:overview"
    mock_redis.cache[cache_key] = {"name": "code"}

    response = await async_client.patch(
        f"{repos_url(group)}/code", json={"visibility": "private"}, headers=auth_headers(leader)
    )
    assert response.status_code == 200
    assert response.json()["is_private"] is True
    assert cache_key not in mock_redis.cache


@pytest.mark.asyncio
async def test_update_repository_conflicting_visibility(async_client: httpx.AsyncClient, db_session: AsyncSession):
    """Противоречивые visibility и is_private при изменении отклоняются, как и при создании."""
    leader = await create_test_user(db_session)
    group = await create_test_group(db_session, leader)
    await create_repository(db_session, group, "code", is_private=False)

    response = await async_client.patch(
        f"{repos_url(group)}/code", json={"visibility": "private", "is_private": False}, headers=auth_headers(leader)
    )
    assert response.status_code == 400

    response = await async_client.get(f"{repos_url(group)}/code", headers=auth_headers(leader))
    assert response.json()["is_private"] is False


@pytest.mark.asyncio
async def test_create_repository_dot_names_rejected(async_client: httpx.AsyncClient, db_session: AsyncSession):
    """Имена из одних точек недопустимы."""
    leader = await create_test_user(db_session)
    group = await create_test_group(db_session, leader)

    for name in (".", ".."):
        response = await async_client.post(
            f"{repos_url(group)}/", json={"name": name, "visibility": "public"}, headers=auth_headers(leader)
        )
        assert response.status_code == 400


@pytest.mark.asyncio
async def test_delete_repository(async_client: httpx.AsyncClient, db_session: AsyncSession):
    """Удалять репозиторий может только лидер."""
    leader = await create_test_user(db_session)
    member = await create_test_user(db_session)
    group = await create_test_group(db_session, leader, members=[member])
    headers = auth_headers(leader)
    await async_client.post(f"{repos_url(group)}/", json={"name": "code", "visibility": "public"}, headers=headers)

    response = await async_client.delete(f"{repos_url(group)}/code", headers=auth_headers(member))
    assert response.status_code == 403

    response = await async_client.delete(f"{repos_url(group)}/code", headers=headers)
    assert response.status_code == 204

    response = await async_client.get(f"{repos_url(group)}/code", headers=headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_branches_and_commits(async_client: httpx.AsyncClient, db_session: AsyncSession):
    """Коммит в ветку двигает ее голову, история идет по первым родителям."""
    leader = await create_test_user(db_session)
    group = await create_test_group(db_session, leader)
    headers = auth_headers(leader)
    base = f"{repos_url(group)}/code"
    await async_client.post(f"{repos_url(group)}/", json={"name": "code", "visibility": "public"}, headers=headers)

    response = await async_client.post(f"{base}/branches", json={"name": "feature/ui"}, headers=headers)
    assert response.status_code == 201
    main_head = response.json()["head_commit_id"]

    response = await async_client.post(f"{base}/branches", json={"name": "feature/ui"}, headers=headers)
    assert response.status_code == 409

    response = await async_client.post(
        f"{base}/branches", json={"name": "hotfix", "source_branch": "nope"}, headers=headers
    )
    assert response.status_code == 404

    commit_data = {
        "message": "Add login form",
        "branch_name": "feature/ui",
        "file_changes": [
            {"file_path": "src/login.py", "change_type": "ADDED", "file_content_hash": "abc123"},
            {"file_path": "README.md", "change_type": "MODIFIED"},
        ],
    }
    response = await async_client.post(f"{base}/commits", json=commit_data, headers=headers)
    assert response.status_code == 201
    commit = response.json()
    assert commit["parent_commit_ids"] == [main_head]
    assert commit["author_id"] == leader.id

    response = await async_client.get(f"{base}/commits", params={"branch": "feature/ui"}, headers=headers)
    assert [c["id"] for c in response.json()] == [commit["id"], main_head]

    response = await async_client.get(f"{base}/commits", params={"branch": "main"}, headers=headers)
    assert [c["id"] for c in response.json()] == [main_head]

    response = await async_client.get(f"{base}/commits/{commit['id']}", headers=headers)
    assert response.status_code == 200
    assert {change["file_path"] for change in response.json()["file_changes"]} == {"src/login.py", "README.md"}

    response = await async_client.get(f"{base}/commits/{'0' * 40}", headers=headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_commit_requires_file_changes(async_client: httpx.AsyncClient, db_session: AsyncSession):
    leader = await create_test_user(db_session)
    group = await create_test_group(db_session, leader)
    headers = auth_headers(leader)
    await async_client.post(f"{repos_url(group)}/", json={"name": "code", "visibility": "public"}, headers=headers)

    response = await async_client.post(
        f"{repos_url(group)}/code/commits", json={"message": "empty", "file_changes": []}, headers=headers
    )
    assert response.status_code == 400

    response = await async_client.post(
        f"{repos_url(group)}/code/commits",
        json={"message": "x", "branch_name": "ghost", "file_changes": [{"file_path": "a", "change_type": "ADDED"}]},
        headers=headers,
    )
    assert response.status_code == 404
