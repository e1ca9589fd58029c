import pytest
import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from fyphub.models.evaluation import Evaluation, EvaluationKind
from fyphub.models.project import ProjectStatus
from fyphub.models.task import Task, TaskStatus
from fyphub.models.user import UserRole
from tests.utils import API, create_test_user, create_test_group, create_test_project, auth_headers


def projects_url(group) -> str:
    return f"{API}/groups/{group.group_user_name}/projects"


@pytest.mark.asyncio
async def test_create_project(async_client: httpx.AsyncClient, db_session: AsyncSession):
    """Лидер создает проект, статус по умолчанию ACTIVE."""
    leader = await create_test_user(db_session)
    group = await create_test_group(db_session, leader)

    project_data = {
        "title": "Smart Campus",
        "description": "IoT sensors",
        "milestones": [{"title": "Proposal", "due": "2026-11-01"}],
    }
    response = await async_client.post(projects_url(group), json=project_data, headers=auth_headers(leader))
    assert response.status_code == 201

    data = response.json()
    assert data["title"] == "Smart Campus"
    assert data["status"] == "ACTIVE"
    assert data["group_id"] == group.id
    assert data["milestones"] == project_data["milestones"]
    assert data["submission_date"] is None


@pytest.mark.asyncio
async def test_create_project_as_member_forbidden(async_client: httpx.AsyncClient, db_session: AsyncSession):
    """Обычный участник не может создать проект."""
    leader = await create_test_user(db_session)
    member = await create_test_user(db_session)
    group = await create_test_group(db_session, leader, members=[member])

    response = await async_client.post(projects_url(group), json={"title": "Nope"}, headers=auth_headers(member))
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_read_projects_with_counters(async_client: httpx.AsyncClient, db_session: AsyncSession):
    """Список проектов содержит счетчики и по умолчанию скрывает архивные."""
    leader = await create_test_user(db_session)
    group = await create_test_group(db_session, leader)
    project = await create_test_project(db_session, group)
    await create_test_project(db_session, group, status=ProjectStatus.ARCHIVED)
    db_session.add_all([Task(title=f"Task {i}", project_id=project.id, creator_id=leader.id) for i in range(3)])
    await db_session.commit()

    response = await async_client.get(projects_url(group), headers=auth_headers(leader))
    assert response.status_code == 200

    data = response.json()
    assert len(data) == 1
    assert data[0]["id"] == project.id
    assert data[0]["stats"]["tasks"] == 3

    response = await async_client.get(
        projects_url(group), params={"include_archived": True}, headers=auth_headers(leader)
    )
    assert len(response.json()) == 2

    response = await async_client.get(projects_url(group), params={"status": "ARCHIVED"}, headers=auth_headers(leader))
    assert [p["status"] for p in response.json()] == ["ARCHIVED"]


@pytest.mark.asyncio
async def test_read_projects_access(async_client: httpx.AsyncClient, db_session: AsyncSession):
    """Посторонний студент не видит проекты, преподаватель видит."""
    leader = await create_test_user(db_session)
    group = await create_test_group(db_session, leader)
    await create_test_project(db_session, group)
    outsider = await create_test_user(db_session)
    advisor = await create_test_user(db_session, role=UserRole.ADVISOR)

    response = await async_client.get(projects_url(group), headers=auth_headers(outsider))
    assert response.status_code == 403

    response = await async_client.get(projects_url(group), headers=auth_headers(advisor))
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_submit_project_sets_submission_date(async_client: httpx.AsyncClient, db_session: AsyncSession):
    """Переход в статус SUBMITTED фиксирует дату сдачи."""
    leader = await create_test_user(db_session)
    group = await create_test_group(db_session, leader)
    project = await create_test_project(db_session, group)

    response = await async_client.patch(
        f"{projects_url(group)}/{project.id}", json={"status": "SUBMITTED"}, headers=auth_headers(leader)
    )
    assert response.status_code == 200
    assert response.json()["status"] == "SUBMITTED"
    assert response.json()["submission_date"] is not None


@pytest.mark.asyncio
async def test_advisor_can_update_project(async_client: httpx.AsyncClient, db_session: AsyncSession):
    leader = await create_test_user(db_session)
    advisor = await create_test_user(db_session, role=UserRole.ADVISOR)
    other_advisor = await create_test_user(db_session, role=UserRole.ADVISOR)
    group = await create_test_group(db_session, leader)
    project = await create_test_project(db_session, group, advisor=advisor)
    url = f"{projects_url(group)}/{project.id}"

    response = await async_client.patch(url, json={"status": "COMPLETED"}, headers=auth_headers(advisor))
    assert response.status_code == 200
    assert response.json()["status"] == "COMPLETED"

    response = await async_client.patch(url, json={"title": "Hijack"}, headers=auth_headers(other_advisor))
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_project_from_other_group_not_found(async_client: httpx.AsyncClient, db_session: AsyncSession):
    """Проект другой группы недоступен по чужому пути."""
    leader = await create_test_user(db_session)
    group = await create_test_group(db_session, leader)
    other_leader = await create_test_user(db_session)
    other_group = await create_test_group(db_session, other_leader)
    other_project = await create_test_project(db_session, other_group)

    response = await async_client.get(f"{projects_url(group)}/{other_project.id}", headers=auth_headers(leader))
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_delete_project(async_client: httpx.AsyncClient, db_session: AsyncSession):
    leader = await create_test_user(db_session)
    member = await create_test_user(db_session)
    group = await create_test_group(db_session, leader, members=[member])
    project = await create_test_project(db_session, group)
    url = f"{projects_url(group)}/{project.id}"

    response = await async_client.delete(url, headers=auth_headers(member))
    assert response.status_code == 403

    response = await async_client.delete(url, headers=auth_headers(leader))
    assert response.status_code == 204

    response = await async_client.get(url, headers=auth_headers(leader))
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_project_stats(async_client: httpx.AsyncClient, db_session: AsyncSession):
    """Статистика считает задачи по статусам, участников и коммиты."""
    leader = await create_test_user(db_session)
    member = await create_test_user(db_session)
    group = await create_test_group(db_session, leader, members=[member])
    project = await create_test_project(db_session, group)
    db_session.add_all(
        [
            Task(title="a", project_id=project.id, status=TaskStatus.DONE),
            Task(title="b", project_id=project.id, status=TaskStatus.TODO),
            Task(title="c", project_id=project.id, status=TaskStatus.TODO),
        ]
    )
    await db_session.commit()
    headers = auth_headers(leader)

    await async_client.post(
        f"{API}/groups/{group.group_user_name}/repositories/", json={"name": "code", "visibility": "public"}, headers=headers
    )
    response = await async_client.post(
        f"{projects_url(group)}/{project.id}/repositories", json={"repository_name": "code"}, headers=headers
    )
    assert response.status_code == 201

    response = await async_client.get(f"{projects_url(group)}/{project.id}/stats", headers=headers)
    assert response.status_code == 200

    data = response.json()
    assert data["tasks"]["TODO"] == 2
    assert data["tasks"]["DONE"] == 1
    assert data["tasks_total"] == 3
    assert data["members_total"] == 2
    assert data["commits_total"] == 1
    assert data["evaluations_total"] == 0


@pytest.mark.asyncio
async def test_link_and_unlink_repository(async_client: httpx.AsyncClient, db_session: AsyncSession):
    """Привязка репозитория к проекту, повторная привязка и отвязка."""
    leader = await create_test_user(db_session)
    group = await create_test_group(db_session, leader)
    project = await create_test_project(db_session, group)
    headers = auth_headers(leader)
    url = f"{projects_url(group)}/{project.id}/repositories"

    await async_client.post(
        f"{API}/groups/{group.group_user_name}/repositories/", json={"name": "docs", "is_private": True}, headers=headers
    )

    response = await async_client.post(url, json={"repository_name": "docs"}, headers=headers)
    assert response.status_code == 201
    assert response.json()["name"] == "docs"

    response = await async_client.post(url, json={"repository_name": "docs"}, headers=headers)
    assert response.status_code == 409

    response = await async_client.post(url, json={"repository_name": "missing"}, headers=headers)
    assert response.status_code == 404

    response = await async_client.get(url, headers=headers)
    assert [repo["name"] for repo in response.json()] == ["docs"]

    response = await async_client.delete(f"{url}/docs", headers=headers)
    assert response.status_code == 204

    response = await async_client.delete(f"{url}/docs", headers=headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_counters_skip_advisor_ratings(async_client: httpx.AsyncClient, db_session: AsyncSession):
    """Оценки руководителя не попадают в счетчик оценок ни в списке, ни в статистике."""
    leader = await create_test_user(db_session)
    advisor = await create_test_user(db_session, role=UserRole.ADVISOR)
    evaluator = await create_test_user(db_session, role=UserRole.EVALUATOR)
    group = await create_test_group(db_session, leader)
    project = await create_test_project(db_session, group, advisor=advisor)
    db_session.add_all(
        [
            Evaluation(project_id=project.id, author_id=evaluator.id, score=80, comments="Solid"),
            Evaluation(
                project_id=project.id,
                author_id=leader.id,
                score=5,
                comments="Helpful",
                kind=EvaluationKind.ADVISOR_RATING,
            ),
        ]
    )
    await db_session.commit()
    headers = auth_headers(leader)

    response = await async_client.get(projects_url(group), headers=headers)
    assert response.json()[0]["stats"]["evaluations"] == 1

    response = await async_client.get(f"{projects_url(group)}/{project.id}/stats", headers=headers)
    assert response.json()["evaluations_total"] == 1


@pytest.mark.asyncio
async def test_top_projects(async_client: httpx.AsyncClient, db_session: AsyncSession):
    """Последние неархивные проекты доступны без авторизации."""
    leader = await create_test_user(db_session)
    group = await create_test_group(db_session, leader)
    first = await create_test_project(db_session, group)
    await create_test_project(db_session, group, status=ProjectStatus.ARCHIVED)
    second = await create_test_project(db_session, group, status=ProjectStatus.COMPLETED)

    response = await async_client.get(f"{API}/projects/top")
    assert response.status_code == 200
    data = response.json()
    assert [item["id"] for item in data] == [second.id, first.id]
    assert data[0]["group"] == {"name": group.name, "group_user_name": group.group_user_name}

    response = await async_client.get(f"{API}/projects/top", params={"limit": 1})
    assert [item["id"] for item in response.json()] == [second.id]
