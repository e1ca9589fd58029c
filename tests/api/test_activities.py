from datetime import datetime, timedelta, timezone

import pytest
import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from fyphub.models.evaluation import Evaluation, EvaluationKind
from fyphub.models.feedback import Feedback
from fyphub.models.project import ProjectRepository
from fyphub.models.repository import Commit, Repository
from fyphub.models.task import Task, TaskStatus
from fyphub.models.user import UserRole
from tests.utils import API, create_test_user, create_test_group, create_test_project, auth_headers

BASE_TIME = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


def at(minutes: int) -> datetime:
    return BASE_TIME + timedelta(minutes=minutes)


@pytest.mark.asyncio
async def test_project_activities(async_client: httpx.AsyncClient, db_session: AsyncSession):
    """Лента проекта объединяет задачи, оценки, отзывы и коммиты привязанных репозиториев."""
    leader = await create_test_user(db_session)
    advisor = await create_test_user(db_session, role=UserRole.ADVISOR)
    evaluator = await create_test_user(db_session, role=UserRole.EVALUATOR)
    group = await create_test_group(db_session, leader)
    project = await create_test_project(db_session, group, advisor=advisor)

    linked = Repository(name="thesis", is_private=False, group_id=group.id, owner_id=leader.id)
    unlinked = Repository(name="scratch", is_private=False, group_id=group.id, owner_id=leader.id)
    db_session.add_all([linked, unlinked])
    await db_session.flush()
    db_session.add_all(
        [
            ProjectRepository(project_id=project.id, repository_id=linked.id),
            Task(title="Write intro", status=TaskStatus.TODO, project_id=project.id, creator_id=leader.id, created_at=at(1)),
            Evaluation(
                kind=EvaluationKind.EVALUATION,
                score=8.5,
                comments="Solid",
                project_id=project.id,
                author_id=evaluator.id,
                created_at=at(2),
            ),
            Feedback(title="Scope", content="Narrow the scope", project_id=project.id, author_id=advisor.id, created_at=at(3)),
            Commit(id="a" * 40, message="Add outline\n\nFirst draft", repository_id=linked.id, author_id=leader.id, timestamp=at(4)),
            Commit(id="b" * 40, message="Unrelated", repository_id=unlinked.id, author_id=leader.id, timestamp=at(5)),
        ]
    )
    await db_session.commit()

    response = await async_client.get(
        f"{API}/groups/{group.group_user_name}/projects/{project.id}/activities", headers=auth_headers(leader)
    )
    assert response.status_code == 200
    activities = response.json()
    assert [item["type"] for item in activities] == ["commit", "feedback", "evaluation", "task"]

    commit, feedback, evaluation, task = activities
    assert commit["title"] == "Add outline"
    assert commit["related_to"] == "thesis"
    assert feedback["actor"]["id"] == advisor.id
    assert feedback["status"] == "OPEN"
    assert evaluation["title"] == "Evaluation: 8.5"
    assert task["status"] == "TODO"
    assert task["actor"]["id"] == leader.id


@pytest.mark.asyncio
async def test_project_activities_access(async_client: httpx.AsyncClient, db_session: AsyncSession):
    """Посторонний студент не видит ленту проекта."""
    leader = await create_test_user(db_session)
    outsider = await create_test_user(db_session)
    group = await create_test_group(db_session, leader)
    project = await create_test_project(db_session, group)
    url = f"{API}/groups/{group.group_user_name}/projects/{project.id}/activities"

    response = await async_client.get(url, headers=auth_headers(outsider))
    assert response.status_code == 403

    response = await async_client.get(url, headers=auth_headers(leader))
    assert response.status_code == 200
    assert response.json() == []

    response = await async_client.get(f"{API}/groups/{group.group_user_name}/projects/999999/activities", headers=auth_headers(leader))
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_user_activities(async_client: httpx.AsyncClient, db_session: AsyncSession):
    """Лента пользователя: коммиты, задачи и отзывы, с пагинацией limit/offset."""
    leader = await create_test_user(db_session)
    member = await create_test_user(db_session)
    group = await create_test_group(db_session, leader, members=[member])
    project = await create_test_project(db_session, group)
    repository = Repository(name="thesis", is_private=True, group_id=group.id, owner_id=leader.id)
    db_session.add(repository)
    await db_session.flush()
    db_session.add_all(
        [
            Commit(id="c" * 40, message="Fix typo", repository_id=repository.id, author_id=member.id, timestamp=at(1)),
            Task(
                title="Collect data",
                project_id=project.id,
                creator_id=leader.id,
                assignee_id=member.id,
                created_at=at(2),
                updated_at=at(2),
            ),
            Feedback(title="Question", content="Which dataset?", project_id=project.id, author_id=member.id, created_at=at(3)),
            Task(title="Leader only", project_id=project.id, creator_id=leader.id, created_at=at(4), updated_at=at(4)),
        ]
    )
    await db_session.commit()
    url = f"{API}/users/{member.id}/activities"

    response = await async_client.get(url, headers=auth_headers(member))
    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 3
    assert data["has_more"] is False
    assert [item["type"] for item in data["items"]] == ["comment", "task", "commit"]
    comment, task, commit = data["items"]
    assert comment["project_id"] == project.id
    assert comment["project_title"] == project.title
    assert task["title"] == "Collect data"
    assert commit["related_to"] == "thesis"
    assert commit["time_ago"].endswith("ago")

    response = await async_client.get(url, params={"limit": 2, "offset": 1}, headers=auth_headers(member))
    data = response.json()
    assert [item["type"] for item in data["items"]] == ["task", "commit"]
    assert data["limit"] == 2
    assert data["offset"] == 1
    assert data["has_more"] is False

    response = await async_client.get(url, params={"limit": 1}, headers=auth_headers(member))
    assert response.json()["has_more"] is True


@pytest.mark.asyncio
async def test_user_activities_permissions(async_client: httpx.AsyncClient, db_session: AsyncSession):
    """Чужую ленту видит только администратор."""
    user = await create_test_user(db_session)
    other = await create_test_user(db_session)
    admin = await create_test_user(db_session, role=UserRole.ADMINISTRATOR)

    response = await async_client.get(f"{API}/users/{user.id}/activities", headers=auth_headers(other))
    assert response.status_code == 403

    response = await async_client.get(f"{API}/users/{user.id}/activities", headers=auth_headers(admin))
    assert response.status_code == 200
    assert response.json()["items"] == []

    response = await async_client.get(f"{API}/users/999999/activities", headers=auth_headers(admin))
    assert response.status_code == 404

    response = await async_client.get(f"{API}/users/{user.id}/activities", params={"limit": 0}, headers=auth_headers(user))
    assert response.status_code == 400
