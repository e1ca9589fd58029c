import pytest
import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from fyphub.models.user import UserRole
from tests.utils import API, create_test_user, create_test_group, create_test_project, auth_headers


def advice_url(group, project) -> str:
    return f"{API}/groups/{group.group_user_name}/projects/{project.id}/advisor/advice"


ADVICE = {"topic": "Database choice", "description": "Should we use PostgreSQL or MongoDB for the catalog?"}


@pytest.mark.asyncio
async def test_request_and_answer_advice(async_client: httpx.AsyncClient, db_session: AsyncSession, mock_kafka):
    """Участник просит совета, руководитель отвечает, автор получает уведомление."""
    leader = await create_test_user(db_session)
    advisor = await create_test_user(db_session, role=UserRole.ADVISOR)
    group = await create_test_group(db_session, leader)
    project = await create_test_project(db_session, group, advisor=advisor)
    url = advice_url(group, project)

    response = await async_client.post(url, json=ADVICE, headers=auth_headers(leader))
    assert response.status_code == 201
    advice = response.json()
    assert advice["status"] == "PENDING"
    assert advice["requester_id"] == leader.id
    assert advice["response"] is None
    assert [event["recipient_id"] for event in mock_kafka.events("notification_created")] == [advisor.id]

    mock_kafka.clear()
    response = await async_client.post(
        f"{url}/{advice['id']}/respond", json={"content": "PostgreSQL, the data is relational."}, headers=auth_headers(advisor)
    )
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ANSWERED"
    assert data["response"] == "PostgreSQL, the data is relational."
    assert data["responded_by_id"] == advisor.id
    assert data["responded_at"] is not None
    assert [event["recipient_id"] for event in mock_kafka.events("notification_created")] == [leader.id]

    # Повторный ответ невозможен
    response = await async_client.post(
        f"{url}/{advice['id']}/respond", json={"content": "Changed my mind."}, headers=auth_headers(advisor)
    )
    assert response.status_code == 400

    response = await async_client.get(url, headers=auth_headers(leader))
    assert response.status_code == 200
    assert [item["id"] for item in response.json()] == [advice["id"]]


@pytest.mark.asyncio
async def test_advice_requires_advisor(async_client: httpx.AsyncClient, db_session: AsyncSession):
    """Без руководителя попросить совета нельзя."""
    leader = await create_test_user(db_session)
    group = await create_test_group(db_session, leader)
    project = await create_test_project(db_session, group)

    response = await async_client.post(advice_url(group, project), json=ADVICE, headers=auth_headers(leader))
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_advice_permissions(async_client: httpx.AsyncClient, db_session: AsyncSession):
    """Просить могут только участники, отвечать только руководитель проекта."""
    leader = await create_test_user(db_session)
    outsider = await create_test_user(db_session)
    advisor = await create_test_user(db_session, role=UserRole.ADVISOR)
    other_advisor = await create_test_user(db_session, role=UserRole.ADVISOR)
    group = await create_test_group(db_session, leader)
    project = await create_test_project(db_session, group, advisor=advisor)
    url = advice_url(group, project)

    response = await async_client.post(url, json=ADVICE, headers=auth_headers(outsider))
    assert response.status_code == 403

    response = await async_client.post(url, json=ADVICE, headers=auth_headers(leader))
    advice_id = response.json()["id"]

    for user in (leader, other_advisor):
        response = await async_client.post(
            f"{url}/{advice_id}/respond", json={"content": "Some answer"}, headers=auth_headers(user)
        )
        assert response.status_code == 403

    response = await async_client.post(f"{url}/9999/respond", json={"content": "Some answer"}, headers=auth_headers(advisor))
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_advice_validation(async_client: httpx.AsyncClient, db_session: AsyncSession):
    """Короткие тема и описание отклоняются."""
    leader = await create_test_user(db_session)
    advisor = await create_test_user(db_session, role=UserRole.ADVISOR)
    group = await create_test_group(db_session, leader)
    project = await create_test_project(db_session, group, advisor=advisor)

    response = await async_client.post(
        advice_url(group, project), json={"topic": "DB", "description": "short"}, headers=auth_headers(leader)
    )
    assert response.status_code == 400
    assert set(response.json()["errors"]) >= {"topic", "description"}
