from datetime import timedelta

import pytest
import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from fyphub.models.advisor_request import AdvisorRequest
from fyphub.models.project import ProjectEvaluator, ProjectStatus
from fyphub.models.task import Task, TaskStatus
from fyphub.models.user import UserRole
from fyphub.utils.time import utc_now
from tests.utils import API, create_test_user, create_test_group, create_test_project, auth_headers


@pytest.mark.asyncio
async def test_student_dashboard(async_client: httpx.AsyncClient, db_session: AsyncSession):
    """Сводка студента: группа, проекты, задачи и ближайшие сроки."""
    leader = await create_test_user(db_session)
    member = await create_test_user(db_session)
    group = await create_test_group(db_session, leader, members=[member])
    project = await create_test_project(db_session, group)
    await create_test_project(db_session, group, status=ProjectStatus.COMPLETED)
    db_session.add_all(
        [
            Task(title="soon", project_id=project.id, assignee_id=leader.id, deadline=utc_now() + timedelta(days=2)),
            Task(title="later", project_id=project.id, assignee_id=leader.id, deadline=utc_now() + timedelta(days=30)),
            Task(title="done", project_id=project.id, assignee_id=leader.id, status=TaskStatus.DONE),
        ]
    )
    await db_session.commit()

    response = await async_client.get(f"{API}/dashboard/", headers=auth_headers(leader))
    assert response.status_code == 200

    data = response.json()
    assert data["role"] == "STUDENT"
    assert data["group"]["id"] == group.id
    assert data["group"]["members_count"] == 2
    assert data["group"]["is_leader"] is True
    assert data["projects"] == {"total": 2, "active": 1, "completed": 1}
    assert data["tasks"]["TODO"] == 2
    assert data["tasks"]["DONE"] == 1
    assert [task["title"] for task in data["upcoming_deadlines"]] == ["soon"]


@pytest.mark.asyncio
async def test_student_dashboard_without_group(async_client: httpx.AsyncClient, db_session: AsyncSession):
    student = await create_test_user(db_session)

    response = await async_client.get(f"{API}/dashboard/student", headers=auth_headers(student))
    assert response.status_code == 200
    assert response.json()["group"] is None
    assert response.json()["projects"]["total"] == 0


@pytest.mark.asyncio
async def test_advisor_dashboard(async_client: httpx.AsyncClient, db_session: AsyncSession):
    advisor = await create_test_user(db_session, role=UserRole.ADVISOR)
    leader = await create_test_user(db_session)
    group = await create_test_group(db_session, leader)
    project = await create_test_project(db_session, group, advisor=advisor)
    other_project = await create_test_project(db_session, group)
    db_session.add(AdvisorRequest(group_id=group.id, project_id=other_project.id, requested_advisor_id=advisor.id))
    await db_session.commit()

    response = await async_client.get(f"{API}/dashboard/advisor", headers=auth_headers(advisor))
    assert response.status_code == 200

    data = response.json()
    assert [item["id"] for item in data["advised_projects"]] == [project.id]
    assert data["pending_requests"] == 1


@pytest.mark.asyncio
async def test_evaluator_dashboard(async_client: httpx.AsyncClient, db_session: AsyncSession):
    evaluator = await create_test_user(db_session, role=UserRole.EVALUATOR)
    leader = await create_test_user(db_session)
    group = await create_test_group(db_session, leader)
    project = await create_test_project(db_session, group)
    db_session.add(ProjectEvaluator(project_id=project.id, evaluator_id=evaluator.id))
    await db_session.commit()

    response = await async_client.get(f"{API}/dashboard/evaluator", headers=auth_headers(evaluator))
    data = response.json()
    assert data["pending_evaluations"] == 1
    assert data["completed_evaluations"] == 0
    assert data["assigned_projects"][0]["evaluated"] is False


@pytest.mark.asyncio
async def test_admin_dashboard(async_client: httpx.AsyncClient, db_session: AsyncSession):
    admin = await create_test_user(db_session, role=UserRole.ADMINISTRATOR)
    leader = await create_test_user(db_session)
    await create_test_group(db_session, leader)

    response = await async_client.get(f"{API}/dashboard/", headers=auth_headers(admin))
    assert response.json()["totals"] == {"users": 2, "groups": 1, "projects": 0, "repositories": 0}


@pytest.mark.asyncio
async def test_role_dashboard_mismatch(async_client: httpx.AsyncClient, db_session: AsyncSession):
    student = await create_test_user(db_session)

    response = await async_client.get(f"{API}/dashboard/advisor", headers=auth_headers(student))
    assert response.status_code == 403
