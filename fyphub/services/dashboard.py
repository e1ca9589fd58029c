from datetime import timedelta
from typing import Any, Dict

from sqlalchemy.ext.asyncio import AsyncSession

import fyphub.repo.advisor_request as request_repo
import fyphub.repo.evaluation as evaluation_repo
import fyphub.repo.feedback as feedback_repo
import fyphub.repo.group as group_repo
import fyphub.repo.notification as notification_repo
import fyphub.repo.project as project_repo
import fyphub.repo.repository as repository_repo
import fyphub.repo.task as task_repo
import fyphub.repo.user as user_repo
from fyphub.models.project import ProjectStatus
from fyphub.models.user import User
from fyphub.utils.time import utc_now

UPCOMING_DAYS = 7


def _project_summary(project) -> Dict[str, Any]:
    return {"id": project.id, "title": project.title, "status": project.status.value, "group_id": project.group_id}


async def student_dashboard(db: AsyncSession, *, user: User) -> Dict[str, Any]:
    """Сводка студента: группа, проекты, свои задачи и ближайшие сроки"""
    group = await group_repo.get_group_for_user(db, user.id)
    group_summary = None
    projects = []
    if group:
        group_summary = {
            "id": group.id,
            "name": group.name,
            "group_user_name": group.group_user_name,
            "members_count": await group_repo.count_members(db, group.id),
            "is_leader": group.leader_id == user.id,
        }
        projects = await project_repo.get_projects_by_group(db, group.id, include_archived=True)

    now = utc_now()
    upcoming = await task_repo.get_open_tasks_due_between(db, now, now + timedelta(days=UPCOMING_DAYS), assignee_id=user.id)
    return {
        "role": user.role.value,
        "group": group_summary,
        "projects": {
            "total": len(projects),
            "active": sum(1 for project in projects if project.status == ProjectStatus.ACTIVE),
            "completed": sum(1 for project in projects if project.status == ProjectStatus.COMPLETED),
        },
        "tasks": await task_repo.count_tasks_by_status(db, assignee_id=user.id),
        "upcoming_deadlines": [
            {"id": task.id, "title": task.title, "deadline": task.deadline, "project_id": task.project_id}
            for task in upcoming
        ],
        "unread_notifications": await notification_repo.count_unread(db, user.id),
    }


async def advisor_dashboard(db: AsyncSession, *, user: User) -> Dict[str, Any]:
    """Сводка руководителя: проекты, ожидающие запросы, свежие отзывы"""
    projects = await project_repo.get_projects_by_advisor(db, user.id)
    recent_feedback = await feedback_repo.get_recent_feedback_by_advisor(db, user.id)
    return {
        "role": user.role.value,
        "advised_projects": [_project_summary(project) for project in projects],
        "pending_requests": await request_repo.count_pending_for_advisor(db, user.id),
        "recent_feedback": [
            {"id": item.id, "title": item.title, "status": item.status.value, "project_id": item.project_id}
            for item in recent_feedback
        ],
        "unread_notifications": await notification_repo.count_unread(db, user.id),
    }


async def evaluator_dashboard(db: AsyncSession, *, user: User) -> Dict[str, Any]:
    """Сводка оценщика: назначенные проекты и прогресс оценивания"""
    projects = await project_repo.get_projects_for_evaluator(db, user.id)
    evaluated_ids = {evaluation.project_id for evaluation in await evaluation_repo.get_evaluations_by_author(db, user.id)}
    completed = sum(1 for project in projects if project.id in evaluated_ids)
    return {
        "role": user.role.value,
        "assigned_projects": [
            {**_project_summary(project), "evaluated": project.id in evaluated_ids} for project in projects
        ],
        "completed_evaluations": completed,
        "pending_evaluations": len(projects) - completed,
        "unread_notifications": await notification_repo.count_unread(db, user.id),
    }


async def admin_dashboard(db: AsyncSession, *, user: User) -> Dict[str, Any]:
    return {
        "role": user.role.value,
        "totals": {
            "users": await user_repo.count_users(db),
            "groups": await group_repo.count_groups(db),
            "projects": await project_repo.count_projects(db),
            "repositories": await repository_repo.count_repositories(db),
        },
    }
