"""
Ленты событий проекта и пользователя.

Каждый источник (задачи, оценки, отзывы, коммиты) дает ограниченное число
последних записей, затем записи объединяются и сортируются от новых к старым.
"""
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

import fyphub.repo.activity as activity_repo
import fyphub.repo.project as project_repo
import fyphub.repo.user as user_repo
from fyphub.models.evaluation import EvaluationKind
from fyphub.models.project import Project
from fyphub.models.user import User
from fyphub.utils.time import ensure_utc, format_time_ago, utc_now

PROJECT_SOURCE_LIMIT = 10
USER_SOURCE_LIMIT = 5


def _summary(user: Optional[User]) -> Optional[Dict[str, Any]]:
    if user is None:
        return None
    return {"id": user.id, "username": user.username, "first_name": user.first_name, "last_name": user.last_name}


def _first_line(message: str) -> str:
    return message.strip().splitlines()[0] if message.strip() else ""


def _newest_first(activities: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return sorted(activities, key=lambda item: ensure_utc(item["timestamp"]), reverse=True)


async def get_project_activities(db: AsyncSession, *, project: Project) -> List[Dict[str, Any]]:
    tasks = await activity_repo.get_recent_project_tasks(db, project.id, PROJECT_SOURCE_LIMIT)
    evaluations = await activity_repo.get_recent_project_evaluations(db, project.id, PROJECT_SOURCE_LIMIT)
    feedback = await activity_repo.get_recent_project_feedback(db, project.id, PROJECT_SOURCE_LIMIT)
    repositories = await project_repo.get_repositories_for_project(db, project.id)
    commits = await activity_repo.get_recent_commits(
        db, limit=PROJECT_SOURCE_LIMIT, repository_ids=[repository.id for repository in repositories]
    )

    actor_ids = {task.creator_id for task in tasks}
    actor_ids |= {evaluation.author_id for evaluation in evaluations}
    actor_ids |= {item.author_id for item in feedback}
    actor_ids |= {commit.author_id for commit, _ in commits}
    actor_ids.discard(None)
    actors = {user.id: user for user in await user_repo.get_users_by_ids(db, list(actor_ids))}

    activities = [
        {
            "id": f"task_{task.id}",
            "type": "task",
            "title": task.title,
            "status": task.status.value,
            "timestamp": task.created_at,
            "actor": _summary(actors.get(task.creator_id)),
        }
        for task in tasks
    ]
    activities += [
        {
            "id": f"evaluation_{evaluation.id}",
            "type": "evaluation",
            "title": (
                f"Advisor rating: {evaluation.score:g}"
                if evaluation.kind == EvaluationKind.ADVISOR_RATING
                else f"Evaluation: {evaluation.score:g}"
            ),
            "status": None,
            "timestamp": evaluation.created_at,
            "actor": _summary(actors.get(evaluation.author_id)),
        }
        for evaluation in evaluations
    ]
    activities += [
        {
            "id": f"feedback_{item.id}",
            "type": "feedback",
            "title": item.title,
            "status": item.status.value,
            "timestamp": item.created_at,
            "actor": _summary(actors.get(item.author_id)),
        }
        for item in feedback
    ]
    activities += [
        {
            "id": f"commit_{commit.id}",
            "type": "commit",
            "title": _first_line(commit.message),
            "status": None,
            "related_to": repository_name,
            "timestamp": commit.timestamp,
            "actor": _summary(actors.get(commit.author_id)),
        }
        for commit, repository_name in commits
    ]
    return _newest_first(activities)


async def get_user_activities(db: AsyncSession, *, user: User, limit: int = 10, offset: int = 0) -> Dict[str, Any]:
    """
    Коммиты пользователя, его задачи (исполнитель или автор) и оставленные им отзывы.
    Пагинация limit/offset поверх объединенной ленты.
    """
    commits = await activity_repo.get_recent_commits(db, limit=USER_SOURCE_LIMIT, author_id=user.id)
    tasks = await activity_repo.get_recent_user_tasks(db, user.id, USER_SOURCE_LIMIT)
    feedback = await activity_repo.get_recent_user_feedback(db, user.id, USER_SOURCE_LIMIT)

    activities = [
        {
            "id": f"commit_{commit.id}",
            "type": "commit",
            "title": _first_line(commit.message),
            "description": commit.message,
            "timestamp": commit.timestamp,
            "project_id": None,
            "project_title": None,
            "related_to": repository_name,
        }
        for commit, repository_name in commits
    ]
    activities += [
        {
            "id": f"task_{task.id}",
            "type": "task",
            "title": task.title,
            "description": task.description,
            "timestamp": task.updated_at or task.created_at,
            "project_id": task.project_id,
            "project_title": project_title,
            "related_to": project_title,
        }
        for task, project_title in tasks
    ]
    activities += [
        {
            "id": f"feedback_{item.id}",
            "type": "comment",
            "title": item.title,
            "description": item.content,
            "timestamp": item.created_at,
            "project_id": item.project_id,
            "project_title": project_title,
            "related_to": project_title,
        }
        for item, project_title in feedback
    ]

    now = utc_now()
    activities = _newest_first(activities)
    for activity in activities:
        activity["time_ago"] = format_time_ago(activity["timestamp"], now)

    total = len(activities)
    return {
        "items": activities[offset:offset + limit],
        "total": total,
        "limit": limit,
        "offset": offset,
        "has_more": offset + limit < total,
    }
