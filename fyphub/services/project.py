import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

import fyphub.repo.feedback as feedback_repo
import fyphub.repo.group as group_repo
import fyphub.repo.project as project_repo
import fyphub.repo.repository as repository_repo
import fyphub.repo.task as task_repo
from fyphub.models.project import Project, ProjectStatus, ProjectEvaluator, ProjectRepository
from fyphub.models.repository import Repository
from fyphub.schemas.project import ProjectCreate, ProjectUpdate
from fyphub.utils.time import utc_now

logger = logging.getLogger(__name__)


async def get(db: AsyncSession, id: int) -> Optional[Project]:
    """Получает проект по идентификатору"""
    return await project_repo.get_project_by_id(db, id)


async def get_for_group(
    db: AsyncSession,
    *,
    group_id: int,
    status: Optional[ProjectStatus] = None,
    include_archived: bool = False,
) -> List[Dict[str, Any]]:
    """Проекты группы вместе со счетчиками"""
    projects = await project_repo.get_projects_by_group(db, group_id, status, include_archived)
    counters = await project_repo.get_project_counters(db, [project.id for project in projects])
    return [
        {**{column.name: getattr(project, column.name) for column in Project.__table__.columns}, "stats": counters[project.id]}
        for project in projects
    ]


async def get_top(db: AsyncSession, *, limit: int = 5) -> List[Project]:
    return await project_repo.get_recent_projects(db, limit)


async def create(db: AsyncSession, *, obj_in: ProjectCreate, group_id: int) -> Project:
    """Создает проект группы"""
    db_obj = Project(
        title=obj_in.title,
        description=obj_in.description,
        milestones=obj_in.milestones,
        group_id=group_id,
        status=ProjectStatus.ACTIVE,
    )
    await project_repo.create_project_in_db(db, db_obj)
    logger.info(f"Project {db_obj.id} created for group {group_id}")
    return db_obj


async def update(db: AsyncSession, *, db_obj: Project, obj_in: ProjectUpdate) -> Project:
    """Обновляет проект; переход в SUBMITTED фиксирует дату сдачи"""
    update_data = obj_in.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        if value is None and field in ("title", "status", "milestones"):
            continue
        setattr(db_obj, field, value)

    if update_data.get("status") == ProjectStatus.SUBMITTED:
        db_obj.submission_date = utc_now()

    await project_repo.update_project_in_db(db, db_obj)
    return db_obj


async def delete(db: AsyncSession, *, id: int) -> bool:
    """Удаляет проект"""
    return await project_repo.delete_project_from_db(db, id)


async def get_stats(db: AsyncSession, *, project: Project) -> Dict[str, Any]:
    """Сводная статистика проекта"""
    tasks = await task_repo.count_tasks_by_status(db, project_id=project.id)
    repositories = await project_repo.get_repositories_for_project(db, project.id)
    return {
        "project_id": project.id,
        "tasks": tasks,
        "tasks_total": sum(tasks.values()),
        "feedback": await feedback_repo.count_feedback_by_status(db, project.id),
        "evaluations_total": await project_repo.count_evaluations(db, project.id),
        "commits_total": await repository_repo.count_commits_for_repositories(db, [repo.id for repo in repositories]),
        "members_total": await group_repo.count_members(db, project.group_id),
    }


# Репозитории проекта
async def get_repositories(db: AsyncSession, *, project_id: int) -> List[Repository]:
    return await project_repo.get_repositories_for_project(db, project_id)


async def is_repository_linked(db: AsyncSession, *, project_id: int, repository_id: int) -> bool:
    return await project_repo.get_project_repository(db, project_id, repository_id) is not None


async def link_repository(db: AsyncSession, *, project_id: int, repository_id: int) -> ProjectRepository:
    link = ProjectRepository(project_id=project_id, repository_id=repository_id)
    await project_repo.create_project_repository_in_db(db, link)
    return link


async def unlink_repository(db: AsyncSession, *, project_id: int, repository_id: int) -> bool:
    return await project_repo.delete_project_repository_from_db(db, project_id, repository_id)


# Оценщики проекта
async def is_evaluator_assigned(db: AsyncSession, *, project_id: int, evaluator_id: int) -> bool:
    return await project_repo.get_project_evaluator(db, project_id, evaluator_id) is not None


async def assign_evaluator(db: AsyncSession, *, project_id: int, evaluator_id: int) -> ProjectEvaluator:
    db_obj = ProjectEvaluator(project_id=project_id, evaluator_id=evaluator_id)
    await project_repo.create_project_evaluator_in_db(db, db_obj)
    return db_obj


async def get_for_evaluator(db: AsyncSession, *, evaluator_id: int) -> List[Project]:
    return await project_repo.get_projects_for_evaluator(db, evaluator_id)


async def get_for_advisor(db: AsyncSession, *, advisor_id: int) -> List[Project]:
    return await project_repo.get_projects_by_advisor(db, advisor_id)


async def has_project_role_in_group(db: AsyncSession, *, group_id: int, user_id: int) -> bool:
    """Пользователь курирует или оценивает проект группы"""
    return await project_repo.is_evaluator_or_advisor_of_group(db, group_id, user_id)
