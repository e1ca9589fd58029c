from typing import Dict, List, Optional

from sqlalchemy import delete, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload

from fyphub.models.project import Project, ProjectStatus, ProjectEvaluator, ProjectRepository
from fyphub.models.repository import Repository
from fyphub.models.task import Task
from fyphub.models.feedback import Feedback
from fyphub.models.evaluation import Evaluation, EvaluationKind


async def get_project_by_id(db: AsyncSession, id: int) -> Optional[Project]:
    """Получает проект по идентификатору"""
    result = await db.execute(select(Project).where(Project.id == id))
    return result.scalars().first()


async def get_projects_by_group(
    db: AsyncSession,
    group_id: int,
    status: Optional[ProjectStatus] = None,
    include_archived: bool = False,
) -> List[Project]:
    """Получает проекты группы с фильтром по статусу"""
    query = select(Project).where(Project.group_id == group_id)
    if status:
        query = query.where(Project.status == status)
    elif not include_archived:
        query = query.where(Project.status != ProjectStatus.ARCHIVED)
    result = await db.execute(query.order_by(Project.created_at.desc(), Project.id.desc()))
    return result.scalars().all()


async def get_recent_projects(db: AsyncSession, limit: int = 5) -> List[Project]:
    """Последние неархивные проекты вместе с группой"""
    result = await db.execute(
        select(Project)
        .options(selectinload(Project.group))
        .where(Project.status != ProjectStatus.ARCHIVED)
        .order_by(Project.created_at.desc(), Project.id.desc())
        .limit(limit)
    )
    return result.scalars().all()


async def get_projects_by_advisor(db: AsyncSession, advisor_id: int) -> List[Project]:
    result = await db.execute(
        select(Project).where(Project.advisor_id == advisor_id).order_by(Project.updated_at.desc())
    )
    return result.scalars().all()


async def count_projects_by_advisor(db: AsyncSession, advisor_ids: List[int]) -> Dict[int, int]:
    """Количество курируемых проектов для каждого научного руководителя"""
    if not advisor_ids:
        return {}
    result = await db.execute(
        select(Project.advisor_id, func.count(Project.id))
        .where(Project.advisor_id.in_(advisor_ids))
        .group_by(Project.advisor_id)
    )
    return {advisor_id: count for advisor_id, count in result.all()}


async def count_projects(db: AsyncSession) -> int:
    result = await db.execute(select(func.count(Project.id)))
    return result.scalar_one()


async def create_project_in_db(db: AsyncSession, project: Project) -> None:
    """Создает проект в базе данных"""
    db.add(project)
    await db.commit()
    await db.refresh(project)


async def update_project_in_db(db: AsyncSession, project: Project) -> None:
    """Обновляет проект в базе данных"""
    db.add(project)
    await db.commit()
    await db.refresh(project)


async def delete_project_from_db(db: AsyncSession, id: int) -> bool:
    """Удаляет проект из базы данных"""
    result = await db.execute(delete(Project).where(Project.id == id))
    await db.commit()
    return result.rowcount > 0


async def get_project_counters(db: AsyncSession, project_ids: List[int]) -> Dict[int, Dict[str, int]]:
    """Счетчики задач, репозиториев, оценок и отзывов для списка проектов"""
    counters = {project_id: {"tasks": 0, "repositories": 0, "evaluations": 0, "feedback": 0} for project_id in project_ids}
    if not project_ids:
        return counters

    sources = (
        ("tasks", Task.project_id, Task.id, None),
        ("repositories", ProjectRepository.project_id, ProjectRepository.id, None),
        ("evaluations", Evaluation.project_id, Evaluation.id, Evaluation.kind == EvaluationKind.EVALUATION),
        ("feedback", Feedback.project_id, Feedback.id, None),
    )
    for name, project_column, id_column, condition in sources:
        query = select(project_column, func.count(id_column)).where(project_column.in_(project_ids))
        if condition is not None:
            query = query.where(condition)
        result = await db.execute(query.group_by(project_column))
        for project_id, count in result.all():
            counters[project_id][name] = count
    return counters


async def count_evaluations(db: AsyncSession, project_id: int) -> int:
    result = await db.execute(
        select(func.count(Evaluation.id)).where(
            Evaluation.project_id == project_id, Evaluation.kind == EvaluationKind.EVALUATION
        )
    )
    return result.scalar_one()


# Оценщики проекта
async def get_project_evaluator(db: AsyncSession, project_id: int, evaluator_id: int) -> Optional[ProjectEvaluator]:
    result = await db.execute(
        select(ProjectEvaluator).where(
            (ProjectEvaluator.project_id == project_id) & (ProjectEvaluator.evaluator_id == evaluator_id)
        )
    )
    return result.scalars().first()


async def create_project_evaluator_in_db(db: AsyncSession, project_evaluator: ProjectEvaluator) -> None:
    db.add(project_evaluator)
    await db.commit()
    await db.refresh(project_evaluator)


async def get_projects_for_evaluator(db: AsyncSession, evaluator_id: int) -> List[Project]:
    """Получает проекты, назначенные оценщику"""
    result = await db.execute(
        select(Project)
        .join(ProjectEvaluator, ProjectEvaluator.project_id == Project.id)
        .where(ProjectEvaluator.evaluator_id == evaluator_id)
        .order_by(ProjectEvaluator.assigned_at.desc())
    )
    return result.scalars().all()


# Репозитории проекта
async def get_project_repository(db: AsyncSession, project_id: int, repository_id: int) -> Optional[ProjectRepository]:
    result = await db.execute(
        select(ProjectRepository).where(
            (ProjectRepository.project_id == project_id) & (ProjectRepository.repository_id == repository_id)
        )
    )
    return result.scalars().first()


async def get_repositories_for_project(db: AsyncSession, project_id: int) -> List[Repository]:
    result = await db.execute(
        select(Repository)
        .join(ProjectRepository, ProjectRepository.repository_id == Repository.id)
        .where(ProjectRepository.project_id == project_id)
        .order_by(Repository.name)
    )
    return result.scalars().all()


async def create_project_repository_in_db(db: AsyncSession, link: ProjectRepository) -> None:
    db.add(link)
    await db.commit()
    await db.refresh(link)


async def delete_project_repository_from_db(db: AsyncSession, project_id: int, repository_id: int) -> bool:
    result = await db.execute(
        delete(ProjectRepository).where(
            (ProjectRepository.project_id == project_id) & (ProjectRepository.repository_id == repository_id)
        )
    )
    await db.commit()
    return result.rowcount > 0


async def is_evaluator_or_advisor_of_group(db: AsyncSession, group_id: int, user_id: int) -> bool:
    """Проверяет, курирует или оценивает ли пользователь какой-либо проект группы"""
    advisor = await db.execute(
        select(Project.id).where(Project.group_id == group_id, Project.advisor_id == user_id).limit(1)
    )
    if advisor.first() is not None:
        return True
    evaluator = await db.execute(
        select(ProjectEvaluator.id)
        .join(Project, Project.id == ProjectEvaluator.project_id)
        .where(Project.group_id == group_id, ProjectEvaluator.evaluator_id == user_id)
        .limit(1)
    )
    return evaluator.first() is not None
