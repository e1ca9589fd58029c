import asyncio
import logging
from datetime import timedelta
from typing import Dict

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.future import select

import fyphub.models.relationships  # noqa: F401
import fyphub.repo.group as group_repo
import fyphub.repo.task as task_repo
import fyphub.repo.user as user_repo
from fyphub.db.session import create_worker_engine
from fyphub.models.project import Project
from fyphub.models.task import Task
from fyphub.utils.notifications import send_email
from fyphub.utils.time import ensure_utc, utc_now
from fyphub.worker.celery_app import celery_app

logger = logging.getLogger(__name__)


@celery_app.task
def send_notification_email(user_email: str, subject: str, message: str):
    """Доставка email-уведомления"""
    sent = send_email(user_email=user_email, subject=subject, message=message)
    return {"status": "sent" if sent else "logged", "to": user_email}


async def check_deadlines(session: AsyncSession, hours: int = 24) -> int:
    """Напоминает исполнителям о задачах, срок которых истекает в ближайшие часы"""
    now = utc_now()
    tasks = await task_repo.get_open_tasks_due_between(session, now, now + timedelta(hours=hours))

    reminded = 0
    for task in tasks:
        if not task.assignee_id:
            continue
        user = await user_repo.get_user_by_id(session, task.assignee_id)
        if not user:
            continue
        hours_left = int((ensure_utc(task.deadline) - now).total_seconds() // 3600)
        send_email(
            user_email=user.email,
            subject=f"Task '{task.title}' is due soon",
            message=f"The deadline for task '{task.title}' is in {hours_left} hours.",
        )
        reminded += 1

    logger.info(f"Deadline reminders sent: {reminded}")
    return reminded


async def purge_invites(session: AsyncSession) -> int:
    """Удаляет просроченные и использованные приглашения"""
    removed = await group_repo.delete_expired_invites(session, utc_now())
    logger.info(f"Expired invites purged: {removed}")
    return removed


async def build_report(session: AsyncSession) -> Dict[str, Dict[str, int]]:
    """Сводка по статусам проектов и задач"""
    report: Dict[str, Dict[str, int]] = {"projects": {}, "tasks": {}}
    for name, column in (("projects", Project.status), ("tasks", Task.status)):
        result = await session.execute(select(column, func.count()).group_by(column))
        for status, count in result.all():
            report[name][status.value] = count

    lines = [f"- {name} {status}: {count}" for name, counts in report.items() for status, count in counts.items()]
    logger.info("Status report:\n" + "\n".join(lines))
    return report


async def _with_session(job):
    """Выполняет job с сессией на движке, который закрывается вместе с event loop задачи"""
    worker_engine = create_worker_engine()
    try:
        async with async_sessionmaker(worker_engine, class_=AsyncSession, expire_on_commit=False)() as session:
            return await job(session)
    finally:
        await worker_engine.dispose()


@celery_app.task
def check_task_deadlines():
    """
    Проверяет задачи, у которых скоро истекает срок, и отправляет уведомления
    """
    logger.info("Checking task deadlines...")
    reminded = asyncio.run(_with_session(check_deadlines))
    return {"status": "Deadline check completed", "reminded": reminded}


@celery_app.task
def purge_expired_invites():
    removed = asyncio.run(_with_session(purge_invites))
    return {"status": "Invite purge completed", "removed": removed}


@celery_app.task
def generate_reports():
    """
    Генерирует отчет по статусам проектов и задач
    """
    logger.info("Generating reports...")
    report = asyncio.run(_with_session(build_report))
    return {"status": "Report generation completed", "report": report}
