from celery import Celery
from celery.schedules import crontab

from fyphub.core.config import settings

celery_app = Celery(
    "fyphub",
    broker=settings.REDIS_URL,
    backend=settings.REDIS_URL,
)

celery_app.conf.task_routes = {"fyphub.worker.tasks.*": {"queue": "main_queue"}}

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
)

celery_app.autodiscover_tasks(["fyphub.worker"])

celery_app.conf.beat_schedule = {
    "check-task-deadlines": {
        "task": "fyphub.worker.tasks.check_task_deadlines",
        "schedule": crontab(hour="*", minute="0"),  # Каждый час
    },
    "purge-expired-invites": {
        "task": "fyphub.worker.tasks.purge_expired_invites",
        "schedule": crontab(hour="3", minute="0"),
    },
    "generate-daily-reports": {
        "task": "fyphub.worker.tasks.generate_reports",
        "schedule": crontab(hour="0", minute="0"),  # Каждый день в полночь
    },
}
