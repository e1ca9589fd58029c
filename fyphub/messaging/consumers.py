import asyncio
import json
import logging
from typing import Any, Dict

from aiokafka import AIOKafkaConsumer

from fyphub.core.config import settings
from fyphub.messaging.producers import TASK_EVENTS, NOTIFICATION_EVENTS
from fyphub.worker.tasks import send_notification_email

logger = logging.getLogger(__name__)


def handle_task_event(event: Dict[str, Any]) -> bool:
    """Отправляет письмо исполнителю о новой или измененной задаче"""
    data = event.get("data", {})
    email = data.get("assignee_email")
    if not email:
        return False

    if event.get("event_type") == "task_created":
        subject = f"New task assigned: {data['title']}"
        message = f"You have been assigned the task '{data['title']}'. Priority: {data.get('priority')}."
    elif event.get("event_type") == "task_updated":
        subject = f"Task updated: {data['title']}"
        message = f"Task '{data['title']}' was updated. Status: {data.get('status')}."
    else:
        return False

    send_notification_email.delay(user_email=email, subject=subject, message=message)
    return True


def handle_notification_event(event: Dict[str, Any]) -> bool:
    """Дублирует внутреннее уведомление письмом"""
    if event.get("event_type") != "notification_created":
        return False
    data = event.get("data", {})
    if not data.get("email"):
        return False
    send_notification_email.delay(
        user_email=data["email"],
        subject="FYP Hub notification",
        message=data.get("message", ""),
    )
    return True


HANDLERS = {
    TASK_EVENTS: handle_task_event,
    NOTIFICATION_EVENTS: handle_notification_event,
}


async def consume_events():
    """
    Потребляет события из Kafka и передает их обработчикам
    """
    consumer = AIOKafkaConsumer(
        *HANDLERS.keys(),
        bootstrap_servers=settings.KAFKA_BOOTSTRAP_SERVERS,
        group_id="fyphub_group",
        value_deserializer=lambda m: json.loads(m.decode("utf-8")),
    )

    await consumer.start()
    try:
        async for msg in consumer:
            logger.info(f"Received message from {msg.topic}: {msg.value}")
            try:
                HANDLERS[msg.topic](msg.value)
            except Exception as e:
                logger.error(f"Failed to handle event from {msg.topic}: {e}")
    finally:
        await consumer.stop()


async def start_consumers():
    """
    Запускает все консьюмеры Kafka
    """
    try:
        await asyncio.gather(consume_events())
    except Exception as e:
        logger.error(f"Kafka consumers stopped: {e}")
