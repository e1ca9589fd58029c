import json
import logging
from typing import Any, Dict, Optional

from aiokafka import AIOKafkaProducer
from aiokafka.admin import AIOKafkaAdminClient, NewTopic

from fyphub.core.config import settings

logger = logging.getLogger(__name__)

TASK_EVENTS = "task_events"
NOTIFICATION_EVENTS = "notification_events"

# Топики, которые должны существовать в Kafka
KAFKA_TOPICS = [TASK_EVENTS, NOTIFICATION_EVENTS]

producer: Optional[AIOKafkaProducer] = None


async def create_topics():
    """
    Создает необходимые топики в Kafka, если они не существуют
    """
    admin_client = AIOKafkaAdminClient(bootstrap_servers=settings.KAFKA_BOOTSTRAP_SERVERS)
    try:
        await admin_client.start()
        existing_topics = await admin_client.list_topics()

        topics_to_create = [
            NewTopic(name=topic, num_partitions=1, replication_factor=1)
            for topic in KAFKA_TOPICS
            if topic not in existing_topics
        ]
        if topics_to_create:
            logger.info(f"Creating Kafka topics: {[t.name for t in topics_to_create]}")
            await admin_client.create_topics(topics_to_create)
    except Exception as e:
        logger.error(f"Failed to create Kafka topics: {e}")
    finally:
        await admin_client.close()


async def get_kafka_producer() -> AIOKafkaProducer:
    """
    Возвращает инстанс Kafka-продюсера или создает новый, если его нет
    """
    global producer
    if producer is None:
        producer = AIOKafkaProducer(
            bootstrap_servers=settings.KAFKA_BOOTSTRAP_SERVERS,
            value_serializer=lambda v: json.dumps(v, default=str).encode("utf-8"),
        )
        await producer.start()
    return producer


async def close_kafka_producer():
    """
    Закрывает соединение с Kafka
    """
    global producer
    if producer is not None:
        await producer.stop()
        producer = None


async def send_event(topic: str, event_type: str, data: Dict[str, Any]) -> None:
    """
    Отправляет событие в Kafka. Ошибки только логируются.
    """
    if settings.TESTING:
        logger.debug(f"Skipping Kafka event {event_type} in testing mode")
        return
    try:
        kafka_producer = await get_kafka_producer()
        await kafka_producer.send_and_wait(topic, {"event_type": event_type, "data": data})
        logger.info(f"Sent event to topic {topic}: {event_type}")
    except Exception as e:
        logger.error(f"Failed to send Kafka event {event_type}: {e}")
