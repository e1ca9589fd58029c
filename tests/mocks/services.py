"""
Mock implementations of external services for testing.
"""
from typing import Any, Dict, List, Optional
from unittest.mock import patch


class MockRedisCache:
    """
    Mock implementation of Redis cache.
    Simulates Redis operations without requiring an actual Redis instance.
    """

    def __init__(self):
        self.cache: Dict[str, Any] = {}
        self.ttls: Dict[str, int] = {}

    async def get(self, key: str) -> Optional[Any]:
        """Mock retrieval from cache"""
        return self.cache.get(key)

    async def set(self, key: str, value: Any, expires: int = 3600) -> bool:
        """Mock setting a value in cache with expiration"""
        self.cache[key] = value
        self.ttls[key] = expires
        return True

    async def delete(self, key: str) -> bool:
        """Mock deletion from cache"""
        if key in self.cache:
            del self.cache[key]
            self.ttls.pop(key, None)
            return True
        return False

    async def invalidate_pattern(self, pattern: str) -> int:
        """Mock invalidation of keys matching a trailing-* pattern"""
        prefix = pattern.rstrip("*")
        keys_to_delete = [key for key in self.cache if key.startswith(prefix)]
        for key in keys_to_delete:
            await self.delete(key)
        return len(keys_to_delete)


class MockKafkaProducer:
    """
    Mock implementation of Kafka producer.
    Records sent events for verification in tests.
    """

    def __init__(self):
        self.sent_messages: List[Dict[str, Any]] = []

    async def send_event(self, topic: str, event_type: str, data: Dict[str, Any]) -> None:
        self.sent_messages.append({"topic": topic, "message": {"event_type": event_type, "data": data}})

    def events(self, event_type: str) -> List[Dict[str, Any]]:
        """Payloads of recorded events with the given type"""
        return [m["message"]["data"] for m in self.sent_messages if m["message"]["event_type"] == event_type]

    def clear(self) -> None:
        """Clear the record of sent messages"""
        self.sent_messages = []


# Patch functions for common services
def patch_redis():
    """Create patches for the Redis cache functions"""
    mock_redis = MockRedisCache()

    patches = [
        patch("fyphub.cache.client.get_cache", side_effect=mock_redis.get),
        patch("fyphub.cache.client.set_cache", side_effect=mock_redis.set),
        patch("fyphub.cache.client.delete_cache", side_effect=mock_redis.delete),
        patch("fyphub.cache.client.invalidate_pattern", side_effect=mock_redis.invalidate_pattern),
    ]
    return mock_redis, patches


def patch_kafka():
    """Create a patch for Kafka event publishing"""
    mock_kafka = MockKafkaProducer()
    patches = [patch("fyphub.messaging.producers.send_event", side_effect=mock_kafka.send_event)]
    return mock_kafka, patches
