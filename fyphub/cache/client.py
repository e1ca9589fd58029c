import json
import logging
from typing import Any, Optional

import redis.asyncio as redis

from fyphub.core.config import settings

logger = logging.getLogger(__name__)

# Создаем Redis-клиент
redis_client = redis.Redis(host=settings.REDIS_HOST, port=settings.REDIS_PORT, db=0, decode_responses=True)


async def get_cache(key: str) -> Optional[Any]:
    """
    Получает данные из кэша по ключу.
    Ошибки Redis логируются и трактуются как промах кэша.
    """
    try:
        data = await redis_client.get(key)
    except redis.RedisError as e:
        logger.warning(f"Cache get failed for {key}: {e}")
        return None
    if data:
        return json.loads(data)
    return None


async def set_cache(key: str, value: Any, expires: int = 3600) -> bool:
    """
    Устанавливает данные в кэш с указанным временем жизни (по умолчанию 1 час)
    """
    try:
        serialized = json.dumps(value, default=str)
        return bool(await redis_client.set(key, serialized, ex=expires))
    except redis.RedisError as e:
        logger.warning(f"Cache set failed for {key}: {e}")
        return False


async def delete_cache(key: str) -> bool:
    """
    Удаляет данные из кэша по ключу
    """
    try:
        return bool(await redis_client.delete(key))
    except redis.RedisError as e:
        logger.warning(f"Cache delete failed for {key}: {e}")
        return False


async def invalidate_pattern(pattern: str) -> int:
    """
    Удаляет все ключи, соответствующие шаблону
    """
    try:
        keys = [key async for key in redis_client.scan_iter(match=pattern)]
        if keys:
            return await redis_client.delete(*keys)
    except redis.RedisError as e:
        logger.warning(f"Cache invalidation failed for {pattern}: {e}")
    return 0


async def close_cache() -> None:
    await redis_client.aclose()
