import logging
from typing import Any, Dict, Optional

import fyphub.cache.client as cache
from fyphub.core.config import settings
from fyphub.explorer import client
from fyphub.explorer.endpoints import RepositoryApiEndpoints

logger = logging.getLogger(__name__)


def cache_prefix(group_user_name: str, repository_name: str) -> str:
    return f"explorer:{group_user_name}:{repository_name}"


async def _fetch_cached(group_user_name: str, repository_name: str, key: str, url: str) -> Any:
    cache_key = f"{cache_prefix(group_user_name, repository_name)}:{key}"
    cached = await cache.get_cache(cache_key)
    if cached is not None:
        return cached

    data = await client.fetch(url)
    await cache.set_cache(cache_key, data, expires=settings.EXPLORER_CACHE_TTL)
    return data


async def get_overview(group_user_name: str, repository_name: str) -> Any:
    url = RepositoryApiEndpoints().overview(group_user_name, repository_name)
    return await _fetch_cached(group_user_name, repository_name, "overview", url)


async def get_tree(group_user_name: str, repository_name: str, ref: str, path: Optional[str] = None) -> Any:
    url = RepositoryApiEndpoints().tree(group_user_name, repository_name, ref, path)
    return await _fetch_cached(group_user_name, repository_name, f"tree:{ref}:{path or ''}", url)


async def get_blob(group_user_name: str, repository_name: str, ref: str, path: str) -> Any:
    url = RepositoryApiEndpoints().blob(group_user_name, repository_name, ref, path)
    return await _fetch_cached(group_user_name, repository_name, f"blob:{ref}:{path}", url)


async def get_commits(group_user_name: str, repository_name: str, ref: Optional[str] = None) -> Any:
    url = RepositoryApiEndpoints().commits(group_user_name, repository_name, ref)
    return await _fetch_cached(group_user_name, repository_name, f"commits:{ref or ''}", url)


async def get_branches(group_user_name: str, repository_name: str) -> Any:
    url = RepositoryApiEndpoints().branches(group_user_name, repository_name)
    return await _fetch_cached(group_user_name, repository_name, "branches", url)


async def get_readme(group_user_name: str, repository_name: str, ref: str) -> Any:
    url = RepositoryApiEndpoints().readme(group_user_name, repository_name, ref)
    return await _fetch_cached(group_user_name, repository_name, f"readme:{ref}", url)


async def invalidate(group_user_name: str, repository_name: str) -> int:
    """Сбрасывает закэшированные ответы по репозиторию"""
    removed = await cache.invalidate_pattern(f"{cache_prefix(group_user_name, repository_name)}:*")
    logger.info(f"Explorer cache invalidated for {group_user_name}/{repository_name}: {removed} keys")
    return removed


# Отзывы во внешнем сервисе не кэшируются
async def get_feedback_list(group_user_name: str, repository_name: str) -> Any:
    return await client.fetch(RepositoryApiEndpoints().feedback_list(group_user_name, repository_name))


async def get_feedback(group_user_name: str, repository_name: str, feedback_id: int) -> Any:
    return await client.fetch(RepositoryApiEndpoints().feedback_get(group_user_name, repository_name, feedback_id))


async def create_feedback(group_user_name: str, repository_name: str, payload: Dict[str, Any]) -> Any:
    url = RepositoryApiEndpoints().feedback_create(group_user_name, repository_name)
    return await client.send("POST", url, payload)


async def update_feedback(group_user_name: str, repository_name: str, feedback_id: int, payload: Dict[str, Any]) -> Any:
    url = RepositoryApiEndpoints().feedback_update(group_user_name, repository_name, feedback_id)
    return await client.send("PATCH", url, payload)
