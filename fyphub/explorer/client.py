import logging
from typing import Any, Dict, Optional

import httpx

from fyphub.core.config import settings

logger = logging.getLogger(__name__)


class ExplorerError(Exception):
    """Ошибка обращения к сервису репозиториев"""


class UpstreamNotFound(ExplorerError):
    pass


class UpstreamUnavailable(ExplorerError):
    pass


def create_http_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=settings.REPOSITORY_API_TIMEOUT)


async def fetch(url: str) -> Any:
    """
    Выполняет GET к сервису репозиториев.
    404 -> UpstreamNotFound, прочие ошибки и сбои соединения -> UpstreamUnavailable.
    """
    return await send("GET", url)


async def send(method: str, url: str, payload: Optional[Dict[str, Any]] = None) -> Any:
    try:
        async with create_http_client() as client:
            response = await client.request(method, url, json=payload, headers={"Accept": "application/json"})
    except httpx.HTTPError as e:
        logger.error(f"Repository service {method} failed for {url}: {e}")
        raise UpstreamUnavailable(str(e)) from e

    if response.status_code == 404:
        raise UpstreamNotFound(url)
    if response.is_error:
        logger.error(f"Repository service returned {response.status_code} for {method} {url}")
        raise UpstreamUnavailable(f"Upstream status {response.status_code}")

    if "application/json" in response.headers.get("content-type", ""):
        try:
            return response.json()
        except ValueError as e:
            raise UpstreamUnavailable("Malformed JSON from repository service") from e
    return {"content": response.text}
