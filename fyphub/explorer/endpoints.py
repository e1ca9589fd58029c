from typing import List, Optional, Union
from urllib.parse import quote

from fyphub.core.config import settings

UNSAFE_SEGMENTS = ("", ".", "..")


class InvalidPathError(ValueError):
    """Недопустимая ветка или путь к файлу"""


def split_segments(value: str) -> List[str]:
    """
    Делит путь на сегменты.
    Пустые сегменты, "." и ".." отклоняются, чтобы запрос не вышел за пределы репозитория.
    """
    segments = value.strip("/").split("/")
    for segment in segments:
        if segment in UNSAFE_SEGMENTS or "\\" in segment:
            raise InvalidPathError(f"Invalid path: {value!r}")
    return segments


def quote_segment(value: str) -> str:
    """Одиночный сегмент, косая черта кодируется"""
    if value in UNSAFE_SEGMENTS or "\\" in value:
        raise InvalidPathError(f"Invalid segment: {value!r}")
    return quote(value, safe="")


def quote_path(value: str) -> str:
    return "/".join(quote(segment, safe="") for segment in split_segments(value))


class RepositoryApiEndpoints:
    """Адреса внешнего сервиса хранения репозиториев"""

    def __init__(self, base_url: Optional[str] = None):
        self.base_url = (base_url or settings.REPOSITORY_API_URL).rstrip("/")

    def _repo(self, owner: str, repo: str) -> str:
        return f"{self.base_url}/{quote_segment(owner)}/{quote_segment(repo)}"

    def overview(self, owner: str, repo: str) -> str:
        return self._repo(owner, repo)

    def tree(self, owner: str, repo: str, ref: str, path: Optional[str] = None) -> str:
        url = f"{self._repo(owner, repo)}/tree/{quote_segment(ref)}"
        if path:
            url += f"/{quote_path(path)}"
        return url

    def blob(self, owner: str, repo: str, ref: str, path: str) -> str:
        return f"{self._repo(owner, repo)}/blob/{quote_segment(ref)}/{quote_path(path)}"

    def commits(self, owner: str, repo: str, ref: Optional[str] = None) -> str:
        url = f"{self._repo(owner, repo)}/commits"
        if ref:
            url += f"/{quote_segment(ref)}"
        return url

    def branches(self, owner: str, repo: str, name: Optional[str] = None) -> str:
        url = f"{self._repo(owner, repo)}/branches"
        if name:
            url += f"/{quote_segment(name)}"
        return url

    def readme(self, owner: str, repo: str, ref: str) -> str:
        return self.blob(owner, repo, ref, "README.md")

    # Отзывы во внешнем сервисе: список и создание по одному адресу, чтение и изменение по id
    def feedback_list(self, owner: str, repo: str) -> str:
        return f"{self._repo(owner, repo)}/feedback"

    def feedback_create(self, owner: str, repo: str) -> str:
        return self.feedback_list(owner, repo)

    def feedback_get(self, owner: str, repo: str, feedback_id: Union[int, str]) -> str:
        return f"{self.feedback_list(owner, repo)}/{quote_segment(str(feedback_id))}"

    def feedback_update(self, owner: str, repo: str, feedback_id: Union[int, str]) -> str:
        return self.feedback_get(owner, repo, feedback_id)
