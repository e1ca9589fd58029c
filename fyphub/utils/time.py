from datetime import datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Приводит naive datetime к UTC (SQLite возвращает даты без tzinfo)"""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def format_time_ago(value: Optional[datetime], now: Optional[datetime] = None) -> str:
    """Человекочитаемое "5 minutes ago" для списков репозиториев"""
    if value is None:
        return "never"
    now = now or utc_now()
    seconds = int((now - ensure_utc(value)).total_seconds())
    if seconds < 60:
        return "just now"

    for unit, size in (("year", 365 * 86400), ("month", 30 * 86400), ("day", 86400), ("hour", 3600), ("minute", 60)):
        if seconds >= size:
            count = seconds // size
            return f"{count} {unit}{'s' if count > 1 else ''} ago"
    return "just now"
