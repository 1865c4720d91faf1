import logging
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from config import TIMEZONE_OFFSETS

logger = logging.getLogger(__name__)


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def resolve_timezone(tz_id: str | None) -> tzinfo:
    """Таблица фиксированных смещений, затем база IANA, иначе UTC."""
    if not tz_id:
        return timezone.utc
    offset_minutes = TIMEZONE_OFFSETS.get(tz_id)
    if offset_minutes is not None:
        return timezone(timedelta(minutes=offset_minutes), tz_id)
    try:
        return ZoneInfo(tz_id)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning(f"Неизвестный часовой пояс '{tz_id}', используется UTC.")
        return timezone.utc


def local_date(instant: datetime, tz_id: str | None) -> date:
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(resolve_timezone(tz_id)).date()


def day_bounds(day: date, tz_id: str | None) -> tuple[datetime, datetime]:
    """Начало дня и начало следующего дня в указанном поясе."""
    start = datetime.combine(day, time.min, tzinfo=resolve_timezone(tz_id))
    return start, start + timedelta(days=1)


def day_index(day: date) -> int:
    return day.toordinal()


def days_between(start: date, end: date) -> int:
    return day_index(end) - day_index(start)


def hours_between(start: datetime, end: datetime) -> float:
    if start.tzinfo is None:
        start = start.replace(tzinfo=timezone.utc)
    if end.tzinfo is None:
        end = end.replace(tzinfo=timezone.utc)
    return (end - start).total_seconds() / 3600
