"""Shop-local clock helpers

All appointment and slot datetimes are stored naive in the shop time zone,
because opening hours are wall-clock concepts.
"""

from datetime import date, datetime, timedelta
from typing import Optional
from zoneinfo import ZoneInfo

from .config import SHOP_TIMEZONE
from .errors import ValidationError


def shop_tz() -> ZoneInfo:
    return ZoneInfo(SHOP_TIMEZONE)


def shop_now() -> datetime:
    """Current shop-local wall-clock time (naive)"""
    return datetime.now(shop_tz()).replace(tzinfo=None)


def to_shop_local(value: datetime) -> datetime:
    """Normalize an incoming datetime to naive shop-local time.

    Aware values are converted into the shop zone; naive values are taken
    to already be shop-local.
    """
    if value.tzinfo is not None:
        value = value.astimezone(shop_tz()).replace(tzinfo=None)
    return value


def to_iso(value: datetime) -> str:
    """Render a naive shop-local datetime as ISO-8601 with the shop offset"""
    return value.replace(tzinfo=shop_tz()).isoformat()


def parse_day(value: Optional[str]) -> date:
    """Parse YYYY-MM-DD as a local calendar day (never shifted to UTC)"""
    if not value:
        raise ValidationError("Missing date", code="missing_field")
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError(
            f"Invalid date format: {value}. Expected YYYY-MM-DD", code="invalid_date"
        ) from None


def day_bounds(day: date) -> tuple[datetime, datetime]:
    """[start_of_day, start_of_day + 24h)"""
    start = datetime.combine(day, datetime.min.time())
    return start, start + timedelta(days=1)


def js_weekday(day: date) -> int:
    """Day of week with 0 = Sunday ... 6 = Saturday"""
    return day.isoweekday() % 7
