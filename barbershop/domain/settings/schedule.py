"""
Weekly schedule representation and effective-hours resolution

The weekly schedule is the single authoritative source of opening hours:
seven entries, day 0 = Sunday, each with up to two periods so a midday
break can be expressed. Legacy businessHours/saturdayHours/workingDays
settings are converted into this shape once, when settings are loaded.
"""

import re
from dataclasses import dataclass, field
from datetime import date
from typing import Optional

HHMM_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")

SATURDAY = 6

DEFAULT_BUSINESS_HOURS = {
    "period1Start": "09:00",
    "period1End": "12:00",
    "period2Start": "13:00",
    "period2End": "18:00",
}
DEFAULT_SATURDAY_HOURS = {
    "period1Start": "09:00",
    "period1End": "12:00",
    "period2Start": "13:00",
    "period2End": "14:00",
    "active": True,
}
DEFAULT_WORKING_DAYS = [1, 2, 3, 4, 5]

PERIOD_KEYS = (("period1Start", "period1End"), ("period2Start", "period2End"))


@dataclass(frozen=True)
class DayHours:
    """Resolved open periods for one day of the week"""

    day: int
    periods: list[tuple[str, str]] = field(default_factory=list)

    def contains(self, hhmm: str) -> bool:
        # Zero-padded 24h strings compare correctly as text
        return any(start <= hhmm < end for start, end in self.periods)


def is_valid_hhmm(value: Optional[str]) -> bool:
    return bool(value) and bool(HHMM_PATTERN.match(value))


def _day_entry(day: int, active: bool, hours: Optional[dict]) -> dict:
    hours = hours or {}
    entry = {"day": day, "active": bool(active)}
    for start_key, end_key in PERIOD_KEYS:
        entry[start_key] = hours.get(start_key)
        entry[end_key] = hours.get(end_key)
    return entry


def migrate_legacy_hours(
    business_hours: Optional[dict] = None,
    saturday_hours: Optional[dict] = None,
    working_days: Optional[list[int]] = None,
) -> list[dict]:
    """Build a weekly schedule from the legacy single-hours fields.

    A weekday is open when listed in working_days; Saturday is also open
    when saturday_hours is active, and then uses the Saturday periods.
    """
    business_hours = business_hours or DEFAULT_BUSINESS_HOURS
    saturday_hours = saturday_hours or DEFAULT_SATURDAY_HOURS
    working_days = DEFAULT_WORKING_DAYS if working_days is None else working_days

    schedule = []
    for day in range(7):
        if day == SATURDAY:
            active = day in working_days or bool(saturday_hours.get("active"))
            schedule.append(_day_entry(day, active, saturday_hours))
        else:
            schedule.append(_day_entry(day, day in working_days, business_hours))
    return schedule


def default_weekly_schedule() -> list[dict]:
    return migrate_legacy_hours()


def normalize_weekly_schedule(entries: list[dict]) -> list[dict]:
    """Return exactly seven entries ordered by day; missing days are closed"""
    by_day = {}
    for entry in entries or []:
        day = entry.get("day")
        if isinstance(day, int) and 0 <= day <= 6:
            by_day[day] = _day_entry(day, entry.get("active", False), entry)
    return [by_day.get(day) or _day_entry(day, False, None) for day in range(7)]


def effective_hours(weekly_schedule: list[dict], day_of_week: int) -> Optional[DayHours]:
    """Resolve the open periods for a day of week, or None when closed"""
    entry = next((e for e in weekly_schedule or [] if e.get("day") == day_of_week), None)
    if not entry or not entry.get("active"):
        return None

    periods = []
    for start_key, end_key in PERIOD_KEYS:
        start, end = entry.get(start_key), entry.get(end_key)
        if start and end:
            periods.append((start, end))

    if not periods:
        return None
    return DayHours(day=day_of_week, periods=periods)


def is_closed_date(closed_days: list[str], day: date) -> bool:
    """Holiday check by calendar day, ignoring any time component"""
    target = day.isoformat()
    return any(str(d)[:10] == target for d in closed_days or [])
