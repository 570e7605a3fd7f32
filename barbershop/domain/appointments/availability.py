"""
Slot availability and booking validation

Pure functions over already-loaded settings and appointments. Slot listing
and booking validation both go through resolve_open_hours() so that every
slot shown as available passes check_booking() for the same instant.

Taken-ness is exact start-time equality with a live appointment. This is
only correct while slot duration equals appointment duration; services
longer than one slot can still overlap the next slot.
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Iterable, Optional

from ...errors import ConflictError, ValidationError
from ...timeutils import js_weekday, to_iso
from ..settings.schedule import DayHours, effective_hours, is_closed_date


@dataclass(frozen=True)
class Slot:
    time: str  # "HH:mm"
    start: datetime  # Naive shop-local
    available: bool

    def to_dict(self) -> dict:
        return {"time": self.time, "iso": to_iso(self.start), "available": self.available}


def resolve_open_hours(
    weekly_schedule: list[dict], closed_days: list[str], day: date
) -> Optional[DayHours]:
    """Effective hours for a calendar day, or None when the shop is closed"""
    hours = effective_hours(weekly_schedule, js_weekday(day))
    if hours is None:
        return None
    if is_closed_date(closed_days, day):
        return None
    return hours


def _parse_hhmm(day: date, hhmm: str) -> datetime:
    hour, minute = map(int, hhmm.split(":"))
    return datetime.combine(day, datetime.min.time()).replace(hour=hour, minute=minute)


def compute_available_slots(
    day: date,
    weekly_schedule: list[dict],
    closed_days: list[str],
    slot_duration: int,
    booked: Iterable[datetime],
    now: datetime,
) -> list[Slot]:
    """Ordered slot list for one barber and day.

    Periods are emitted in order, each stepping slot_duration minutes from
    its start up to (not including) its end.
    """
    hours = resolve_open_hours(weekly_schedule, closed_days, day)
    if hours is None:
        return []

    booked_instants = set(booked)
    step = timedelta(minutes=slot_duration)
    slots = []

    for start_str, end_str in hours.periods:
        current = _parse_hhmm(day, start_str)
        end = _parse_hhmm(day, end_str)
        while current < end:
            slots.append(
                Slot(
                    time=current.strftime("%H:%M"),
                    start=current,
                    available=current > now and current not in booked_instants,
                )
            )
            current += step

    return slots


def _on_slot_grid(when: datetime, hours: DayHours, slot_duration: int) -> bool:
    """Whole minutes, a multiple of slot_duration past the start of its period"""
    if when.second or when.microsecond:
        return False
    hhmm = when.strftime("%H:%M")
    step = timedelta(minutes=slot_duration)
    for start, end in hours.periods:
        if start <= hhmm < end:
            return (when - _parse_hhmm(when.date(), start)) % step == timedelta(0)
    return False


def check_booking(
    when: datetime,
    weekly_schedule: list[dict],
    closed_days: list[str],
    slot_duration: int,
    now: datetime,
    slot_taken: bool,
) -> DayHours:
    """Validate a booking instant; raises on the first failed rule"""
    if not when > now:
        raise ValidationError("Cannot book in the past", code="past_date")

    if slot_taken:
        raise ConflictError("Time slot already taken", code="slot_taken")

    hours = effective_hours(weekly_schedule, js_weekday(when.date()))
    if hours is None:
        raise ValidationError("Shop is closed on this day", code="shop_closed_day")

    if not hours.contains(when.strftime("%H:%M")):
        raise ValidationError("Outside business hours", code="outside_hours")

    if not _on_slot_grid(when, hours, slot_duration):
        raise ValidationError("Time does not start a slot", code="off_slot")

    if is_closed_date(closed_days, when.date()):
        raise ValidationError("Shop is closed on this date", code="closed_date")

    return hours
