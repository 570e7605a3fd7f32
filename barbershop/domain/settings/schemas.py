"""Settings domain schemas - Pydantic models for validation"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, field_validator, model_validator

from .schedule import is_valid_hhmm


def _check_periods(values: dict) -> dict:
    for n in (1, 2):
        start, end = values.get(f"period{n}Start"), values.get(f"period{n}End")
        for value in (start, end):
            if value is not None and not is_valid_hhmm(value):
                raise ValueError(f"Invalid time '{value}'. Expected zero-padded HH:mm")
        if (start is None) != (end is None):
            raise ValueError(f"period{n} needs both start and end")
        if start is not None and start >= end:
            raise ValueError(f"period{n} must start before it ends")
    return values


class PeriodHours(BaseModel):
    """Legacy business-hours shape"""

    period1Start: Optional[str] = None
    period1End: Optional[str] = None
    period2Start: Optional[str] = None
    period2End: Optional[str] = None
    active: Optional[bool] = None

    @model_validator(mode="after")
    def validate_periods(self):
        _check_periods(self.model_dump())
        return self


class DaySchedule(PeriodHours):
    """One day of the weekly schedule (0 = Sunday)"""

    day: int
    active: bool = False

    @field_validator("day")
    @classmethod
    def validate_day(cls, v):
        if not 0 <= v <= 6:
            raise ValueError("day must be between 0 (Sunday) and 6 (Saturday)")
        return v


class SettingsUpdate(BaseModel):
    """Partial update of shop settings"""

    shopName: Optional[str] = None
    weeklySchedule: Optional[list[DaySchedule]] = None
    businessHours: Optional[PeriodHours] = None
    saturdayHours: Optional[PeriodHours] = None
    workingDays: Optional[list[int]] = None
    slotDuration: Optional[int] = None
    closedDays: Optional[list[date]] = None
    cancellationWindow: Optional[float] = None
    address: Optional[str] = None
    mapsUrl: Optional[str] = None
    socialLinks: Optional[dict] = None

    @field_validator("slotDuration")
    @classmethod
    def validate_slot_duration(cls, v):
        if v is not None and v <= 0:
            raise ValueError("Slot duration must be greater than 0")
        return v

    @field_validator("cancellationWindow")
    @classmethod
    def validate_cancellation_window(cls, v):
        if v is not None and v < 0:
            raise ValueError("Cancellation window cannot be negative")
        return v

    @field_validator("workingDays")
    @classmethod
    def validate_working_days(cls, v):
        if v is not None and any(d < 0 or d > 6 for d in v):
            raise ValueError("Working days must be between 0 and 6")
        return v


class SettingsResponse(BaseModel):
    """Schema for settings response"""

    id: int
    shop_name: Optional[str]
    weekly_schedule: list[dict]
    slot_duration: int
    closed_days: list[str]
    cancellation_window: float
    address: Optional[str] = None
    maps_url: Optional[str] = None
    social_links: Optional[dict] = None
    updated_at: Optional[datetime] = None

    @field_validator("closed_days", mode="before")
    @classmethod
    def default_closed_days(cls, v):
        return v or []

    class Config:
        from_attributes = True
