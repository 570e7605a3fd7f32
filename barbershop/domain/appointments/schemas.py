"""Appointment domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from ...models import APPOINTMENT_STATUSES


class SlotResponse(BaseModel):
    time: str
    iso: str
    available: bool


class AppointmentCreate(BaseModel):
    """Schema for booking an appointment"""

    barberId: int
    serviceId: int
    date: datetime
    clientId: Optional[int] = None  # Staff booking on a client's behalf
    notes: Optional[str] = None
    withAI: bool = False


class AppointmentStatusUpdate(BaseModel):
    status: str
    notes: Optional[str] = None

    @field_validator("status")
    @classmethod
    def validate_status(cls, v):
        v = v.upper()
        if v not in APPOINTMENT_STATUSES:
            raise ValueError(f"Status must be one of {', '.join(APPOINTMENT_STATUSES)}")
        return v


class AppointmentResponse(BaseModel):
    """Schema for appointment response"""

    id: int
    client_id: int
    client_name: Optional[str] = None
    barber_id: int
    barber_name: Optional[str] = None
    service_id: int
    service_name: Optional[str] = None
    service_price: Optional[float] = None
    service_duration: Optional[int] = None
    date: str
    status: str
    notes: Optional[str] = None
    with_ai: bool = False
    notified: bool = False
