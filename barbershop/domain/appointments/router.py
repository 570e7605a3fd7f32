"""Appointment router - FastAPI endpoints for availability and booking"""

import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user, require_roles
from ...config import FRONTEND_URL
from ...database import get_db
from ...models import ROLE_ADMIN, ROLE_BARBER, User
from ...services.notification_service import notify
from .schemas import AppointmentCreate, AppointmentResponse, AppointmentStatusUpdate, SlotResponse
from .service import AppointmentService, appointment_to_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/appointments", tags=["Appointments"])


def get_appointment_service(db: Session = Depends(get_db)) -> AppointmentService:
    """Dependency injection for AppointmentService"""
    return AppointmentService(db)


@router.get("/available-slots", response_model=list[SlotResponse])
async def get_available_slots(
    barberId: Optional[int] = Query(None),
    date: Optional[str] = Query(None, description="YYYY-MM-DD, shop-local"),
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Bookable slots for a barber on a day"""
    return [slot.to_dict() for slot in service.get_available_slots(barberId, date)]


@router.get("", response_model=list[AppointmentResponse])
async def get_appointments(
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Appointments visible to the current user"""
    return [appointment_to_response(a) for a in service.list_appointments(current_user)]


@router.post("", response_model=AppointmentResponse, status_code=201)
async def create_appointment(
    data: AppointmentCreate,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Book an appointment"""
    appointment = service.book(data, current_user)

    barber = appointment.barber
    background_tasks.add_task(
        notify,
        barber.email if barber else None,
        "Novo agendamento",
        f"{appointment.client.name if appointment.client else 'Cliente'} agendou "
        f"{appointment.service.name if appointment.service else 'um serviço'} para "
        f"{appointment.date:%d/%m %H:%M}",
        f"{FRONTEND_URL}/appointments",
    )
    return appointment_to_response(appointment)


@router.put("/{appointment_id}/cancel", response_model=AppointmentResponse)
async def cancel_appointment(
    appointment_id: int,
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Cancel an appointment (clients subject to the cancellation window)"""
    return appointment_to_response(service.cancel(appointment_id, current_user))


@router.put("/{appointment_id}/status", response_model=AppointmentResponse)
async def update_appointment_status(
    appointment_id: int,
    data: AppointmentStatusUpdate,
    current_user: User = Depends(require_roles(ROLE_ADMIN, ROLE_BARBER)),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Staff status change; COMPLETED also records the cut history"""
    appointment = service.update_status(appointment_id, data.status, data.notes, current_user)
    return appointment_to_response(appointment)


@router.delete("/{appointment_id}")
async def delete_appointment(
    appointment_id: int,
    current_user: User = Depends(require_roles(ROLE_ADMIN, ROLE_BARBER)),
    service: AppointmentService = Depends(get_appointment_service),
):
    return service.delete(appointment_id, current_user)
