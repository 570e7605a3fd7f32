"""Appointment service - Booking, cancellation and completion"""

import logging
from datetime import timedelta
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ... import timeutils
from ...database import commit_or_raise
from ...errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ...models import (
    APPOINTMENT_CANCELLED,
    APPOINTMENT_COMPLETED,
    APPOINTMENT_PENDING,
    ROLE_ADMIN,
    ROLE_BARBER,
    ROLE_CLIENT,
    STAFF_ROLES,
    Appointment,
    User,
)
from ..history.repository import record_completed_cut
from ..settings.service import SettingsService
from .availability import Slot, check_booking, compute_available_slots
from .repository import AppointmentRepository
from .schemas import AppointmentCreate

logger = logging.getLogger(__name__)


class AppointmentService:
    """Service layer for appointment business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = AppointmentRepository()

    # ------------------------------------------------------------------
    # Availability
    # ------------------------------------------------------------------

    def get_available_slots(self, barber_id: Optional[int], date: Optional[str]) -> list[Slot]:
        if not barber_id or not date:
            raise ValidationError("Missing barberId or date", code="missing_field")

        day = timeutils.parse_day(date)
        settings = SettingsService(self.db).get_settings()
        start, end = timeutils.day_bounds(day)
        booked = self.repo.get_booked_instants(self.db, barber_id, start, end)

        return compute_available_slots(
            day,
            settings.weekly_schedule,
            settings.closed_days,
            settings.slot_duration,
            booked,
            timeutils.shop_now(),
        )

    # ------------------------------------------------------------------
    # Booking
    # ------------------------------------------------------------------

    def list_appointments(self, user: User) -> list[Appointment]:
        return self.repo.list_for_user(self.db, user)

    def book(self, data: AppointmentCreate, user: User) -> Appointment:
        """Validate a booking against hours, holidays and existing bookings, then persist it"""
        client_id = user.id
        if data.clientId is not None and data.clientId != user.id:
            if user.role not in STAFF_ROLES:
                raise AuthorizationError("Clients can only book for themselves")
            if not self.repo.get_user(self.db, data.clientId):
                raise NotFoundError("Client not found")
            client_id = data.clientId

        barber = self.repo.get_user(self.db, data.barberId)
        if not barber or barber.role not in STAFF_ROLES:
            raise NotFoundError("Barber not found")

        service = self.repo.get_service(self.db, data.serviceId)
        if not service or not service.is_active:
            raise NotFoundError("Service not found")

        when = timeutils.to_shop_local(data.date)
        settings = SettingsService(self.db).get_settings()

        # Re-derived from settings on every request; never trusts a slot list
        check_booking(
            when,
            settings.weekly_schedule,
            settings.closed_days,
            settings.slot_duration,
            timeutils.shop_now(),
            slot_taken=self.repo.find_live_at(self.db, barber.id, when) is not None,
        )

        try:
            appointment = self.repo.add(
                self.db,
                client_id=client_id,
                barber_id=barber.id,
                service_id=service.id,
                date=when,
                status=APPOINTMENT_PENDING,
                notes=data.notes,
                with_ai=data.withAI,
            )
            commit_or_raise(self.db)
        except IntegrityError:
            # Lost the race for this (barber, instant) to a concurrent booking
            self.db.rollback()
            logger.warning(f"⚠️ Concurrent booking lost for barber {barber.id} at {when}")
            raise ConflictError("Time slot already taken", code="slot_taken") from None

        self.db.refresh(appointment)
        logger.info(
            f"📅 Appointment {appointment.id} booked: barber {barber.id} at {when:%Y-%m-%d %H:%M}"
        )
        return appointment

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def get_appointment(self, appointment_id: int) -> Appointment:
        appointment = self.repo.get_by_id(self.db, appointment_id)
        if not appointment:
            raise NotFoundError("Appointment not found")
        return appointment

    def _check_staff_owns(self, appointment: Appointment, user: User, action: str) -> None:
        if user.role == ROLE_BARBER and appointment.barber_id != user.id:
            raise AuthorizationError(f"Not authorized to {action} this appointment")

    def cancel(self, appointment_id: int, user: User) -> Appointment:
        """
        Clients may cancel their own appointments outside the cancellation
        window; the owning barber or an admin may cancel at any time.
        """
        appointment = self.get_appointment(appointment_id)

        if user.role == ROLE_CLIENT:
            if appointment.client_id != user.id:
                raise AuthorizationError("Not authorized")
            settings = SettingsService(self.db).get_settings()
            window = settings.cancellation_window if settings.cancellation_window is not None else 2
            notice = appointment.date - timeutils.shop_now()
            if notice < timedelta(hours=window):
                raise ValidationError(
                    f"Cancellations only allowed with {window:g}h advance notice.",
                    code="cancellation_window",
                    context={"cancellationWindow": window},
                )
        elif user.role == ROLE_BARBER:
            self._check_staff_owns(appointment, user, "cancel")
        elif user.role != ROLE_ADMIN:
            raise AuthorizationError("Not authorized")

        if appointment.status == APPOINTMENT_COMPLETED:
            raise ConflictError("Completed appointments cannot be cancelled", code="appointment_completed")

        appointment.status = APPOINTMENT_CANCELLED
        commit_or_raise(self.db)
        self.db.refresh(appointment)
        logger.info(f"🗑️ Appointment {appointment.id} cancelled by user {user.id} ({user.role})")
        return appointment

    def mark_completed(
        self,
        appointment: Appointment,
        notes: Optional[str] = None,
        order_id: Optional[int] = None,
    ) -> None:
        """
        Stage the COMPLETED transition plus its CutHistory record in the
        current transaction. The caller commits both together.
        """
        if appointment.status == APPOINTMENT_COMPLETED:
            return
        if notes:
            appointment.notes = notes
        appointment.status = APPOINTMENT_COMPLETED
        record_completed_cut(
            self.db,
            client_id=appointment.client_id,
            barber_id=appointment.barber_id,
            service_name=appointment.service.name if appointment.service else None,
            notes=notes or appointment.notes,
            date=appointment.date,
            appointment_id=appointment.id,
            order_id=order_id,
        )

    def update_status(
        self, appointment_id: int, status: str, notes: Optional[str], user: User
    ) -> Appointment:
        appointment = self.get_appointment(appointment_id)
        self._check_staff_owns(appointment, user, "update")

        if status == APPOINTMENT_COMPLETED:
            self.mark_completed(appointment, notes)
        else:
            if appointment.status == APPOINTMENT_COMPLETED:
                raise ConflictError(
                    "Completed appointments cannot change status", code="appointment_completed"
                )
            appointment.status = status
            if notes:
                appointment.notes = notes

        try:
            commit_or_raise(self.db)
        except IntegrityError:
            # Re-activating a cancelled appointment whose slot was rebooked
            raise ConflictError("Time slot already taken", code="slot_taken") from None

        self.db.refresh(appointment)
        logger.info(f"✅ Appointment {appointment.id} status -> {appointment.status}")
        return appointment

    def delete(self, appointment_id: int, user: User) -> dict:
        appointment = self.get_appointment(appointment_id)
        self._check_staff_owns(appointment, user, "delete")
        self.db.delete(appointment)
        commit_or_raise(self.db)
        logger.info(f"🗑️ Appointment {appointment_id} removed by user {user.id}")
        return {"message": "Appointment removed"}


def appointment_to_response(appointment: Appointment) -> dict:
    service = appointment.service
    return {
        "id": appointment.id,
        "client_id": appointment.client_id,
        "client_name": appointment.client.name if appointment.client else None,
        "barber_id": appointment.barber_id,
        "barber_name": appointment.barber.name if appointment.barber else None,
        "service_id": appointment.service_id,
        "service_name": service.name if service else None,
        "service_price": service.price if service else None,
        "service_duration": service.duration if service else None,
        "date": timeutils.to_iso(appointment.date),
        "status": appointment.status,
        "notes": appointment.notes,
        "with_ai": bool(appointment.with_ai),
        "notified": bool(appointment.notified),
    }
