"""Appointment repository - Database operations for appointments"""

from datetime import datetime
from typing import Optional

from sqlalchemy import update
from sqlalchemy.orm import Session, joinedload

from ...models import (
    APPOINTMENT_CANCELLED,
    APPOINTMENT_PENDING,
    ROLE_BARBER,
    ROLE_CLIENT,
    Appointment,
    Service,
    User,
)


class AppointmentRepository:
    """Repository for appointment database operations"""

    @staticmethod
    def get_by_id(db: Session, appointment_id: int) -> Optional[Appointment]:
        return (
            db.query(Appointment)
            .options(joinedload(Appointment.service))
            .filter(Appointment.id == appointment_id)
            .first()
        )

    @staticmethod
    def list_for_user(db: Session, user: User) -> list[Appointment]:
        """Clients see their own, barbers their own, admins everything"""
        query = db.query(Appointment).options(
            joinedload(Appointment.client),
            joinedload(Appointment.barber),
            joinedload(Appointment.service),
        )
        if user.role == ROLE_CLIENT:
            query = query.filter(Appointment.client_id == user.id)
        elif user.role == ROLE_BARBER:
            query = query.filter(Appointment.barber_id == user.id)
        return query.order_by(Appointment.date).all()

    @staticmethod
    def get_booked_instants(
        db: Session, barber_id: int, start: datetime, end: datetime
    ) -> list[datetime]:
        """Start times of live appointments for a barber in [start, end)"""
        rows = (
            db.query(Appointment.date)
            .filter(
                Appointment.barber_id == barber_id,
                Appointment.date >= start,
                Appointment.date < end,
                Appointment.status != APPOINTMENT_CANCELLED,
            )
            .all()
        )
        return [row[0] for row in rows]

    @staticmethod
    def find_live_at(db: Session, barber_id: int, when: datetime) -> Optional[Appointment]:
        return (
            db.query(Appointment)
            .filter(
                Appointment.barber_id == barber_id,
                Appointment.date == when,
                Appointment.status != APPOINTMENT_CANCELLED,
            )
            .first()
        )

    @staticmethod
    def add(db: Session, **data) -> Appointment:
        appointment = Appointment(**data)
        db.add(appointment)
        db.flush()
        return appointment

    @staticmethod
    def get_user(db: Session, user_id: int) -> Optional[User]:
        return db.query(User).filter(User.id == user_id).first()

    @staticmethod
    def get_service(db: Session, service_id: int) -> Optional[Service]:
        return db.query(Service).filter(Service.id == service_id).first()

    @staticmethod
    def get_due_reminders(db: Session, start: datetime, end: datetime) -> list[Appointment]:
        """PENDING appointments in [start, end] that have not been reminded yet"""
        return (
            db.query(Appointment)
            .options(joinedload(Appointment.client), joinedload(Appointment.service))
            .filter(
                Appointment.date >= start,
                Appointment.date <= end,
                Appointment.status == APPOINTMENT_PENDING,
                Appointment.notified.is_(False),
            )
            .order_by(Appointment.date)
            .all()
        )

    @staticmethod
    def claim_reminder(db: Session, appointment_id: int) -> bool:
        """Atomically flip notified false -> true; True only for the caller that flipped it"""
        result = db.execute(
            update(Appointment)
            .where(Appointment.id == appointment_id, Appointment.notified.is_(False))
            .values(notified=True)
        )
        return result.rowcount == 1
