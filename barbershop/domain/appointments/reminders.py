"""Upcoming-appointment reminder sweep"""

import logging
from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from ... import timeutils
from ...config import FRONTEND_URL, REMINDER_LEAD_MINUTES
from ...database import commit_or_raise
from ...services.notification_service import notify
from .repository import AppointmentRepository

logger = logging.getLogger(__name__)


async def send_due_reminders(
    db: Session, now: datetime = None, lead_minutes: int = REMINDER_LEAD_MINUTES
) -> dict:
    """
    Remind clients of PENDING appointments starting within lead_minutes.

    Each appointment is claimed with a conditional notified false -> true
    update and committed before the notification goes out, so overlapping
    or re-run sweeps never remind the same appointment twice. A delivery
    that fails after the claim is logged by notify() and not retried; that
    appointment gets no reminder.
    """
    now = now or timeutils.shop_now()
    repo = AppointmentRepository()
    due = repo.get_due_reminders(db, now, now + timedelta(minutes=lead_minutes))
    logger.info(f"⏰ Reminder sweep: {len(due)} upcoming appointment(s)")

    sent = 0
    skipped = 0
    for appointment in due:
        if not repo.claim_reminder(db, appointment.id):
            skipped += 1
            continue
        commit_or_raise(db)

        client = appointment.client
        service_name = appointment.service.name if appointment.service else "seu serviço"
        delivered = await notify(
            client.email if client else None,
            "Lembrete de Agendamento",
            f"Olá {client.name if client else ''}, seu {service_name} é às "
            f"{appointment.date:%H:%M}!",
            f"{FRONTEND_URL}/history",
        )
        if delivered:
            sent += 1

    return {"checked": len(due), "sent": sent, "skipped": skipped}
