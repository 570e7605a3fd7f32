from datetime import datetime
from unittest.mock import AsyncMock

import pytest

from barbershop.domain.appointments import reminders
from barbershop.domain.appointments.repository import AppointmentRepository
from barbershop.models import Appointment


@pytest.fixture
def notify_mock(monkeypatch):
    mock = AsyncMock(return_value=True)
    monkeypatch.setattr(reminders, "notify", mock)
    return mock


@pytest.fixture
def schedule(db, customer, barber, haircut):
    def _factory(when, status="PENDING", notified=False):
        appointment = Appointment(
            client_id=customer.id,
            barber_id=barber.id,
            service_id=haircut.id,
            date=when,
            status=status,
            notified=notified,
        )
        db.add(appointment)
        db.commit()
        return appointment.id

    return _factory


async def test_reminds_pending_appointments_inside_lead_window(db, schedule, notify_mock, customer):
    due = schedule(datetime(2030, 1, 7, 8, 30))
    schedule(datetime(2030, 1, 7, 9, 30))  # beyond 45 minutes
    schedule(datetime(2030, 1, 7, 8, 15), status="CANCELLED")

    summary = await reminders.send_due_reminders(db, now=datetime(2030, 1, 7, 8, 0))

    assert summary == {"checked": 1, "sent": 1, "skipped": 0}
    notify_mock.assert_awaited_once()
    args = notify_mock.await_args.args
    assert args[0] == customer.email
    assert args[1] == "Lembrete de Agendamento"
    assert "08:30" in args[2]
    db.expire_all()
    assert db.get(Appointment, due).notified is True


async def test_rerun_does_not_remind_twice(db, schedule, notify_mock):
    schedule(datetime(2030, 1, 7, 8, 30))
    now = datetime(2030, 1, 7, 8, 0)

    await reminders.send_due_reminders(db, now=now)
    summary = await reminders.send_due_reminders(db, now=now)

    assert summary["checked"] == 0
    assert notify_mock.await_count == 1


async def test_failed_delivery_is_not_counted_or_retried(db, schedule, notify_mock):
    notify_mock.return_value = False
    appointment_id = schedule(datetime(2030, 1, 7, 8, 30))
    now = datetime(2030, 1, 7, 8, 0)

    summary = await reminders.send_due_reminders(db, now=now)

    assert summary == {"checked": 1, "sent": 0, "skipped": 0}
    db.expire_all()
    assert db.get(Appointment, appointment_id).notified is True
    assert (await reminders.send_due_reminders(db, now=now))["checked"] == 0
    assert notify_mock.await_count == 1


def test_claim_succeeds_only_once(db, schedule):
    appointment_id = schedule(datetime(2030, 1, 7, 8, 30))
    repo = AppointmentRepository()

    assert repo.claim_reminder(db, appointment_id) is True
    assert repo.claim_reminder(db, appointment_id) is False
