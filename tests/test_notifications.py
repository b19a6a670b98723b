import asyncio
from datetime import timedelta
from decimal import Decimal

import httpx
import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import async_sessionmaker

from src.modules.appointments.models import Appointment
from src.modules.notifications.channels import DeliveryError, EmailSender, SmsSender, TwilioSmsSender, format_phone_number
from src.modules.notifications.dispatcher import NotificationDispatcher, NotificationQueue
from src.modules.notifications.models import Reminder
from src.modules.notifications.reminders import ReminderSweeper, schedule_reminder, sweep_due_reminders
from src.modules.notifications.templates import AppointmentNotice, render_appointment_message
from src.shared.datetimes import utcnow
from src.shared.enums import NotificationKind, ReminderStatus


def _notice(**overrides) -> AppointmentNotice:
    data = dict(
        appointment_id="01APPOINTMENT0000000000000",
        email="a@b.com",
        phone="05321234567",
        customer_name="Zeynep Kaya",
        service_name="Swedish Massage",
        therapist_name="Ayşe",
        start_time=utcnow() + timedelta(days=2),
        price=Decimal("250.00"),
    )
    data.update(overrides)
    return AppointmentNotice(**data)


async def _book(db_session, booking, slot_id=None) -> Appointment:
    appointment = Appointment(
        service_id=booking.service_id,
        therapist_id=booking.therapist_id,
        availability_slot_id=slot_id or booking.slot_id,
        customer_id=booking.customer_id,
    )
    db_session.add(appointment)
    await db_session.commit()
    return appointment


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("0532 123 45 67", "+905321234567"),
        ("(532) 123-45-67", "+905321234567"),
        ("+44 20 7946 0958", "+442079460958"),
        ("905321234567", "+905321234567"),
    ],
)
def test_format_phone_number(raw, expected):
    assert format_phone_number(raw, "+90") == expected


def test_confirmation_message_mentions_price_and_local_time():
    start = utcnow().replace(hour=7, minute=0, second=0, microsecond=0) + timedelta(days=2)
    message = render_appointment_message(NotificationKind.CONFIRMATION, _notice(start_time=start))
    assert "250.00" in message.html_body
    assert "10:00" in message.sms_text
    assert message.subject.startswith("Appointment Confirmation")

    cancelled = render_appointment_message(NotificationKind.CANCELLATION, _notice(start_time=start))
    assert "cancelled" in cancelled.sms_text
    assert "250.00" not in cancelled.html_body


@pytest.mark.asyncio
async def test_dispatcher_isolates_channel_failures(email_sender, sms_sender):
    sms_sender.fail = True
    dispatcher = NotificationDispatcher(email_sender, sms_sender)

    outcome = await dispatcher.send_confirmation(_notice())

    assert outcome == {"email": True, "sms": False}
    assert len(email_sender.sent) == 1


@pytest.mark.asyncio
async def test_dispatcher_skips_missing_contact_details(email_sender, sms_sender):
    dispatcher = NotificationDispatcher(email_sender, sms_sender)
    assert await dispatcher.send_reminder(_notice(email=None, phone=None)) == {}
    assert await dispatcher.send_cancellation(_notice(phone=None)) == {"email": True}


@pytest.mark.asyncio
async def test_queue_worker_runs_jobs_in_background(notifier, email_sender):
    notifier.start()
    notifier.notify(NotificationKind.CONFIRMATION, _notice())
    notifier.enqueue("broken", lambda dispatcher: _explode())
    notifier.send_email("x@example.com", "Hello", "<p>hi</p>")
    for _ in range(50):
        if len(email_sender.sent) == 2:
            break
        await asyncio.sleep(0.01)
    await notifier.stop()

    assert [to for to, _, _ in email_sender.sent] == ["a@b.com", "x@example.com"]
    assert notifier.pending == 0


async def _explode():
    raise RuntimeError("job failed")


@pytest.mark.asyncio
async def test_twilio_sender_posts_form(monkeypatch):
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["url"] = str(request.url)
        captured["body"] = request.content.decode()
        return httpx.Response(201, json={"sid": "SM123"})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        sender = TwilioSmsSender("AC123", "token", "+15550001111", client=client)
        await sender.send("0532 123 45 67", "See you tomorrow")

    assert captured["url"] == "https://api.twilio.com/2010-04-01/Accounts/AC123/Messages.json"
    assert "To=%2B905321234567" in captured["body"]
    assert "From=%2B15550001111" in captured["body"]


@pytest.mark.asyncio
async def test_twilio_sender_raises_on_error_response():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, json={"message": "invalid number"})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        sender = TwilioSmsSender("AC123", "token", "+15550001111", client=client)
        with pytest.raises(DeliveryError, match="invalid number"):
            await sender.send("123", "hi")


@pytest.mark.asyncio
async def test_schedule_reminder_skips_when_too_late(db_session, booking):
    appointment = await _book(db_session, booking)
    now = utcnow()

    assert schedule_reminder(db_session, appointment.appointment_id, now + timedelta(hours=3), now=now) is None
    reminder = schedule_reminder(db_session, appointment.appointment_id, now + timedelta(hours=30), now=now)
    assert reminder is not None
    assert reminder.due_at == now + timedelta(hours=6)


@pytest.mark.asyncio
async def test_sweep_sends_due_reminders_once(db_session, booking, email_sender, sms_sender):
    appointment = await _book(db_session, booking)
    now = utcnow()
    db_session.add(Reminder(appointment_id=appointment.appointment_id, due_at=now - timedelta(minutes=5)))
    db_session.add(Reminder(appointment_id=appointment.appointment_id, due_at=now + timedelta(hours=5)))
    await db_session.commit()
    dispatcher = NotificationDispatcher(email_sender, sms_sender)

    assert await sweep_due_reminders(db_session, dispatcher, now=now) == 1
    assert await sweep_due_reminders(db_session, dispatcher, now=now) == 0

    statuses = (await db_session.execute(select(Reminder.status).order_by(Reminder.due_at))).scalars().all()
    assert statuses == [ReminderStatus.SENT, ReminderStatus.PENDING]
    assert "Appointment Reminder" in email_sender.sent[0][1]
    assert len(sms_sender.sent) == 1


@pytest.mark.asyncio
async def test_sweeper_ignores_cancelled_reminders(db_session, booking, email_sender, sms_sender):
    appointment = await _book(db_session, booking)
    db_session.add(
        Reminder(
            appointment_id=appointment.appointment_id,
            due_at=utcnow() - timedelta(minutes=1),
            status=ReminderStatus.CANCELLED,
        )
    )
    await db_session.commit()

    session_factory = async_sessionmaker(db_session.bind, expire_on_commit=False)
    sweeper = ReminderSweeper(session_factory, NotificationDispatcher(email_sender, sms_sender), interval_seconds=0.01)
    assert await sweeper.run_once() == 0
    assert email_sender.sent == []


def test_incomplete_senders_cannot_be_constructed():
    class HalfEmailSender(EmailSender):
        pass

    class HalfSmsSender(SmsSender):
        pass

    with pytest.raises(TypeError):
        HalfEmailSender()
    with pytest.raises(TypeError):
        HalfSmsSender()
