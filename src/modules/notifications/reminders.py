"""Durable appointment reminders.

A reminder is a row with a due time. The sweeper claims due rows with a
conditional status update, so a reminder fires at most once even with several
app processes, and always reads the appointment as it is at send time.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from src.core.config import settings
from src.modules.appointments.models import Appointment
from src.modules.notifications.dispatcher import NotificationDispatcher
from src.modules.notifications.models import Reminder
from src.modules.notifications.templates import AppointmentNotice
from src.shared.datetimes import as_utc, utcnow
from src.shared.enums import ReminderStatus

logger = logging.getLogger(__name__)

SWEEP_BATCH_SIZE = 100


def schedule_reminder(
    db: AsyncSession,
    appointment_id: str,
    start_time: datetime,
    now: datetime | None = None,
) -> Reminder | None:
    """Add a pending reminder ``reminder_lead_hours`` before ``start_time``.

    Returns None (and logs a warning) if that moment has already passed.
    The caller owns the transaction.
    """
    now = now or utcnow()
    due_at = as_utc(start_time) - timedelta(hours=settings.reminder_lead_hours)
    if due_at <= now:
        logger.warning("Appointment %s is too close; no reminder scheduled", appointment_id)
        return None
    reminder = Reminder(appointment_id=appointment_id, due_at=due_at, status=ReminderStatus.PENDING)
    db.add(reminder)
    logger.info("Reminder scheduled for appointment %s at %s", appointment_id, due_at.isoformat())
    return reminder


async def cancel_pending_reminders(db: AsyncSession, appointment_id: str) -> int:
    result = await db.execute(
        update(Reminder)
        .where(Reminder.appointment_id == appointment_id, Reminder.status == ReminderStatus.PENDING)
        .values(status=ReminderStatus.CANCELLED)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount or 0


async def _claim(db: AsyncSession, reminder_id: str, now: datetime) -> bool:
    result = await db.execute(
        update(Reminder)
        .where(Reminder.reminder_id == reminder_id, Reminder.status == ReminderStatus.PENDING)
        .values(status=ReminderStatus.SENT, sent_at=now)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


async def sweep_due_reminders(
    db: AsyncSession,
    dispatcher: NotificationDispatcher,
    now: datetime | None = None,
) -> int:
    """Send every pending reminder whose due time has passed; returns how many were sent."""
    now = now or utcnow()
    result = await db.execute(
        select(Reminder.reminder_id, Reminder.appointment_id)
        .where(Reminder.status == ReminderStatus.PENDING, Reminder.due_at <= now)
        .order_by(Reminder.due_at)
        .limit(SWEEP_BATCH_SIZE)
    )
    due = list(result.all())

    notices: list[AppointmentNotice] = []
    for reminder_id, appointment_id in due:
        if not await _claim(db, reminder_id, now):
            continue
        appointment = (
            await db.execute(
                select(Appointment)
                .options(
                    selectinload(Appointment.service),
                    selectinload(Appointment.therapist),
                    selectinload(Appointment.customer),
                    selectinload(Appointment.availability_slot),
                )
                .where(Appointment.appointment_id == appointment_id)
                .execution_options(populate_existing=True)
            )
        ).scalar_one_or_none()
        if appointment is None:
            continue
        notices.append(AppointmentNotice.from_appointment(appointment))
    await db.commit()

    for notice in notices:
        await dispatcher.send_reminder(notice)
    return len(notices)


class ReminderSweeper:
    """Periodically runs ``sweep_due_reminders`` in its own session."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        dispatcher: NotificationDispatcher,
        interval_seconds: float | None = None,
    ):
        self.session_factory = session_factory
        self.dispatcher = dispatcher
        self.interval_seconds = interval_seconds or settings.reminder_sweep_seconds
        self._task: asyncio.Task | None = None

    async def run_once(self) -> int:
        async with self.session_factory() as session:
            return await sweep_due_reminders(session, self.dispatcher)

    async def _loop(self) -> None:
        while True:
            try:
                sent = await self.run_once()
                if sent:
                    logger.info("Sent %d appointment reminders", sent)
            except Exception:  # noqa: BLE001 - keep sweeping after transient failures
                logger.exception("Reminder sweep failed")
            await asyncio.sleep(self.interval_seconds)

    def start(self) -> None:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._loop(), name="reminder-sweeper")
            logger.info("Reminder sweeper started (every %.0fs)", self.interval_seconds)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
