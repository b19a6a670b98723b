"""Fire-and-forget notification dispatch.

``NotificationDispatcher`` fans each appointment event out to email and SMS in
parallel and never lets a channel failure escape. ``NotificationQueue`` moves
that work off the request path: services enqueue after commit and a worker
task started with the app drains the queue.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from src.modules.notifications.channels import (
    EmailSender,
    SmsSender,
    build_email_sender,
    build_sms_sender,
)
from src.modules.notifications.templates import AppointmentNotice, render_appointment_message
from src.shared.enums import NotificationKind

logger = logging.getLogger(__name__)

Job = Callable[["NotificationDispatcher"], Awaitable[Any]]


class NotificationDispatcher:
    def __init__(self, email_sender: EmailSender, sms_sender: SmsSender):
        self.email_sender = email_sender
        self.sms_sender = sms_sender

    async def send_confirmation(self, notice: AppointmentNotice) -> dict[str, bool]:
        return await self.send_appointment_notice(NotificationKind.CONFIRMATION, notice)

    async def send_reschedule(self, notice: AppointmentNotice) -> dict[str, bool]:
        return await self.send_appointment_notice(NotificationKind.RESCHEDULE, notice)

    async def send_reminder(self, notice: AppointmentNotice) -> dict[str, bool]:
        return await self.send_appointment_notice(NotificationKind.REMINDER, notice)

    async def send_cancellation(self, notice: AppointmentNotice) -> dict[str, bool]:
        return await self.send_appointment_notice(NotificationKind.CANCELLATION, notice)

    async def send_appointment_notice(self, kind: NotificationKind, notice: AppointmentNotice) -> dict[str, bool]:
        """Send email and SMS concurrently; report per-channel success."""
        message = render_appointment_message(kind, notice)
        logger.info("Sending %s notifications for appointment %s", kind, notice.appointment_id)

        channels: dict[str, Awaitable[None]] = {}
        if notice.email:
            channels["email"] = self.email_sender.send(notice.email, message.subject, message.html_body)
        if notice.phone:
            channels["sms"] = self.sms_sender.send(notice.phone, message.sms_text)
        if not channels:
            logger.warning("No contact details for appointment %s; nothing sent", notice.appointment_id)
            return {}

        results = await asyncio.gather(*channels.values(), return_exceptions=True)
        outcome: dict[str, bool] = {}
        for channel, result in zip(channels, results):
            if isinstance(result, BaseException):
                logger.error(
                    "Failed to send %s %s for appointment %s: %s",
                    kind,
                    channel,
                    notice.appointment_id,
                    result,
                )
                outcome[channel] = False
            else:
                outcome[channel] = True
        return outcome

    async def send_email(self, to: str, subject: str, html_body: str) -> bool:
        try:
            await self.email_sender.send(to, subject, html_body)
        except Exception as exc:  # noqa: BLE001 - delivery must never fail the caller
            logger.error("Failed to send email %r to %s: %s", subject, to, exc)
            return False
        return True


class NotificationQueue:
    """In-process job queue drained by a single background worker."""

    def __init__(self, dispatcher: NotificationDispatcher):
        self.dispatcher = dispatcher
        self._queue: asyncio.Queue[tuple[str, Job]] = asyncio.Queue()
        self._worker: asyncio.Task | None = None

    def enqueue(self, name: str, job: Job) -> None:
        self._queue.put_nowait((name, job))

    def notify(self, kind: NotificationKind, notice: AppointmentNotice) -> None:
        self.enqueue(f"{kind}:{notice.appointment_id}", lambda d: d.send_appointment_notice(kind, notice))

    def send_email(self, to: str, subject: str, html_body: str) -> None:
        self.enqueue(f"email:{to}", lambda d: d.send_email(to, subject, html_body))

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    async def _execute(self, name: str, job: Job) -> None:
        try:
            await job(self.dispatcher)
        except Exception:  # noqa: BLE001 - isolate job failures from the worker
            logger.exception("Notification job %s failed", name)

    async def drain(self) -> int:
        """Run every queued job now; returns how many ran."""
        count = 0
        while True:
            try:
                name, job = self._queue.get_nowait()
            except asyncio.QueueEmpty:
                return count
            try:
                await self._execute(name, job)
            finally:
                self._queue.task_done()
            count += 1

    async def _run(self) -> None:
        while True:
            name, job = await self._queue.get()
            try:
                await self._execute(name, job)
            finally:
                self._queue.task_done()

    def start(self) -> None:
        if self._worker is None or self._worker.done():
            self._worker = asyncio.create_task(self._run(), name="notification-worker")
            logger.info("Notification worker started")

    async def stop(self) -> None:
        if self._worker is None:
            return
        self._worker.cancel()
        try:
            await self._worker
        except asyncio.CancelledError:
            pass
        self._worker = None
        await self.drain()
        logger.info("Notification worker stopped")


notification_dispatcher = NotificationDispatcher(build_email_sender(), build_sms_sender())
notification_queue = NotificationQueue(notification_dispatcher)


def get_notifier() -> NotificationQueue:
    return notification_queue
