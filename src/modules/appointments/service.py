"""Appointment service layer.

Every operation that touches slot booking state runs in a single
transaction: the slot flag and the appointment row change together or not at
all. Notifications are queued only after the commit succeeds.
"""

from __future__ import annotations

import logging
from typing import Literal

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from src.core.exceptions import ConflictError, NotFoundError, ValidationError
from src.modules.appointments.models import Appointment
from src.modules.appointments.schemas import AppointmentCreate, AppointmentUpdate
from src.modules.catalog.models import Service
from src.modules.customers.models import Customer
from src.modules.notifications.dispatcher import NotificationQueue
from src.modules.notifications.reminders import cancel_pending_reminders, schedule_reminder
from src.modules.notifications.templates import AppointmentNotice
from src.modules.schedule.models import AvailabilitySlot
from src.modules.schedule.service import SLOT_UNAVAILABLE, release_slot, reserve_slot
from src.modules.users.models import User
from src.shared.datetimes import utcnow
from src.shared.enums import NotificationKind

logger = logging.getLogger(__name__)

Scope = Literal["all", "upcoming", "past"]


def _with_details(stmt):
    return stmt.options(
        selectinload(Appointment.service),
        selectinload(Appointment.therapist),
        selectinload(Appointment.customer),
        selectinload(Appointment.availability_slot),
    )


class AppointmentService:
    def __init__(self, db: AsyncSession, notifier: NotificationQueue):
        self.db = db
        self.notifier = notifier

    async def list_all(self) -> list[Appointment]:
        stmt = _with_details(
            select(Appointment)
            .join(Appointment.availability_slot)
            .order_by(AvailabilitySlot.start_time.desc())
        )
        result = await self.db.execute(stmt.execution_options(populate_existing=True))
        return list(result.scalars().all())

    async def get(self, appointment_id: str) -> Appointment:
        stmt = _with_details(select(Appointment).where(Appointment.appointment_id == appointment_id))
        result = await self.db.execute(stmt.execution_options(populate_existing=True))
        appointment = result.scalar_one_or_none()
        if appointment is None:
            raise NotFoundError("Appointment not found")
        return appointment

    async def list_for_customer_email(self, email: str, scope: Scope = "all") -> list[Appointment]:
        """Appointments of every customer record sharing ``email``.

        ``upcoming`` and ``past`` partition ``all`` around the current instant.
        """
        stmt = (
            select(Appointment)
            .join(Appointment.customer)
            .join(Appointment.availability_slot)
            .where(Customer.email == email)
        )
        now = utcnow()
        if scope == "upcoming":
            stmt = stmt.where(AvailabilitySlot.start_time > now).order_by(AvailabilitySlot.start_time.asc())
        elif scope == "past":
            stmt = stmt.where(AvailabilitySlot.start_time <= now).order_by(AvailabilitySlot.start_time.desc())
        else:
            stmt = stmt.order_by(AvailabilitySlot.start_time.desc())
        result = await self.db.execute(_with_details(stmt).execution_options(populate_existing=True))
        return list(result.scalars().all())

    async def create(self, payload: AppointmentCreate, booked_by: User | None = None) -> Appointment:
        await self._ensure_references(payload.service_id, payload.customer_id)
        slot = await self._get_slot_for_therapist(payload.availability_slot_id, payload.therapist_id)

        appointment = Appointment(
            service_id=payload.service_id,
            therapist_id=slot.therapist_id,
            availability_slot_id=slot.slot_id,
            customer_id=payload.customer_id,
            booked_by_user_id=booked_by.user_id if booked_by else None,
        )
        try:
            await reserve_slot(self.db, slot.slot_id)
            self.db.add(appointment)
            await self.db.flush()
            schedule_reminder(self.db, appointment.appointment_id, slot.start_time)
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError(SLOT_UNAVAILABLE)
        except Exception:
            await self.db.rollback()
            raise

        appointment = await self.get(appointment.appointment_id)
        logger.info("Appointment %s booked on slot %s", appointment.appointment_id, slot.slot_id)
        self._notify(NotificationKind.CONFIRMATION, appointment)
        return appointment

    async def reschedule(
        self,
        appointment_id: str,
        new_slot_id: str,
        new_therapist_id: str | None = None,
    ) -> Appointment:
        appointment = await self.get(appointment_id)
        if new_slot_id == appointment.availability_slot_id:
            raise ConflictError(SLOT_UNAVAILABLE)
        new_slot = await self.db.get(AvailabilitySlot, new_slot_id, populate_existing=True)
        if new_slot is None or new_slot.is_booked:
            raise ConflictError(SLOT_UNAVAILABLE)
        if new_therapist_id is not None and new_therapist_id != new_slot.therapist_id:
            raise ValidationError("The selected time belongs to a different therapist")

        await self._move_to_slot(appointment, new_slot)
        appointment = await self.get(appointment_id)
        logger.info("Appointment %s rescheduled to slot %s", appointment_id, new_slot_id)
        self._notify(NotificationKind.RESCHEDULE, appointment)
        return appointment

    async def update(self, appointment_id: str, payload: AppointmentUpdate) -> Appointment:
        if payload.appointment_id != appointment_id:
            raise ValidationError("Appointment id mismatch")
        appointment = await self.get(appointment_id)
        await self._ensure_references(payload.service_id, payload.customer_id)
        new_slot = await self._get_slot_for_therapist(payload.availability_slot_id, payload.therapist_id)

        appointment.service_id = payload.service_id
        appointment.customer_id = payload.customer_id
        if new_slot.slot_id != appointment.availability_slot_id:
            await self._move_to_slot(appointment, new_slot)
        else:
            await self.db.commit()
        return await self.get(appointment_id)

    async def delete(self, appointment_id: str) -> None:
        """Cancel: drop the appointment and free its slot in one transaction."""
        appointment = await self.get(appointment_id)
        notice = AppointmentNotice.from_appointment(appointment)
        slot_id = appointment.availability_slot_id
        try:
            await release_slot(self.db, slot_id)
            await self.db.delete(appointment)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        logger.info("Appointment %s cancelled; slot %s released", appointment_id, slot_id)
        self._enqueue(NotificationKind.CANCELLATION, notice)

    async def _move_to_slot(self, appointment: Appointment, new_slot: AvailabilitySlot) -> None:
        old_slot_id = appointment.availability_slot_id
        try:
            await release_slot(self.db, old_slot_id)
            await reserve_slot(self.db, new_slot.slot_id)
            appointment.availability_slot_id = new_slot.slot_id
            appointment.therapist_id = new_slot.therapist_id
            await cancel_pending_reminders(self.db, appointment.appointment_id)
            schedule_reminder(self.db, appointment.appointment_id, new_slot.start_time)
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError(SLOT_UNAVAILABLE)
        except Exception:
            await self.db.rollback()
            raise

    async def _ensure_references(self, service_id: str, customer_id: str) -> None:
        if await self.db.get(Service, service_id) is None:
            raise NotFoundError("Service not found")
        if await self.db.get(Customer, customer_id) is None:
            raise NotFoundError("Customer not found")

    async def _get_slot_for_therapist(self, slot_id: str, therapist_id: str) -> AvailabilitySlot:
        slot = await self.db.get(AvailabilitySlot, slot_id, populate_existing=True)
        if slot is None:
            raise NotFoundError("Availability slot not found")
        if slot.therapist_id != therapist_id:
            raise ValidationError("The selected time belongs to a different therapist")
        return slot

    def _notify(self, kind: NotificationKind, appointment: Appointment) -> None:
        self._enqueue(kind, AppointmentNotice.from_appointment(appointment))

    def _enqueue(self, kind: NotificationKind, notice: AppointmentNotice) -> None:
        try:
            self.notifier.notify(kind, notice)
        except Exception:  # noqa: BLE001 - the booking is already committed
            logger.exception("Could not queue %s notification for appointment %s", kind, notice.appointment_id)
