"""Availability slot business logic.

Reservation is a compare-and-set on ``is_booked`` so two concurrent bookings of
the same slot cannot both succeed: the loser's UPDATE matches zero rows.
"""

from __future__ import annotations

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from src.core.exceptions import BusinessLogicError, ConflictError, NotFoundError, ValidationError
from src.modules.appointments.models import Appointment
from src.modules.catalog.models import Therapist
from src.modules.schedule.models import AvailabilitySlot
from src.modules.schedule.schemas import AvailabilitySlotCreate, AvailabilitySlotUpdate
from src.modules.users.models import User
from src.shared.datetimes import as_utc
from src.shared.enums import UserRole

SLOT_UNAVAILABLE = "The selected time is no longer available"


async def reserve_slot(db: AsyncSession, slot_id: str) -> None:
    """Mark a free slot booked inside the caller's transaction or raise ConflictError."""
    result = await db.execute(
        update(AvailabilitySlot)
        .where(AvailabilitySlot.slot_id == slot_id, AvailabilitySlot.is_booked.is_(False))
        .values(is_booked=True)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise ConflictError(SLOT_UNAVAILABLE)


async def release_slot(db: AsyncSession, slot_id: str) -> None:
    await db.execute(
        update(AvailabilitySlot)
        .where(AvailabilitySlot.slot_id == slot_id)
        .values(is_booked=False)
        .execution_options(synchronize_session=False)
    )


class AvailabilityService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_slots(self, therapist_id: str | None = None, available: bool | None = None) -> list[AvailabilitySlot]:
        stmt = select(AvailabilitySlot).order_by(AvailabilitySlot.start_time)
        if therapist_id:
            stmt = stmt.where(AvailabilitySlot.therapist_id == therapist_id)
        if available is not None:
            stmt = stmt.where(AvailabilitySlot.is_booked.is_(not available))
        result = await self.db.execute(stmt.execution_options(populate_existing=True))
        return list(result.scalars().all())

    async def get(self, slot_id: str) -> AvailabilitySlot:
        result = await self.db.execute(
            select(AvailabilitySlot)
            .options(selectinload(AvailabilitySlot.therapist))
            .where(AvailabilitySlot.slot_id == slot_id)
            .execution_options(populate_existing=True)
        )
        slot = result.scalar_one_or_none()
        if slot is None:
            raise NotFoundError("Availability slot not found")
        return slot

    async def create(self, payload: AvailabilitySlotCreate, actor: User) -> AvailabilitySlot:
        therapist = await self.db.get(Therapist, payload.therapist_id)
        if therapist is None:
            raise ValidationError("Therapist not found")
        self._ensure_can_manage(therapist, actor)
        slot = AvailabilitySlot(
            therapist_id=therapist.therapist_id,
            start_time=as_utc(payload.start_time),
            end_time=as_utc(payload.end_time),
            is_booked=False,
        )
        self.db.add(slot)
        await self.db.commit()
        return await self.get(slot.slot_id)

    async def update(self, slot_id: str, payload: AvailabilitySlotUpdate, actor: User) -> AvailabilitySlot:
        slot = await self.get(slot_id)
        self._ensure_can_manage(slot.therapist, actor)
        update_data = payload.model_dump(exclude_unset=True)
        start = as_utc(update_data.get("start_time") or slot.start_time)
        end = as_utc(update_data.get("end_time") or slot.end_time)
        if start >= end:
            raise ValidationError("start_time must be before end_time")
        if "start_time" in update_data or "end_time" in update_data:
            slot.start_time = start
            slot.end_time = end
        if update_data.get("is_booked") is not None:
            # Booking state follows appointments; only a no-op write is accepted.
            if update_data["is_booked"] != await self._has_appointment(slot_id):
                raise ConflictError("Booking state is managed through appointments")
            slot.is_booked = update_data["is_booked"]
        await self.db.commit()
        return await self.get(slot_id)

    async def delete(self, slot_id: str, actor: User) -> None:
        slot = await self.get(slot_id)
        self._ensure_can_manage(slot.therapist, actor)
        if slot.is_booked or await self._has_appointment(slot_id):
            raise ConflictError("Booked slots cannot be deleted")
        await self.db.delete(slot)
        await self.db.commit()

    async def _has_appointment(self, slot_id: str) -> bool:
        result = await self.db.execute(
            select(Appointment.appointment_id).where(Appointment.availability_slot_id == slot_id).limit(1)
        )
        return result.scalar_one_or_none() is not None

    @staticmethod
    def _ensure_can_manage(therapist: Therapist, actor: User) -> None:
        if actor.role == UserRole.THERAPIST and therapist.user_id != actor.user_id:
            raise BusinessLogicError("Therapists can only manage their own availability", status_code=403)
