"""Schedule ORM models."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, CheckConstraint, DateTime, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.core.database import Base
from src.shared.models import TimestampMixin
from src.shared.ulid import generate_ulid

if TYPE_CHECKING:  # pragma: no cover
    from src.modules.appointments.models import Appointment
    from src.modules.catalog.models import Therapist


class AvailabilitySlot(Base, TimestampMixin):
    """A bookable interval for one therapist.

    ``is_booked`` is true exactly while one appointment references the slot.
    """

    __tablename__ = "availability_slots"
    __table_args__ = (
        Index("ix_availability_slots_therapist_start", "therapist_id", "start_time"),
        CheckConstraint("end_time > start_time", name="ck_availability_slots_time_order"),
    )

    slot_id: Mapped[str] = mapped_column(String(26), primary_key=True, default=generate_ulid)
    therapist_id: Mapped[str] = mapped_column(
        String(26),
        ForeignKey("therapists.therapist_id", ondelete="CASCADE"),
        nullable=False,
    )
    start_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    is_booked: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    therapist: Mapped["Therapist"] = relationship(back_populates="availability_slots")
    appointment: Mapped["Appointment | None"] = relationship(back_populates="availability_slot", uselist=False)
