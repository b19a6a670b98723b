"""Appointment ORM model."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.core.database import Base
from src.shared.models import TimestampMixin
from src.shared.ulid import generate_ulid

if TYPE_CHECKING:  # pragma: no cover
    from src.modules.catalog.models import Service, Therapist
    from src.modules.customers.models import Customer
    from src.modules.notifications.models import Reminder
    from src.modules.schedule.models import AvailabilitySlot
    from src.modules.users.models import User


class Appointment(Base, TimestampMixin):
    __tablename__ = "appointments"
    __table_args__ = (Index("ix_appointments_customer", "customer_id"),)

    appointment_id: Mapped[str] = mapped_column(String(26), primary_key=True, default=generate_ulid)
    service_id: Mapped[str] = mapped_column(
        String(26),
        ForeignKey("services.service_id", ondelete="RESTRICT"),
        nullable=False,
    )
    therapist_id: Mapped[str] = mapped_column(
        String(26),
        ForeignKey("therapists.therapist_id", ondelete="RESTRICT"),
        nullable=False,
    )
    # One active appointment per slot.
    availability_slot_id: Mapped[str] = mapped_column(
        String(26),
        ForeignKey("availability_slots.slot_id", ondelete="RESTRICT"),
        nullable=False,
        unique=True,
    )
    customer_id: Mapped[str] = mapped_column(
        String(26),
        ForeignKey("customers.customer_id", ondelete="RESTRICT"),
        nullable=False,
    )
    booked_by_user_id: Mapped[str | None] = mapped_column(
        String(26),
        ForeignKey("users.user_id", ondelete="SET NULL"),
        nullable=True,
    )

    service: Mapped[Service] = relationship(back_populates="appointments")
    therapist: Mapped[Therapist] = relationship(back_populates="appointments")
    availability_slot: Mapped[AvailabilitySlot] = relationship(back_populates="appointment")
    customer: Mapped[Customer] = relationship(back_populates="appointments")
    booking_user: Mapped[User | None] = relationship(back_populates="appointments")
    reminders: Mapped[list[Reminder]] = relationship(
        back_populates="appointment",
        cascade="all,delete-orphan",
    )
