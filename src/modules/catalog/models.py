"""Catalog ORM models (services, therapists)."""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, ForeignKey, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.core.database import Base
from src.shared.models import TimestampMixin
from src.shared.ulid import generate_ulid

if TYPE_CHECKING:  # pragma: no cover
    from src.modules.appointments.models import Appointment
    from src.modules.schedule.models import AvailabilitySlot
    from src.modules.users.models import User, UserFavoriteTherapist


class Service(Base, TimestampMixin):
    __tablename__ = "services"
    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_services_price_positive"),
        CheckConstraint("duration_minutes > 0", name="ck_services_duration_positive"),
    )

    service_id: Mapped[str] = mapped_column(String(26), primary_key=True, default=generate_ulid)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    duration_minutes: Mapped[int] = mapped_column(default=60, nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)

    appointments: Mapped[list["Appointment"]] = relationship(back_populates="service")


class Therapist(Base, TimestampMixin):
    __tablename__ = "therapists"

    therapist_id: Mapped[str] = mapped_column(String(26), primary_key=True, default=generate_ulid)
    user_id: Mapped[str | None] = mapped_column(
        String(26),
        ForeignKey("users.user_id", ondelete="SET NULL"),
        unique=True,
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    bio: Mapped[str | None] = mapped_column(Text)
    profile_picture_url: Mapped[str | None] = mapped_column(String(255))

    user: Mapped["User | None"] = relationship(back_populates="therapist_profile")
    availability_slots: Mapped[list["AvailabilitySlot"]] = relationship(
        back_populates="therapist",
        cascade="all,delete-orphan",
    )
    appointments: Mapped[list["Appointment"]] = relationship(back_populates="therapist")
    favorite_links: Mapped[list["UserFavoriteTherapist"]] = relationship(
        back_populates="therapist",
        cascade="all,delete-orphan",
    )
