"""ORM models for the users domain."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, Enum, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.core.database import Base
from src.shared.datetimes import utcnow
from src.shared.enums import UserRole, enum_values
from src.shared.models import TimestampMixin
from src.shared.ulid import generate_ulid

if TYPE_CHECKING:  # pragma: no cover - typing only
    from src.modules.appointments.models import Appointment
    from src.modules.catalog.models import Therapist


class User(Base, TimestampMixin):
    __tablename__ = "users"

    user_id: Mapped[str] = mapped_column(
        String(26),
        primary_key=True,
        default=generate_ulid,
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    surname: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    phone: Mapped[str | None] = mapped_column(String(32))
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[UserRole] = mapped_column(
        Enum(
            UserRole,
            values_callable=enum_values,
            validate_strings=True,
            name="userrole",
        ),
        nullable=False,
        default=UserRole.CUSTOMER,
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    last_login_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    is_email_verified: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    email_verification_token: Mapped[str | None] = mapped_column(String(64))
    email_verification_token_expiry: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    password_reset_token: Mapped[str | None] = mapped_column(String(64))
    password_reset_token_expiry: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    therapist_profile: Mapped[Therapist | None] = relationship(back_populates="user", uselist=False)
    appointments: Mapped[list[Appointment]] = relationship(back_populates="booking_user")
    favorite_links: Mapped[list[UserFavoriteTherapist]] = relationship(
        back_populates="user",
        cascade="all,delete-orphan",
        order_by="UserFavoriteTherapist.created_at",
    )


class UserFavoriteTherapist(Base):
    __tablename__ = "user_favorite_therapists"
    __table_args__ = (UniqueConstraint("user_id", "therapist_id", name="uq_user_favorite_therapist"),)

    favorite_id: Mapped[str] = mapped_column(String(26), primary_key=True, default=generate_ulid)
    user_id: Mapped[str] = mapped_column(
        String(26),
        ForeignKey("users.user_id", ondelete="CASCADE"),
        nullable=False,
    )
    therapist_id: Mapped[str] = mapped_column(
        String(26),
        ForeignKey("therapists.therapist_id", ondelete="CASCADE"),
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    user: Mapped[User] = relationship(back_populates="favorite_links")
    therapist: Mapped[Therapist] = relationship(back_populates="favorite_links")


# Late imports so every relationship target is registered with the mapper.
from src.modules.appointments.models import Appointment  # noqa: E402
from src.modules.catalog.models import Therapist  # noqa: E402
from src.modules.customers.models import Customer  # noqa: E402,F401
from src.modules.notifications.models import Reminder  # noqa: E402,F401
from src.modules.schedule.models import AvailabilitySlot  # noqa: E402,F401
