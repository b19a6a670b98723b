"""Persisted reminder jobs."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, Enum, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.core.database import Base
from src.shared.enums import ReminderStatus, enum_values
from src.shared.models import TimestampMixin
from src.shared.ulid import generate_ulid

if TYPE_CHECKING:  # pragma: no cover
    from src.modules.appointments.models import Appointment


class Reminder(Base, TimestampMixin):
    __tablename__ = "reminders"
    __table_args__ = (Index("ix_reminders_status_due", "status", "due_at"),)

    reminder_id: Mapped[str] = mapped_column(String(26), primary_key=True, default=generate_ulid)
    appointment_id: Mapped[str] = mapped_column(
        String(26),
        ForeignKey("appointments.appointment_id", ondelete="CASCADE"),
        nullable=False,
    )
    due_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    status: Mapped[ReminderStatus] = mapped_column(
        Enum(
            ReminderStatus,
            values_callable=enum_values,
            validate_strings=True,
            name="reminderstatus",
        ),
        default=ReminderStatus.PENDING,
        nullable=False,
    )
    sent_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    appointment: Mapped[Appointment] = relationship(back_populates="reminders")
