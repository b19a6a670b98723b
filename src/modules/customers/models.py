"""Customer ORM model."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.core.database import Base
from src.shared.models import TimestampMixin
from src.shared.ulid import generate_ulid

if TYPE_CHECKING:  # pragma: no cover
    from src.modules.appointments.models import Appointment


class Customer(Base, TimestampMixin):
    """Contact details captured at booking time (email is not unique)."""

    __tablename__ = "customers"

    customer_id: Mapped[str] = mapped_column(String(26), primary_key=True, default=generate_ulid)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    surname: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    phone: Mapped[str | None] = mapped_column(String(32))
    email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)

    appointments: Mapped[list["Appointment"]] = relationship(back_populates="customer")

    @property
    def full_name(self) -> str:
        return f"{self.name} {self.surname}".strip()
