"""Shared enumerations used across modules."""

from __future__ import annotations

from enum import StrEnum
from typing import Iterable, TypeVar

EnumType = TypeVar("EnumType", bound=StrEnum)


def enum_values(enum_cls: Iterable[EnumType]) -> list[str]:
    """Return the .value for each enum member (used by SQLAlchemy)."""
    return [member.value for member in enum_cls]


class UserRole(StrEnum):
    CUSTOMER = "customer"
    THERAPIST = "therapist"
    ADMIN = "admin"


class ReminderStatus(StrEnum):
    PENDING = "pending"
    SENT = "sent"
    CANCELLED = "cancelled"


class NotificationKind(StrEnum):
    CONFIRMATION = "confirmation"
    RESCHEDULE = "reschedule"
    REMINDER = "reminder"
    CANCELLATION = "cancellation"


class PaymentMethod(StrEnum):
    CARD = "card"
    CASH = "cash"
