"""Email/SMS message bodies for appointment and account events."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from html import escape
from typing import TYPE_CHECKING

from src.core.config import settings
from src.shared.datetimes import to_local
from src.shared.enums import NotificationKind

if TYPE_CHECKING:  # pragma: no cover
    from src.modules.appointments.models import Appointment


@dataclass(frozen=True)
class AppointmentNotice:
    """Snapshot of what the customer needs to hear about one appointment."""

    appointment_id: str
    email: str | None
    phone: str | None
    customer_name: str
    service_name: str
    therapist_name: str
    start_time: datetime
    price: Decimal

    @classmethod
    def from_appointment(cls, appointment: Appointment) -> "AppointmentNotice":
        return cls(
            appointment_id=appointment.appointment_id,
            email=appointment.customer.email,
            phone=appointment.customer.phone,
            customer_name=appointment.customer.full_name,
            service_name=appointment.service.name,
            therapist_name=appointment.therapist.name,
            start_time=appointment.availability_slot.start_time,
            price=Decimal(str(appointment.service.price)),
        )


@dataclass(frozen=True)
class RenderedMessage:
    subject: str
    html_body: str
    sms_text: str


_HEADLINES = {
    NotificationKind.CONFIRMATION: ("Appointment Confirmation", "Your appointment is confirmed!"),
    NotificationKind.RESCHEDULE: ("Appointment Updated", "Your appointment has been rescheduled."),
    NotificationKind.REMINDER: ("Appointment Reminder", "You have an appointment tomorrow."),
    NotificationKind.CANCELLATION: ("Appointment Cancelled", "Your appointment has been cancelled."),
}


def _layout(title: str, body: str) -> str:
    business = escape(settings.business_name)
    return (
        "<!DOCTYPE html><html><head><meta charset='utf-8'></head>"
        "<body style='font-family: Arial, sans-serif; background-color: #F5F1E8; padding: 20px;'>"
        "<div style='max-width: 600px; margin: 0 auto; background: #fff; border-radius: 10px;'>"
        f"<div style='background: #8B6F47; color: #fff; padding: 24px; text-align: center;'>"
        f"<h1>{business}</h1><h2>{escape(title)}</h2></div>"
        f"<div style='padding: 24px;'>{body}</div>"
        "</div></body></html>"
    )


def render_appointment_message(kind: NotificationKind, notice: AppointmentNotice) -> RenderedMessage:
    title, headline = _HEADLINES[kind]
    local_start = to_local(notice.start_time)
    day = local_start.strftime("%d.%m.%Y")
    hour = local_start.strftime("%H:%M")

    rows = [
        ("Service", notice.service_name),
        ("Therapist", notice.therapist_name),
        ("Date", day),
        ("Time", hour),
    ]
    if kind in (NotificationKind.CONFIRMATION, NotificationKind.RESCHEDULE):
        rows.append(("Price", f"{notice.price:.2f}"))
    details = "".join(f"<p><strong>{label}:</strong> {escape(str(value))}</p>" for label, value in rows)
    body = f"<p>Dear <strong>{escape(notice.customer_name)}</strong>,</p><p>{headline}</p>{details}"
    if kind in (NotificationKind.CONFIRMATION, NotificationKind.RESCHEDULE):
        body += "<p>You will receive a reminder 24 hours before your appointment.</p>"

    if kind is NotificationKind.CANCELLATION:
        sms = (
            f"{settings.business_name}: Dear {notice.customer_name}, your {notice.service_name} "
            f"appointment on {day} {hour} has been cancelled."
        )
    else:
        sms = (
            f"{settings.business_name}: Dear {notice.customer_name}, {headline} "
            f"{notice.service_name} with {notice.therapist_name} on {day} at {hour}."
        )
    return RenderedMessage(
        subject=f"{title} - {settings.business_name}",
        html_body=_layout(title, body),
        sms_text=sms,
    )


def render_verification_email(name: str, link: str) -> tuple[str, str]:
    body = (
        f"<p>Dear <strong>{escape(name)}</strong>,</p>"
        "<p>Welcome! Please confirm your email address:</p>"
        f"<p><a href='{escape(link)}'>Verify my email</a></p>"
        "<p>This link is valid for 24 hours.</p>"
    )
    return f"Email Verification - {settings.business_name}", _layout("Email Verification", body)


def render_password_reset_email(name: str, link: str) -> tuple[str, str]:
    body = (
        f"<p>Dear <strong>{escape(name)}</strong>,</p>"
        "<p>We received a request to reset your password.</p>"
        f"<p><a href='{escape(link)}'>Reset my password</a></p>"
        "<p>This link is valid for 1 hour. If you did not request it, ignore this email.</p>"
    )
    return f"Password Reset - {settings.business_name}", _layout("Password Reset", body)
