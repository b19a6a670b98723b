"""Delivery channels: email over SMTP, SMS over the Twilio REST API.

Each channel has a logging fallback used when it is not configured.
"""

from __future__ import annotations

import asyncio
import logging
import re
import smtplib
import ssl
from abc import ABC, abstractmethod
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

import httpx

from src.core.config import settings

logger = logging.getLogger(__name__)

_PHONE_NOISE = re.compile(r"[\s\-()]")


class DeliveryError(Exception):
    """Raised when a provider refuses or fails to deliver a message."""


class EmailSender(ABC):
    @abstractmethod
    async def send(self, to: str, subject: str, html_body: str) -> None:
        """Deliver one HTML email."""


class SmsSender(ABC):
    @abstractmethod
    async def send(self, phone_number: str, message: str) -> None:
        """Deliver one text message."""


class LoggingEmailSender(EmailSender):
    async def send(self, to: str, subject: str, html_body: str) -> None:
        logger.info("Email delivery not configured; would send %r to %s", subject, to)


class LoggingSmsSender(SmsSender):
    async def send(self, phone_number: str, message: str) -> None:
        logger.info("SMS delivery not configured; would send %d chars to %s", len(message), phone_number)


class SmtpEmailSender(EmailSender):
    def __init__(
        self,
        host: str,
        port: int,
        username: str | None,
        password: str | None,
        from_address: str,
        use_tls: bool = True,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.from_address = from_address
        self.use_tls = use_tls

    def _build_message(self, to: str, subject: str, html_body: str) -> MIMEMultipart:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = self.from_address
        msg["To"] = to
        msg.attach(MIMEText(html_body, "html", "utf-8"))
        return msg

    def _send_sync(self, to: str, subject: str, html_body: str) -> None:
        msg = self._build_message(to, subject, html_body)
        with smtplib.SMTP(self.host, self.port, timeout=30) as server:
            if self.use_tls:
                server.starttls(context=ssl.create_default_context())
            if self.username and self.password:
                server.login(self.username, self.password)
            server.sendmail(self.from_address, [to], msg.as_string())

    async def send(self, to: str, subject: str, html_body: str) -> None:
        try:
            await asyncio.to_thread(self._send_sync, to, subject, html_body)
        except (smtplib.SMTPException, OSError) as exc:
            raise DeliveryError(f"SMTP delivery to {to} failed: {exc}") from exc
        logger.info("Email sent to %s: %s", to, subject)


def format_phone_number(phone_number: str, country_code: str | None = None) -> str:
    """Normalise a local number to E.164 using the configured country code."""
    code = country_code or settings.sms_default_country_code
    cleaned = _PHONE_NOISE.sub("", phone_number)
    if cleaned.startswith("+"):
        return cleaned
    if cleaned.startswith("0"):
        return f"{code}{cleaned[1:]}"
    if cleaned.startswith(code.lstrip("+")) and len(cleaned) > 10:
        return f"+{cleaned}"
    return f"{code}{cleaned}"


class TwilioSmsSender(SmsSender):
    def __init__(
        self,
        account_sid: str,
        auth_token: str,
        from_number: str,
        api_base: str = "https://api.twilio.com",
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ):
        self.account_sid = account_sid
        self.auth_token = auth_token
        self.from_number = from_number
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout
        self._client = client

    async def send(self, phone_number: str, message: str) -> None:
        to_phone = format_phone_number(phone_number)
        url = f"{self.api_base}/2010-04-01/Accounts/{self.account_sid}/Messages.json"
        data = {"To": to_phone, "From": self.from_number, "Body": message}

        created_client = False
        client = self._client
        if client is None:
            client = httpx.AsyncClient(timeout=self.timeout)
            created_client = True
        try:
            response = await client.post(url, auth=(self.account_sid, self.auth_token), data=data)
        except httpx.HTTPError as exc:
            raise DeliveryError(f"Twilio request failed: {exc}") from exc
        finally:
            if created_client:
                await client.aclose()

        if response.status_code not in (200, 201):
            try:
                error_message = response.json().get("message", "Unknown error")
            except ValueError:
                error_message = response.text
            raise DeliveryError(f"Twilio returned {response.status_code}: {error_message}")

        logger.info("SMS sent to %s (SID: %s)", to_phone, response.json().get("sid"))


def build_email_sender() -> EmailSender:
    if not settings.smtp_host:
        logger.warning("SMTP_HOST not set; emails will only be logged")
        return LoggingEmailSender()
    return SmtpEmailSender(
        host=settings.smtp_host,
        port=settings.smtp_port,
        username=settings.smtp_username,
        password=settings.smtp_password,
        from_address=settings.email_from_address,
        use_tls=settings.smtp_use_tls,
    )


def build_sms_sender() -> SmsSender:
    if not (settings.twilio_account_sid and settings.twilio_auth_token and settings.twilio_from_number):
        logger.warning("Twilio settings not found; SMS will only be logged")
        return LoggingSmsSender()
    return TwilioSmsSender(
        account_sid=settings.twilio_account_sid,
        auth_token=settings.twilio_auth_token,
        from_number=settings.twilio_from_number,
        api_base=settings.twilio_api_base,
        timeout=settings.twilio_timeout_seconds,
    )
