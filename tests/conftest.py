import os
import sys
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from pathlib import Path

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("AUTO_CREATE_TABLES", "false")

from src.core.config import settings  # noqa: E402
from src.core.database import Base  # noqa: E402
import src.modules.users.models  # noqa: E402,F401
from src.modules.catalog.models import Service, Therapist  # noqa: E402
from src.modules.customers.models import Customer  # noqa: E402
from src.modules.notifications.channels import EmailSender, SmsSender  # noqa: E402
from src.modules.notifications.dispatcher import NotificationDispatcher, NotificationQueue  # noqa: E402
from src.modules.schedule.models import AvailabilitySlot  # noqa: E402
from src.shared.datetimes import utcnow  # noqa: E402


class RecordingEmailSender(EmailSender):
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent: list[tuple[str, str, str]] = []

    async def send(self, to: str, subject: str, html_body: str) -> None:
        if self.fail:
            raise RuntimeError("smtp down")
        self.sent.append((to, subject, html_body))


class RecordingSmsSender(SmsSender):
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent: list[tuple[str, str]] = []

    async def send(self, phone_number: str, message: str) -> None:
        if self.fail:
            raise RuntimeError("sms gateway down")
        self.sent.append((phone_number, message))


@dataclass
class BookingFixtures:
    """Primary keys of the seeded rows (plain strings survive session rollbacks)."""

    service_id: str
    therapist_id: str
    other_therapist_id: str
    slot_id: str
    second_slot_id: str
    other_therapist_slot_id: str
    past_slot_id: str
    customer_id: str
    slot_start: datetime


@pytest_asyncio.fixture
async def db_session():
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", future=True)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    SessionLocal = async_sessionmaker(engine, expire_on_commit=False, autoflush=False)
    async with SessionLocal() as session:
        yield session
    await engine.dispose()


@pytest.fixture
def email_sender():
    return RecordingEmailSender()


@pytest.fixture
def sms_sender():
    return RecordingSmsSender()


@pytest.fixture
def notifier(email_sender, sms_sender):
    return NotificationQueue(NotificationDispatcher(email_sender, sms_sender))


@pytest.fixture(autouse=True)
def no_payment_delay(monkeypatch):
    monkeypatch.setattr(settings, "payment_simulation_delay_seconds", 0)


async def seed_booking(db_session) -> BookingFixtures:
    start = (utcnow() + timedelta(days=3)).replace(minute=0, second=0, microsecond=0)
    service = Service(name="Swedish Massage", duration_minutes=60, price=Decimal("250.00"))
    therapist = Therapist(name="Ayşe", bio="Deep tissue specialist")
    other_therapist = Therapist(name="Mehmet")
    db_session.add_all([service, therapist, other_therapist])
    await db_session.flush()

    slot = AvailabilitySlot(
        therapist_id=therapist.therapist_id,
        start_time=start,
        end_time=start + timedelta(hours=1),
        is_booked=False,
    )
    second_slot = AvailabilitySlot(
        therapist_id=therapist.therapist_id,
        start_time=start + timedelta(days=1),
        end_time=start + timedelta(days=1, hours=1),
        is_booked=False,
    )
    other_therapist_slot = AvailabilitySlot(
        therapist_id=other_therapist.therapist_id,
        start_time=start + timedelta(hours=2),
        end_time=start + timedelta(hours=3),
        is_booked=False,
    )
    past_slot = AvailabilitySlot(
        therapist_id=therapist.therapist_id,
        start_time=start - timedelta(days=10),
        end_time=start - timedelta(days=10) + timedelta(hours=1),
        is_booked=False,
    )
    customer = Customer(name="Zeynep", surname="Kaya", email="a@b.com", phone="0532 123 45 67")
    db_session.add_all([slot, second_slot, other_therapist_slot, past_slot, customer])
    await db_session.commit()
    return BookingFixtures(
        service_id=service.service_id,
        therapist_id=therapist.therapist_id,
        other_therapist_id=other_therapist.therapist_id,
        slot_id=slot.slot_id,
        second_slot_id=second_slot.slot_id,
        other_therapist_slot_id=other_therapist_slot.slot_id,
        past_slot_id=past_slot.slot_id,
        customer_id=customer.customer_id,
        slot_start=start,
    )


@pytest_asyncio.fixture
async def booking(db_session) -> BookingFixtures:
    return await seed_booking(db_session)


@pytest_asyncio.fixture
async def file_session_factory(tmp_path):
    """Sessions on a file-backed database, so each one gets its own connection."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'booking.db'}", future=True)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, expire_on_commit=False, autoflush=False)
    await engine.dispose()


@pytest_asyncio.fixture
async def file_booking(file_session_factory) -> BookingFixtures:
    async with file_session_factory() as session:
        return await seed_booking(session)
