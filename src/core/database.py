"""Database engine, session factory and schema bootstrap."""

from collections.abc import AsyncIterator

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from .config import settings

# backend name -> async driver used for it
ASYNC_DRIVERS = {
    "postgresql": "asyncpg",
    "mysql": "asyncmy",
    "sqlite": "aiosqlite",
}
BACKEND_ALIASES = {"postgres": "postgresql"}


def resolve_async_database_url(raw_url: str) -> str:
    """Rewrite DATABASE_URL so SQLAlchemy picks the async driver for its backend."""
    url = make_url(raw_url)
    backend = url.get_backend_name().lower()
    backend = BACKEND_ALIASES.get(backend, backend)
    driver = ASYNC_DRIVERS.get(backend)
    if driver is None:
        raise ValueError(
            f"Unsupported database dialect '{url.drivername}'; the booking API runs on "
            "PostgreSQL (asyncpg), MySQL (asyncmy) or SQLite (aiosqlite)."
        )
    if url.get_driver_name() == driver and url.get_backend_name() == backend:
        return raw_url
    return url.set(drivername=f"{backend}+{driver}").render_as_string(hide_password=False)


class Base(DeclarativeBase):
    pass


DATABASE_URL = resolve_async_database_url(settings.database_url)

_engine_options: dict = {"echo": settings.debug, "future": True}
if not DATABASE_URL.startswith("sqlite"):
    # Server databases drop idle connections; check before reuse.
    _engine_options["pool_pre_ping"] = True

engine = create_async_engine(DATABASE_URL, **_engine_options)
AsyncSessionLocal = async_sessionmaker(engine, expire_on_commit=False, autoflush=False)


async def get_db() -> AsyncIterator[AsyncSession]:
    async with AsyncSessionLocal() as session:
        yield session


async def create_all_tables() -> None:
    """Create any missing tables for the registered models."""
    # Importing the users models pulls in every mapped module.
    import src.modules.users.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
