import pytest
from sqlalchemy.engine import make_url

from src.core.database import resolve_async_database_url


@pytest.mark.parametrize("scheme", ["postgres", "postgresql", "postgresql+psycopg2"])
def test_postgres_urls_coerce_to_asyncpg(scheme):
    url = make_url(resolve_async_database_url(f"{scheme}://spa:secret@db:5432/booking"))
    assert url.drivername == "postgresql+asyncpg"
    assert url.password == "secret"


def test_mysql_url_coerces_to_asyncmy_and_keeps_query():
    url = make_url(resolve_async_database_url("mysql://spa:secret@db:3306/booking?charset=utf8mb4"))
    assert url.drivername == "mysql+asyncmy"
    assert url.query["charset"] == "utf8mb4"


def test_plain_sqlite_url_gains_aiosqlite_driver():
    assert make_url(resolve_async_database_url("sqlite:///./booking.db")).drivername == "sqlite+aiosqlite"
    assert resolve_async_database_url("sqlite+aiosqlite:///:memory:") == "sqlite+aiosqlite:///:memory:"


def test_unsupported_dialect_raises():
    with pytest.raises(ValueError, match="booking API"):
        resolve_async_database_url("mssql+pyodbc://spa:secret@db:1433/booking")
