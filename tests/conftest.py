"""
Shared test fixtures for the RentDesk test suite.

Sets up an async SQLite in-memory database, overrides the session
dependency, and provides an HTTP client wired to the FastAPI app plus
sample vehicle, customer and reservation records.
"""

import os
from datetime import date

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

# ---- Environment overrides MUST come before any app imports ----
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["ENVIRONMENT"] = "test"
os.environ["LOG_LEVEL"] = "WARNING"

from rentdesk.database import Base, get_db  # noqa: E402
from rentdesk.main import app  # noqa: E402
from tests.factories import CustomerFactory, VehicleFactory, make_reservation  # noqa: E402

# ---------------------------------------------------------------------------
# Async engine & session factory for the test database
# ---------------------------------------------------------------------------
TEST_DATABASE_URL = "sqlite+aiosqlite://"

test_engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=StaticPool)
TestSession = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


# SQLite does not enforce FK constraints by default; enable them. The driver's
# own BEGIN handling is switched off so that SAVEPOINTs nest correctly.
@event.listens_for(test_engine.sync_engine, "connect")
def _configure_sqlite(dbapi_conn, _connection_record):
    dbapi_conn.isolation_level = None
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


@event.listens_for(test_engine.sync_engine, "begin")
def _begin_sqlite(conn):
    conn.exec_driver_sql("BEGIN")


# ---------------------------------------------------------------------------
# Database lifecycle
# ---------------------------------------------------------------------------
@pytest_asyncio.fixture(autouse=True)
async def setup_database():
    """Create all tables before each test, drop them afterward."""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


# ---------------------------------------------------------------------------
# DB session fixture
# ---------------------------------------------------------------------------
@pytest_asyncio.fixture
async def db_session() -> AsyncSession:
    """Provide a DB session for direct service-layer tests."""
    async with TestSession() as session:
        yield session


# ---------------------------------------------------------------------------
# Dependency override
# ---------------------------------------------------------------------------
async def _override_get_db():
    async with TestSession() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


app.dependency_overrides[get_db] = _override_get_db


# ---------------------------------------------------------------------------
# HTTP client fixture
# ---------------------------------------------------------------------------
@pytest_asyncio.fixture
async def client() -> AsyncClient:
    """httpx async client wired to the FastAPI app, acting as user "tester"."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test", headers={"X-User": "tester"}) as ac:
        yield ac


# ---------------------------------------------------------------------------
# Convenience fixtures: records already in the DB
# ---------------------------------------------------------------------------
@pytest_asyncio.fixture
async def sample_vehicle(client: AsyncClient) -> dict:
    resp = await client.post("/api/vehicles", json=VehicleFactory())
    assert resp.status_code == 201
    return resp.json()


@pytest_asyncio.fixture
async def sample_customer(client: AsyncClient) -> dict:
    resp = await client.post("/api/customers", json=CustomerFactory())
    assert resp.status_code == 201
    return resp.json()


@pytest_asyncio.fixture
async def sample_reservation(client: AsyncClient, sample_vehicle: dict, sample_customer: dict) -> dict:
    """Booked reservation of the sample vehicle for 2024-01-01 .. 2024-01-05."""
    resp = await make_reservation(
        client, sample_vehicle, sample_customer, date(2024, 1, 1), date(2024, 1, 5), status="booked"
    )
    assert resp.status_code == 201
    return resp.json()
