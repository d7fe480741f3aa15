"""
Shared test fixtures.

Uses a throw-away SQLite file database (via aiosqlite) so tests run without
Docker / PostgreSQL.  SQLite ignores ``FOR UPDATE``; to keep the locking
semantics the lifecycle engine relies on, every transaction is opened with
``BEGIN IMMEDIATE``, which takes the database write lock up front.  Two
concurrent transactions are therefore serialised, just like two
transactions contending for the same row lock on PostgreSQL.  Foreign keys
are switched on so constraint failures surface as they would there.
"""

from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event

from rideshare.api.middleware import limiter
from rideshare.infrastructure.database import Database
from rideshare.infrastructure.repositories import UserRepository
from rideshare.services.lifecycle import RequestLifecycle
from rideshare.services.rides import RideService
from rideshare.services.search import RideSearch


def _use_immediate_transactions(db: Database) -> None:
    @event.listens_for(db.engine.sync_engine, "connect")
    def _connect(dbapi_connection, connection_record):
        # stop the driver from emitting its own (deferred) BEGIN
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(db.engine.sync_engine, "begin")
    def _begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


# ── Fixtures ──────────────────────────────────────────────────────────


@pytest_asyncio.fixture
async def db(tmp_path) -> AsyncGenerator[Database, None]:
    """Create tables in a fresh database file, yield the client, then dispose."""
    database = Database(
        f"sqlite+aiosqlite:///{tmp_path / 'rideshare.db'}",
        connect_args={"timeout": 30},
    )
    _use_immediate_transactions(database)
    await database.create_all()
    yield database
    await database.dispose()


@pytest.fixture
def rides(db: Database) -> RideService:
    return RideService(db)


@pytest.fixture
def lifecycle(db: Database) -> RequestLifecycle:
    return RequestLifecycle(db)


@pytest.fixture
def search(db: Database) -> RideSearch:
    return RideSearch(db)


@pytest_asyncio.fixture
async def users(db: Database) -> dict[str, int]:
    """A driver, a second driver and three passengers."""
    people = {
        "driver": "Dana Driver",
        "other_driver": "Omar Other",
        "alice": "Alice Passenger",
        "bob": "Bob Passenger",
        "carol": "Carol Passenger",
    }
    ids = {}
    async with db.transaction() as session:
        repo = UserRepository(session)
        for key, name in people.items():
            user = await repo.create(
                name=name, email=f"{key}@example.com", phone_number=f"+1-555-{len(ids):04d}"
            )
            ids[key] = user.id
    return ids


def tomorrow_at(hour: int, minute: int = 0) -> datetime:
    day = datetime.now(timezone.utc).date() + timedelta(days=1)
    return datetime(day.year, day.month, day.day, hour, minute, tzinfo=timezone.utc)


def scheduled_ride(**overrides) -> dict:
    fields = {
        "source": ["Main Gate", " Hostel 4 "],
        "destination": ["Central Station"],
        "departure_type": "scheduled",
        "ride_time": tomorrow_at(9),
        "total_seats": 3,
    }
    fields.update(overrides)
    return fields


def window_ride(**overrides) -> dict:
    fields = {
        "source": ["Library"],
        "destination": ["Airport"],
        "departure_type": "window",
        "flexible_window_minutes": 30,
        "total_seats": 2,
    }
    fields.update(overrides)
    return fields


@pytest_asyncio.fixture
async def client(db: Database) -> AsyncGenerator[AsyncClient, None]:
    """AsyncClient backed by the SQLite test database."""
    from rideshare.api.app import create_app

    limiter.enabled = False
    app = create_app(database=db)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    limiter.enabled = True
