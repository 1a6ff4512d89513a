"""
Centralized Test Configuration.

Every test gets a fresh in-memory SQLite database and an in-process Redis
stand-in. The action cooldown is disabled unless a test turns it back on.
"""

import time
from datetime import datetime, timezone

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import Pool, StaticPool

from haulage.app.main import app
from haulage.app.core.config import settings
from haulage.app.core.jwt import create_access_token
from haulage.app.core.redis_client import get_redis
from haulage.app.core.security import get_password_hash
from haulage.app.db.session import get_db, Base
from haulage.app.domain.activity.work_day_lifecycle import WorkDayLifecycle
from haulage.app.models.enums import UserRole
from haulage.app.models.user import User
from haulage.app.models.truck import Truck
from haulage.app.models.job import Job
from haulage.app.models.material import Material
from haulage.app.models.location import Location
from haulage.app.models.activity_enums import LocationKind
from haulage.app.models.company import Company

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@event.listens_for(Pool, "connect")
def set_sqlite_pragma(dbapi_conn, connection_record):
    """Enable foreign key constraints for SQLite."""
    if 'sqlite' in str(type(dbapi_conn)):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


class MockRedis:
    """Just enough of redis.asyncio for the action cooldown and health check."""

    def __init__(self):
        self.store = {}
        self.expiry = {}

    def _purge(self, key):
        deadline = self.expiry.get(key)
        if deadline is not None and time.monotonic() >= deadline:
            self.store.pop(key, None)
            self.expiry.pop(key, None)

    async def ping(self):
        return True

    async def get(self, key):
        self._purge(key)
        return self.store.get(key)

    async def set(self, key, value, nx=False, px=None, ex=None):
        self._purge(key)
        if nx and key in self.store:
            return None
        self.store[key] = value
        if px is not None:
            self.expiry[key] = time.monotonic() + px / 1000
        elif ex is not None:
            self.expiry[key] = time.monotonic() + ex
        return True

    async def pttl(self, key):
        self._purge(key)
        if key not in self.store:
            return -2
        deadline = self.expiry.get(key)
        if deadline is None:
            return -1
        return int((deadline - time.monotonic()) * 1000)

    async def delete(self, key):
        self.expiry.pop(key, None)
        return 1 if self.store.pop(key, None) is not None else 0

    async def flushdb(self):
        self.store = {}
        self.expiry = {}


@pytest.fixture
async def engine():
    test_engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield test_engine

    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def mock_redis():
    return MockRedis()


@pytest.fixture(autouse=True)
def apply_overrides(session_factory, mock_redis, monkeypatch):
    """Route the app's DB and Redis dependencies to the per-test doubles."""
    monkeypatch.setattr(settings, "activity_cooldown_seconds", 0.0)

    async def override_get_db():
        async with session_factory() as session:
            yield session

    async def override_get_redis():
        return mock_redis

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = override_get_redis
    yield
    app.dependency_overrides = {}


@pytest.fixture
async def client():
    """Async client for testing."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


# --- Users ---

@pytest.fixture
def make_user(db_session):
    async def _make_user(username: str, role: UserRole = UserRole.DRIVER, full_name: str = None):
        user = User(
            email=f"{username}@example.com",
            username=username,
            full_name=full_name,
            hashed_password=get_password_hash("password123"),
            role=role,
            is_active=True
        )
        db_session.add(user)
        await db_session.commit()
        await db_session.refresh(user)
        return user
    return _make_user


def auth_headers(user: User) -> dict:
    token = create_access_token(
        data={"sub": user.username, "user_id": user.id, "role": user.role.value}
    )
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def driver(make_user):
    return await make_user("driver_dan", full_name="Dan Driver")


@pytest.fixture
async def other_driver(make_user):
    return await make_user("driver_olga", full_name="Olga Other")


@pytest.fixture
async def broker(make_user):
    return await make_user("broker_bea", role=UserRole.BROKER)


@pytest.fixture
async def other_broker(make_user):
    return await make_user("broker_ben", role=UserRole.BROKER)


@pytest.fixture
def headers_for():
    return auth_headers


@pytest.fixture
def driver_headers(driver):
    return auth_headers(driver)


@pytest.fixture
def broker_headers(broker):
    return auth_headers(broker)


# --- Reference data ---

@pytest.fixture
async def reference_data(db_session):
    """One truck, one job, a regular and an export material, and both sites."""
    truck = Truck(number="T-101", type="Side Dump", is_active=True)
    second_truck = Truck(number="T-102", type="Tri-Axle", is_active=True)
    job = Job(name="I-95 Widening", customer_name="State DOT", status="active")
    material = Material(name="Base Rock", type="A1A", price_per_load=85.0)
    export_material = Material(name="Export Fill", type="Export Fill", price_per_load=60.0)
    source = Location(name="North Pit", kind=LocationKind.SOURCE, latitude=26.7, longitude=-80.1)
    destination = Location(name="Mile 12 Fill", kind=LocationKind.DESTINATION, latitude=26.9, longitude=-80.2)

    db_session.add_all([truck, second_truck, job, material, export_material, source, destination])
    await db_session.commit()

    return {
        "truck": truck,
        "second_truck": second_truck,
        "job": job,
        "material": material,
        "export_material": export_material,
        "source": source,
        "destination": destination,
    }


@pytest.fixture
def start_day(db_session, reference_data):
    """Open a work day directly through the lifecycle service."""
    async def _start_day(driver_id: int, material_key: str = "material", truck_key: str = "truck"):
        return await WorkDayLifecycle.start(
            db_session,
            driver_id=driver_id,
            truck_id=reference_data[truck_key].id,
            job_id=reference_data["job"].id,
            material_id=reference_data[material_key].id,
            source_location_id=reference_data["source"].id,
            destination_location_id=reference_data["destination"].id,
            work_date=datetime.now(timezone.utc),
        )
    return _start_day


@pytest.fixture
async def work_day(start_day, driver):
    return await start_day(driver.id)


@pytest.fixture
async def companies(db_session):
    """Two lease haulers and one company that is not."""
    acme = Company(name="Acme Hauling", contact_phone="555-0100", is_lease_hauler=True)
    coastal = Company(name="Coastal Trucking", is_lease_hauler=True)
    quarry = Company(name="North Pit Quarry", is_lease_hauler=False)

    db_session.add_all([acme, coastal, quarry])
    await db_session.commit()

    return {"acme": acme, "coastal": coastal, "quarry": quarry}
