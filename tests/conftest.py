"""
Shared fixtures: an in-memory SQLite database (aiosqlite) with the full
schema, plus small factories for drivers and reservations.
"""
import itertools

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import app.models  # noqa: F401  (registers every table on Base.metadata)
from app.database import Base
from app.models.driver import Driver
from app.models.reservation import Reservation

PLATEAU = (14.6928, -17.4467)

_phones = itertools.count(1)


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def add_driver(db):
    async def _add(**overrides) -> Driver:
        fields = {
            "name": "Moussa Diop",
            "phone": f"+22177{next(_phones):07d}",
            "status": "available",
            "lat": PLATEAU[0],
            "lng": PLATEAU[1],
            "legacy_balance": "5000",
            "available_balance": "5000",
        }
        fields.update(overrides)
        driver = Driver(**fields)
        db.add(driver)
        await db.commit()
        await db.refresh(driver)
        return driver

    return _add


@pytest.fixture
def add_reservation(db):
    async def _add(**overrides) -> Reservation:
        fields = {
            "status": "pending",
            "origin_address": "Plateau, Avenue Pompidou",
            "origin_lat": PLATEAU[0],
            "origin_lng": PLATEAU[1],
            "destination_address": "Almadies",
            "destination_lat": 14.7247,
            "destination_lng": -17.5050,
            "client_name": "Awa Ndiaye",
            "client_phone": "+221770000000",
            "estimated_price": "2500",
        }
        fields.update(overrides)
        reservation = Reservation(**fields)
        db.add(reservation)
        await db.commit()
        await db.refresh(reservation)
        return reservation

    return _add


def offset_north(km: float, origin=PLATEAU) -> tuple[float, float]:
    """A point roughly `km` north of `origin` (1 degree of latitude ~ 111.2 km)."""
    return origin[0] + km / 111.195, origin[1]
