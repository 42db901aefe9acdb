"""Test fixtures — async test client, test database, factories."""
import os
from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator

os.environ.setdefault("API_KEY", "test-api-key")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test.db")

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.config import settings
from app.database import Base, enable_sqlite_foreign_keys
from app.api.deps import get_db
from app.main import app
from app.models.profile_model import Profile
from app.schemas.deal_schema import DealRecord


TEST_DATABASE_URL = "sqlite+aiosqlite:///./test.db"

test_engine = create_async_engine(TEST_DATABASE_URL, echo=False)
enable_sqlite_foreign_keys(test_engine)
test_session_factory = async_sessionmaker(
    test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

BASE_TIME = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create tables and yield a test database session."""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with test_session_factory() as session:
        yield session

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Yield an HTTP test client with the test DB injected and the API key set."""

    async def override_get_db():
        try:
            yield db_session
            await db_session.commit()
        except Exception:
            await db_session.rollback()
            raise

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport,
        base_url="http://test",
        headers={"X-API-Key": settings.api_key},
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture(scope="function")
async def wholesaler(db_session: AsyncSession) -> Profile:
    return await make_profile(db_session, "wholesaler-1", role="wholesaler", display_name="Wanda Wholesale")


@pytest_asyncio.fixture(scope="function")
async def admin(db_session: AsyncSession) -> Profile:
    return await make_profile(db_session, "admin-1", role="admin", display_name="Ada Admin")


async def make_profile(db: AsyncSession, profile_id: str, role: str = "investor", **fields) -> Profile:
    """Insert a profile row and commit it."""
    profile = Profile(id=profile_id, role=role, **fields)
    db.add(profile)
    await db.commit()
    return profile


def make_deal_payload(**overrides) -> dict:
    """Create a valid deal creation payload."""
    defaults = {
        "wholesaler_id": "wholesaler-1",
        "title": "Brick Ranch in Maple Heights",
        "description": "Three bed ranch, needs roof and kitchen.",
        "property_address": "123 Main St",
        "property_city": "Springfield",
        "property_state": "OH",
        "property_zip": "45501",
        "property_type": "Single Family",
        "asking_price": 100000,
        "buyer_entry_cost": 15000,
        "arv": 180000,
        "repair_estimate": 35000,
        "deal_type": "cash_deal",
        "bedrooms": 3,
        "bathrooms": 2,
        "square_feet": 1500,
        "lot_size_acres": 0.25,
        "status": "approved",
    }
    defaults.update(overrides)
    return defaults


def make_record(deal_id: str, minutes: int = 0, **overrides) -> DealRecord:
    """Build an in-memory deal; ``minutes`` offsets created_at from BASE_TIME."""
    defaults = {
        "id": deal_id,
        "title": f"Deal {deal_id}",
        "property_address": f"{deal_id} Oak Ave",
        "property_city": "Springfield",
        "property_zip": "45501",
        "asking_price": 100000,
        "deal_type": "cash_deal",
        "bedrooms": 3,
        "bathrooms": 2,
        "square_feet": 1500,
        "lot_size_acres": 0.25,
        "status": "approved",
        "owner_id": "wholesaler-1",
        "owner_name": "Wanda Wholesale",
        "created_at": BASE_TIME + timedelta(minutes=minutes),
    }
    defaults.update(overrides)
    return DealRecord.model_validate(defaults)
