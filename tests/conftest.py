"""
Shared test fixtures for the Inspection Log test suite.

Every test gets its own in-memory SQLite database (aiosqlite + StaticPool),
wired into the app by overriding the ``get_db`` dependency.
"""

import os
import sys
from typing import AsyncGenerator

import pytest

# Ensure project root is importable
ROOT_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

# Override environment BEFORE importing application modules
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["CORS_ORIGINS"] = '["*"]'
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["SEED_SAMPLE_DATA"] = "false"
os.environ["PASSWORD_SCHEME"] = "plaintext"
os.environ["ENFORCE_STATUS_TRANSITIONS"] = "false"

from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.api.v1.deps import get_db
from app.db.base import Base
from app.main import app


@pytest.fixture
async def session_factory() -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """Fresh database per test; the app's ``get_db`` is pointed at it."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with factory() as session:
            yield session

    app.dependency_overrides[get_db] = _override_get_db
    yield factory

    app.dependency_overrides.pop(get_db, None)
    await engine.dispose()


@pytest.fixture
async def async_client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """Return a httpx AsyncClient wired to the app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Return a raw database session for direct queries in tests."""
    async with session_factory() as session:
        yield session


# ── Payload helpers ─────────────────────────────────────────────────
def form_payload(**overrides) -> dict:
    """A filled-in inspection form in wire (camelCase) format."""
    payload = {
        "inspectionDate": "2024-11-29",
        "product": "100 mL Bag Pke.",
        "shift": "C",
        "variant": "Pink matt",
        "lineNo": "02",
        "sampleSize": "08 Nos.",
        "lacquers": [
            {"id": 1, "name": "Clear Extn", "weight": "11.74", "batchNo": "2634",
             "expiryDate": "2025-10-24"},
            {"id": 2, "name": "Red Dye", "weight": "121g", "batchNo": "2137",
             "expiryDate": "2025-10-20"},
        ],
        "characteristics": [
            {"id": 1, "name": "Colour Shade", "observation": "Shade 2 : OK"},
            {"id": 6, "name": "Coating Thickness", "bodyThickness": "20 mic",
             "bottomThickness": "10.2 mic"},
        ],
        "qaExecutive": "Mike QA",
        "productionOperator": "John Operator",
    }
    payload.update(overrides)
    return payload


def user_payload(**overrides) -> dict:
    payload = {"username": "alice", "password": "secret", "name": "Alice", "role": "OPERATOR"}
    payload.update(overrides)
    return payload
