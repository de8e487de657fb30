"""Shared test fixtures."""

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine

from rollcall.config import Settings
from rollcall.db.engine import create_engine, init_schema


@pytest.fixture
def settings() -> Settings:
    """Test settings with defaults."""
    return Settings(rollcall_env="development", database_url="sqlite+aiosqlite:///:memory:")


@pytest.fixture
async def engine() -> AsyncEngine:
    """Create an in-memory SQLite engine with all tables."""
    eng = create_engine("sqlite+aiosqlite:///:memory:")
    await init_schema(eng)
    yield eng
    await eng.dispose()
