"""Pytest fixtures for PAYE engine tests."""

from __future__ import annotations

from typing import Any, AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from paye_engine.calculators.types import PayFrequency, PayrollCalculationInput
from paye_engine.models import Base
from paye_engine.tables import load_tax_year_tables, read_bundled_payload

# Use in-memory SQLite for tests (with async support)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

TAX_YEAR = "2025-26"


@pytest.fixture
def tables():
    """Bundled 2025-26 tables."""
    return load_tax_year_tables(TAX_YEAR)


@pytest.fixture
def tables_2024():
    """Bundled 2024-25 tables."""
    return load_tax_year_tables("2024-25")


@pytest.fixture
def payload() -> dict[str, Any]:
    """A fresh copy of the 2025-26 JSON payload, safe to modify."""
    return read_bundled_payload(TAX_YEAR)


def _build_input(**overrides: Any) -> PayrollCalculationInput:
    values: dict[str, Any] = {
        "gross_pay_pence": 300000,
        "tax_code": "1257L",
        "pay_frequency": PayFrequency.MONTHLY,
        "tax_year": TAX_YEAR,
    }
    values.update(overrides)
    return PayrollCalculationInput(**values)


@pytest.fixture
def make_input():
    """Factory for inputs: 1257L monthly, £3,000, period 1, unless overridden."""
    return _build_input


@pytest_asyncio.fixture
async def engine():
    """Create test database engine."""
    engine = create_async_engine(TEST_DATABASE_URL, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def session(engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session for each test."""
    session_factory = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    async with session_factory() as session:
        yield session
        await session.rollback()
