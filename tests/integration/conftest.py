"""Integration test fixtures: the FastAPI app over an in-process transport."""

from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from paye_engine.api.app import create_app
from paye_engine.config import Settings, get_settings

ENGINE_VERSION = "1.0.0-test"


@pytest.fixture
def test_settings() -> Settings:
    """Settings for API tests: bundled tables, no database."""
    return Settings(
        database_url="sqlite+aiosqlite:///:memory:",
        engine_version=ENGINE_VERSION,
        host="127.0.0.1",
        port=8000,
        debug=False,
        default_tax_year="2025-26",
        tax_tables_source="bundled",
        log_level="INFO",
    )


@pytest.fixture
def app(test_settings: Settings) -> FastAPI:
    """Application with settings overridden."""
    app = create_app()
    app.dependency_overrides[get_settings] = lambda: test_settings
    return app


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Create async HTTP client for API testing."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
