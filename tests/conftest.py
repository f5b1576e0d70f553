"""Shared test fixtures.

Provides:
- A frozen reference time for date-relative rules
- The demo CRM snapshot and a fresh seeded repository per test
- A fully wired FastAPI app (services built the same way as at startup)
  and an async HTTP client against it
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from datetime import datetime, timezone

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from src.crm.config import get_settings
from src.crm.records.repository import InMemoryCRMRepository
from src.crm.records.schemas import CRMSnapshot
from src.crm.records.seed import (
    DEMO_ACCOUNTS,
    DEMO_CONTACTS,
    DEMO_DEALS,
    DEMO_LEADS,
    build_demo_repository,
)

NOW = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def demo_snapshot() -> CRMSnapshot:
    return CRMSnapshot(
        leads=tuple(DEMO_LEADS),
        accounts=tuple(DEMO_ACCOUNTS),
        contacts=tuple(DEMO_CONTACTS),
        deals=tuple(DEMO_DEALS),
    )


@pytest.fixture
def demo_repository() -> InMemoryCRMRepository:
    return build_demo_repository()


@pytest.fixture
def app():
    """Create the app and build its services without running the lifespan."""
    from src.crm.api.deps import get_now
    from src.crm.main import create_app, init_services

    application = create_app()
    init_services(application, get_settings())
    application.dependency_overrides[get_now] = lambda: NOW
    return application


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client for testing the API."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

