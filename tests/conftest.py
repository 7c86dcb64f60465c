"""Test fixtures for the Dealboard record store and API.

Provides:
- A fresh in-memory SQLite engine per test (aiosqlite, StaticPool) with all
  tables created
- Repositories, DealPipeline and ChecklistService bound to that engine
- The FastAPI app with those services on app.state, and an httpx client
  talking to it through ASGITransport
- A DealboardClient wired to the same app for client-side tests
"""

from __future__ import annotations

from collections.abc import AsyncGenerator

import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from src.dealboard.checklists.repository import ChecklistRepository
from src.dealboard.checklists.service import ChecklistService
from src.dealboard.client.api import DealboardClient
from src.dealboard.core.database import create_engine_for_url, create_tables, make_session_factory
from src.dealboard.deals.pipeline import DealPipeline
from src.dealboard.deals.repository import DealRepository
from src.dealboard.deals.schemas import DealCreate, DocumentCreate
from src.dealboard.main import attach_services, create_app
from src.dealboard.parties.repository import BuyingPartyRepository

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture
async def engine():
    """In-memory SQLite engine with every table created."""
    eng = create_engine_for_url(TEST_DATABASE_URL)
    await create_tables(eng)
    yield eng
    await eng.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return make_session_factory(engine)


@pytest_asyncio.fixture
async def deal_repo(session_factory) -> DealRepository:
    return DealRepository(session_factory=session_factory)


@pytest_asyncio.fixture
async def party_repo(session_factory) -> BuyingPartyRepository:
    return BuyingPartyRepository(session_factory=session_factory)


@pytest_asyncio.fixture
async def pipeline(deal_repo) -> DealPipeline:
    return DealPipeline(deal_repo, valuation_marker="valuation")


@pytest_asyncio.fixture
async def checklist_service(session_factory) -> ChecklistService:
    return ChecklistService(ChecklistRepository(session_factory=session_factory))


@pytest_asyncio.fixture
async def app(engine, session_factory):
    """FastAPI app with services bound to the test engine (lifespan not run)."""
    application = create_app()
    attach_services(application, session_factory)
    application.state.engine = engine
    return application


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client for testing the API."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def api_client(app) -> AsyncGenerator[DealboardClient, None]:
    """DealboardClient talking to the test app in-process."""
    transport = ASGITransport(app=app)
    dealboard = DealboardClient(
        base_url="http://test/api",
        timeout=5.0,
        read_retries=1,
        transport=transport,
    )
    yield dealboard
    await dealboard.aclose()


# ── Factories ────────────────────────────────────────────────────────────────


def make_deal_create(**overrides) -> DealCreate:
    fields = {
        "company_name": "Harbor Coffee Roasters",
        "revenue": 1_250_000,
        "owner": "Dana",
    }
    fields.update(overrides)
    return DealCreate(**fields)


@pytest_asyncio.fixture
async def onboarding_deal(deal_repo):
    """A deal sitting in ONBOARDING with no documents attached."""
    return await deal_repo.create_deal(make_deal_create())


@pytest_asyncio.fixture
async def valued_deal(deal_repo):
    """A deal in ONBOARDING that already has a valuation workbook attached."""
    deal = await deal_repo.create_deal(make_deal_create(company_name="Summit Dental Group"))
    await deal_repo.create_document(
        DocumentCreate(deal_id=deal.id, name="Summit Valuation Q3.xlsx")
    )
    return deal
