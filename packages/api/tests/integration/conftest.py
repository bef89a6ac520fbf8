# This project was developed with assistance from AI tools.
"""Integration test fixtures -- real PostgreSQL, no mocks.

A session-scoped container (started once per test run) provides PostgreSQL
with the schema and named onboarding operations installed by Alembic.
Function-scoped fixtures give each test an isolated DB session with savepoint
rollback so tests don't leak state.
"""

import os
from collections import namedtuple
from datetime import date
from decimal import Decimal

import httpx
import pytest
import pytest_asyncio
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool
from testcontainers.postgres import PostgresContainer

# ---------------------------------------------------------------------------
# Mark all tests in this directory as integration
# ---------------------------------------------------------------------------
pytestmark = pytest.mark.integration


# ---------------------------------------------------------------------------
# Session-scoped: container + engine + migrations
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def pg_container():
    """Start postgres:16 via testcontainers."""
    with PostgresContainer(
        image="postgres:16",
        username="test",
        password="test",
        dbname="test",
    ) as pg:
        yield pg


@pytest.fixture(scope="session")
def db_url(pg_container):
    """Async DB URL for asyncpg."""
    host = pg_container.get_container_host_ip()
    port = pg_container.get_exposed_port(5432)
    return f"postgresql+asyncpg://test:test@{host}:{port}/test"


@pytest.fixture(scope="session")
def sync_db_url(pg_container):
    """Sync DB URL for Alembic (psycopg2)."""
    host = pg_container.get_container_host_ip()
    port = pg_container.get_exposed_port(5432)
    return f"postgresql://test:test@{host}:{port}/test"


@pytest.fixture(scope="session", autouse=True)
def _run_migrations(sync_db_url):
    """Run alembic upgrade head against the container."""
    os.environ["DATABASE_URL"] = sync_db_url
    from alembic import command
    from alembic.config import Config

    db_root = os.path.join(os.path.dirname(__file__), "..", "..", "..", "db")
    alembic_cfg = Config(os.path.join(db_root, "alembic.ini"))
    alembic_cfg.set_main_option("script_location", os.path.join(db_root, "alembic"))
    alembic_cfg.set_main_option("sqlalchemy.url", sync_db_url)
    command.upgrade(alembic_cfg, "head")


@pytest.fixture(scope="session")
def async_engine(db_url, _run_migrations):
    """Create an async engine pointing at the test container."""
    engine = create_async_engine(db_url, echo=False, poolclass=NullPool)
    yield engine


@pytest.fixture(scope="session", autouse=True)
def _patch_db_module(async_engine):
    """Point investor_db.database globals at the test database."""
    import investor_db.database as db_mod

    db_mod.engine = async_engine
    db_mod.SessionLocal = async_sessionmaker(
        bind=async_engine, class_=AsyncSession, autoflush=False, expire_on_commit=False
    )
    db_mod.db_service = db_mod.DatabaseService(engine=async_engine)


@pytest.fixture(scope="session", autouse=True)
def _init_notifications():
    """Routes publish to the outbox singleton; with no endpoint events are dropped."""
    from investor_api.core.config import settings
    from investor_api.services.notification import init_notification_service

    init_notification_service(settings)


# ---------------------------------------------------------------------------
# Function-scoped: per-test session with savepoint rollback
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def db_session(async_engine):
    """Per-test DB session with savepoint rollback.

    ``commit()`` inside the test only releases a savepoint; everything is
    rolled back when the test ends.
    """
    conn = await async_engine.connect()
    txn = await conn.begin()
    session = AsyncSession(
        bind=conn, join_transaction_mode="create_savepoint", expire_on_commit=False
    )
    yield session
    await session.close()
    await txn.rollback()
    await conn.close()


@pytest.fixture
def client_factory(db_session):
    """Factory returning an async httpx client with dependency overrides."""
    import investor_db.database as db_mod
    from investor_db.database import get_db, get_db_service

    from investor_api.main import app
    from investor_api.middleware.auth import get_current_user

    async def _make(user):
        async def _get_db():
            yield db_session

        async def _get_current_user():
            return user

        async def _get_db_service():
            return db_mod.db_service

        app.dependency_overrides[get_db] = _get_db
        app.dependency_overrides[get_current_user] = _get_current_user
        app.dependency_overrides[get_db_service] = _get_db_service
        transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)
        return httpx.AsyncClient(transport=transport, base_url="http://test")

    yield _make

    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Seed data helper
# ---------------------------------------------------------------------------

SeedPair = namedtuple("SeedPair", ["application", "investment"])


async def create_pair(
    session,
    app_status,
    inv_status=None,
    *,
    user_id="investor-1",
    start_date=None,
):
    """Insert an application (and optionally its investment) and commit."""
    from investor_db import Investment, InvestmentApplication

    application = InvestmentApplication(
        user_id=user_id,
        investment_amount=Decimal("10000.00"),
        annual_percentage=Decimal("12.00"),
        term_months=12,
        status=app_status,
    )
    session.add(application)
    await session.flush()

    investment = None
    if inv_status is not None:
        investment = Investment(
            application_id=application.id,
            user_id=user_id,
            amount=application.investment_amount,
            annual_percentage=application.annual_percentage,
            term_months=application.term_months,
            start_date=start_date,
            status=inv_status,
        )
        session.add(investment)
        await session.flush()

    await session.commit()
    return SeedPair(application, investment)


@pytest.fixture
def seed_start_date():
    return date(2026, 1, 15)


# ---------------------------------------------------------------------------
# Truncate fixture for tests that commit on their own connections
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def truncate_all(async_engine):
    """Yield-based: truncates all tables after the test completes."""
    yield
    async with async_engine.begin() as conn:
        await conn.execute(
            text("TRUNCATE TABLE document_signatures, investments, investment_applications CASCADE")
        )
