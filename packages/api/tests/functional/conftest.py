# This project was developed with assistance from AI tools.
"""Fixtures for functional tests.

The real app from ``investor_api.main`` is a module singleton.
``_clean_overrides`` ensures dependency_overrides are cleared after every test
so persona configuration from one test never leaks into the next.
"""

from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

from investor_api.main import app as real_app
from investor_api.schemas.auth import UserContext
from investor_api.services.transition import TransitionEngine

from ..factories import InMemoryRecordStore, RecordingOutbox
from .mock_db import configure_app_for_persona


@pytest.fixture(autouse=True)
def _clean_overrides():
    """Clear app dependency overrides after each test."""
    yield
    real_app.dependency_overrides.clear()


@pytest.fixture
def app():
    """Return the real FastAPI app with all routers mounted."""
    return real_app


@pytest.fixture
def make_client(app):
    """Factory fixture: configure persona + mock DB, return TestClient."""

    def _make(user: UserContext, session: AsyncMock) -> TestClient:
        configure_app_for_persona(app, user, session)
        return TestClient(app)

    return _make


@pytest.fixture
def make_workflow_client(app):
    """Factory fixture: persona + mock DB + transition engine over in-memory records.

    Returns (TestClient, store, outbox). ``build_engine`` is patched in both
    route modules so transitions run against ``store`` and publish to
    ``outbox`` instead of the app's notification singleton.
    """
    patchers = []

    def _make(user: UserContext, session: AsyncMock, *applications, **store_kwargs):
        configure_app_for_persona(app, user, session)
        store = InMemoryRecordStore(*applications, **store_kwargs)
        outbox = RecordingOutbox()
        engine = TransitionEngine(store, outbox=outbox)
        for target in (
            "investor_api.routes.applications.build_engine",
            "investor_api.routes.investments.build_engine",
        ):
            patcher = patch(target, return_value=engine)
            patcher.start()
            patchers.append(patcher)
        return TestClient(app, raise_server_exceptions=False), store, outbox

    yield _make

    for p in patchers:
        p.stop()
