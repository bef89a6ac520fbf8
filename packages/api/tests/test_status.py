# This project was developed with assistance from AI tools.
"""Tests for the onboarding status summary."""

from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest
from investor_db.enums import LifecycleStage, NotificationAudience, UserRole

from investor_api.schemas.auth import UserContext
from investor_api.services.status import (
    STAGE_INFO,
    describe_onboarding,
    effective_stage,
    get_onboarding_status,
    primary_investment,
    progress_percent,
)

from .factories import APP_ID, BASE_TIME, INV_ID, make_mock_investment, make_pair


def _make_user(role: UserRole = UserRole.INVESTOR) -> UserContext:
    return UserContext(
        user_id="investor-1",
        email="investor@example.com",
        name="Test Investor",
        role=role,
    )


def _make_session(application):
    session = AsyncMock()
    result = MagicMock()
    result.unique.return_value.scalar_one_or_none.return_value = application
    session.execute = AsyncMock(return_value=result)
    return session


# ---------------------------------------------------------------------------
# STAGE_INFO coverage
# ---------------------------------------------------------------------------


def test_all_stages_have_info():
    """Every LifecycleStage value has a STAGE_INFO entry."""
    for stage in LifecycleStage:
        assert stage.value in STAGE_INFO, f"Missing STAGE_INFO for {stage.value}"


def test_open_stages_name_who_acts_next():
    for stage in LifecycleStage:
        info = STAGE_INFO[stage.value]
        if stage.is_terminal or stage == LifecycleStage.ACTIVE:
            assert info.awaiting is None
        else:
            assert info.awaiting is not None, stage.value


def test_investor_actions():
    assert STAGE_INFO["promissory_note_sent"].awaiting == NotificationAudience.INVESTOR
    assert STAGE_INFO["documents_signed"].awaiting == NotificationAudience.ADMIN


# ---------------------------------------------------------------------------
# Progress and effective stage
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "stage, expected",
    [
        (LifecycleStage.PENDING, 0),
        (LifecycleStage.FUNDS_PENDING, 56),
        (LifecycleStage.ACTIVE, 100),
        (LifecycleStage.COMPLETED, 100),
        (LifecycleStage.CANCELLED, 0),
    ],
)
def test_progress_percent(stage, expected):
    assert progress_percent(stage) == expected


def test_effective_stage_prefers_investment_when_ahead():
    application, investment = make_pair(LifecycleStage.PLAID_PENDING, LifecycleStage.PENDING_ACTIVATION)
    assert effective_stage(application, investment) == LifecycleStage.PENDING_ACTIVATION


def test_effective_stage_keeps_application_when_ahead():
    application, investment = make_pair(LifecycleStage.DOCUMENTS_SIGNED, LifecycleStage.PENDING)
    assert effective_stage(application, investment) == LifecycleStage.DOCUMENTS_SIGNED


def test_closed_application_wins():
    application, investment = make_pair(LifecycleStage.REJECTED, LifecycleStage.FUNDS_PENDING)
    assert effective_stage(application, investment) == LifecycleStage.REJECTED


def test_describe_onboarding():
    application, investment = make_pair(LifecycleStage.FUNDS_PENDING, LifecycleStage.FUNDS_PENDING)

    status = describe_onboarding(application, investment)

    assert status.application_id == APP_ID
    assert status.stage_label == "Complete Wire Transfer"
    assert status.awaiting == NotificationAudience.INVESTOR
    assert status.investment_id == INV_ID
    assert status.is_terminal is False


def test_primary_investment_prefers_newest_open():
    application, older = make_pair(LifecycleStage.FUNDS_PENDING, LifecycleStage.FUNDS_PENDING)
    make_mock_investment(
        status=LifecycleStage.CANCELLED,
        application=application,
        created_at=BASE_TIME + timedelta(days=1),
    )

    assert primary_investment(application) is older


# ---------------------------------------------------------------------------
# get_onboarding_status
# ---------------------------------------------------------------------------


async def test_get_onboarding_status_found():
    application, _ = make_pair(LifecycleStage.DOCUMENTS_SIGNED, LifecycleStage.PROMISSORY_NOTE_SENT)
    session = _make_session(application)

    status = await get_onboarding_status(session, _make_user(), APP_ID)

    assert status.status == LifecycleStage.DOCUMENTS_SIGNED
    assert status.investment_status == LifecycleStage.PROMISSORY_NOTE_SENT


async def test_get_onboarding_status_scopes_investors():
    session = _make_session(None)

    status = await get_onboarding_status(session, _make_user(), APP_ID)

    assert status is None
    stmt = session.execute.call_args[0][0]
    assert "investment_applications.user_id =" in str(stmt)


async def test_get_onboarding_status_admin_unscoped():
    session = _make_session(None)

    await get_onboarding_status(session, _make_user(UserRole.ADMIN), APP_ID)

    stmt = session.execute.call_args[0][0]
    assert "investment_applications.user_id =" not in str(stmt)
