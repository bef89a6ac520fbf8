# This project was developed with assistance from AI tools.
"""Tests for application submission, approval and lookup."""

from datetime import date, timedelta
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest
from investor_db.enums import LifecycleStage, PaymentFrequency, UserRole

from investor_api.schemas.auth import UserContext
from investor_api.services.errors import RecordNotFoundError, StaleTransitionError, ValidationError
from investor_api.services.investment import (
    approve_application,
    create_application,
    list_applications,
)

from .factories import APP_ID, BASE_TIME, make_mock_application, make_mock_investment


def _make_user(role=UserRole.INVESTOR) -> UserContext:
    return UserContext(
        user_id="investor-1",
        role=role,
        email="investor@example.com",
        name="Test Investor",
    )


def _make_session(single=None, items=None, count=0):
    session = AsyncMock()
    session.add = MagicMock()
    result = MagicMock()
    result.scalar.return_value = count
    result.unique.return_value.scalar_one_or_none.return_value = single
    result.unique.return_value.scalars.return_value.all.return_value = items or []
    session.execute = AsyncMock(return_value=result)
    return session


# ---------------------------------------------------------------------------
# create_application
# ---------------------------------------------------------------------------


async def test_create_application_starts_at_subscription_agreement():
    session = _make_session()

    application = await create_application(
        session, _make_user(), Decimal("25000"), Decimal("9.5"), PaymentFrequency.QUARTERLY, 24
    )

    assert application.status == LifecycleStage.PROMISSORY_NOTE_PENDING
    assert application.user_id == "investor-1"
    assert application.payment_frequency == PaymentFrequency.QUARTERLY
    session.add.assert_called_once_with(application)
    session.commit.assert_awaited_once()


@pytest.mark.parametrize(
    "amount, rate, term",
    [
        (Decimal("0"), Decimal("5"), 12),
        (Decimal("1000"), Decimal("-1"), 12),
        (Decimal("1000"), Decimal("5"), 0),
    ],
)
async def test_create_application_rejects_bad_terms(amount, rate, term):
    session = _make_session()

    with pytest.raises(ValidationError):
        await create_application(session, _make_user(), amount, rate, PaymentFrequency.MONTHLY, term)
    session.add.assert_not_called()


# ---------------------------------------------------------------------------
# approve_application
# ---------------------------------------------------------------------------


async def test_approve_creates_pending_investment_from_terms():
    application = make_mock_application(status=LifecycleStage.DOCUMENTS_SIGNED)
    session = _make_session(single=application)

    investment = await approve_application(session, APP_ID, today=date(2026, 2, 1))

    assert investment.status == LifecycleStage.PENDING
    assert investment.application_id == APP_ID
    assert investment.amount == Decimal("10000.00")
    assert investment.start_date == date(2026, 2, 1)
    assert investment.total_expected_return == Decimal("1200.00")
    session.commit.assert_awaited_once()


async def test_approve_twice_returns_existing_investment():
    application = make_mock_application(status=LifecycleStage.DOCUMENTS_SIGNED)
    make_mock_investment(application=application)
    newest = make_mock_investment(
        application=application, id=None, created_at=BASE_TIME + timedelta(days=1)
    )
    session = _make_session(single=application)

    investment = await approve_application(session, APP_ID)

    assert investment is newest
    session.add.assert_not_called()
    session.commit.assert_not_awaited()


async def test_approve_unknown_application():
    session = _make_session(single=None)

    with pytest.raises(RecordNotFoundError):
        await approve_application(session, APP_ID)


async def test_approve_closed_application():
    application = make_mock_application(status=LifecycleStage.REJECTED)
    session = _make_session(single=application)

    with pytest.raises(StaleTransitionError):
        await approve_application(session, APP_ID)


async def test_approve_malformed_id():
    with pytest.raises(ValidationError):
        await approve_application(_make_session(), "nope")


# ---------------------------------------------------------------------------
# list_applications
# ---------------------------------------------------------------------------


async def test_list_applications_returns_items_and_total():
    application = make_mock_application()
    session = _make_session(items=[application], count=1)

    items, total = await list_applications(session, _make_user(), status=LifecycleStage.PROMISSORY_NOTE_PENDING)

    assert items == [application]
    assert total == 1
    count_stmt = session.execute.call_args_list[0].args[0]
    assert "investment_applications.user_id =" in str(count_stmt)
    assert "investment_applications.status =" in str(count_stmt)
