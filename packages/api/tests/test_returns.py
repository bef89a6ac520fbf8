# This project was developed with assistance from AI tools.
"""Tests for return and payment accrual calculations."""

from datetime import date
from decimal import Decimal

import pytest
from investor_db.enums import LifecycleStage, PaymentFrequency

from investor_api.schemas.returns import PENDING_ACTIVATION
from investor_api.services.returns import (
    compute_overview,
    expected_total_return,
    monthly_return,
    months_elapsed,
    next_payment,
    pending_overview,
)

from .factories import make_mock_investment


def _make_active(start=date(2026, 1, 15), frequency=PaymentFrequency.MONTHLY, **kwargs):
    return make_mock_investment(
        status=LifecycleStage.ACTIVE, start_date=start, frequency=frequency, **kwargs
    )


# ---------------------------------------------------------------------------
# Building blocks
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "start, as_of, expected",
    [
        (date(2026, 1, 15), date(2026, 1, 31), 0),
        (date(2026, 1, 15), date(2026, 4, 20), 3),
        (date(2025, 11, 1), date(2026, 2, 1), 3),
        (date(2026, 5, 1), date(2026, 1, 1), 0),
    ],
)
def test_months_elapsed(start, as_of, expected):
    assert months_elapsed(start, as_of) == expected


def test_monthly_return_is_simple_interest():
    assert monthly_return(Decimal("10000"), Decimal("12")) == Decimal("100")


@pytest.mark.parametrize("rate", [None, Decimal("-5")])
def test_missing_or_negative_rate_counts_as_zero(rate):
    assert monthly_return(Decimal("10000"), rate) == 0


def test_next_payment_clamps_to_month_end():
    next_date, period = next_payment(date(2026, 1, 31), 0, PaymentFrequency.MONTHLY)
    assert next_date == date(2026, 2, 28)
    assert period == 1


def test_next_payment_rolls_whole_quarters():
    next_date, period = next_payment(date(2026, 1, 15), 4, PaymentFrequency.QUARTERLY)
    assert next_date == date(2026, 7, 15)
    assert period == 3


def test_expected_total_return_over_term():
    assert expected_total_return(Decimal("10000"), Decimal("12"), 12) == Decimal("1200.00")


# ---------------------------------------------------------------------------
# compute_overview
# ---------------------------------------------------------------------------


def test_active_investment_accrues_monthly():
    overview = compute_overview(_make_active(), date(2026, 4, 20))

    assert overview.months_elapsed == 3
    assert overview.monthly_return == Decimal("100.00")
    assert overview.total_returns == Decimal("300.00")
    assert overview.current_value == Decimal("10300.00")
    assert overview.next_payment_date == date(2026, 5, 15)
    assert overview.next_payment_amount == Decimal("100.00")


def test_half_year_on_fifty_thousand_at_twelve_percent():
    investment = _make_active(
        start=date(2024, 1, 1), amount=Decimal("50000.00"), rate=Decimal("12.00")
    )

    overview = compute_overview(investment, date(2024, 7, 1))

    assert overview.months_elapsed == 6
    assert overview.monthly_return == Decimal("500.00")
    assert overview.total_returns == Decimal("3000.00")
    assert overview.current_value == Decimal("53000.00")
    assert overview.next_payment_date == date(2024, 8, 1)
    assert overview.next_payment_amount == Decimal("500.00")


def test_quarterly_payment_covers_three_months():
    overview = compute_overview(
        _make_active(frequency=PaymentFrequency.QUARTERLY), date(2026, 4, 20)
    )

    assert overview.next_payment_date == date(2026, 7, 15)
    assert overview.next_payment_amount == Decimal("300.00")


def test_annual_payment_date():
    overview = compute_overview(
        _make_active(frequency=PaymentFrequency.ANNUAL), date(2026, 4, 20)
    )

    assert overview.next_payment_date == date(2027, 1, 15)
    assert overview.next_payment_amount == Decimal("1200.00")


def test_figures_round_half_up_to_cents():
    investment = _make_active(amount=Decimal("1000"), rate=Decimal("5"))

    overview = compute_overview(investment, date(2026, 4, 20))

    assert overview.monthly_return == Decimal("4.17")
    assert overview.total_returns == Decimal("12.50")


def test_inactive_investment_has_no_next_payment():
    investment = make_mock_investment(
        status=LifecycleStage.FUNDS_PENDING, start_date=date(2026, 1, 15)
    )

    overview = compute_overview(investment, date(2026, 4, 20))

    assert overview.next_payment_date == PENDING_ACTIVATION
    assert overview.next_payment_amount == Decimal("0.00")


def test_missing_start_date_accrues_nothing():
    investment = _make_active(start=None)

    overview = compute_overview(investment, date(2026, 4, 20))

    assert overview.months_elapsed == 0
    assert overview.total_returns == Decimal("0.00")
    assert overview.current_value == Decimal("10000.00")
    assert overview.next_payment_date == date(2026, 5, 20)


def test_pending_overview():
    overview = pending_overview(Decimal("5000"), Decimal("6"))

    assert overview.months_elapsed == 0
    assert overview.monthly_return == Decimal("25.00")
    assert overview.current_value == Decimal("5000.00")
    assert overview.next_payment_date == PENDING_ACTIVATION
