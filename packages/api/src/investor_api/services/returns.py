# This project was developed with assistance from AI tools.
"""Return and payment accrual calculation.

Pure math, no I/O. Shared by the investor dashboard and investment approval.
Figures are Decimals rounded to cents at the end; intermediate values are
kept unrounded.
"""

from datetime import date
from decimal import ROUND_HALF_UP, Decimal

from dateutil.relativedelta import relativedelta
from investor_db.enums import LifecycleStage, PaymentFrequency

from ..schemas.returns import PENDING_ACTIVATION, ReturnOverview

_CENT = Decimal("0.01")
_ZERO = Decimal("0")


def _money(value: Decimal) -> Decimal:
    return value.quantize(_CENT, rounding=ROUND_HALF_UP)


def _as_decimal(value) -> Decimal:
    if value is None:
        return _ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def months_elapsed(start: date, as_of: date) -> int:
    """Whole calendar months from ``start`` to ``as_of``, floored at zero."""
    return max(0, (as_of.year * 12 + as_of.month) - (start.year * 12 + start.month))


def monthly_return(amount, annual_percentage) -> Decimal:
    """One month of simple interest. A missing or negative rate counts as 0%."""
    rate = _as_decimal(annual_percentage)
    if rate < 0:
        rate = _ZERO
    return _as_decimal(amount) * rate / 100 / 12


def next_payment(start: date, elapsed: int, frequency: PaymentFrequency) -> tuple[date, int]:
    """Next payment date after ``elapsed`` months, and the months it covers.

    The start date is rolled forward whole periods; the day of month is
    clamped to the target month's length (Jan 31 + 1 month = Feb 28/29).
    """
    period = PaymentFrequency(frequency).months
    months_ahead = period * (elapsed // period + 1)
    return start + relativedelta(months=months_ahead), period


def compute_overview(investment, as_of: date) -> ReturnOverview:
    """Accrued figures for ``investment`` as of ``as_of``.

    ``investment`` needs ``amount``, ``annual_percentage``,
    ``payment_frequency``, ``start_date`` and ``status``. A missing start
    date counts as ``as_of`` (nothing accrued yet).
    """
    amount = _as_decimal(investment.amount)
    start = investment.start_date or as_of
    elapsed = months_elapsed(start, as_of)
    monthly = monthly_return(amount, investment.annual_percentage)
    total = monthly * elapsed

    if investment.status != LifecycleStage.ACTIVE:
        next_date, next_amount = PENDING_ACTIVATION, _ZERO
    else:
        frequency = investment.payment_frequency or PaymentFrequency.MONTHLY
        next_date, period = next_payment(start, elapsed, frequency)
        next_amount = monthly * period

    return ReturnOverview(
        months_elapsed=elapsed,
        monthly_return=_money(monthly),
        total_returns=_money(total),
        current_value=_money(amount + total),
        next_payment_date=next_date,
        next_payment_amount=_money(next_amount),
    )


def pending_overview(amount, annual_percentage) -> ReturnOverview:
    """Figures for an investment that has not started accruing."""
    amount = _as_decimal(amount)
    return ReturnOverview(
        months_elapsed=0,
        monthly_return=_money(monthly_return(amount, annual_percentage)),
        total_returns=_money(_ZERO),
        current_value=_money(amount),
        next_payment_date=PENDING_ACTIVATION,
        next_payment_amount=_money(_ZERO),
    )


def expected_total_return(amount, annual_percentage, term_months: int) -> Decimal:
    """Simple interest over the full term."""
    return _money(monthly_return(amount, annual_percentage) * max(0, term_months or 0))
