# This project was developed with assistance from AI tools.
"""Investor dashboard assembly.

Reads a user's investments, applications and signatures, then picks one of
three states:

- ``active_investment``: the newest active investment drives the figures;
- ``pending_investment``: the newest open investment (or application without
  one) is shown with nothing accrued yet;
- ``no_investment``: a zero-valued sample overview flagged ``is_sample_data``.

Read-only; status changes belong to the transition engine.
"""

import logging
from datetime import date, timedelta
from decimal import Decimal

from investor_db import DocumentSignature, Investment, InvestmentApplication
from investor_db.enums import LifecycleStage
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..schemas.dashboard import ActivityEntry, DashboardOverview, DashboardState
from ..schemas.returns import ReturnOverview
from ..schemas.signature import SignatureSummary
from .returns import compute_overview, pending_overview
from .status import describe_onboarding

logger = logging.getLogger(__name__)

_ZERO = Decimal("0.00")
_SAMPLE_PAYMENT_DAYS = 30


def sample_overview(as_of: date) -> ReturnOverview:
    return ReturnOverview(
        months_elapsed=0,
        monthly_return=_ZERO,
        total_returns=_ZERO,
        current_value=_ZERO,
        next_payment_date=as_of + timedelta(days=_SAMPLE_PAYMENT_DAYS),
        next_payment_amount=_ZERO,
    )


def _is_open(investment) -> bool:
    """Neither the investment nor its application has been closed."""
    if investment.status.is_terminal:
        return False
    application = investment.application
    return application is None or not application.status.is_cancellation


def recent_activity(
    record_id, amount: Decimal, status: LifecycleStage, created_at, *, pending: bool
) -> list[ActivityEntry]:
    """The feed for the primary record: a single entry describing where it stands."""
    if pending:
        description = "Investment submitted"
    elif status == LifecycleStage.ACTIVE:
        description = "Investment activated"
    else:
        description = "Investment processed"
    return [
        ActivityEntry(
            id=record_id,
            description=description,
            amount=amount,
            status=status,
            occurred_at=created_at,
        )
    ]


def assemble_overview(investments, applications, signatures, *, as_of: date) -> DashboardOverview:
    """Build the overview from loaded rows. Inputs are expected newest first."""
    documents = [SignatureSummary.model_validate(s) for s in signatures]
    active = [i for i in investments if i.status == LifecycleStage.ACTIVE]
    open_investments = [i for i in investments if _is_open(i)]
    open_applications = [
        a for a in applications if not a.investments and not a.status.is_terminal
    ]

    if active:
        primary = max(active, key=lambda i: i.created_at)
        state = DashboardState.ACTIVE_INVESTMENT
        overview = compute_overview(primary, as_of)
    elif open_investments:
        primary = max(open_investments, key=lambda i: i.created_at)
        state = DashboardState.PENDING_INVESTMENT
        overview = pending_overview(primary.amount, primary.annual_percentage)
    elif open_applications:
        application = max(open_applications, key=lambda a: a.created_at)
        return DashboardOverview(
            state=DashboardState.PENDING_INVESTMENT,
            is_sample_data=False,
            as_of=as_of,
            application_id=application.id,
            status=application.status,
            amount=application.investment_amount,
            annual_percentage=application.annual_percentage,
            payment_frequency=application.payment_frequency,
            term_months=application.term_months,
            overview=pending_overview(
                application.investment_amount, application.annual_percentage
            ),
            recent_activity=recent_activity(
                application.id,
                application.investment_amount,
                application.status,
                application.created_at,
                pending=True,
            ),
            documents=documents,
            onboarding=describe_onboarding(application),
        )
    else:
        return DashboardOverview(
            state=DashboardState.NO_INVESTMENT,
            is_sample_data=True,
            as_of=as_of,
            overview=sample_overview(as_of),
            documents=documents,
        )

    onboarding = (
        describe_onboarding(primary.application, primary)
        if primary.application is not None
        else None
    )
    return DashboardOverview(
        state=state,
        is_sample_data=False,
        as_of=as_of,
        investment_id=primary.id,
        application_id=primary.application_id,
        status=primary.status,
        amount=primary.amount,
        annual_percentage=primary.annual_percentage,
        payment_frequency=primary.payment_frequency,
        term_months=primary.term_months,
        overview=overview,
        recent_activity=recent_activity(
            primary.id,
            primary.amount,
            primary.status,
            primary.created_at,
            pending=state == DashboardState.PENDING_INVESTMENT,
        ),
        documents=documents,
        onboarding=onboarding,
    )


async def build_overview(
    session: AsyncSession,
    user_id: str,
    *,
    as_of: date | None = None,
) -> DashboardOverview:
    """Dashboard overview for ``user_id`` as of ``as_of`` (default today)."""
    as_of = as_of or date.today()

    inv_stmt = (
        select(Investment)
        .options(selectinload(Investment.application))
        .where(Investment.user_id == user_id)
        .order_by(Investment.created_at.desc())
    )
    investments = (await session.execute(inv_stmt)).unique().scalars().all()

    app_stmt = (
        select(InvestmentApplication)
        .options(selectinload(InvestmentApplication.investments))
        .where(InvestmentApplication.user_id == user_id)
        .order_by(InvestmentApplication.created_at.desc())
    )
    applications = (await session.execute(app_stmt)).unique().scalars().all()

    sig_stmt = (
        select(DocumentSignature)
        .join(InvestmentApplication, DocumentSignature.application_id == InvestmentApplication.id)
        .where(InvestmentApplication.user_id == user_id)
        .order_by(DocumentSignature.created_at.desc())
    )
    signatures = (await session.execute(sig_stmt)).unique().scalars().all()

    overview = assemble_overview(investments, applications, signatures, as_of=as_of)
    logger.debug("Dashboard for %s: %s", user_id, overview.state.value)
    return overview
