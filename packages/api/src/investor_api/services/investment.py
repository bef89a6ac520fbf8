# This project was developed with assistance from AI tools.
"""Application submission, approval and lookup.

Investors see only their own applications and investments; admins see all.
Out-of-scope records are reported as missing rather than forbidden.
"""

import logging
import uuid
from datetime import date
from decimal import Decimal

from investor_db import Investment, InvestmentApplication
from investor_db.enums import LifecycleStage, PaymentFrequency
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..schemas.auth import UserContext
from .errors import RecordNotFoundError, StaleTransitionError, ValidationError
from .returns import expected_total_return
from .transition import parse_record_id

logger = logging.getLogger(__name__)


def _scoped(stmt, model, user: UserContext):
    if user.is_admin:
        return stmt
    return stmt.where(model.user_id == user.user_id)


async def list_applications(
    session: AsyncSession,
    user: UserContext,
    *,
    offset: int = 0,
    limit: int = 20,
    status: LifecycleStage | None = None,
) -> tuple[list[InvestmentApplication], int]:
    """Return applications visible to the caller, newest first, and the total count."""
    count_stmt = _scoped(
        select(func.count(InvestmentApplication.id)), InvestmentApplication, user
    )
    stmt = _scoped(
        select(InvestmentApplication)
        .order_by(InvestmentApplication.created_at.desc())
        .offset(offset)
        .limit(limit),
        InvestmentApplication,
        user,
    )
    if status is not None:
        count_stmt = count_stmt.where(InvestmentApplication.status == status)
        stmt = stmt.where(InvestmentApplication.status == status)

    total = (await session.execute(count_stmt)).scalar() or 0
    result = await session.execute(stmt)
    return list(result.unique().scalars().all()), total


async def get_application(
    session: AsyncSession,
    user: UserContext,
    application_id: uuid.UUID,
) -> InvestmentApplication | None:
    stmt = _scoped(
        select(InvestmentApplication).where(InvestmentApplication.id == application_id),
        InvestmentApplication,
        user,
    )
    result = await session.execute(stmt)
    return result.unique().scalar_one_or_none()


async def get_investment(
    session: AsyncSession,
    user: UserContext,
    investment_id: uuid.UUID,
) -> Investment | None:
    stmt = _scoped(select(Investment).where(Investment.id == investment_id), Investment, user)
    result = await session.execute(stmt)
    return result.unique().scalar_one_or_none()


async def create_application(
    session: AsyncSession,
    user: UserContext,
    amount: Decimal,
    rate: Decimal,
    frequency: PaymentFrequency = PaymentFrequency.MONTHLY,
    term_months: int = 12,
) -> InvestmentApplication:
    """Store a new application at the first stage of onboarding."""
    if amount is None or amount <= 0:
        raise ValidationError("Investment amount must be positive")
    if rate is None or rate < 0:
        raise ValidationError("Annual percentage must not be negative")
    if term_months is None or term_months <= 0:
        raise ValidationError("Term must be at least one month")

    application = InvestmentApplication(
        user_id=user.user_id,
        investment_amount=amount,
        annual_percentage=rate,
        payment_frequency=PaymentFrequency(frequency),
        term_months=term_months,
        status=LifecycleStage.PROMISSORY_NOTE_PENDING,
    )
    session.add(application)
    await session.commit()
    await session.refresh(application)
    logger.info("Application %s submitted by %s", application.id, user.user_id)
    return application


async def approve_application(
    session: AsyncSession,
    application_id,
    *,
    today: date | None = None,
) -> Investment:
    """Create the investment for an application from its terms.

    Idempotent: an application that already has an investment returns the
    newest one unchanged.

    Raises:
        RecordNotFoundError: no such application.
        StaleTransitionError: the application is closed.
    """
    application_uuid = parse_record_id(application_id)
    stmt = (
        select(InvestmentApplication)
        .options(selectinload(InvestmentApplication.investments))
        .where(InvestmentApplication.id == application_uuid)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    result = await session.execute(stmt)
    application = result.unique().scalar_one_or_none()
    if application is None:
        raise RecordNotFoundError(f"Application {application_uuid} not found")
    if application.status.is_terminal:
        raise StaleTransitionError(f"Application is closed ({application.status.value})")

    if application.investments:
        existing = max(application.investments, key=lambda i: i.created_at)
        logger.info("Application %s already approved as investment %s", application.id, existing.id)
        return existing

    investment = Investment(
        application_id=application.id,
        user_id=application.user_id,
        amount=application.investment_amount,
        annual_percentage=application.annual_percentage,
        payment_frequency=application.payment_frequency,
        term_months=application.term_months,
        start_date=today or date.today(),
        status=LifecycleStage.PENDING,
        total_expected_return=expected_total_return(
            application.investment_amount,
            application.annual_percentage,
            application.term_months,
        ),
    )
    session.add(investment)
    await session.commit()
    await session.refresh(investment)
    logger.info("Application %s approved as investment %s", application.id, investment.id)
    return investment
