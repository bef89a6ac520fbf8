# This project was developed with assistance from AI tools.
"""Onboarding status summary.

Turns an application (and its investment) into a label, a description, the
next step, a progress percentage, and who has to act next.
"""

import logging
import uuid

from investor_db import InvestmentApplication
from investor_db.enums import LifecycleStage, NotificationAudience
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..schemas.auth import UserContext
from ..schemas.status import OnboardingStatusResponse, StageInfo

logger = logging.getLogger(__name__)

_ADMIN = NotificationAudience.ADMIN
_INVESTOR = NotificationAudience.INVESTOR

STAGE_INFO: dict[str, StageInfo] = {
    LifecycleStage.PENDING.value: StageInfo(
        label="Submitted",
        description="Your investment has been submitted.",
        next_step="An administrator will review your application.",
        awaiting=_ADMIN,
    ),
    LifecycleStage.PENDING_APPROVAL.value: StageInfo(
        label="Pending Approval",
        description="Your investment is awaiting approval.",
        next_step="An administrator will approve the investment.",
        awaiting=_ADMIN,
    ),
    LifecycleStage.PROMISSORY_NOTE_PENDING.value: StageInfo(
        label="Sign Subscription Agreement",
        description="Your application was received. The subscription agreement is ready.",
        next_step="Sign the subscription agreement.",
        awaiting=_INVESTOR,
    ),
    LifecycleStage.PROMISSORY_NOTE_SENT.value: StageInfo(
        label="Sign Promissory Note",
        description="Your promissory note has been issued.",
        next_step="Sign the promissory note.",
        awaiting=_INVESTOR,
    ),
    LifecycleStage.DOCUMENTS_SIGNED.value: StageInfo(
        label="Awaiting Admin Signature",
        description="You signed the subscription agreement.",
        next_step="An administrator will countersign and send your promissory note.",
        awaiting=_ADMIN,
    ),
    LifecycleStage.BANK_DETAILS_PENDING.value: StageInfo(
        label="Preparing Wire Instructions",
        description="You signed the promissory note.",
        next_step="An administrator will send wire instructions.",
        awaiting=_ADMIN,
    ),
    LifecycleStage.FUNDS_PENDING.value: StageInfo(
        label="Complete Wire Transfer",
        description="Wire instructions are available.",
        next_step="Wire your funds, then wait for us to confirm receipt.",
        awaiting=_INVESTOR,
    ),
    LifecycleStage.PLAID_PENDING.value: StageInfo(
        label="Connect Bank Account",
        description="Your funds were received.",
        next_step="Connect the bank account that will receive payments.",
        awaiting=_INVESTOR,
    ),
    LifecycleStage.INVESTOR_ONBOARDING_COMPLETE.value: StageInfo(
        label="Final Review",
        description="You finished onboarding.",
        next_step="An administrator will complete the final review.",
        awaiting=_ADMIN,
    ),
    LifecycleStage.PENDING_ACTIVATION.value: StageInfo(
        label="Awaiting Activation",
        description="Your investment passed final review.",
        next_step="An administrator will activate the investment.",
        awaiting=_ADMIN,
    ),
    LifecycleStage.ACTIVE.value: StageInfo(
        label="Investment Active",
        description="Your investment is active and accruing returns.",
        next_step="No action required.",
    ),
    LifecycleStage.COMPLETED.value: StageInfo(
        label="Completed",
        description="Your investment has reached the end of its term.",
        next_step="No action required.",
    ),
    LifecycleStage.CANCELLED.value: StageInfo(
        label="Cancelled",
        description="This investment was cancelled.",
        next_step="No further action required. You may start a new application at any time.",
    ),
    LifecycleStage.REJECTED.value: StageInfo(
        label="Rejected",
        description="This application was not approved.",
        next_step="Contact us if you have questions.",
    ),
    LifecycleStage.DELETED.value: StageInfo(
        label="Deleted",
        description="This application was removed.",
        next_step="No further action required.",
    ),
}

# Denominator for progress: ACTIVE is 100%.
_ACTIVE_RANK = LifecycleStage.ACTIVE.rank


def progress_percent(stage: LifecycleStage) -> int:
    if stage.rank is None:
        return 0
    return min(100, round(stage.rank / _ACTIVE_RANK * 100))


def effective_stage(application, investment=None) -> LifecycleStage:
    """The furthest stage the pair has reached.

    A closed application wins; otherwise the investment's finer-grained status
    is used when it is ahead of the application's.
    """
    stage = application.status
    if stage.is_cancellation or investment is None:
        return stage
    if stage.precedes(investment.status) or investment.status.is_cancellation:
        return investment.status
    return stage


def describe_onboarding(application, investment=None) -> OnboardingStatusResponse:
    """Build the status summary from already-loaded records."""
    stage = effective_stage(application, investment)
    info = STAGE_INFO[stage.value]
    return OnboardingStatusResponse(
        application_id=application.id,
        status=stage,
        stage_label=info.label,
        description=info.description,
        next_step=info.next_step,
        awaiting=info.awaiting,
        progress_percent=progress_percent(stage),
        is_terminal=stage.is_terminal,
        investment_id=investment.id if investment is not None else None,
        investment_status=investment.status if investment is not None else None,
    )


def primary_investment(application):
    """Newest open investment of ``application``, else its newest investment."""
    investments = sorted(application.investments, key=lambda i: i.created_at, reverse=True)
    open_ones = [i for i in investments if not i.status.is_terminal]
    if open_ones:
        return open_ones[0]
    return investments[0] if investments else None


async def get_onboarding_status(
    session: AsyncSession,
    user: UserContext,
    application_id: uuid.UUID,
) -> OnboardingStatusResponse | None:
    """Status summary for one application.

    Returns None if the application is not found or belongs to another investor.
    """
    stmt = (
        select(InvestmentApplication)
        .options(selectinload(InvestmentApplication.investments))
        .where(InvestmentApplication.id == application_id)
    )
    if not user.is_admin:
        stmt = stmt.where(InvestmentApplication.user_id == user.user_id)
    result = await session.execute(stmt)
    application = result.unique().scalar_one_or_none()
    if application is None:
        return None
    return describe_onboarding(application, primary_investment(application))
