# This project was developed with assistance from AI tools.
"""Investor dashboard schemas."""

import enum
import uuid
from datetime import date, datetime
from decimal import Decimal

from investor_db.enums import LifecycleStage, PaymentFrequency
from pydantic import BaseModel

from .returns import ReturnOverview
from .signature import SignatureSummary
from .status import OnboardingStatusResponse


class DashboardState(str, enum.Enum):
    NO_INVESTMENT = "no_investment"
    PENDING_INVESTMENT = "pending_investment"
    ACTIVE_INVESTMENT = "active_investment"


class ActivityEntry(BaseModel):
    """One line of the recent-activity feed."""

    id: uuid.UUID
    description: str
    amount: Decimal
    status: LifecycleStage
    occurred_at: datetime


class DashboardOverview(BaseModel):
    """Investor-facing summary. ``is_sample_data`` means figures are placeholders."""

    state: DashboardState
    is_sample_data: bool
    as_of: date
    investment_id: uuid.UUID | None = None
    application_id: uuid.UUID | None = None
    status: LifecycleStage | None = None
    amount: Decimal = Decimal("0")
    annual_percentage: Decimal = Decimal("0")
    payment_frequency: PaymentFrequency | None = None
    term_months: int | None = None
    overview: ReturnOverview
    recent_activity: list[ActivityEntry] = []
    documents: list[SignatureSummary] = []
    onboarding: OnboardingStatusResponse | None = None
