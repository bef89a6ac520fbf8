# This project was developed with assistance from AI tools.
"""Application and investment request/response schemas."""

import uuid
from datetime import date, datetime
from decimal import Decimal

from investor_db.enums import LifecycleStage, PaymentFrequency
from pydantic import BaseModel, ConfigDict, Field

from . import Pagination


class ApplicationCreate(BaseModel):
    """Submit a new investment application."""

    investment_amount: Decimal = Field(gt=0, max_digits=14, decimal_places=2)
    annual_percentage: Decimal = Field(ge=0, le=100, max_digits=5, decimal_places=2)
    payment_frequency: PaymentFrequency = PaymentFrequency.MONTHLY
    term_months: int = Field(gt=0, le=600)


class ApplicationResponse(BaseModel):
    """Single application response."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: str
    investment_amount: Decimal
    annual_percentage: Decimal
    payment_frequency: PaymentFrequency
    term_months: int
    status: LifecycleStage
    created_at: datetime
    updated_at: datetime


class ApplicationListResponse(BaseModel):
    """Paginated list of applications."""

    data: list[ApplicationResponse]
    pagination: Pagination


class InvestmentResponse(BaseModel):
    """Single investment response."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    application_id: uuid.UUID
    user_id: str
    amount: Decimal
    annual_percentage: Decimal
    payment_frequency: PaymentFrequency
    term_months: int
    start_date: date | None = None
    status: LifecycleStage
    total_expected_return: Decimal | None = None
    created_at: datetime
    updated_at: datetime
