# This project was developed with assistance from AI tools.
"""Onboarding status schemas."""

import uuid

from investor_db.enums import LifecycleStage, NotificationAudience
from pydantic import BaseModel


class StageInfo(BaseModel):
    """Human-readable metadata for one lifecycle stage."""

    label: str
    description: str
    next_step: str
    awaiting: NotificationAudience | None = None


class OnboardingStatusResponse(BaseModel):
    """Where an application stands in onboarding and who acts next."""

    application_id: uuid.UUID
    status: LifecycleStage
    stage_label: str
    description: str
    next_step: str
    awaiting: NotificationAudience | None = None
    progress_percent: int
    is_terminal: bool
    investment_id: uuid.UUID | None = None
    investment_status: LifecycleStage | None = None
