# This project was developed with assistance from AI tools.
"""Lifecycle transition schemas."""

import enum
import uuid
from typing import Any

from investor_db.enums import LifecycleStage, RecordKind
from pydantic import BaseModel


class TransitionOutcome(str, enum.Enum):
    APPLIED = "applied"
    DEGRADED = "degraded"
    NOOP = "noop"


class TransitionRequest(BaseModel):
    """Move a record to ``target_status``."""

    target_status: LifecycleStage
    metadata: dict[str, Any] | None = None


class TransitionResult(BaseModel):
    """What a transition did to the application/investment pair.

    ``degraded`` means the named database operation failed and the status
    was written directly instead; ``warning`` carries the reason.
    """

    record_id: uuid.UUID
    kind: RecordKind
    target_status: LifecycleStage
    previous_status: LifecycleStage
    status: LifecycleStage
    outcome: TransitionOutcome
    application_id: uuid.UUID
    application_status: LifecycleStage
    investment_id: uuid.UUID | None = None
    investment_status: LifecycleStage | None = None
    notification_type: str | None = None
    warning: str | None = None
