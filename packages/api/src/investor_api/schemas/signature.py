# This project was developed with assistance from AI tools.
"""Document signature schemas."""

import uuid
from datetime import datetime

from investor_db.enums import DocumentType, LifecycleStage, SignatureStatus
from pydantic import BaseModel, ConfigDict

from .transition import TransitionOutcome


class SignatureRequest(BaseModel):
    """Record the signature state of one document.

    ``auto_complete`` and ``notify_admin`` fall back to the service defaults
    when omitted.
    """

    document_type: DocumentType
    status: SignatureStatus
    auto_complete: bool | None = None
    notify_admin: bool | None = None


class SignatureSummary(BaseModel):
    """Stored signature row."""

    model_config = ConfigDict(from_attributes=True)

    application_id: uuid.UUID
    document_type: DocumentType
    status: SignatureStatus
    signed_at: datetime | None = None
    document_url: str | None = None
    updated_at: datetime | None = None


class SignatureResult(BaseModel):
    """Outcome of recording a signature and any coupled status change."""

    application_id: uuid.UUID
    document_type: DocumentType
    status: SignatureStatus
    outcome: TransitionOutcome
    application_status: LifecycleStage
    coupled_status: LifecycleStage | None = None
    coupled_transition_applied: bool = False
    notification_type: str | None = None
    warning: str | None = None
