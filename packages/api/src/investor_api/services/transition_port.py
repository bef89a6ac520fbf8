# This project was developed with assistance from AI tools.
"""Transition port -- the only path by which status and signature writes happen.

Every write first goes through a named database operation. When that fails
the port falls back to a direct field write and reports ``degraded`` instead
of raising, so compensation is a visible branch of the result rather than a
side effect. ``failed`` means the direct write failed too; the caller must
roll back.
"""

import enum
import logging
from dataclasses import dataclass

from investor_db.enums import DocumentType, LifecycleStage, RecordKind, SignatureStatus

from .errors import PersistenceFailure, RemoteOperationFailure

logger = logging.getLogger(__name__)


class PortOutcome(str, enum.Enum):
    APPLIED = "applied"
    DEGRADED = "degraded"
    FAILED = "failed"


@dataclass(frozen=True)
class PortResult:
    outcome: PortOutcome
    warning: str | None = None
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.outcome != PortOutcome.FAILED


def advances(current: LifecycleStage, target: LifecycleStage | None) -> bool:
    """True if writing ``target`` over ``current`` moves the record forward.

    Closed records never move; cancellations are accepted from any open stage.
    """
    if target is None or current == target or current.is_terminal:
        return False
    if target.is_cancellation:
        return True
    return not target.precedes(current)


class TransitionPort:
    """Applies lifecycle stages and signatures through a record store."""

    def __init__(self, store):
        self.store = store

    async def set_stage(
        self,
        application,
        investments,
        stage: LifecycleStage,
        *,
        activate=None,
    ) -> PortResult:
        """Move the application/investment pair to ``stage``.

        Args:
            application: Locked application row.
            investments: Locked investments of that application.
            stage: Canonical target stage.
            activate: Investment to activate when ``stage`` is ACTIVE; uses
                the dedicated activation operation instead of the step update.
        """
        try:
            if stage == LifecycleStage.ACTIVE and activate is not None:
                await self.store.call_operation(
                    "activate_investment", p_investment_id=activate.id
                )
            else:
                await self.store.call_operation(
                    "update_onboarding_step",
                    p_application_id=application.id,
                    p_new_status=stage,
                )
        except RemoteOperationFailure as exc:
            targets = [activate] if activate is not None else investments
            return await self._compensate_stage(application, targets, stage, exc)
        return PortResult(PortOutcome.APPLIED)

    async def ensure_signature(
        self,
        application_id,
        document_type: DocumentType,
        status: SignatureStatus,
    ) -> PortResult:
        """Upsert the signature for ``(application_id, document_type)``."""
        try:
            await self.store.call_operation(
                "ensure_document_signature",
                p_application_id=application_id,
                p_document_type=document_type,
                p_status=status,
            )
        except RemoteOperationFailure as exc:
            warning = f"{exc}; signature written directly"
            logger.warning(
                "Signature %s=%s for application %s degraded: %s",
                document_type.value,
                status.value,
                application_id,
                exc,
            )
            try:
                await self.store.write_signature(application_id, document_type, status)
            except PersistenceFailure as write_exc:
                logger.error("Signature compensation failed: %s", write_exc)
                return PortResult(PortOutcome.FAILED, warning=warning, error=str(write_exc))
            return PortResult(PortOutcome.DEGRADED, warning=warning)
        return PortResult(PortOutcome.APPLIED)

    async def _compensate_stage(self, application, investments, stage, cause) -> PortResult:
        warning = f"{cause}; status written directly"
        logger.warning(
            "Transition of application %s to %s degraded: %s",
            application.id,
            stage.value,
            cause,
        )
        try:
            target = stage.view(RecordKind.APPLICATION)
            if advances(application.status, target):
                await self.store.write_status(RecordKind.APPLICATION, application.id, target)
            target = stage.view(RecordKind.INVESTMENT)
            for investment in investments:
                if advances(investment.status, target):
                    await self.store.write_status(RecordKind.INVESTMENT, investment.id, target)
        except PersistenceFailure as exc:
            logger.error(
                "Compensating write for application %s failed: %s", application.id, exc
            )
            return PortResult(PortOutcome.FAILED, warning=warning, error=str(exc))
        return PortResult(PortOutcome.DEGRADED, warning=warning)
