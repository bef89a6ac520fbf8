# This project was developed with assistance from AI tools.
"""Lifecycle transition engine.

Moves an application/investment pair through onboarding. Each public
operation is one unit of work:

1. validate inputs (no I/O);
2. lock the application row, then its investments -- the serialization
   point for double submits;
3. no-op if the addressed record already holds the target status, reject
   anything that would move it backwards or out of a closed state;
4. write through the TransitionPort (named operation, direct write on failure);
5. commit, then hand notifications to the outbox.

Notifications are published only after a successful commit and never affect
the result.
"""

import logging
import uuid
from dataclasses import dataclass, field
from typing import Any

from investor_db.enums import (
    DocumentType,
    LifecycleStage,
    NotificationAudience,
    RecordKind,
    SignatureStatus,
)
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..schemas.notification import NotificationEvent
from ..schemas.signature import SignatureResult
from ..schemas.transition import TransitionOutcome, TransitionResult
from .errors import (
    OnboardingError,
    PersistenceFailure,
    RecordNotFoundError,
    StaleTransitionError,
    ValidationError,
)
from .notification import NotificationOutbox, get_notification_outbox
from .record_store import RecordStore
from .transition_port import PortOutcome, PortResult, TransitionPort, advances

logger = logging.getLogger(__name__)

# Stage reached -> (notification type, audience, message template)
TRANSITION_NOTIFICATIONS: dict[LifecycleStage, tuple[str, NotificationAudience, str]] = {
    LifecycleStage.PROMISSORY_NOTE_SENT: (
        "promissory_note_created",
        NotificationAudience.INVESTOR,
        "Your promissory note for application {application_id} is ready to sign.",
    ),
    LifecycleStage.FUNDS_PENDING: (
        "wire_instructions_available",
        NotificationAudience.INVESTOR,
        "Wire instructions for application {application_id} are now available.",
    ),
    LifecycleStage.PLAID_PENDING: (
        "funds_received",
        NotificationAudience.INVESTOR,
        "Your wire for application {application_id} was received. Connect a bank account to continue.",
    ),
    LifecycleStage.INVESTOR_ONBOARDING_COMPLETE: (
        "investor_onboarding_complete",
        NotificationAudience.ADMIN,
        "Investor has completed onboarding for application {application_id}. "
        "It will now go through final review.",
    ),
    LifecycleStage.ACTIVE: (
        "investment_activated",
        NotificationAudience.INVESTOR,
        "Your investment for application {application_id} is now active.",
    ),
}

FAST_TRACK_NOTIFICATION = (
    "promissory_note_and_funds_verified",
    NotificationAudience.INVESTOR,
    "Your promissory note and funds for application {application_id} are verified. "
    "Connect a bank account to continue.",
)

# Investor signature -> stage the owning application moves to
SIGNATURE_COUPLING: dict[DocumentType, LifecycleStage] = {
    DocumentType.SUBSCRIPTION_AGREEMENT: LifecycleStage.DOCUMENTS_SIGNED,
    DocumentType.PROMISSORY_NOTE: LifecycleStage.BANK_DETAILS_PENDING,
}


def parse_record_id(value: Any) -> uuid.UUID:
    """Return ``value`` as a UUID or raise ValidationError."""
    if value is None or value == "":
        raise ValidationError("A record id is required")
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError as exc:
        raise ValidationError(f"Invalid record id: {value!r}") from exc


def _parse_enum(enum_cls, value, label: str):
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError as exc:
        raise ValidationError(f"Unknown {label}: {value!r}") from exc


def check_order(current: LifecycleStage, target: LifecycleStage) -> None:
    """Reject moving a record from ``current`` to ``target``.

    Raises:
        StaleTransitionError: the record is closed, or ``target`` sits
            earlier than ``current`` and is not a cancellation.
    """
    if current.is_terminal:
        raise StaleTransitionError(f"Record is closed ({current.value})")
    if target.is_cancellation:
        return
    if target.precedes(current):
        raise StaleTransitionError(
            f"Cannot move from {current.value} back to {target.value}"
        )


def _build_event(template, application_id: uuid.UUID) -> NotificationEvent:
    notification_type, audience, message = template
    return NotificationEvent(
        notification_type=notification_type,
        message=message.format(application_id=application_id),
        application_id=application_id,
        audience=audience,
    )


@dataclass
class _Pair:
    """Locked application, its investments, and the record the caller named."""

    application: Any
    investments: list
    kind: RecordKind
    addressed: Any

    @property
    def investment(self):
        """Investment the pair's status is reported for."""
        if self.kind == RecordKind.INVESTMENT:
            return self.addressed
        return next((i for i in self.investments if not i.status.is_terminal), None)


@dataclass
class _Step:
    result: TransitionResult
    events: list[NotificationEvent] = field(default_factory=list)


class TransitionEngine:
    """Validates and applies lifecycle changes for one session."""

    def __init__(self, store, *, outbox: NotificationOutbox | None = None):
        self.store = store
        self.port = TransitionPort(store)
        self.outbox = outbox

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    async def apply_transition(
        self,
        record_id,
        target,
        *,
        kind: RecordKind = RecordKind.INVESTMENT,
        metadata: dict | None = None,
    ) -> TransitionResult:
        """Move the record ``record_id`` (an investment or an application) to ``target``.

        ``metadata`` is logged but not stored.
        """
        record_uuid = parse_record_id(record_id)
        kind = _parse_enum(RecordKind, kind, "record kind")
        stage = _parse_enum(LifecycleStage, target, "status")
        if stage.view(kind) is None:
            raise ValidationError(f"{stage.value} is not a {kind.value} status")
        if metadata:
            logger.info("Transition metadata for %s %s: %s", kind.value, record_uuid, metadata)

        step = await self._in_unit_of_work(self._transition_step, record_uuid, kind, stage)
        self._publish(step.events)
        return step.result

    async def activate_investment(self, investment_id) -> TransitionResult:
        return await self.apply_transition(
            investment_id, LifecycleStage.ACTIVE, kind=RecordKind.INVESTMENT
        )

    async def send_promissory_note(self, investment_id) -> TransitionResult:
        """Mark the note sent and make sure a pending note signature exists."""
        investment_uuid = parse_record_id(investment_id)
        step = await self._in_unit_of_work(self._send_note_step, investment_uuid)
        self._publish(step.events)
        return step.result

    async def fast_track(self, investment_id) -> TransitionResult:
        """Verify note and funds together: straight to ``plaid_pending``.

        Only a sent or signed promissory note can be fast-tracked.
        """
        investment_uuid = parse_record_id(investment_id)
        step = await self._in_unit_of_work(self._fast_track_step, investment_uuid)
        self._publish(step.events)
        return step.result

    async def record_signature(
        self,
        application_id,
        document_type,
        status,
        *,
        auto_complete: bool = True,
        notify_admin: bool = True,
    ) -> SignatureResult:
        """Upsert a document signature, advancing the application on investor signature.

        The signature and the coupled status change commit together; if
        either write cannot be made the whole call fails with
        PersistenceFailure and nothing is stored.
        """
        application_uuid = parse_record_id(application_id)
        document_type = _parse_enum(DocumentType, document_type, "document type")
        status = _parse_enum(SignatureStatus, status, "signature status")

        result, events = await self._in_unit_of_work(
            self._signature_step,
            application_uuid,
            document_type,
            status,
            auto_complete,
            notify_admin,
        )
        self._publish(events)
        return result

    # ------------------------------------------------------------------
    # Steps (run inside one transaction)
    # ------------------------------------------------------------------

    async def _transition_step(self, record_id, kind, stage) -> _Step:
        pair = await self._lock_pair(record_id, kind)
        return await self._advance(pair, stage)

    async def _send_note_step(self, investment_id) -> _Step:
        pair = await self._lock_pair(investment_id, RecordKind.INVESTMENT)
        step = await self._advance(pair, LifecycleStage.PROMISSORY_NOTE_SENT)
        if step.result.outcome == TransitionOutcome.NOOP:
            return step

        application_id = pair.application.id
        existing = await self.store.get_signature(application_id, DocumentType.PROMISSORY_NOTE)
        if existing is None:
            port_result = await self.port.ensure_signature(
                application_id, DocumentType.PROMISSORY_NOTE, SignatureStatus.PENDING
            )
            self._raise_if_failed(port_result)
            if port_result.outcome == PortOutcome.DEGRADED:
                step.result = step.result.model_copy(
                    update={
                        "outcome": TransitionOutcome.DEGRADED,
                        "warning": _join(step.result.warning, port_result.warning),
                    }
                )
        return step

    async def _fast_track_step(self, investment_id) -> _Step:
        pair = await self._lock_pair(investment_id, RecordKind.INVESTMENT)
        investment = pair.addressed
        if investment.status != LifecycleStage.PLAID_PENDING and not _can_fast_track(pair):
            raise StaleTransitionError(
                f"Fast track needs a sent or signed promissory note, "
                f"investment is {investment.status.value}"
            )
        return await self._advance(
            pair, LifecycleStage.PLAID_PENDING, notification=FAST_TRACK_NOTIFICATION
        )

    async def _signature_step(
        self, application_id, document_type, status, auto_complete, notify_admin
    ) -> tuple[SignatureResult, list[NotificationEvent]]:
        pair = await self._lock_pair(application_id, RecordKind.APPLICATION)
        application = pair.application
        if application.status.is_cancellation:
            raise StaleTransitionError(f"Application is closed ({application.status.value})")

        existing = await self.store.get_signature(application_id, document_type)
        if existing is not None and existing.status == status:
            logger.info(
                "Signature %s for application %s already %s",
                document_type.value,
                application_id,
                status.value,
            )
            return (
                SignatureResult(
                    application_id=application_id,
                    document_type=document_type,
                    status=status,
                    outcome=TransitionOutcome.NOOP,
                    application_status=application.status,
                ),
                [],
            )

        port_result = await self.port.ensure_signature(application_id, document_type, status)
        self._raise_if_failed(port_result)
        warnings = [port_result.warning] if port_result.warning else []
        events: list[NotificationEvent] = []

        coupled = None
        coupled_applied = False
        if status == SignatureStatus.INVESTOR_SIGNED and auto_complete:
            coupled = SIGNATURE_COUPLING[document_type]
            if application.status.precedes(coupled):
                step = await self._advance(pair, coupled)
                coupled_applied = step.result.outcome != TransitionOutcome.NOOP
                if step.result.warning:
                    warnings.append(step.result.warning)
                events.extend(step.events)
            else:
                logger.info(
                    "Application %s already at %s; %s signature does not move it",
                    application_id,
                    application.status.value,
                    document_type.value,
                )

        if status == SignatureStatus.INVESTOR_SIGNED and notify_admin:
            label = document_type.value.replace("_", " ")
            events.append(
                NotificationEvent(
                    notification_type=f"{document_type.value}_signed",
                    message=f"Investor has signed the {label} for application {application_id}",
                    application_id=application_id,
                    audience=NotificationAudience.ADMIN,
                )
            )

        result = SignatureResult(
            application_id=application_id,
            document_type=document_type,
            status=status,
            outcome=TransitionOutcome.DEGRADED if warnings else TransitionOutcome.APPLIED,
            application_status=application.status,
            coupled_status=coupled,
            coupled_transition_applied=coupled_applied,
            notification_type=events[-1].notification_type if events else None,
            warning="; ".join(warnings) or None,
        )
        return result, events

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _in_unit_of_work(self, step, *args):
        """Run ``step`` and commit, or roll back and re-raise on any workflow error."""
        try:
            outcome = await step(*args)
            await self.store.commit()
        except OnboardingError:
            await self.store.rollback()
            raise
        return outcome

    async def _lock_pair(self, record_id: uuid.UUID, kind: RecordKind) -> _Pair:
        if kind == RecordKind.INVESTMENT:
            application_id = await self.store.application_id_for(record_id)
            if application_id is None:
                raise RecordNotFoundError(f"Investment {record_id} not found")
        else:
            application_id = record_id

        application = await self.store.lock_application(application_id)
        if application is None:
            raise RecordNotFoundError(f"Application {application_id} not found")
        investments = await self.store.investments_for(application_id)

        if kind == RecordKind.APPLICATION:
            return _Pair(application, investments, kind, application)
        addressed = next((i for i in investments if i.id == record_id), None)
        if addressed is None:
            raise RecordNotFoundError(f"Investment {record_id} not found")
        return _Pair(application, investments, kind, addressed)

    async def _advance(self, pair: _Pair, stage: LifecycleStage, *, notification=None) -> _Step:
        current = pair.addressed.status
        target = stage.view(pair.kind)
        if current == target and (current.is_terminal or not _moves_investments(pair, stage)):
            logger.info(
                "%s %s already %s; nothing to do", pair.kind.value, pair.addressed.id, current.value
            )
            return _Step(self._result(pair, stage, current, TransitionOutcome.NOOP))

        check_order(current, target)
        activate = pair.investment if stage == LifecycleStage.ACTIVE else None
        port_result = await self.port.set_stage(
            pair.application, pair.investments, stage, activate=activate
        )
        self._raise_if_failed(port_result)
        await self.store.refresh(pair.application, *pair.investments)

        outcome = (
            TransitionOutcome.DEGRADED
            if port_result.outcome == PortOutcome.DEGRADED
            else TransitionOutcome.APPLIED
        )
        template = notification or TRANSITION_NOTIFICATIONS.get(stage)
        events = [_build_event(template, pair.application.id)] if template else []
        logger.info(
            "%s %s moved %s -> %s (%s)",
            pair.kind.value,
            pair.addressed.id,
            current.value,
            target.value,
            outcome.value,
        )
        result = self._result(
            pair,
            stage,
            current,
            outcome,
            warning=port_result.warning,
            notification_type=events[0].notification_type if events else None,
        )
        return _Step(result, events)

    @staticmethod
    def _raise_if_failed(port_result: PortResult) -> None:
        if not port_result.succeeded:
            raise PersistenceFailure(port_result.error or "Write failed")

    @staticmethod
    def _result(pair, stage, previous, outcome, *, warning=None, notification_type=None):
        investment = pair.investment
        return TransitionResult(
            record_id=pair.addressed.id,
            kind=pair.kind,
            target_status=stage,
            previous_status=previous,
            status=pair.addressed.status,
            outcome=outcome,
            application_id=pair.application.id,
            application_status=pair.application.status,
            investment_id=investment.id if investment is not None else None,
            investment_status=investment.status if investment is not None else None,
            notification_type=notification_type,
            warning=warning,
        )

    def _publish(self, events: list[NotificationEvent]) -> None:
        for event in events:
            if self.outbox is None:
                logger.info("No outbox; dropping %s notification", event.notification_type)
                continue
            self.outbox.publish(event)


def _moves_investments(pair: _Pair, stage: LifecycleStage) -> bool:
    """True if an application-keyed ``stage`` still advances an open investment.

    The application view collapses several late stages onto one status, so
    the application alone cannot tell whether the pair is already there.
    """
    if pair.kind != RecordKind.APPLICATION:
        return False
    target = stage.view(RecordKind.INVESTMENT)
    return any(advances(i.status, target) for i in pair.investments)


def _can_fast_track(pair: _Pair) -> bool:
    if pair.addressed.status == LifecycleStage.PROMISSORY_NOTE_SENT:
        return True
    return (
        pair.application.status == LifecycleStage.DOCUMENTS_SIGNED
        and not LifecycleStage.DOCUMENTS_SIGNED.precedes(pair.addressed.status)
    )


def _join(*parts: str | None) -> str | None:
    return "; ".join(p for p in parts if p) or None


def build_engine(session: AsyncSession) -> TransitionEngine:
    """Engine bound to a request session and the app's notification outbox."""
    store = RecordStore(session, operation_timeout=settings.RECORD_STORE_OPERATION_TIMEOUT)
    return TransitionEngine(store, outbox=get_notification_outbox())
