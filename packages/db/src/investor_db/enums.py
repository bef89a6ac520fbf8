# This project was developed with assistance from AI tools.
"""
Domain enums for the investment onboarding lifecycle.

Shared domain types used by both SQLAlchemy models (investor_db package)
and Pydantic schemas (investor_api package).

Applications and investments store different labels for overlapping
lifecycle stages. Both are modelled as projections of one canonical
``LifecycleStage`` so ordering rules are defined exactly once.
"""

import enum


class RecordKind(str, enum.Enum):
    APPLICATION = "application"
    INVESTMENT = "investment"


class LifecycleStage(str, enum.Enum):
    PENDING = "pending"
    PENDING_APPROVAL = "pending_approval"
    PROMISSORY_NOTE_PENDING = "promissory_note_pending"
    PROMISSORY_NOTE_SENT = "promissory_note_sent"
    DOCUMENTS_SIGNED = "documents_signed"
    BANK_DETAILS_PENDING = "bank_details_pending"
    FUNDS_PENDING = "funds_pending"
    PLAID_PENDING = "plaid_pending"
    INVESTOR_ONBOARDING_COMPLETE = "investor_onboarding_complete"
    PENDING_ACTIVATION = "pending_activation"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    REJECTED = "rejected"
    DELETED = "deleted"

    @classmethod
    def cancellation_stages(cls) -> frozenset["LifecycleStage"]:
        """Exits accepted from any non-terminal stage."""
        return frozenset({cls.CANCELLED, cls.REJECTED, cls.DELETED})

    @classmethod
    def terminal_stages(cls) -> frozenset["LifecycleStage"]:
        """Stages a record never leaves."""
        return cls.cancellation_stages() | {cls.COMPLETED}

    @classmethod
    def investment_statuses(cls) -> frozenset["LifecycleStage"]:
        """Persisted vocabulary of ``investments.status``."""
        return frozenset(s for s in _INVESTMENT_VIEW.values() if s is not None)

    @classmethod
    def application_statuses(cls) -> frozenset["LifecycleStage"]:
        """Persisted vocabulary of ``investment_applications.status``."""
        return frozenset(s for s in _APPLICATION_VIEW.values() if s is not None)

    @property
    def rank(self) -> int | None:
        """Position in the canonical ordering; None for cancellation exits."""
        return _RANK.get(self)

    @property
    def is_terminal(self) -> bool:
        return self in LifecycleStage.terminal_stages()

    @property
    def is_cancellation(self) -> bool:
        return self in LifecycleStage.cancellation_stages()

    def view(self, kind: RecordKind) -> "LifecycleStage | None":
        """Project this stage onto the vocabulary stored by ``kind``.

        Returns None when that record kind has no status for this stage and
        should be left unchanged.
        """
        if kind == RecordKind.INVESTMENT:
            return _INVESTMENT_VIEW[self]
        return _APPLICATION_VIEW[self]

    def precedes(self, other: "LifecycleStage") -> bool:
        """True if this stage sits strictly earlier than ``other``.

        Cancellation exits are unordered and never precede anything.
        """
        if self.rank is None or other.rank is None:
            return False
        return self.rank < other.rank


_RANK: dict[LifecycleStage, int] = {
    LifecycleStage.PENDING: 0,
    LifecycleStage.PENDING_APPROVAL: 1,
    LifecycleStage.PROMISSORY_NOTE_PENDING: 2,
    LifecycleStage.PROMISSORY_NOTE_SENT: 3,
    LifecycleStage.DOCUMENTS_SIGNED: 3,
    LifecycleStage.BANK_DETAILS_PENDING: 4,
    LifecycleStage.FUNDS_PENDING: 5,
    LifecycleStage.PLAID_PENDING: 6,
    LifecycleStage.INVESTOR_ONBOARDING_COMPLETE: 7,
    LifecycleStage.PENDING_ACTIVATION: 8,
    LifecycleStage.ACTIVE: 9,
    LifecycleStage.COMPLETED: 10,
}

_INVESTMENT_VIEW: dict[LifecycleStage, LifecycleStage | None] = {
    LifecycleStage.PENDING: LifecycleStage.PENDING,
    LifecycleStage.PENDING_APPROVAL: LifecycleStage.PENDING_APPROVAL,
    LifecycleStage.PROMISSORY_NOTE_PENDING: LifecycleStage.PROMISSORY_NOTE_PENDING,
    LifecycleStage.PROMISSORY_NOTE_SENT: LifecycleStage.PROMISSORY_NOTE_SENT,
    LifecycleStage.DOCUMENTS_SIGNED: None,
    LifecycleStage.BANK_DETAILS_PENDING: LifecycleStage.BANK_DETAILS_PENDING,
    LifecycleStage.FUNDS_PENDING: LifecycleStage.FUNDS_PENDING,
    LifecycleStage.PLAID_PENDING: LifecycleStage.PLAID_PENDING,
    LifecycleStage.INVESTOR_ONBOARDING_COMPLETE: LifecycleStage.INVESTOR_ONBOARDING_COMPLETE,
    LifecycleStage.PENDING_ACTIVATION: LifecycleStage.PENDING_ACTIVATION,
    LifecycleStage.ACTIVE: LifecycleStage.ACTIVE,
    LifecycleStage.COMPLETED: LifecycleStage.COMPLETED,
    LifecycleStage.CANCELLED: LifecycleStage.CANCELLED,
    LifecycleStage.REJECTED: LifecycleStage.CANCELLED,
    LifecycleStage.DELETED: LifecycleStage.CANCELLED,
}

_APPLICATION_VIEW: dict[LifecycleStage, LifecycleStage | None] = {
    LifecycleStage.PENDING: None,
    LifecycleStage.PENDING_APPROVAL: None,
    LifecycleStage.PROMISSORY_NOTE_PENDING: LifecycleStage.PROMISSORY_NOTE_PENDING,
    LifecycleStage.PROMISSORY_NOTE_SENT: LifecycleStage.PROMISSORY_NOTE_PENDING,
    LifecycleStage.DOCUMENTS_SIGNED: LifecycleStage.DOCUMENTS_SIGNED,
    LifecycleStage.BANK_DETAILS_PENDING: LifecycleStage.BANK_DETAILS_PENDING,
    LifecycleStage.FUNDS_PENDING: LifecycleStage.FUNDS_PENDING,
    LifecycleStage.PLAID_PENDING: LifecycleStage.PLAID_PENDING,
    LifecycleStage.INVESTOR_ONBOARDING_COMPLETE: LifecycleStage.PLAID_PENDING,
    LifecycleStage.PENDING_ACTIVATION: LifecycleStage.PLAID_PENDING,
    LifecycleStage.ACTIVE: LifecycleStage.ACTIVE,
    LifecycleStage.COMPLETED: LifecycleStage.ACTIVE,
    LifecycleStage.CANCELLED: LifecycleStage.CANCELLED,
    LifecycleStage.REJECTED: LifecycleStage.REJECTED,
    LifecycleStage.DELETED: LifecycleStage.DELETED,
}


class PaymentFrequency(str, enum.Enum):
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    ANNUAL = "annual"

    @property
    def months(self) -> int:
        """Length of one payment period in months."""
        return {"monthly": 1, "quarterly": 3, "annual": 12}[self.value]


class DocumentType(str, enum.Enum):
    PROMISSORY_NOTE = "promissory_note"
    SUBSCRIPTION_AGREEMENT = "subscription_agreement"


class SignatureStatus(str, enum.Enum):
    PENDING = "pending"
    INVESTOR_SIGNED = "investor_signed"
    SIGNED = "signed"


class NotificationAudience(str, enum.Enum):
    ADMIN = "admin"
    INVESTOR = "investor"


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    INVESTOR = "investor"
