# This project was developed with assistance from AI tools.
"""Onboarding workflow error taxonomy.

Validation and ordering errors are raised before anything is written.
``RemoteOperationFailure`` is recovered one level down by a compensating
write; only ``PersistenceFailure`` means the workflow did not advance.
"""


class OnboardingError(Exception):
    """Base class for workflow errors the API maps to problem responses."""


class ValidationError(OnboardingError, ValueError):
    """Missing or malformed input, rejected before any I/O."""


class RecordNotFoundError(OnboardingError, LookupError):
    """No application or investment with the given id."""


class StaleTransitionError(OnboardingError, ValueError):
    """Target stage is earlier than the record's current stage, or the record is closed."""


class RemoteOperationFailure(OnboardingError):
    """A named database operation was missing, rejected the call, or timed out."""


class PersistenceFailure(OnboardingError):
    """A direct write failed; the transaction was rolled back."""


class NotificationFailure(OnboardingError):
    """Notification delivery failed. Never leaves the dispatcher."""
