# This project was developed with assistance from AI tools.
__version__ = "0.1.0"

from .database import Base, DatabaseService, get_db, get_db_service
from .enums import (
    DocumentType,
    LifecycleStage,
    NotificationAudience,
    PaymentFrequency,
    RecordKind,
    SignatureStatus,
    UserRole,
)
from .models import DocumentSignature, Investment, InvestmentApplication

__all__ = [
    "Base",
    "DatabaseService",
    "get_db",
    "get_db_service",
    "__version__",
    # Enums
    "LifecycleStage",
    "RecordKind",
    "PaymentFrequency",
    "DocumentType",
    "SignatureStatus",
    "NotificationAudience",
    "UserRole",
    # Models
    "InvestmentApplication",
    "Investment",
    "DocumentSignature",
]
