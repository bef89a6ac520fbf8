# This project was developed with assistance from AI tools.
"""
Investor onboarding -- domain models

Investment applications, the funded investments created from them, and the
document signatures collected along the way.
"""

import uuid

from sqlalchemy import (
    Column,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    func,
)
from sqlalchemy.orm import relationship

from .database import Base
from .enums import DocumentType, LifecycleStage, PaymentFrequency, SignatureStatus


def _values(enum_cls):
    # Persist enum values ("plaid_pending"), not member names ("PLAID_PENDING").
    return [member.value for member in enum_cls]


def _enum_column(enum_cls, name: str) -> Enum:
    return Enum(
        enum_cls,
        name=name,
        native_enum=False,
        length=40,
        values_callable=_values,
        validate_strings=True,
    )


class InvestmentApplication(Base):
    """An investor's request to commit funds, prior to funding."""

    __tablename__ = "investment_applications"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(String(255), nullable=False, index=True)
    investment_amount = Column(Numeric(14, 2), nullable=False)
    annual_percentage = Column(Numeric(5, 2), nullable=False)
    payment_frequency = Column(
        _enum_column(PaymentFrequency, "payment_frequency"),
        nullable=False,
        default=PaymentFrequency.MONTHLY,
    )
    term_months = Column(Integer, nullable=False)
    status = Column(
        _enum_column(LifecycleStage, "application_status"),
        nullable=False,
        default=LifecycleStage.PROMISSORY_NOTE_PENDING,
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    investments = relationship(
        "Investment", back_populates="application", cascade="all, delete-orphan",
    )
    signatures = relationship(
        "DocumentSignature", back_populates="application", cascade="all, delete-orphan",
    )

    def __repr__(self):
        return f"<InvestmentApplication(id={self.id}, status='{self.status}')>"


class Investment(Base):
    """Funded commitment tracked from onboarding through activation."""

    __tablename__ = "investments"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    application_id = Column(
        Uuid, ForeignKey("investment_applications.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    user_id = Column(String(255), nullable=False, index=True)
    amount = Column(Numeric(14, 2), nullable=False)
    annual_percentage = Column(Numeric(5, 2), nullable=False)
    payment_frequency = Column(
        _enum_column(PaymentFrequency, "payment_frequency"),
        nullable=False,
        default=PaymentFrequency.MONTHLY,
    )
    term_months = Column(Integer, nullable=False)
    start_date = Column(Date, nullable=True)
    status = Column(
        _enum_column(LifecycleStage, "investment_status"),
        nullable=False,
        default=LifecycleStage.PENDING,
    )
    total_expected_return = Column(Numeric(14, 2), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    application = relationship("InvestmentApplication", back_populates="investments")

    def __repr__(self):
        return f"<Investment(id={self.id}, status='{self.status}', amount={self.amount})>"


class DocumentSignature(Base):
    """Signature state of one onboarding document for one application."""

    __tablename__ = "document_signatures"
    __table_args__ = (
        UniqueConstraint("application_id", "document_type", name="uq_signature_app_document"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    application_id = Column(
        Uuid, ForeignKey("investment_applications.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    document_type = Column(_enum_column(DocumentType, "document_type"), nullable=False)
    status = Column(
        _enum_column(SignatureStatus, "signature_status"),
        nullable=False,
        default=SignatureStatus.PENDING,
    )
    signed_at = Column(DateTime(timezone=True), nullable=True)
    # Populated by the e-signature integration.
    document_url = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    application = relationship("InvestmentApplication", back_populates="signatures")

    def __repr__(self):
        return (
            f"<DocumentSignature(app_id={self.application_id}, "
            f"type='{self.document_type}', status='{self.status}')>"
        )
