# This project was developed with assistance from AI tools.
"""Record store over the onboarding tables.

Two write styles share one session (and so one transaction):

1. ``call_operation`` -- the named, validated database functions created by
   the ``add_onboarding_operations`` migration. Each call runs inside a
   SAVEPOINT so a rejected call leaves the surrounding transaction usable.
2. ``write_status`` / ``write_signature`` -- raw field writes. Only the
   transition port uses these, to compensate for a failed named operation.

Nothing here commits implicitly; the caller decides when the unit of work ends.
"""

import logging
import uuid
from typing import Any

from investor_db import DocumentSignature, Investment, InvestmentApplication
from investor_db.enums import DocumentType, LifecycleStage, RecordKind, SignatureStatus
from sqlalchemy import func, select, text, update
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from .errors import PersistenceFailure, RemoteOperationFailure

logger = logging.getLogger(__name__)

# Operation name -> ordered (parameter, SQL type) pairs.
NAMED_OPERATIONS: dict[str, tuple[tuple[str, str], ...]] = {
    "update_onboarding_step": (
        ("p_application_id", "uuid"),
        ("p_new_status", "text"),
    ),
    "ensure_document_signature": (
        ("p_application_id", "uuid"),
        ("p_document_type", "text"),
        ("p_status", "text"),
    ),
    "activate_investment": (("p_investment_id", "uuid"),),
}

_MODELS = {
    RecordKind.APPLICATION: InvestmentApplication,
    RecordKind.INVESTMENT: Investment,
}


def _bind_value(value: Any) -> Any:
    # str-based enums go over the wire as their persisted value
    if isinstance(value, (LifecycleStage, DocumentType, SignatureStatus)):
        return value.value
    return value


def _operation_sql(name: str) -> str:
    args = ", ".join(f"CAST(:{param} AS {sql_type})" for param, sql_type in NAMED_OPERATIONS[name])
    return f"SELECT {name}({args})"


class RecordStore:
    """Row-level access to applications, investments and signatures."""

    def __init__(self, session: AsyncSession, *, operation_timeout: float | None = None):
        self.session = session
        self._timeout_ms = int(operation_timeout * 1000) if operation_timeout else None

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def lock_application(self, application_id: uuid.UUID) -> InvestmentApplication | None:
        """Load an application and hold its row lock until the transaction ends."""
        stmt = (
            select(InvestmentApplication)
            .where(InvestmentApplication.id == application_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.unique().scalar_one_or_none()

    async def application_id_for(self, investment_id: uuid.UUID) -> uuid.UUID | None:
        """Owning application of an investment, read without locking.

        Callers lock the application first and its investments second, so
        concurrent transitions on one pair always queue in the same order.
        """
        stmt = select(Investment.application_id).where(Investment.id == investment_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def investments_for(self, application_id: uuid.UUID) -> list[Investment]:
        """Locked investments of one application, newest first."""
        stmt = (
            select(Investment)
            .where(Investment.application_id == application_id)
            .order_by(Investment.created_at.desc())
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return list(result.unique().scalars().all())

    async def get_signature(
        self,
        application_id: uuid.UUID,
        document_type: DocumentType,
    ) -> DocumentSignature | None:
        stmt = select(DocumentSignature).where(
            DocumentSignature.application_id == application_id,
            DocumentSignature.document_type == document_type,
        )
        result = await self.session.execute(stmt)
        return result.unique().scalar_one_or_none()

    # ------------------------------------------------------------------
    # Named operations
    # ------------------------------------------------------------------

    async def call_operation(self, name: str, **params: Any) -> Any:
        """Run a named database operation and return its scalar result.

        Raises:
            RemoteOperationFailure: the operation is unknown, was called with
                the wrong parameters, raised, or exceeded the statement timeout.
        """
        signature = NAMED_OPERATIONS.get(name)
        if signature is None:
            raise RemoteOperationFailure(f"Unknown operation {name}")
        expected = {param for param, _ in signature}
        if set(params) != expected:
            raise RemoteOperationFailure(
                f"{name} expects {sorted(expected)}, got {sorted(params)}"
            )

        bound = {key: _bind_value(value) for key, value in params.items()}
        try:
            async with self.session.begin_nested():
                if self._timeout_ms:
                    await self.session.execute(
                        text("SELECT set_config('statement_timeout', :timeout, true)"),
                        {"timeout": str(self._timeout_ms)},
                    )
                result = await self.session.execute(text(_operation_sql(name)), bound)
                value = result.scalar()
                if self._timeout_ms:
                    # set_config(..., true) lasts until commit; keep it to this call.
                    await self.session.execute(text("SET LOCAL statement_timeout = DEFAULT"))
        except SQLAlchemyError as exc:
            raise RemoteOperationFailure(f"{name} failed: {exc.__class__.__name__}") from exc

        logger.debug("Named operation %s(%s) returned %s", name, bound, value)
        return value

    # ------------------------------------------------------------------
    # Direct writes (compensation only)
    # ------------------------------------------------------------------

    async def write_status(
        self,
        kind: RecordKind,
        record_id: uuid.UUID,
        status: LifecycleStage,
    ) -> None:
        """Set ``status`` and ``updated_at`` on one row, without validation."""
        model = _MODELS[kind]
        stmt = (
            update(model)
            .where(model.id == record_id)
            .values(status=status, updated_at=func.now())
        )
        try:
            await self.session.execute(stmt)
        except SQLAlchemyError as exc:
            raise PersistenceFailure(
                f"Direct status write on {kind.value} {record_id} failed"
            ) from exc

    async def write_signature(
        self,
        application_id: uuid.UUID,
        document_type: DocumentType,
        status: SignatureStatus,
    ) -> None:
        """Upsert a signature on its natural key (application, document type)."""
        signed_at = func.now() if "signed" in status.value else None
        stmt = insert(DocumentSignature).values(
            id=uuid.uuid4(),
            application_id=application_id,
            document_type=document_type,
            status=status,
            signed_at=signed_at,
        )
        stmt = stmt.on_conflict_do_update(
            constraint="uq_signature_app_document",
            set_={
                "status": stmt.excluded.status,
                "signed_at": stmt.excluded.signed_at,
                "updated_at": func.now(),
            },
        )
        try:
            await self.session.execute(stmt)
        except SQLAlchemyError as exc:
            raise PersistenceFailure(
                f"Direct signature write for application {application_id} failed"
            ) from exc

    # ------------------------------------------------------------------
    # Unit of work
    # ------------------------------------------------------------------

    async def refresh(self, *records: Any) -> None:
        """Reload rows changed behind the ORM's back by SQL functions."""
        for record in records:
            if record is not None:
                await self.session.refresh(record)

    async def commit(self) -> None:
        try:
            await self.session.commit()
        except SQLAlchemyError as exc:
            await self.session.rollback()
            raise PersistenceFailure("Commit failed; nothing was applied") from exc

    async def rollback(self) -> None:
        await self.session.rollback()
