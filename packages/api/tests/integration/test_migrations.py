# This project was developed with assistance from AI tools.
"""Schema integrity tests after alembic upgrade head."""

import pytest
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError

pytestmark = pytest.mark.integration


async def test_onboarding_tables_exist(db_session):
    result = await db_session.execute(
        text("SELECT tablename FROM pg_tables WHERE schemaname = 'public' ORDER BY tablename")
    )
    tables = {row[0] for row in result.fetchall()}
    missing = {"investment_applications", "investments", "document_signatures"} - tables
    assert not missing, f"Missing tables: {missing}"


async def test_named_operations_exist(db_session):
    result = await db_session.execute(
        text(
            "SELECT proname FROM pg_proc p "
            "JOIN pg_namespace n ON n.oid = p.pronamespace "
            "WHERE n.nspname = 'public'"
        )
    )
    functions = {row[0] for row in result.fetchall()}
    expected = {
        "onboarding_stage_rank",
        "onboarding_investment_view",
        "onboarding_application_view",
        "update_onboarding_step",
        "activate_investment",
        "ensure_document_signature",
    }
    missing = expected - functions
    assert not missing, f"Missing functions: {missing}"


async def test_stage_rank_matches_lifecycle(db_session):
    from investor_db.enums import LifecycleStage

    for stage in LifecycleStage:
        result = await db_session.execute(
            text("SELECT onboarding_stage_rank(:s)"), {"s": stage.value}
        )
        assert result.scalar() == stage.rank, stage


async def test_one_signature_per_document(db_session):
    """Duplicate (application_id, document_type) raises IntegrityError."""
    from investor_db import DocumentSignature
    from investor_db.enums import DocumentType, LifecycleStage

    from .conftest import create_pair

    pair = await create_pair(db_session, LifecycleStage.PROMISSORY_NOTE_PENDING)
    for _ in range(2):
        db_session.add(
            DocumentSignature(
                application_id=pair.application.id,
                document_type=DocumentType.PROMISSORY_NOTE,
            )
        )
    with pytest.raises(IntegrityError):
        await db_session.flush()
