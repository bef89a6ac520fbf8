# This project was developed with assistance from AI tools.
"""add named onboarding operations

Revision ID: 8d2e4b6a1c35
Revises: 3f1a9c2e7b10
Create Date: 2026-09-30

Validated database functions the API calls as its primary write path.
The ranking and view helpers mirror ``investor_db.enums.LifecycleStage``.
"""

from alembic import op

revision = "8d2e4b6a1c35"
down_revision = "3f1a9c2e7b10"
branch_labels = None
depends_on = None

STAGE_RANK = """
CREATE OR REPLACE FUNCTION onboarding_stage_rank(p_status text)
RETURNS integer AS $$
    SELECT CASE p_status
        WHEN 'pending' THEN 0
        WHEN 'pending_approval' THEN 1
        WHEN 'promissory_note_pending' THEN 2
        WHEN 'promissory_note_sent' THEN 3
        WHEN 'documents_signed' THEN 3
        WHEN 'bank_details_pending' THEN 4
        WHEN 'funds_pending' THEN 5
        WHEN 'plaid_pending' THEN 6
        WHEN 'investor_onboarding_complete' THEN 7
        WHEN 'pending_activation' THEN 8
        WHEN 'active' THEN 9
        WHEN 'completed' THEN 10
        ELSE NULL
    END;
$$ LANGUAGE sql IMMUTABLE;
"""

INVESTMENT_VIEW = """
CREATE OR REPLACE FUNCTION onboarding_investment_view(p_status text)
RETURNS text AS $$
    SELECT CASE
        WHEN p_status = 'documents_signed' THEN NULL
        WHEN p_status IN ('rejected', 'deleted') THEN 'cancelled'
        ELSE p_status
    END;
$$ LANGUAGE sql IMMUTABLE;
"""

APPLICATION_VIEW = """
CREATE OR REPLACE FUNCTION onboarding_application_view(p_status text)
RETURNS text AS $$
    SELECT CASE
        WHEN p_status IN ('pending', 'pending_approval') THEN NULL
        WHEN p_status = 'promissory_note_sent' THEN 'promissory_note_pending'
        WHEN p_status IN ('investor_onboarding_complete', 'pending_activation') THEN 'plaid_pending'
        WHEN p_status = 'completed' THEN 'active'
        ELSE p_status
    END;
$$ LANGUAGE sql IMMUTABLE;
"""

UPDATE_ONBOARDING_STEP = """
CREATE OR REPLACE FUNCTION update_onboarding_step(p_application_id uuid, p_new_status text)
RETURNS text AS $$
DECLARE
    v_current text;
    v_app_status text;
    v_inv_status text;
BEGIN
    SELECT status INTO v_current
    FROM investment_applications
    WHERE id = p_application_id
    FOR UPDATE;

    IF NOT FOUND THEN
        RAISE EXCEPTION 'application % not found', p_application_id;
    END IF;

    IF onboarding_stage_rank(p_new_status) IS NULL
       AND p_new_status NOT IN ('cancelled', 'rejected', 'deleted') THEN
        RAISE EXCEPTION 'unknown onboarding status %', p_new_status;
    END IF;

    IF v_current IN ('cancelled', 'rejected', 'deleted') THEN
        RAISE EXCEPTION 'application % is closed (%)', p_application_id, v_current;
    END IF;

    v_app_status := onboarding_application_view(p_new_status);
    v_inv_status := onboarding_investment_view(p_new_status);

    -- Neither side of the pair moves backwards; cancellations have no rank.
    IF onboarding_stage_rank(v_app_status) < onboarding_stage_rank(v_current) THEN
        v_app_status := NULL;
    END IF;

    IF v_app_status IS NOT NULL THEN
        UPDATE investment_applications
        SET status = v_app_status, updated_at = now()
        WHERE id = p_application_id;
    END IF;

    IF v_inv_status IS NOT NULL THEN
        UPDATE investments
        SET status = v_inv_status, updated_at = now()
        WHERE application_id = p_application_id
          AND status NOT IN ('completed', 'cancelled')
          AND (
              v_inv_status = 'cancelled'
              OR onboarding_stage_rank(status) <= onboarding_stage_rank(v_inv_status)
          );
    END IF;

    RETURN coalesce(v_app_status, v_current);
END;
$$ LANGUAGE plpgsql;
"""

ACTIVATE_INVESTMENT = """
CREATE OR REPLACE FUNCTION activate_investment(p_investment_id uuid)
RETURNS uuid AS $$
DECLARE
    v_application_id uuid;
    v_status text;
BEGIN
    SELECT application_id, status INTO v_application_id, v_status
    FROM investments
    WHERE id = p_investment_id
    FOR UPDATE;

    IF NOT FOUND THEN
        RAISE EXCEPTION 'investment % not found', p_investment_id;
    END IF;

    IF v_status IN ('completed', 'cancelled') THEN
        RAISE EXCEPTION 'investment % is closed (%)', p_investment_id, v_status;
    END IF;

    UPDATE investments
    SET status = 'active',
        start_date = coalesce(start_date, current_date),
        updated_at = now()
    WHERE id = p_investment_id;

    UPDATE investment_applications
    SET status = 'active', updated_at = now()
    WHERE id = v_application_id
      AND status NOT IN ('cancelled', 'rejected', 'deleted');

    RETURN p_investment_id;
END;
$$ LANGUAGE plpgsql;
"""

ENSURE_DOCUMENT_SIGNATURE = """
CREATE OR REPLACE FUNCTION ensure_document_signature(
    p_application_id uuid, p_document_type text, p_status text
)
RETURNS uuid AS $$
DECLARE
    v_id uuid;
BEGIN
    IF p_document_type NOT IN ('promissory_note', 'subscription_agreement') THEN
        RAISE EXCEPTION 'unknown document type %', p_document_type;
    END IF;

    IF p_status NOT IN ('pending', 'investor_signed', 'signed') THEN
        RAISE EXCEPTION 'unknown signature status %', p_status;
    END IF;

    PERFORM 1 FROM investment_applications WHERE id = p_application_id;
    IF NOT FOUND THEN
        RAISE EXCEPTION 'application % not found', p_application_id;
    END IF;

    INSERT INTO document_signatures (
        id, application_id, document_type, status, signed_at, created_at, updated_at
    )
    VALUES (
        gen_random_uuid(), p_application_id, p_document_type, p_status,
        CASE WHEN p_status LIKE '%signed' THEN now() END, now(), now()
    )
    ON CONFLICT (application_id, document_type) DO UPDATE
    SET status = EXCLUDED.status,
        signed_at = EXCLUDED.signed_at,
        updated_at = now()
    RETURNING id INTO v_id;

    RETURN v_id;
END;
$$ LANGUAGE plpgsql;
"""


def upgrade() -> None:
    op.execute(STAGE_RANK)
    op.execute(INVESTMENT_VIEW)
    op.execute(APPLICATION_VIEW)
    op.execute(UPDATE_ONBOARDING_STEP)
    op.execute(ACTIVATE_INVESTMENT)
    op.execute(ENSURE_DOCUMENT_SIGNATURE)


def downgrade() -> None:
    op.execute("DROP FUNCTION IF EXISTS ensure_document_signature(uuid, text, text)")
    op.execute("DROP FUNCTION IF EXISTS activate_investment(uuid)")
    op.execute("DROP FUNCTION IF EXISTS update_onboarding_step(uuid, text)")
    op.execute("DROP FUNCTION IF EXISTS onboarding_application_view(text)")
    op.execute("DROP FUNCTION IF EXISTS onboarding_investment_view(text)")
    op.execute("DROP FUNCTION IF EXISTS onboarding_stage_rank(text)")
