# This project was developed with assistance from AI tools.
"""add onboarding models

Revision ID: 3f1a9c2e7b10
Revises:
Create Date: 2026-09-28 10:12:41.218803

"""

import sqlalchemy as sa
from alembic import op

revision = "3f1a9c2e7b10"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "investment_applications",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.String(255), nullable=False),
        sa.Column("investment_amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("annual_percentage", sa.Numeric(5, 2), nullable=False),
        sa.Column("payment_frequency", sa.String(40), nullable=False, server_default="monthly"),
        sa.Column("term_months", sa.Integer(), nullable=False),
        sa.Column(
            "status", sa.String(40), nullable=False, server_default="promissory_note_pending",
        ),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False,
        ),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_investment_applications_user_id", "investment_applications", ["user_id"],
    )

    op.create_table(
        "investments",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("application_id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.String(255), nullable=False),
        sa.Column("amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("annual_percentage", sa.Numeric(5, 2), nullable=False),
        sa.Column("payment_frequency", sa.String(40), nullable=False, server_default="monthly"),
        sa.Column("term_months", sa.Integer(), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=True),
        sa.Column("status", sa.String(40), nullable=False, server_default="pending"),
        sa.Column("total_expected_return", sa.Numeric(14, 2), nullable=True),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False,
        ),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False,
        ),
        sa.ForeignKeyConstraint(
            ["application_id"], ["investment_applications.id"], ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_investments_application_id", "investments", ["application_id"])
    op.create_index("ix_investments_user_id", "investments", ["user_id"])

    op.create_table(
        "document_signatures",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("application_id", sa.Uuid(), nullable=False),
        sa.Column("document_type", sa.String(40), nullable=False),
        sa.Column("status", sa.String(40), nullable=False, server_default="pending"),
        sa.Column("signed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("document_url", sa.Text(), nullable=True),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False,
        ),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False,
        ),
        sa.ForeignKeyConstraint(
            ["application_id"], ["investment_applications.id"], ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "application_id", "document_type", name="uq_signature_app_document",
        ),
    )
    op.create_index(
        "ix_document_signatures_application_id", "document_signatures", ["application_id"],
    )


def downgrade() -> None:
    op.drop_table("document_signatures")
    op.drop_table("investments")
    op.drop_table("investment_applications")
