"""create adaptation_jobs table

Revision ID: 20261018_0001
Revises:
Create Date: 2026-10-18 10:30:00
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "20261018_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "adaptation_jobs",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("marketplace", sa.String(length=50), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("total_items", sa.Integer(), nullable=False),
        sa.Column("items_processed", sa.Integer(), nullable=False),
        sa.Column("items_successful", sa.Integer(), nullable=False),
        sa.Column("items_failed", sa.Integer(), nullable=False),
        sa.Column("average_confidence", sa.Float(), nullable=True),
        sa.Column("current_step", sa.String(length=255), nullable=True),
        sa.Column("request_payload", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("result_payload", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_adaptation_jobs"),
    )
    op.create_index("ix_adaptation_jobs_created_at", "adaptation_jobs", ["created_at"], unique=False)
    op.create_index("ix_adaptation_jobs_marketplace", "adaptation_jobs", ["marketplace"], unique=False)
    op.create_index(
        "ix_adaptation_jobs_marketplace_status",
        "adaptation_jobs",
        ["marketplace", "status"],
        unique=False,
    )
    op.create_index("ix_adaptation_jobs_status", "adaptation_jobs", ["status"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_adaptation_jobs_status", table_name="adaptation_jobs")
    op.drop_index("ix_adaptation_jobs_marketplace_status", table_name="adaptation_jobs")
    op.drop_index("ix_adaptation_jobs_marketplace", table_name="adaptation_jobs")
    op.drop_index("ix_adaptation_jobs_created_at", table_name="adaptation_jobs")
    op.drop_table("adaptation_jobs")
