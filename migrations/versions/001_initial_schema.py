"""Initial schema: user_credits and redesign_history.

Revision ID: 001
Revises: (none)
Create Date: 2025-06-02
"""

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects.postgresql import JSONB, UUID

revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # --- user_credits ---
    op.create_table(
        "user_credits",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("user_id", sa.String(255), nullable=False, unique=True),
        sa.Column("tier", sa.String(20), server_default="free", nullable=False),
        sa.Column("credits_remaining", sa.Integer(), server_default="3", nullable=False),
        sa.Column("credits_monthly_limit", sa.Integer(), server_default="3", nullable=False),
        sa.Column("total_redesigns", sa.Integer(), server_default="0", nullable=False),
        sa.Column("subscription_started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("subscription_ends_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.CheckConstraint(
            "credits_remaining >= 0", name="ck_user_credits_remaining_non_negative"
        ),
        sa.CheckConstraint("credits_monthly_limit > 0", name="ck_user_credits_limit_positive"),
        sa.CheckConstraint("tier IN ('free', 'basic', 'pro')", name="ck_user_credits_tier"),
    )

    # --- redesign_history ---
    op.create_table(
        "redesign_history",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("user_id", sa.String(255), nullable=False),
        sa.Column("original_image_url", sa.Text(), nullable=False),
        sa.Column("redesigned_image_url", sa.Text(), nullable=False),
        sa.Column("style", sa.String(50), nullable=False),
        sa.Column(
            "customizations",
            JSONB(),
            server_default=sa.text("'{}'::jsonb"),
            nullable=False,
        ),
        sa.Column("is_favorite", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    )
    op.create_index(
        "idx_redesign_history_user_created", "redesign_history", ["user_id", "created_at"]
    )


def downgrade() -> None:
    op.drop_index("idx_redesign_history_user_created", table_name="redesign_history")
    op.drop_table("redesign_history")
    op.drop_table("user_credits")
