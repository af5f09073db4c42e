# ruff: noqa: I001
"""Expense ledger and audit log tables.

Revision ID: 0001_expenses_core
Revises: None
Create Date: 2025-11-02
"""

from __future__ import annotations

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = "0001_expenses_core"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "expenses",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("currency", sa.String(3), nullable=False, server_default=sa.text("'PLN'")),
        sa.Column("category", sa.String(50), nullable=False),
        sa.Column("shop", sa.String(255), nullable=False),
        sa.Column("user_name", sa.String(50), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column("source", sa.String(50), nullable=False),
        sa.Column("raw_input", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'active'")),
        sa.Column("content_hash", sa.String(255), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        # Spans every status: soft-deleted rows still block re-import.
        sa.UniqueConstraint("content_hash", name="unique_hash"),
        sa.CheckConstraint("status in ('active','deleted')", name="ck_expenses_status"),
        sa.CheckConstraint("amount > 0", name="ck_expenses_amount_positive"),
    )
    op.create_index("idx_expenses_user", "expenses", ["user_name"])
    op.create_index("idx_expenses_date", "expenses", ["date"])
    op.create_index("idx_expenses_category", "expenses", ["category"])
    op.create_index("idx_expenses_status", "expenses", ["status"])

    op.create_table(
        "audit_log",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column(
            "timestamp",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column("action", sa.String(50), nullable=False),
        sa.Column("details", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("user_id", sa.String(50), nullable=True),
        sa.Column("subject_id", sa.String(50), nullable=True),
    )
    op.create_index("idx_audit_timestamp", "audit_log", ["timestamp"])
    op.create_index("idx_audit_action", "audit_log", ["action"])
    op.create_index("idx_audit_user", "audit_log", ["user_id"])


def downgrade() -> None:
    op.drop_index("idx_audit_user", table_name="audit_log")
    op.drop_index("idx_audit_action", table_name="audit_log")
    op.drop_index("idx_audit_timestamp", table_name="audit_log")
    op.drop_table("audit_log")

    op.drop_index("idx_expenses_status", table_name="expenses")
    op.drop_index("idx_expenses_category", table_name="expenses")
    op.drop_index("idx_expenses_date", table_name="expenses")
    op.drop_index("idx_expenses_user", table_name="expenses")
    op.drop_table("expenses")
