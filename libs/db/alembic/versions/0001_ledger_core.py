# ruff: noqa: I001
"""Ledger core tables and seed categories.

Revision ID: 0001_ledger_core
Revises: None
Create Date: 2025-11-02
"""

from __future__ import annotations  # ruff: noqa: I001

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op


# revision identifiers, used by Alembic.
revision: str = "0001_ledger_core"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

_PK = sa.BigInteger().with_variant(sa.Integer(), "sqlite")

# Top-level defaults; "Credit Card Bill" receives card bill-payment SMS hints.
DEFAULT_CATEGORIES: tuple[tuple[str, str], ...] = (
    ("Food & Dining", "🍽"),
    ("Shopping", "🛍"),
    ("Transport", "🚗"),
    ("Bills", "📄"),
    ("Entertainment", "🎬"),
    ("Health", "💊"),
    ("Education", "📚"),
    ("Groceries", "🛒"),
    ("Salary", "💰"),
    ("Investment", "📈"),
    ("Rent", "🏠"),
    ("Transfer", "↔"),
    ("Credit Card Bill", "💳"),
    ("Settlement", "🤝"),
    ("Other", "•"),
)


def upgrade() -> None:
    # ps_categories
    op.create_table(
        "ps_categories",
        sa.Column("id", _PK, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("parent_id", _PK, nullable=True),
        sa.Column("emoji", sa.String(), nullable=False, server_default=sa.text("''")),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.ForeignKeyConstraint(["parent_id"], ["ps_categories.id"]),
    )

    op.bulk_insert(
        sa.table(
            "ps_categories",
            sa.column("name", sa.String()),
            sa.column("emoji", sa.String()),
        ),
        [{"name": name, "emoji": emoji} for name, emoji in DEFAULT_CATEGORIES],
    )

    # ps_transactions
    op.create_table(
        "ps_transactions",
        sa.Column("id", _PK, primary_key=True, autoincrement=True),
        sa.Column("amount", sa.Numeric(18, 2), nullable=False),
        sa.Column("direction", sa.String(), nullable=False),
        sa.Column("merchant", sa.String(), nullable=True),
        sa.Column("source_tag", sa.String(), nullable=False),
        sa.Column("channel", sa.String(), nullable=False, server_default=sa.text("'sms'")),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("raw_text", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column("observed_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("category_id", _PK, nullable=True),
        sa.Column("suggested_category", sa.String(), nullable=True),
        sa.Column("is_pending", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("split_share", sa.Numeric(18, 2), nullable=True),
        sa.Column("split_total", sa.Numeric(18, 2), nullable=True),
        sa.Column("split_numerator", sa.Integer(), nullable=True),
        sa.Column("split_denominator", sa.Integer(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.ForeignKeyConstraint(["category_id"], ["ps_categories.id"], ondelete="SET NULL"),
        sa.CheckConstraint("amount > 0", name="ck_ps_transactions_amount_positive"),
        sa.CheckConstraint(
            "direction IN ('expense', 'income')", name="ck_ps_transactions_direction"
        ),
        sa.CheckConstraint(
            "channel IN ('sms', 'notification')", name="ck_ps_transactions_channel"
        ),
    )
    op.create_index(
        "ix_ps_transactions_pending_created",
        "ps_transactions",
        ["is_pending", "created_at"],
        unique=False,
    )

    # ps_payment_reminders
    op.create_table(
        "ps_payment_reminders",
        sa.Column("id", _PK, primary_key=True, autoincrement=True),
        sa.Column("package_name", sa.String(), nullable=False),
        sa.Column("app_name", sa.String(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
    )


def downgrade() -> None:
    op.drop_table("ps_payment_reminders")
    op.drop_index("ix_ps_transactions_pending_created", table_name="ps_transactions")
    op.drop_table("ps_transactions")
    op.drop_table("ps_categories")
