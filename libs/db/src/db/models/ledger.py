from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.sql import expression as sa_expr

# BIGINT primary keys only autoincrement on SQLite when declared as INTEGER.
_PK = BigInteger().with_variant(Integer(), "sqlite")


class Base(DeclarativeBase):
    pass


# ---------------------------
# Reference: ps_categories
# ---------------------------


class PsCategory(Base):
    __tablename__ = "ps_categories"

    id: Mapped[int] = mapped_column(_PK, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    # Two-level taxonomy: a parent must itself be top-level. Enforced by the
    # writer, not by a recursive constraint.
    parent_id: Mapped[int | None] = mapped_column(
        _PK, ForeignKey("ps_categories.id"), nullable=True
    )
    emoji: Mapped[str] = mapped_column(String, nullable=False, server_default=text("''"))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=text("CURRENT_TIMESTAMP")
    )


# ---------------------------
# Core: ps_transactions
# ---------------------------


class PsTransaction(Base):
    __tablename__ = "ps_transactions"

    id: Mapped[int] = mapped_column(_PK, primary_key=True, autoincrement=True)
    amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    direction: Mapped[str] = mapped_column(String, nullable=False)
    merchant: Mapped[str | None] = mapped_column(String, nullable=True)
    source_tag: Mapped[str] = mapped_column(String, nullable=False)
    # Listener that produced the row: sms or notification.
    channel: Mapped[str] = mapped_column(String, nullable=False, server_default=text("'sms'"))
    description: Mapped[str] = mapped_column(Text, nullable=False)
    raw_text: Mapped[str] = mapped_column(Text, nullable=False, server_default=text("''"))
    observed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    category_id: Mapped[int | None] = mapped_column(
        _PK, ForeignKey("ps_categories.id", ondelete="SET NULL"), nullable=True
    )
    suggested_category: Mapped[str | None] = mapped_column(String, nullable=True)
    is_pending: Mapped[bool] = mapped_column(
        Boolean, nullable=False, server_default=sa_expr.true()
    )
    split_share: Mapped[Decimal | None] = mapped_column(Numeric(18, 2), nullable=True)
    split_total: Mapped[Decimal | None] = mapped_column(Numeric(18, 2), nullable=True)
    split_numerator: Mapped[int | None] = mapped_column(Integer, nullable=True)
    split_denominator: Mapped[int | None] = mapped_column(Integer, nullable=True)
    # Written explicitly from the pipeline clock; the default covers manual inserts.
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=text("CURRENT_TIMESTAMP")
    )

    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_ps_transactions_amount_positive"),
        CheckConstraint(
            "direction IN ('expense', 'income')", name="ck_ps_transactions_direction"
        ),
        CheckConstraint(
            "channel IN ('sms', 'notification')", name="ck_ps_transactions_channel"
        ),
        Index("ix_ps_transactions_pending_created", "is_pending", "created_at"),
    )


# ---------------------------
# ps_payment_reminders
# ---------------------------


class PsPaymentReminder(Base):
    __tablename__ = "ps_payment_reminders"

    id: Mapped[int] = mapped_column(_PK, primary_key=True, autoincrement=True)
    package_name: Mapped[str] = mapped_column(String, nullable=False)
    app_name: Mapped[str] = mapped_column(String, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=text("CURRENT_TIMESTAMP")
    )
