# ruff: noqa: I001
"""Persistence integration for payment_signals.

SQL-backed implementations of the collaborator protocols in
``payment_signals.stores``, writing to the shared database owned by
``libs/db``. They rely on SQLAlchemy ORM models defined in
``db.models.ledger`` and a session provided by ``db.client``.

Scope:
- Insert pending transactions into ``ps_transactions`` and query the recent
  pending incomes used by the SMS/notification race check.
- Insert and clear UPI payment reminders in ``ps_payment_reminders``.
- Read categories and categorized history for the recommender.

Timestamps are written in UTC. Backends that drop the offset (SQLite) hand
back naive values, which are read as UTC.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import SQLAlchemyError

from db.client import session_scope
from db.models.ledger import PsCategory, PsPaymentReminder, PsTransaction
from .clock import Clock
from .logging_setup import get_logger
from .models import (
    Category,
    Channel,
    Direction,
    HistoricalTransaction,
    PaymentReminder,
    SourceTag,
    TransactionCandidate,
)
from .stores import StoreError

_logger = get_logger("payment_signals.persistence")


def to_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def from_db(dt: datetime) -> datetime:
    """Return an aware local datetime for a stored timestamp."""

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone()


def _to_decimal_2(d: Decimal) -> Decimal:
    return d.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def _source_tag(raw: str) -> SourceTag:
    try:
        return SourceTag(raw)
    except ValueError:
        return SourceTag.OTHER


class SqlTransactionStore:
    def __init__(self, clock: Clock, *, database_url: str | None = None) -> None:
        self._clock = clock
        self._database_url = database_url

    def insert(self, candidate: TransactionCandidate, channel: Channel) -> int:
        split = candidate.split
        row = PsTransaction(
            channel=channel.value,
            amount=_to_decimal_2(candidate.amount),
            direction=candidate.direction.value,
            merchant=candidate.merchant,
            source_tag=candidate.source_tag.value,
            description=candidate.description,
            raw_text=candidate.raw_text,
            observed_at=to_utc(candidate.observed_at),
            suggested_category=candidate.suggested_category,
            is_pending=True,
            split_share=split.share_amount if split else None,
            split_total=split.total_amount if split else None,
            split_numerator=split.numerator if split else None,
            split_denominator=split.denominator if split else None,
            created_at=to_utc(self._clock.now()),
        )
        try:
            with session_scope(database_url=self._database_url) as session:
                session.add(row)
                session.flush()
                return int(row.id)
        except SQLAlchemyError as exc:
            raise StoreError(f"failed to insert transaction: {exc}") from exc

    def has_recent_pending(self, amount: Decimal, within: timedelta) -> bool:
        cutoff = to_utc(self._clock.now() - within)
        stmt = (
            select(func.count())
            .select_from(PsTransaction)
            .where(
                PsTransaction.is_pending.is_(True),
                PsTransaction.channel == Channel.NOTIFICATION.value,
                PsTransaction.direction == Direction.INCOME.value,
                PsTransaction.amount == _to_decimal_2(amount),
                PsTransaction.created_at >= cutoff,
            )
        )
        try:
            with session_scope(database_url=self._database_url) as session:
                return (session.execute(stmt).scalar_one() or 0) > 0
        except SQLAlchemyError as exc:
            raise StoreError(f"failed to query pending transactions: {exc}") from exc

    def mark_processed(self, transaction_id: int, category_id: int | None = None) -> None:
        values: dict[str, object] = {"is_pending": False}
        if category_id is not None:
            values["category_id"] = category_id
        stmt = update(PsTransaction).where(PsTransaction.id == transaction_id).values(**values)
        try:
            with session_scope(database_url=self._database_url) as session:
                result = session.execute(stmt)
                if result.rowcount == 0:
                    raise StoreError(f"transaction {transaction_id} not found")
        except SQLAlchemyError as exc:
            raise StoreError(f"failed to update transaction {transaction_id}: {exc}") from exc

    def delete(self, transaction_id: int) -> None:
        stmt = delete(PsTransaction).where(PsTransaction.id == transaction_id)
        try:
            with session_scope(database_url=self._database_url) as session:
                session.execute(stmt)
        except SQLAlchemyError as exc:
            raise StoreError(f"failed to delete transaction {transaction_id}: {exc}") from exc


class SqlReminderStore:
    def __init__(self, clock: Clock, *, database_url: str | None = None) -> None:
        self._clock = clock
        self._database_url = database_url

    def insert(self, reminder: PaymentReminder) -> int:
        row = PsPaymentReminder(
            package_name=reminder.package_name,
            app_name=reminder.app_name,
            created_at=to_utc(reminder.created_at),
        )
        try:
            with session_scope(database_url=self._database_url) as session:
                session.add(row)
                session.flush()
                return int(row.id)
        except SQLAlchemyError as exc:
            raise StoreError(f"failed to insert reminder: {exc}") from exc

    def delete_recent(self, within: timedelta) -> int:
        cutoff = to_utc(self._clock.now() - within)
        stmt = delete(PsPaymentReminder).where(PsPaymentReminder.created_at >= cutoff)
        try:
            with session_scope(database_url=self._database_url) as session:
                count = session.execute(stmt).rowcount or 0
        except SQLAlchemyError as exc:
            raise StoreError(f"failed to clear reminders: {exc}") from exc
        if count:
            _logger.debug("Cleared %d recent reminder(s)", count)
        return count


class SqlCategoryContext:
    def __init__(self, *, database_url: str | None = None) -> None:
        self._database_url = database_url

    def list_categories(self) -> list[Category]:
        stmt = select(PsCategory).order_by(PsCategory.id)
        try:
            with session_scope(database_url=self._database_url) as session:
                rows = session.execute(stmt).scalars().all()
                return [
                    Category(id=r.id, name=r.name, parent_id=r.parent_id, emoji=r.emoji or "")
                    for r in rows
                ]
        except SQLAlchemyError as exc:
            raise StoreError(f"failed to list categories: {exc}") from exc

    def list_historical_transactions(self, limit: int) -> list[HistoricalTransaction]:
        stmt = (
            select(PsTransaction)
            .where(PsTransaction.category_id.is_not(None))
            .order_by(PsTransaction.observed_at.desc(), PsTransaction.id.desc())
            .limit(limit)
        )
        try:
            with session_scope(database_url=self._database_url) as session:
                rows = session.execute(stmt).scalars().all()
                return [
                    HistoricalTransaction(
                        amount=Decimal(r.amount),
                        direction=Direction(r.direction),
                        description=r.description,
                        merchant=r.merchant,
                        category_id=r.category_id,
                        source_tag=_source_tag(r.source_tag),
                        occurred_at=from_db(r.observed_at),
                        is_pending=r.is_pending,
                    )
                    for r in rows
                ]
        except SQLAlchemyError as exc:
            raise StoreError(f"failed to list history: {exc}") from exc


def seed_categories(
    names: list[tuple[str, str | None, str]], *, database_url: str | None = None
) -> dict[str, int]:
    """Insert ``(name, parent_name, emoji)`` rows; return ``name -> id``.

    Parents must appear before their children. Existing names are reused.
    """

    ids: dict[str, int] = {}
    try:
        with session_scope(database_url=database_url) as session:
            for existing in session.execute(select(PsCategory)).scalars():
                ids[existing.name] = existing.id
            for name, parent, emoji in names:
                if name in ids:
                    continue
                if parent is not None and parent not in ids:
                    raise StoreError(f"parent category {parent!r} must be seeded before {name!r}")
                row = PsCategory(
                    name=name, parent_id=ids[parent] if parent else None, emoji=emoji
                )
                session.add(row)
                session.flush()
                ids[name] = int(row.id)
    except SQLAlchemyError as exc:
        raise StoreError(f"failed to seed categories: {exc}") from exc
    return ids


__all__ = [
    "to_utc",
    "from_db",
    "SqlTransactionStore",
    "SqlReminderStore",
    "SqlCategoryContext",
    "seed_categories",
]
