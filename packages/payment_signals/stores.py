"""Collaborator protocols and in-memory reference stores.

The pipeline only talks to these protocols. ``payment_signals.persistence``
provides the SQLAlchemy-backed versions; the in-memory versions here back
the tests and the replay CLI when ``--persist`` is not given.
"""

from __future__ import annotations

import itertools
import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Protocol

from .clock import Clock
from .models import (
    Category,
    Channel,
    Direction,
    HistoricalTransaction,
    PaymentReminder,
    TransactionCandidate,
)


class StoreError(RuntimeError):
    """A collaborator store failed to complete an operation."""


class TransactionStore(Protocol):
    def insert(self, candidate: TransactionCandidate, channel: Channel) -> int: ...

    def has_recent_pending(self, amount: Decimal, within: timedelta) -> bool: ...

    def mark_processed(self, transaction_id: int, category_id: int | None = None) -> None: ...

    def delete(self, transaction_id: int) -> None: ...


class ReminderStore(Protocol):
    def insert(self, reminder: PaymentReminder) -> int: ...

    def delete_recent(self, within: timedelta) -> int: ...


class CategoryContext(Protocol):
    def list_categories(self) -> list[Category]: ...

    def list_historical_transactions(self, limit: int) -> list[HistoricalTransaction]: ...


# ---------------------------------------------------------------------------
# In-memory implementations
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class StoredTransaction:
    id: int
    candidate: TransactionCandidate
    channel: Channel
    created_at: datetime
    is_pending: bool = True
    category_id: int | None = None


class InMemoryTransactionStore:
    def __init__(self, clock: Clock) -> None:
        self._clock = clock
        self._rows: dict[int, StoredTransaction] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def insert(self, candidate: TransactionCandidate, channel: Channel) -> int:
        with self._lock:
            tx_id = next(self._ids)
            self._rows[tx_id] = StoredTransaction(
                id=tx_id, candidate=candidate, channel=channel, created_at=self._clock.now()
            )
            return tx_id

    def has_recent_pending(self, amount: Decimal, within: timedelta) -> bool:
        """True when a payment app reported a pending income of ``amount`` within ``within``."""

        cutoff = self._clock.now() - within
        with self._lock:
            return any(
                row.is_pending
                and row.channel is Channel.NOTIFICATION
                and row.candidate.direction is Direction.INCOME
                and row.candidate.amount == amount
                and row.created_at >= cutoff
                for row in self._rows.values()
            )

    def mark_processed(self, transaction_id: int, category_id: int | None = None) -> None:
        with self._lock:
            row = self._rows.get(transaction_id)
            if row is None:
                raise StoreError(f"transaction {transaction_id} not found")
            row.is_pending = False
            if category_id is not None:
                row.category_id = category_id

    def delete(self, transaction_id: int) -> None:
        with self._lock:
            self._rows.pop(transaction_id, None)

    def get(self, transaction_id: int) -> StoredTransaction | None:
        with self._lock:
            return self._rows.get(transaction_id)

    def all(self) -> list[StoredTransaction]:
        with self._lock:
            return list(self._rows.values())

    def __len__(self) -> int:
        with self._lock:
            return len(self._rows)


class InMemoryReminderStore:
    def __init__(self, clock: Clock) -> None:
        self._clock = clock
        self._rows: dict[int, PaymentReminder] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def insert(self, reminder: PaymentReminder) -> int:
        with self._lock:
            reminder_id = next(self._ids)
            self._rows[reminder_id] = reminder
            return reminder_id

    def delete_recent(self, within: timedelta) -> int:
        cutoff = self._clock.now() - within
        with self._lock:
            doomed = [k for k, r in self._rows.items() if r.created_at >= cutoff]
            for k in doomed:
                del self._rows[k]
            return len(doomed)

    def all(self) -> list[PaymentReminder]:
        with self._lock:
            return list(self._rows.values())

    def __len__(self) -> int:
        with self._lock:
            return len(self._rows)


@dataclass(slots=True)
class InMemoryCategoryContext:
    categories: list[Category] = field(default_factory=list)
    history: list[HistoricalTransaction] = field(default_factory=list)

    def list_categories(self) -> list[Category]:
        return list(self.categories)

    def list_historical_transactions(self, limit: int) -> list[HistoricalTransaction]:
        ordered = sorted(self.history, key=lambda t: t.occurred_at, reverse=True)
        return ordered[:limit]


__all__ = [
    "StoreError",
    "TransactionStore",
    "ReminderStore",
    "CategoryContext",
    "StoredTransaction",
    "InMemoryTransactionStore",
    "InMemoryReminderStore",
    "InMemoryCategoryContext",
]
