"""In-memory deduplication state shared across signal channels.

Two independent structures, each guarding its own read-modify-write with a
lock because listeners may deliver signals from different threads:

- ``IncomeRaceWindow``: short window keyed by ``(income, amount)``. A
  payment-app notification usually beats the bank SMS for the same incoming
  payment by a few seconds; the SMS is dropped while the key is fresh.
- ``ProcessedNameCache``: 24 h map keyed by normalized Splitwise expense
  name, so a bundled notification re-posted with one more line only yields
  the new line.

Expired entries are purged lazily on each lookup.
"""

from __future__ import annotations

import re
import threading
from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal

from .models import Direction

_WS_RE = re.compile(r"\s+")
_CENT = Decimal("0.01")


def normalize_name(name: str) -> str:
    """Casefold, collapse internal whitespace, trim."""

    return _WS_RE.sub(" ", name).strip().casefold()


def amount_key(amount: Decimal) -> Decimal:
    return amount.quantize(_CENT, rounding=ROUND_HALF_UP)


class IncomeRaceWindow:
    def __init__(self, window: timedelta = timedelta(seconds=10)) -> None:
        self._window = window
        self._seen: dict[tuple[Direction, Decimal], datetime] = {}
        self._lock = threading.Lock()

    def _purge(self, now: datetime) -> None:
        cutoff = now - self._window
        stale = [k for k, at in self._seen.items() if at < cutoff]
        for k in stale:
            del self._seen[k]

    def record(self, amount: Decimal, at: datetime) -> None:
        with self._lock:
            self._purge(at)
            self._seen[(Direction.INCOME, amount_key(amount))] = at

    def forget(self, amount: Decimal, at: datetime) -> None:
        """Drop the entry for ``amount`` if it is still the one recorded at ``at``."""

        key = (Direction.INCOME, amount_key(amount))
        with self._lock:
            if self._seen.get(key) == at:
                del self._seen[key]

    def seen_within(self, amount: Decimal, now: datetime) -> bool:
        """True when an income of ``amount`` was recorded in the window ending at ``now``."""

        with self._lock:
            self._purge(now)
            return (Direction.INCOME, amount_key(amount)) in self._seen

    def __len__(self) -> int:
        with self._lock:
            return len(self._seen)


class ProcessedNameCache:
    def __init__(self, ttl: timedelta = timedelta(hours=24)) -> None:
        self._ttl = ttl
        self._processed: dict[str, datetime] = {}
        self._lock = threading.Lock()

    def _purge_locked(self, now: datetime) -> None:
        cutoff = now - self._ttl
        stale = [k for k, at in self._processed.items() if at <= cutoff]
        for k in stale:
            del self._processed[k]

    def purge(self, now: datetime) -> None:
        with self._lock:
            self._purge_locked(now)

    def is_processed(self, name: str, now: datetime) -> bool:
        with self._lock:
            self._purge_locked(now)
            return normalize_name(name) in self._processed

    def mark(self, name: str, now: datetime) -> None:
        with self._lock:
            self._processed[normalize_name(name)] = now

    def claim(self, name: str, now: datetime) -> bool:
        """Atomically mark ``name``; return False if it was already processed."""

        key = normalize_name(name)
        with self._lock:
            self._purge_locked(now)
            if key in self._processed:
                return False
            self._processed[key] = now
            return True

    def __len__(self) -> int:
        with self._lock:
            return len(self._processed)


__all__ = ["normalize_name", "amount_key", "IncomeRaceWindow", "ProcessedNameCache"]
