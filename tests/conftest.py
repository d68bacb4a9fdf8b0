"""Pytest configuration for test isolation.

Time-dependent behavior (dedup windows, the correlator's PIN timer, the
recommender's recency bonus) is driven by a ``ManualClock`` so tests never
sleep. The shared SQLAlchemy engine in ``db.client`` is process-wide; it is
disposed after every test so each test can bind its own SQLite file.
"""

from __future__ import annotations

from collections.abc import Iterator
from datetime import UTC, datetime

import pytest

from db.client import dispose_engine
from payment_signals.clock import ManualClock
from payment_signals.pipeline import SignalPipeline
from payment_signals.stores import InMemoryReminderStore, InMemoryTransactionStore

T0 = datetime(2025, 1, 1, 12, 0, tzinfo=UTC)


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock(start=T0)


@pytest.fixture
def pipeline(clock: ManualClock) -> SignalPipeline:
    return SignalPipeline(
        clock=clock,
        transactions=InMemoryTransactionStore(clock),
        reminders=InMemoryReminderStore(clock),
    )


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep developer shell settings out of the tests."""

    for name in (
        "DATABASE_URL",
        "PAYMENT_SIGNALS_LOG_LEVEL",
        "PAYMENT_SIGNALS_INCOME_WINDOW_S",
        "PAYMENT_SIGNALS_PROCESSED_TTL_H",
        "PAYMENT_SIGNALS_PIN_DELAY_S",
        "PAYMENT_SIGNALS_REMINDER_DEBOUNCE_S",
        "PAYMENT_SIGNALS_REMINDER_CLEAR_S",
        "PAYMENT_SIGNALS_HISTORY_LIMIT",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def _dispose_db_engine() -> Iterator[None]:
    yield
    dispose_engine()
