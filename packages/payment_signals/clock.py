"""Clock and one-shot timer abstraction.

Everything time-dependent in the core (dedup windows, the processed-name
cache, the correlator's PIN delay and debounce, the recommender's recency
bonus) reads time from an injected ``Clock`` instead of calling ``now()``
directly.

- ``SystemClock``: wall clock in the local timezone; timers run on
  ``threading.Timer`` daemon threads.
- ``ManualClock``: a deterministic clock for tests and recorded-signal
  replay. Time only moves when ``advance``/``advance_to`` is called, and due
  timers fire synchronously, in due order, during that call.
"""

from __future__ import annotations

import heapq
import itertools
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Protocol


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Clock(Protocol):
    def now(self) -> datetime: ...

    def call_later(self, delay: timedelta, callback: Callable[[], None]) -> TimerHandle: ...


# ---------------------------------------------------------------------------
# Wall clock
# ---------------------------------------------------------------------------


class _ThreadingTimerHandle:
    __slots__ = ("_timer",)

    def __init__(self, timer: threading.Timer) -> None:
        self._timer = timer

    def cancel(self) -> None:
        self._timer.cancel()


class SystemClock:
    """Local-time wall clock (timezone-aware)."""

    def now(self) -> datetime:
        return datetime.now().astimezone()

    def call_later(self, delay: timedelta, callback: Callable[[], None]) -> TimerHandle:
        timer = threading.Timer(max(delay.total_seconds(), 0.0), callback)
        timer.daemon = True
        timer.start()
        return _ThreadingTimerHandle(timer)


# ---------------------------------------------------------------------------
# Manual clock
# ---------------------------------------------------------------------------


@dataclass(order=True, slots=True)
class _Scheduled:
    due: datetime
    seq: int
    callback: Callable[[], None] = field(compare=False)
    cancelled: bool = field(default=False, compare=False)

    def cancel(self) -> None:
        self.cancelled = True


class ManualClock:
    """Deterministic clock; see module docstring."""

    def __init__(self, start: datetime | None = None) -> None:
        self._now = start or datetime(2025, 1, 1, 12, 0, tzinfo=UTC)
        if self._now.tzinfo is None:
            raise ValueError("ManualClock requires a timezone-aware start time")
        self._queue: list[_Scheduled] = []
        self._seq = itertools.count()
        self._lock = threading.Lock()

    def now(self) -> datetime:
        return self._now

    def call_later(self, delay: timedelta, callback: Callable[[], None]) -> TimerHandle:
        item = _Scheduled(due=self._now + delay, seq=next(self._seq), callback=callback)
        with self._lock:
            heapq.heappush(self._queue, item)
        return item

    def advance(self, delta: timedelta | float) -> None:
        if not isinstance(delta, timedelta):
            delta = timedelta(seconds=delta)
        if delta < timedelta(0):
            raise ValueError("ManualClock cannot move backwards")
        self.advance_to(self._now + delta)

    def advance_to(self, target: datetime) -> None:
        """Move time forward to ``target``, firing due timers in order.

        A target in the past is a no-op: replayed streams can carry
        out-of-order timestamps, and time never rewinds.
        """

        while True:
            with self._lock:
                if not self._queue or self._queue[0].due > target:
                    break
                item = heapq.heappop(self._queue)
            if item.cancelled:
                continue
            if item.due > self._now:
                self._now = item.due
            item.callback()
        if target > self._now:
            self._now = target

    @property
    def pending_timers(self) -> int:
        with self._lock:
            return sum(1 for it in self._queue if not it.cancelled)


__all__ = ["Clock", "TimerHandle", "SystemClock", "ManualClock"]
