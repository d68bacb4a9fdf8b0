"""Infer "a payment probably just happened" from accessibility snapshots.

UPI apps that do not reliably trigger a bank SMS are watched through the
text of their UI. Two cues matter:

- a masked PIN pad (``●●●●``): the payment is about to complete, so a
  reminder is scheduled a few seconds later;
- success wording on screen: the payment completed, so the reminder goes
  out immediately and any scheduled one is cancelled.

Reminders are debounced so a burst of success screens yields one prompt.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum

from .clock import Clock, TimerHandle
from .config import Settings
from .logging_setup import get_logger
from .models import PaymentReminder
from .patterns import KNOWN_PAYMENT_APPS, PIN_MASK_RE, SUCCESS_KEYWORDS, UPI_MONITOR_PACKAGES

_logger = get_logger("payment_signals.correlator")


class CorrelatorState(StrEnum):
    IDLE = "idle"
    PIN_PENDING = "pin_pending"


@dataclass(slots=True)
class AccessibilityState:
    pin_entry_detected: bool = False
    last_package: str | None = None
    last_notification_at: datetime | None = None


class AccessibilityPaymentCorrelator:
    """State machine over accessibility snapshots; see module docstring.

    ``on_reminder`` is invoked outside the internal lock, after the debounce
    state has been updated.
    """

    def __init__(
        self,
        clock: Clock,
        on_reminder: Callable[[PaymentReminder], None],
        settings: Settings | None = None,
    ) -> None:
        self._clock = clock
        self._on_reminder = on_reminder
        self._settings = settings or Settings()
        self._state = AccessibilityState()
        self._timer: TimerHandle | None = None
        self._generation = 0
        self._lock = threading.Lock()

    @property
    def state(self) -> CorrelatorState:
        with self._lock:
            if self._state.pin_entry_detected:
                return CorrelatorState.PIN_PENDING
            return CorrelatorState.IDLE

    @property
    def last_notification_at(self) -> datetime | None:
        with self._lock:
            return self._state.last_notification_at

    def observe(self, package_name: str, snapshot_text: str | None) -> PaymentReminder | None:
        """Feed one UI-text snapshot; return the reminder emitted right away, if any."""

        if package_name not in UPI_MONITOR_PACKAGES:
            return None
        if not snapshot_text or not snapshot_text.strip():
            return None
        text = snapshot_text.lower()

        reminder: PaymentReminder | None = None
        with self._lock:
            if PIN_MASK_RE.search(text):
                _logger.debug("PIN entry detected in %s", package_name)
                self._cancel_timer_locked()
                self._state.pin_entry_detected = True
                self._state.last_package = package_name
                self._generation += 1
                generation = self._generation
                self._timer = self._clock.call_later(
                    self._settings.pin_confirm_delay, lambda: self._on_timer(generation)
                )

            if any(k in text for k in SUCCESS_KEYWORDS):
                _logger.debug("Payment success wording in %s", package_name)
                self._cancel_timer_locked()
                self._state.pin_entry_detected = False
                reminder = self._try_emit_locked(package_name)

        if reminder is not None:
            self._on_reminder(reminder)
        return reminder

    def _cancel_timer_locked(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        # Invalidate a fire that already left the timer queue.
        self._generation += 1

    def _try_emit_locked(self, package_name: str) -> PaymentReminder | None:
        now = self._clock.now()
        last = self._state.last_notification_at
        if last is not None and now - last <= self._settings.reminder_debounce:
            _logger.debug("Reminder debounced for %s", package_name)
            return None
        self._state.last_notification_at = now
        return PaymentReminder(
            package_name=package_name,
            app_name=KNOWN_PAYMENT_APPS.get(package_name, package_name),
            created_at=now,
        )

    def _on_timer(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation:
                return
            self._timer = None
            package_name = self._state.last_package
            self._state.pin_entry_detected = False
            reminder = self._try_emit_locked(package_name) if package_name else None
        if reminder is None:
            return
        try:
            self._on_reminder(reminder)
        except Exception:
            # Runs on a timer thread; nothing upstream can observe the error.
            _logger.warning("Reminder callback failed for %s", package_name, exc_info=True)


__all__ = ["CorrelatorState", "AccessibilityState", "AccessibilityPaymentCorrelator"]
