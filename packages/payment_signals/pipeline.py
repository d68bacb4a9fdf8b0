"""Route raw signals through classification, deduplication and storage.

``SignalPipeline.handle`` is the single entrypoint for OS listeners:

- SMS: classify, drop incomes already reported by a payment app, store.
- Notification: Splitwise "you owe" notifications go through the Splitwise
  parser; other known payment apps through the income classifier.
- Accessibility: snapshots feed the payment correlator; reminders it emits
  (immediately or from its PIN timer) land in the reminder store.

The pipeline keeps no lock of its own. Shared state lives in the dedup
structures and the correlator, each of which serializes its own updates.
"""

from __future__ import annotations

import threading

from .classify import classify_payment_notification, classify_sms
from .clock import Clock
from .config import Settings
from .correlator import AccessibilityPaymentCorrelator
from .dedup import IncomeRaceWindow, ProcessedNameCache
from .logging_setup import get_logger
from .models import (
    Channel,
    Direction,
    IngestResult,
    Outcome,
    PaymentReminder,
    RawSignal,
    Rejected,
    Suppressed,
    TransactionCandidate,
)
from .patterns import KNOWN_PAYMENT_APPS, SPLITWISE_PACKAGE
from .splitwise import SplitwiseNotificationParser
from .stores import ReminderStore, StoreError, TransactionStore

_logger = get_logger("payment_signals.pipeline")


class SignalPipeline:
    def __init__(
        self,
        *,
        clock: Clock,
        transactions: TransactionStore,
        reminders: ReminderStore,
        settings: Settings | None = None,
    ) -> None:
        self.clock = clock
        self.settings = settings or Settings()
        self.transactions = transactions
        self.reminders = reminders
        self.race_window = IncomeRaceWindow(self.settings.income_race_window)
        self.processed_names = ProcessedNameCache(self.settings.processed_name_ttl)
        self.splitwise = SplitwiseNotificationParser(self.processed_names)
        self.correlator = AccessibilityPaymentCorrelator(
            clock, self._store_reminder, self.settings
        )
        self._reminders_emitted = 0
        self._count_lock = threading.Lock()

    @property
    def reminders_emitted(self) -> int:
        with self._count_lock:
            return self._reminders_emitted

    def handle(self, signal: RawSignal) -> list[IngestResult]:
        if signal.channel is Channel.SMS:
            return [self._handle_sms(signal)]
        if signal.channel is Channel.NOTIFICATION:
            return self._handle_notification(signal)
        return [self._handle_accessibility(signal)]

    # ------------------------------------------------------------------
    # SMS
    # ------------------------------------------------------------------

    def _handle_sms(self, signal: RawSignal) -> IngestResult:
        result = classify_sms(signal.text, observed_at=signal.observed_at)
        if isinstance(result, Rejected):
            return self._rejected(Channel.SMS, result)

        if result.direction is Direction.INCOME and self._income_already_reported(result):
            _logger.info(
                "Suppressed SMS income %s: already reported by a payment app", result.amount
            )
            self._clear_recent_reminders()
            return IngestResult(
                outcome=Outcome.SUPPRESSED,
                channel=Channel.SMS,
                candidate=result,
                reason="income already reported by notification",
            )

        outcome = self._store(Channel.SMS, result)
        if outcome.outcome is Outcome.ACCEPTED:
            self._clear_recent_reminders()
        return outcome

    def _income_already_reported(self, candidate: TransactionCandidate) -> bool:
        if self.race_window.seen_within(candidate.amount, self.clock.now()):
            return True
        try:
            return self.transactions.has_recent_pending(
                candidate.amount, self.settings.income_race_window
            )
        except StoreError:
            _logger.warning("Pending-income lookup failed; accepting SMS", exc_info=True)
            return False

    def _clear_recent_reminders(self) -> None:
        try:
            self.reminders.delete_recent(self.settings.reminder_clear_window)
        except StoreError:
            _logger.warning("Failed to clear recent reminders", exc_info=True)

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------

    def _handle_notification(self, signal: RawSignal) -> list[IngestResult]:
        if signal.source_app == SPLITWISE_PACKAGE:
            parsed = self.splitwise.parse(signal, self.clock.now())
            return [self._splitwise_result(r) for r in parsed]

        if signal.source_app not in KNOWN_PAYMENT_APPS:
            return [self._rejected(Channel.NOTIFICATION, Rejected("not a payment app"))]

        result = classify_payment_notification(signal)
        if isinstance(result, Rejected):
            return [self._rejected(Channel.NOTIFICATION, result)]

        # Recorded before the insert so a bank SMS handled meanwhile is still
        # suppressed; a failed insert takes the entry back out.
        recorded_at = self.clock.now()
        self.race_window.record(result.amount, recorded_at)
        stored = self._store(Channel.NOTIFICATION, result)
        if stored.outcome is not Outcome.ACCEPTED:
            self.race_window.forget(result.amount, recorded_at)
        return [stored]

    def _splitwise_result(
        self, result: TransactionCandidate | Rejected | Suppressed
    ) -> IngestResult:
        if isinstance(result, Rejected):
            return self._rejected(Channel.NOTIFICATION, result)
        if isinstance(result, Suppressed):
            _logger.info("Suppressed Splitwise notification: %s", result.reason)
            return IngestResult(
                outcome=Outcome.SUPPRESSED, channel=Channel.NOTIFICATION, reason=result.reason
            )
        return self._store(Channel.NOTIFICATION, result)

    # ------------------------------------------------------------------
    # Accessibility
    # ------------------------------------------------------------------

    def _handle_accessibility(self, signal: RawSignal) -> IngestResult:
        reminder = self.correlator.observe(signal.source_app, signal.text)
        return IngestResult(
            outcome=Outcome.OBSERVED,
            channel=Channel.ACCESSIBILITY,
            reason="reminder emitted" if reminder else f"state={self.correlator.state}",
        )

    def _store_reminder(self, reminder: PaymentReminder) -> None:
        with self._count_lock:
            self._reminders_emitted += 1
        try:
            reminder_id = self.reminders.insert(reminder)
        except StoreError:
            _logger.warning("Failed to store reminder for %s", reminder.app_name, exc_info=True)
            return
        _logger.info("Payment reminder %d for %s", reminder_id, reminder.app_name)

    # ------------------------------------------------------------------
    # Shared
    # ------------------------------------------------------------------

    def _store(self, channel: Channel, candidate: TransactionCandidate) -> IngestResult:
        try:
            tx_id = self.transactions.insert(candidate, channel)
        except StoreError as exc:
            _logger.warning(
                "Failed to store %s candidate %s %s",
                channel,
                candidate.direction,
                candidate.amount,
                exc_info=True,
            )
            return IngestResult(
                outcome=Outcome.STORE_FAILED,
                channel=channel,
                candidate=candidate,
                reason=str(exc),
            )
        _logger.info(
            "Stored %s %s %s (%s) as #%d",
            channel,
            candidate.direction,
            candidate.amount,
            candidate.description,
            tx_id,
        )
        return IngestResult(
            outcome=Outcome.ACCEPTED, channel=channel, candidate=candidate, transaction_id=tx_id
        )

    @staticmethod
    def _rejected(channel: Channel, rejected: Rejected) -> IngestResult:
        _logger.debug("Rejected %s signal: %s", channel, rejected.reason)
        return IngestResult(outcome=Outcome.REJECTED, channel=channel, reason=rejected.reason)


__all__ = ["SignalPipeline"]
