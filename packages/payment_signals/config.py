"""Runtime settings for the ingestion pipeline.

Defaults reproduce the behavior the heuristics were tuned against; each
window can be overridden through the environment (``.env`` files are loaded
by the CLI via ``python-dotenv`` before ``Settings.from_env`` runs).

- ``PAYMENT_SIGNALS_INCOME_WINDOW_S`` (10): SMS-vs-notification income race.
- ``PAYMENT_SIGNALS_PROCESSED_TTL_H`` (24): Splitwise processed-name TTL.
- ``PAYMENT_SIGNALS_PIN_DELAY_S`` (3): PIN entry to reminder delay.
- ``PAYMENT_SIGNALS_REMINDER_DEBOUNCE_S`` (30): minimum gap between reminders.
- ``PAYMENT_SIGNALS_REMINDER_CLEAR_S`` (10): reminders cleared by a bank SMS.
- ``PAYMENT_SIGNALS_HISTORY_LIMIT`` (500): history rows read by the scorer.
- ``PAYMENT_SIGNALS_LOG_LEVEL`` (INFO): level the CLI configures logging at.

Non-numeric or non-positive windows and unknown level names are logged and
replaced by the default.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import timedelta

from .logging_setup import get_logger, resolve_level

_logger = get_logger("payment_signals.config")


def _env_number(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError:
        _logger.warning("Ignoring non-numeric %s=%r; using %s", name, raw, default)
        return default
    if value <= 0:
        _logger.warning("Ignoring non-positive %s=%r; using %s", name, raw, default)
        return default
    return value


def _env_level(name: str, default: str) -> str:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        resolve_level(raw)
    except ValueError:
        _logger.warning("Ignoring unknown %s=%r; using %s", name, raw, default)
        return default
    return raw.strip().upper()


@dataclass(frozen=True, slots=True)
class Settings:
    income_race_window: timedelta = timedelta(seconds=10)
    processed_name_ttl: timedelta = timedelta(hours=24)
    pin_confirm_delay: timedelta = timedelta(seconds=3)
    reminder_debounce: timedelta = timedelta(seconds=30)
    reminder_clear_window: timedelta = timedelta(seconds=10)
    history_limit: int = 500
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> Settings:
        return cls(
            income_race_window=timedelta(
                seconds=_env_number("PAYMENT_SIGNALS_INCOME_WINDOW_S", 10)
            ),
            processed_name_ttl=timedelta(
                hours=_env_number("PAYMENT_SIGNALS_PROCESSED_TTL_H", 24)
            ),
            pin_confirm_delay=timedelta(seconds=_env_number("PAYMENT_SIGNALS_PIN_DELAY_S", 3)),
            reminder_debounce=timedelta(
                seconds=_env_number("PAYMENT_SIGNALS_REMINDER_DEBOUNCE_S", 30)
            ),
            reminder_clear_window=timedelta(
                seconds=_env_number("PAYMENT_SIGNALS_REMINDER_CLEAR_S", 10)
            ),
            history_limit=int(_env_number("PAYMENT_SIGNALS_HISTORY_LIMIT", 500)),
            log_level=_env_level("PAYMENT_SIGNALS_LOG_LEVEL", "INFO"),
        )


__all__ = ["Settings"]
