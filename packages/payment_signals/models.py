"""Domain types for ``payment_signals``.

Values flowing through the classification core are frozen, slotted
dataclasses: they are created per OS event, never mutated, and cheap to
compare in tests. The pydantic DTO at the bottom validates recorded signals
read from JSONL files by the replay CLI.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, field_validator

# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class Channel(StrEnum):
    SMS = "sms"
    NOTIFICATION = "notification"
    ACCESSIBILITY = "accessibility"


class Direction(StrEnum):
    EXPENSE = "expense"
    INCOME = "income"


class SourceTag(StrEnum):
    """Payment source recorded on a transaction.

    The generic rails (UPI, cards, transfers) come from SMS classification;
    the app-specific tags come from the notification package table.
    """

    UPI = "upi"
    BANK_TRANSFER = "bank_transfer"
    CREDIT_CARD = "credit_card"
    DEBIT_CARD = "debit_card"
    PAYPAL = "paypal"
    CASH = "cash"
    AUTO_DEBIT = "auto_debit"
    GOOGLE_PAY = "google_pay"
    PHONEPE = "phonepe"
    CRED = "cred"
    JUPITER = "jupiter"
    SPLITWISE = "splitwise"
    OTHER = "other"


class Outcome(StrEnum):
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    SUPPRESSED = "suppressed"
    STORE_FAILED = "store_failed"
    OBSERVED = "observed"


# ---------------------------------------------------------------------------
# Signals and candidates
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class RawSignal:
    """A timestamped text payload handed over by an OS listener.

    ``text`` is the SMS body, the notification body, or the accessibility
    snapshot. Notifications additionally carry their title, expanded text,
    ticker and inbox-style bundle ``lines``; these stay empty elsewhere.
    """

    channel: Channel
    source_app: str
    text: str
    observed_at: datetime
    title: str = ""
    big_text: str = ""
    ticker: str = ""
    lines: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class SplitInfo:
    share_amount: Decimal
    total_amount: Decimal
    numerator: int
    denominator: int

    def __post_init__(self) -> None:
        if not 0 < self.numerator < self.denominator:
            raise ValueError(
                f"split ratio must satisfy 0 < numerator < denominator, "
                f"got {self.numerator}/{self.denominator}"
            )


@dataclass(frozen=True, slots=True)
class TransactionCandidate:
    """An extracted, unconfirmed transaction awaiting user confirmation.

    ``suggested_category`` is a category *name* hint (e.g. ``"Credit Card
    Bill"``); resolving it to an id is the caller's job.
    """

    amount: Decimal
    direction: Direction
    merchant: str | None
    source_tag: SourceTag
    description: str
    raw_text: str
    observed_at: datetime
    split: SplitInfo | None = None
    suggested_category: str | None = None


@dataclass(frozen=True, slots=True)
class Rejected:
    """Classification decided the text is not a transaction."""

    reason: str


@dataclass(frozen=True, slots=True)
class Suppressed:
    """A valid transaction dropped because it was already recorded."""

    reason: str


@dataclass(frozen=True, slots=True)
class PaymentReminder:
    package_name: str
    app_name: str
    created_at: datetime


@dataclass(frozen=True, slots=True)
class IngestResult:
    """What happened to one candidate (or one signal) inside the pipeline."""

    outcome: Outcome
    channel: Channel
    candidate: TransactionCandidate | None = None
    transaction_id: int | None = None
    reason: str = ""


# ---------------------------------------------------------------------------
# Category context (read models for the recommender)
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Category:
    id: int
    name: str
    parent_id: int | None = None
    emoji: str = ""

    @property
    def is_top_level(self) -> bool:
        return self.parent_id is None


@dataclass(frozen=True, slots=True)
class HistoricalTransaction:
    amount: Decimal
    direction: Direction
    description: str
    merchant: str | None
    category_id: int | None
    source_tag: SourceTag
    occurred_at: datetime
    is_pending: bool = False


@dataclass(frozen=True, slots=True)
class TransactionFields:
    """The new transaction a caller is about to save or display."""

    amount: Decimal
    direction: Direction
    description: str
    merchant: str | None = None
    source_tag: SourceTag = SourceTag.OTHER


@dataclass(frozen=True, slots=True)
class ScoredCategory:
    category: Category
    score: float
    reason: str


# ---------------------------------------------------------------------------
# DTOs for recorded-signal replay
# ---------------------------------------------------------------------------


class SignalRecord(BaseModel):
    """One JSONL line of a recorded signal stream.

    ``observed_at`` must carry a UTC offset so replays are reproducible
    across machines.
    """

    model_config = ConfigDict(extra="forbid")

    channel: Channel
    source_app: str = ""
    text: str = ""
    observed_at: datetime
    title: str = ""
    big_text: str = ""
    ticker: str = ""
    lines: tuple[str, ...] = ()

    @field_validator("observed_at")
    @classmethod
    def _require_offset(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            raise ValueError("observed_at must include a UTC offset")
        return v

    def to_signal(self) -> RawSignal:
        return RawSignal(
            channel=self.channel,
            source_app=self.source_app,
            text=self.text,
            observed_at=self.observed_at,
            title=self.title,
            big_text=self.big_text,
            ticker=self.ticker,
            lines=tuple(self.lines),
        )


__all__ = [
    "Channel",
    "Direction",
    "SourceTag",
    "Outcome",
    "RawSignal",
    "SplitInfo",
    "TransactionCandidate",
    "Rejected",
    "Suppressed",
    "PaymentReminder",
    "IngestResult",
    "Category",
    "HistoricalTransaction",
    "TransactionFields",
    "ScoredCategory",
    "SignalRecord",
]
