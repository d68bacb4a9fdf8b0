"""Transaction classification for bank SMS and payment-app notifications.

Both entrypoints return either a ``TransactionCandidate`` or a ``Rejected``
value; neither raises on malformed text. Splitwise notifications have their
own parser in ``payment_signals.splitwise``.
"""

from __future__ import annotations

from datetime import datetime

from .extract import extract_amount, extract_merchant, extract_sender
from .logging_setup import get_logger
from .models import Direction, RawSignal, Rejected, SourceTag, TransactionCandidate
from .patterns import (
    APP_SOURCE_TAGS,
    CC_BILL_CATEGORY_HINT,
    CC_BILL_PAYMENT_PATTERNS,
    CREDIT_KEYWORDS,
    DEBIT_KEYWORDS,
    INCOME_KEYWORDS,
    KNOWN_PAYMENT_APPS,
    NOTIFICATION_AMOUNT_PATTERNS,
    NOTIFICATION_EXCLUDE_KEYWORDS,
    SMS_EXCLUSION_PATTERNS,
    SOURCE_RULES,
    NamedPattern,
)

_logger = get_logger("payment_signals.classify")

Classification = TransactionCandidate | Rejected


def _first_match(text: str, patterns: tuple[NamedPattern, ...]) -> str | None:
    for pattern in patterns:
        if pattern.regex.search(text):
            return pattern.name
    return None


def _contains_any(lowered: str, keywords: tuple[str, ...]) -> bool:
    return any(k in lowered for k in keywords)


def infer_source_tag(text: str) -> SourceTag:
    """Return the payment rail named in ``text`` (first matching rule wins)."""

    for rule in SOURCE_RULES:
        if _first_match(text, rule.patterns) is not None:
            return rule.tag
    return SourceTag.OTHER


def is_cc_bill_payment(text: str) -> bool:
    return _first_match(text, CC_BILL_PAYMENT_PATTERNS) is not None


def classify_sms(text: str | None, *, observed_at: datetime) -> Classification:
    """Classify a bank SMS body.

    Rules, in order:

    1. Exclusion phrasing (OTPs, bill-due reminders, promotions) rejects the
       message before anything else is considered.
    2. Without a debit or credit keyword (or a card bill-payment phrase) the
       message is not a transaction.
    3. A positive amount is required.
    4. Card bill-payment confirmations and debit wording are expenses;
       everything else is income.

    The merchant, when found, doubles as the description.
    """

    if not text or not text.strip():
        return Rejected("empty message")

    excluded_by = _first_match(text, SMS_EXCLUSION_PATTERNS)
    if excluded_by is not None:
        return Rejected(f"excluded ({excluded_by})")

    lowered = text.lower()
    is_debit = _contains_any(lowered, DEBIT_KEYWORDS)
    is_credit = _contains_any(lowered, CREDIT_KEYWORDS)
    cc_bill = is_cc_bill_payment(text)
    if not (is_debit or is_credit or cc_bill):
        return Rejected("no transaction keywords")

    amount = extract_amount(text)
    if amount is None:
        return Rejected("no amount")
    if amount <= 0:
        return Rejected("non-positive amount")

    direction = Direction.EXPENSE if cc_bill or is_debit else Direction.INCOME
    merchant = extract_merchant(text)
    if merchant:
        description = merchant
    elif direction is Direction.EXPENSE:
        description = "Payment"
    else:
        description = "Received"

    return TransactionCandidate(
        amount=amount,
        direction=direction,
        merchant=merchant,
        source_tag=infer_source_tag(text),
        description=description,
        raw_text=text,
        observed_at=observed_at,
        suggested_category=CC_BILL_CATEGORY_HINT if cc_bill else None,
    )


def app_source_tag(package_name: str) -> SourceTag:
    return APP_SOURCE_TAGS.get(package_name, SourceTag.UPI)


def classify_payment_notification(signal: RawSignal) -> Classification:
    """Classify a notification posted by a known payment app.

    Only incoming payments are recorded from this channel; outgoing
    payments reach the ledger through the bank SMS instead.
    """

    app_name = KNOWN_PAYMENT_APPS.get(signal.source_app)
    if app_name is None:
        return Rejected(f"unknown payment app {signal.source_app!r}")

    combined = f"{signal.title} {signal.text} {signal.big_text}"
    lowered = combined.lower()
    if not _contains_any(lowered, INCOME_KEYWORDS):
        return Rejected("not an income notification")
    if _contains_any(lowered, NOTIFICATION_EXCLUDE_KEYWORDS):
        return Rejected("excluded notification")

    amount = extract_amount(combined, NOTIFICATION_AMOUNT_PATTERNS)
    if amount is None:
        return Rejected("no amount")
    if amount <= 0:
        return Rejected("non-positive amount")

    sender = extract_sender(signal.title, signal.text)
    if sender is not None:
        description = f"Received from {sender} via {app_name}"
    else:
        description = f"Payment received via {app_name}"

    _logger.debug("Income notification from %s: %s %s", app_name, amount, sender or "unknown")
    return TransactionCandidate(
        amount=amount,
        direction=Direction.INCOME,
        merchant=sender,
        source_tag=app_source_tag(signal.source_app),
        description=description,
        raw_text=combined.strip(),
        observed_at=signal.observed_at,
    )


__all__ = [
    "Classification",
    "infer_source_tag",
    "is_cc_bill_payment",
    "classify_sms",
    "app_source_tag",
    "classify_payment_notification",
]
