"""Field extraction over free-form, untrusted text.

All helpers return ``None`` for "not found" and never raise: the text comes
straight from SMS bodies and notification extras and may be empty, huge, or
deliberately malformed.
"""

from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal, InvalidOperation

from .patterns import (
    AMOUNT_PATTERNS,
    MERCHANT_MAX_LEN,
    MERCHANT_PATTERNS,
    SENDER_MAX_LEN,
    SENDER_PATTERNS,
    NamedPattern,
)


def parse_amount(raw: str | None) -> Decimal | None:
    """Parse a captured amount, stripping thousands separators.

    Returns ``None`` for anything that is not a finite number.
    """

    if raw is None:
        return None
    s = raw.replace(",", "").strip()
    if not s:
        return None
    try:
        d = Decimal(s)
    except InvalidOperation:
        return None
    if not d.is_finite():
        return None
    return d


def extract_amount(
    text: str | None, patterns: Sequence[NamedPattern] = AMOUNT_PATTERNS
) -> Decimal | None:
    """Return the amount captured by the first pattern that yields a number."""

    if not text:
        return None
    for pattern in patterns:
        match = pattern.regex.search(text)
        if match is None:
            continue
        amount = parse_amount(match.group(1))
        if amount is not None:
            return amount
    return None


def extract_merchant(
    text: str | None, patterns: Sequence[NamedPattern] = MERCHANT_PATTERNS
) -> str | None:
    """Return the counterparty named by the first matching structural pattern.

    The capture is trimmed and capped at 50 characters. A blank capture is
    treated as no match for that pattern.
    """

    if not text:
        return None
    for pattern in patterns:
        match = pattern.regex.search(text)
        if match is None:
            continue
        merchant = match.group(1).strip()[:MERCHANT_MAX_LEN].strip()
        if merchant:
            return merchant
    return None


def extract_sender(*texts: str | None) -> str | None:
    """Return the payer named in a payment-app notification.

    Each text (typically title, then body) is tried against every sender
    pattern before moving on to the next text.
    """

    for text in texts:
        if not text:
            continue
        for pattern in SENDER_PATTERNS:
            match = pattern.regex.search(text)
            if match is None:
                continue
            sender = match.group(1).strip()
            if sender and len(sender) < SENDER_MAX_LEN:
                return sender
    return None


__all__ = ["parse_amount", "extract_amount", "extract_merchant", "extract_sender"]
