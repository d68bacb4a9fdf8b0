"""Ordered, data-driven pattern tables.

Every heuristic in the classification core reads its patterns from here.
Tables are tuples because order is part of the contract: extraction and
source-tag inference use the *first* entry that matches, so reordering a
table changes behavior. Each regex entry carries a ``name`` so tests (and
DEBUG logs) can point at the exact rule that fired.

Keyword lists are matched as lowercase substrings; regex tables are compiled
case-insensitive unless noted.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from .models import SourceTag


@dataclass(frozen=True, slots=True)
class NamedPattern:
    name: str
    regex: re.Pattern[str]


def _p(name: str, pattern: str, flags: int = re.IGNORECASE) -> NamedPattern:
    return NamedPattern(name, re.compile(pattern, flags))


# Numeric capture shared by the amount tables. Deliberately loose (commas and
# a trailing dot are allowed); captures that do not parse after stripping
# commas fall through to the next pattern.
_NUM = r"([0-9,]+\.?\d*)"

# ---------------------------------------------------------------------------
# Amounts
# ---------------------------------------------------------------------------

AMOUNT_PATTERNS: tuple[NamedPattern, ...] = (
    _p("rupee_symbol", rf"₹\s*{_NUM}"),
    _p("rs", rf"\bRs\.?\s*{_NUM}"),
    _p("inr", rf"\bINR\.?\s*{_NUM}"),
    _p("debited_by", rf"\bdebited\s+by\s+{_NUM}"),
    _p("credited_by", rf"\bcredited\s+by\s+{_NUM}"),
    _p("usd", rf"\bUSD\s*{_NUM}"),
    _p("eur", rf"\bEUR\s*{_NUM}"),
    _p("gbp", rf"\bGBP\s*{_NUM}"),
)

# Payment-app notifications only ever quote rupee amounts.
NOTIFICATION_AMOUNT_PATTERNS: tuple[NamedPattern, ...] = AMOUNT_PATTERNS[:3]

# ---------------------------------------------------------------------------
# Counterparties
# ---------------------------------------------------------------------------

MERCHANT_PATTERNS: tuple[NamedPattern, ...] = (
    # SBI: "trf to CHUNDURU VENKATA Refno 5123"
    _p("trf_to_refno", r"\btrf to ([A-Za-z0-9\s]+?)\s+Refno"),
    # "to PAILA VENKATA S.Ref:"
    _p("to_ref", r"\bto\s+([A-Za-z0-9\s.]+?)\.?Ref"),
    # "At MERCHANT On 2025-01-02"
    _p("at_on_date", r"\bAt\s+([A-Za-z0-9\s&*_-]+?)\s+On\s+\d"),
    # "towards AMAZON using"
    _p("towards_using", r"\btowards\s+([A-Za-z0-9\s&*_-]+?)\s+using"),
    # "at AMAZON on ICICI Card"
    _p("at_on_bank", r"\bat\s+([A-Za-z0-9\s&*_-]+?)\s+on\s+[A-Z]"),
    _p("to_or_at", r"\b(?:to|at)\s+([A-Za-z0-9\s]+?)(?:\s+on|\s+ref|\.|\s*$)"),
    _p("vpa", r"\bVPA\s+([a-z0-9@.]+)"),
)

MERCHANT_MAX_LEN = 50

SENDER_PATTERNS: tuple[NamedPattern, ...] = (
    _p("sent_or_paid_you", r"^(.+?)\s+(?:sent|paid)\s+you"),
    _p("from", r"\bfrom\s+(.+?)(?:\s+via|\s+on|\s*$)"),
)

SENDER_MAX_LEN = 100

# ---------------------------------------------------------------------------
# SMS classification
# ---------------------------------------------------------------------------

# Checked before anything else; any hit rejects the message outright.
SMS_EXCLUSION_PATTERNS: tuple[NamedPattern, ...] = (
    # OTP phrasing
    _p("otp", r"\botp\b"),
    _p("one_time_password", r"\bone[\s-]?time\s+pass(?:word|code)\b"),
    _p("verification_code", r"\bverification\s+code\b"),
    # Bill-due reminders
    _p("is_due", r"\bis\s+due\b"),
    _p("due_on", r"\bdue\s+(?:on|by|date)\b"),
    _p("bill_due", r"\b(?:bill|payment|amount|amt)\s+(?:is\s+)?due\b"),
    _p("minimum_due", r"\bmin(?:imum|\.)?\s+(?:amount\s+|amt\.?\s+)?due\b"),
    _p("total_due", r"\btotal\s+(?:amount\s+|amt\.?\s+)?due\b"),
    _p("overdue", r"\boverdue\b"),
    # Promotions
    _p("pre_approved", r"\bpre[\s-]?approved\b"),
    _p("apply_now", r"\bapply\s+now\b"),
    _p("avail_now", r"\bavail\s+(?:now|offer|it)\b"),
    _p("limited_offer", r"\blimited\s+(?:period|time)\s+offer\b"),
    _p("offer_valid", r"\boffer\s+valid\b"),
    _p("exclusive_offer", r"\bexclusive\s+offer\b"),
    _p("voucher_code", r"\b(?:voucher|coupon|promo)\s+code\b"),
    _p("win_prize", r"\bwin\s+(?:a|an|up\s+to|assured)\b"),
    _p("lucky_draw", r"\blucky\s+draw\b"),
    _p("shop_now", r"\bshop\s+now\b"),
)

DEBIT_KEYWORDS: tuple[str, ...] = (
    "debited",
    "debit",
    "spent",
    "paid",
    "payment",
    "purchase",
    "withdrawn",
    "withdrawal",
    "sent",
    "transfer to",
    "txn",
)

CREDIT_KEYWORDS: tuple[str, ...] = (
    "credited",
    "credit",
    "received",
    "refund",
    "cashback",
    "deposit",
    "transfer from",
    "added",
)

# Confirmations that a credit card bill was paid off. Worded like a credit
# ("payment received") but booked as an expense from the user's side.
CC_BILL_PAYMENT_PATTERNS: tuple[NamedPattern, ...] = (
    _p("cc_bill_payment", r"\bcredit\s*card\s+bill\s+payment\b"),
    _p("payment_received_cc", r"\bpayment\b.{0,60}?\breceived\b.{0,40}?\bcredit\s*card\b"),
    _p("received_payment_cc", r"\breceived\b.{0,20}?\bpayment\b.{0,60}?\bcredit\s*card\b"),
    _p("payment_towards_cc", r"\bpayment\b.{0,60}?\btowards\s+(?:your\s+)?credit\s*card\b"),
)

CC_BILL_CATEGORY_HINT = "Credit Card Bill"


@dataclass(frozen=True, slots=True)
class SourceRule:
    tag: SourceTag
    patterns: tuple[NamedPattern, ...]


# First rule with any matching pattern wins.
SOURCE_RULES: tuple[SourceRule, ...] = (
    SourceRule(
        SourceTag.UPI,
        (
            _p("upi_ref_id", r"\bUPI[-/]([A-Za-z0-9]+)"),
            _p("upi_ref", r"\bUPI\s+Ref"),
            _p("via_upi", r"\bvia\s+UPI\b"),
            _p("upi_on", r"\bUPI\s+on\b"),
            _p("upi_handle", r"@[a-z]+"),
            _p("trf_to", r"\btrf to\b"),
            _p("upi_user", r"\bupi user\b"),
        ),
    ),
    SourceRule(
        SourceTag.CREDIT_CARD,
        (
            _p("credit_card", r"\bcredit card\b"),
            _p("cc", r"\bcc\s"),
            _p("bank_card_digits", r"\bbank\s+card\s+\d"),
        ),
    ),
    SourceRule(
        SourceTag.DEBIT_CARD,
        (
            _p("debit_card", r"\bdebit card\b"),
            _p("atm", r"\batm\b"),
        ),
    ),
    SourceRule(
        SourceTag.AUTO_DEBIT,
        (
            _p("auto_and_debit", r"^(?=.*auto)(?=.*debit)", re.IGNORECASE | re.DOTALL),
            _p("nach", r"\bnach\b"),
        ),
    ),
    SourceRule(
        SourceTag.BANK_TRANSFER,
        (_p("neft_imps_rtgs", r"\b(?:neft|imps|rtgs)\b"),),
    ),
    # Issuer-named cards ("ICICI Card", "HDFC Bank Card XX12") in bank SMS
    # are credit cards; debit cards are always spelled out above.
    SourceRule(
        SourceTag.CREDIT_CARD,
        (_p("issuer_card", r"\bcard\b"),),
    ),
)

# ---------------------------------------------------------------------------
# Payment-app notifications
# ---------------------------------------------------------------------------

KNOWN_PAYMENT_APPS: dict[str, str] = {
    "com.dreamplug.androidapp": "CRED",
    "com.google.android.apps.nbu.paisa.user": "GPay",
    "money.jupiter": "Jupiter",
    "com.phonepe.app": "PhonePe",
    "net.one97.paytm": "Paytm",
    "in.org.npci.upiapp": "BHIM",
    "in.amazon.mShop.android.shopping": "Amazon Pay",
    "com.freecharge.android": "Freecharge",
    "com.mobikwik_new": "MobiKwik",
}

# Apps without an entry map to SourceTag.UPI.
APP_SOURCE_TAGS: dict[str, SourceTag] = {
    "com.google.android.apps.nbu.paisa.user": SourceTag.GOOGLE_PAY,
    "com.phonepe.app": SourceTag.PHONEPE,
    "com.dreamplug.androidapp": SourceTag.CRED,
    "money.jupiter": SourceTag.JUPITER,
}

INCOME_KEYWORDS: tuple[str, ...] = (
    "sent you",
    "paid you",
    "received",
    "credited",
    "credit",
    "money received",
)

# Broader than the SMS exclusions: payment apps routinely push outgoing
# confirmations, offers, loan and bill nudges through the same channel.
NOTIFICATION_EXCLUDE_KEYWORDS: tuple[str, ...] = (
    "you sent",
    "you paid",
    "debited",
    "debit",
    "paid to",
    "pay now",
    "offer",
    "cashback",
    "reward",
    "win",
    "scratch",
    "coupon",
    "discount",
    "loan",
    "pre-approved",
    "bill due",
    "recharge",
)

# ---------------------------------------------------------------------------
# Splitwise
# ---------------------------------------------------------------------------

SPLITWISE_PACKAGE = "com.Splitwise.SplitwiseMobile"

SPLITWISE_YOU_OWE = "you owe"

_CUR = r"(?:₹|rs\.?|inr)"

# "Dinner (₹600.00)" with optional quotes around the name
SPLITWISE_EXPENSE_RE = re.compile(
    rf"(?P<name>[^()\n]+?)\s*\(\s*{_CUR}\s*(?P<total>[0-9,]+(?:\.\d+)?)\s*\)",
    re.IGNORECASE,
)

# "– You owe ₹200.00"
SPLITWISE_SHARE_RE = re.compile(
    rf"\byou\s+owe\s+{_CUR}\s*(?P<share>[0-9,]+(?:\.\d+)?)",
    re.IGNORECASE,
)

# ---------------------------------------------------------------------------
# Accessibility correlator
# ---------------------------------------------------------------------------

# Apps whose payments do not reliably produce a bank SMS. Jupiter is absent
# on purpose: its SMS already reaches the SMS path.
UPI_MONITOR_PACKAGES: frozenset[str] = frozenset(
    {
        "com.google.android.apps.nbu.paisa.user",
        "com.phonepe.app",
        "net.one97.paytm",
        "in.org.npci.upiapp",
        "com.dreamplug.androidapp",
        "in.amazon.mShop.android.shopping",
    }
)

# Masked PIN glyphs as rendered by UPI PIN pads.
PIN_MASK_RE = re.compile(r"[●•*]{4,6}")

SUCCESS_KEYWORDS: tuple[str, ...] = (
    "success",
    "successful",
    "completed",
    "paid",
    "sent",
    "done",
    "payment of",
    "debited",
    "transferred",
    "rupees",
    "inr",
    "₹",
)


__all__ = [
    "NamedPattern",
    "SourceRule",
    "AMOUNT_PATTERNS",
    "NOTIFICATION_AMOUNT_PATTERNS",
    "MERCHANT_PATTERNS",
    "MERCHANT_MAX_LEN",
    "SENDER_PATTERNS",
    "SENDER_MAX_LEN",
    "SMS_EXCLUSION_PATTERNS",
    "DEBIT_KEYWORDS",
    "CREDIT_KEYWORDS",
    "CC_BILL_PAYMENT_PATTERNS",
    "CC_BILL_CATEGORY_HINT",
    "SOURCE_RULES",
    "KNOWN_PAYMENT_APPS",
    "APP_SOURCE_TAGS",
    "INCOME_KEYWORDS",
    "NOTIFICATION_EXCLUDE_KEYWORDS",
    "SPLITWISE_PACKAGE",
    "SPLITWISE_YOU_OWE",
    "SPLITWISE_EXPENSE_RE",
    "SPLITWISE_SHARE_RE",
    "UPI_MONITOR_PACKAGES",
    "PIN_MASK_RE",
    "SUCCESS_KEYWORDS",
]
