"""Splitwise "you owe" notifications, single and bundled.

A single notification names one expense in its title (``Dinner (₹600.00)``)
and the user's share in its body (``You owe ₹200.00``). When several
expenses pile up Splitwise collapses them into an inbox-style notification:
each bundle line names an expense and its total, while the ticker only
describes the most recent one. Shares for the older lines are therefore
unknown and default to half of the total.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from datetime import datetime
from decimal import Decimal
from typing import TypeVar

from .dedup import ProcessedNameCache, normalize_name
from .extract import parse_amount
from .logging_setup import get_logger
from .models import (
    Direction,
    RawSignal,
    Rejected,
    SourceTag,
    SplitInfo,
    Suppressed,
    TransactionCandidate,
)
from .patterns import SPLITWISE_EXPENSE_RE, SPLITWISE_SHARE_RE, SPLITWISE_YOU_OWE
from .split import build_split_info, half_split

_logger = get_logger("payment_signals.splitwise")

_QUOTED_RE = re.compile(r"[\"“”'‘’]([^\"“”'‘’]+)[\"“”'‘’]")
_QUOTES = "\"“”'‘’ "

T = TypeVar("T")
SplitwiseResult = TransactionCandidate | Rejected | Suppressed


def _clean_name(raw: str) -> str:
    # 'Alice added "Dinner"' -> 'Dinner'
    quoted = _QUOTED_RE.search(raw)
    name = quoted.group(1) if quoted else raw
    return name.strip(_QUOTES)


def parse_expense(text: str | None) -> tuple[str, Decimal] | None:
    """Return ``(name, total)`` from ``"<Name> (₹<Total>)"``, or None."""

    if not text:
        return None
    match = SPLITWISE_EXPENSE_RE.search(text)
    if match is None:
        return None
    name = _clean_name(match.group("name"))
    total = parse_amount(match.group("total"))
    if not name or total is None or total <= 0:
        return None
    return name, total


def parse_share(text: str | None) -> Decimal | None:
    if not text:
        return None
    match = SPLITWISE_SHARE_RE.search(text)
    if match is None:
        return None
    return parse_amount(match.group("share"))


def _first(texts: tuple[str, ...], parse: Callable[[str], T | None]) -> T | None:
    for text in texts:
        value = parse(text)
        if value is not None:
            return value
    return None


class SplitwiseNotificationParser:
    """Turns Splitwise notifications into expense candidates.

    Expense names already turned into a candidate within the cache TTL are
    skipped, so re-posted bundles only yield their new lines.
    """

    def __init__(self, cache: ProcessedNameCache) -> None:
        self._cache = cache

    def parse(
        self, signal: RawSignal, now: datetime
    ) -> list[SplitwiseResult]:
        combined = " ".join(
            (signal.title, signal.text, signal.big_text, signal.ticker, *signal.lines)
        )
        if SPLITWISE_YOU_OWE not in combined.lower():
            return [Rejected("not a you-owe notification")]

        if len(signal.lines) >= 2:
            return self._parse_bundle(signal, now)
        return [self._parse_single(signal, now)]

    def _parse_single(self, signal: RawSignal, now: datetime) -> SplitwiseResult:
        expense = _first(
            (signal.title, signal.ticker, signal.text, signal.big_text), parse_expense
        )
        if expense is None:
            return Rejected("no expense name or total")
        name, total = expense

        share = _first((signal.text, signal.big_text, signal.ticker, signal.title), parse_share)
        if share is not None and share <= 0:
            return Rejected("non-positive share")
        split = half_split(total) if share is None else build_split_info(share, total)

        if not self._cache.claim(name, now):
            _logger.debug("Splitwise expense %r already processed", name)
            return Suppressed("already processed")
        raw_text = " ".join(t for t in (signal.title, signal.text) if t)
        return self._candidate(name, split, raw_text, signal.observed_at)

    def _parse_bundle(
        self, signal: RawSignal, now: datetime
    ) -> list[SplitwiseResult]:
        self._cache.purge(now)

        latest = parse_expense(signal.ticker)
        latest_key = normalize_name(latest[0]) if latest else None
        latest_share = parse_share(signal.ticker)

        results: list[SplitwiseResult] = []
        for line in signal.lines:
            expense = parse_expense(line)
            if expense is None:
                results.append(Rejected(f"unparseable bundle line {line!r}"))
                continue
            name, total = expense
            if (
                latest_key is not None
                and normalize_name(name) == latest_key
                and latest_share is not None
                and latest_share > 0
            ):
                split = build_split_info(latest_share, total)
            else:
                split = half_split(total)

            if not self._cache.claim(name, now):
                results.append(Suppressed("already processed"))
                continue
            results.append(self._candidate(name, split, line, signal.observed_at))

        _logger.debug(
            "Splitwise bundle: %d lines, %d new",
            len(signal.lines),
            sum(isinstance(r, TransactionCandidate) for r in results),
        )
        return results

    @staticmethod
    def _candidate(
        name: str, split: SplitInfo, raw_text: str, observed_at: datetime
    ) -> TransactionCandidate:
        return TransactionCandidate(
            amount=split.share_amount,
            direction=Direction.EXPENSE,
            merchant=None,
            source_tag=SourceTag.SPLITWISE,
            description=name,
            raw_text=raw_text,
            observed_at=observed_at,
            split=split,
        )


__all__ = ["parse_expense", "parse_share", "SplitwiseNotificationParser"]
