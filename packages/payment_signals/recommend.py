"""Rank categories for a new transaction against categorized history.

Every category is scored by a fixed sequence of additive rules; the first
rule that contributes names the ``reason`` shown next to the suggestion.
Parent categories count their children's history as their own.

=========================  ======================================
Rule                       Contribution
=========================  ======================================
Same / similar merchant    +100 exact, else +50 substring
Similar description        min(40, 10 x matching transactions)
Name match                 +30
Frequently used            usage ratio x 25
Common for <source>        source ratio x 20 (at least 3 matches)
Common at this time        +15 (at least 3 matches)
Similar amount range       +15 (at least 2 matches)
Recently used              min(10, 2 x matches in last 30 days)
=========================  ======================================
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from datetime import UTC, datetime, timedelta
from decimal import Decimal

from .clock import Clock
from .models import Category, HistoricalTransaction, ScoredCategory, TransactionFields

TOP_N = 5
RECENT_WINDOW = timedelta(days=30)

_WORD_SPLIT_RE = re.compile(r"[ ,\-/]")

# Upper bounds for amount buckets; anything larger is the last bucket.
_AMOUNT_BUCKETS: tuple[int, ...] = (50, 200, 500, 1000, 2500, 5000, 10000)


def time_bucket(hour: int) -> str:
    if 6 <= hour <= 10:
        return "morning"
    if 11 <= hour <= 14:
        return "lunch"
    if 15 <= hour <= 18:
        return "afternoon"
    if 19 <= hour <= 22:
        return "evening"
    return "night"


def amount_bucket(amount: Decimal) -> int:
    for i, bound in enumerate(_AMOUNT_BUCKETS):
        if amount < bound:
            return i
    return len(_AMOUNT_BUCKETS)


def description_words(description: str) -> set[str]:
    return {w for w in _WORD_SPLIT_RE.split(description.lower()) if len(w) > 2}


def _as_aware(dt: datetime) -> datetime:
    # History rows from offset-less backends carry naive UTC timestamps.
    return dt if dt.tzinfo is not None else dt.replace(tzinfo=UTC)


class CategoryRecommendationScorer:
    def __init__(self, clock: Clock) -> None:
        self._clock = clock

    def score(
        self,
        fields: TransactionFields,
        categories: Sequence[Category],
        history: Iterable[HistoricalTransaction],
        *,
        hour: int | None = None,
        now: datetime | None = None,
    ) -> list[ScoredCategory]:
        """Score every category, preserving the input order."""

        if not categories:
            return []
        now = now or self._clock.now()
        if hour is None:
            hour = now.hour

        relevant = [
            t
            for t in history
            if t.direction == fields.direction and t.category_id is not None and not t.is_pending
        ]
        children: dict[int, set[int]] = {}
        for c in categories:
            if c.parent_id is not None:
                children.setdefault(c.parent_id, set()).add(c.id)

        ctx = _ScoringContext(
            fields=fields,
            relevant=relevant,
            words=description_words(fields.description),
            bucket=time_bucket(hour),
            amount_range=amount_bucket(fields.amount),
            recent_cutoff=_as_aware(now) - RECENT_WINDOW,
            same_source_total=sum(1 for t in relevant if t.source_tag == fields.source_tag),
        )
        out: list[ScoredCategory] = []
        for category in categories:
            ids = {category.id}
            if category.is_top_level:
                ids |= children.get(category.id, set())
            score, reason = ctx.score(category, ids)
            out.append(ScoredCategory(category=category, score=score, reason=reason))
        return out

    def recommend(
        self,
        fields: TransactionFields,
        categories: Sequence[Category],
        history: Iterable[HistoricalTransaction],
        *,
        hour: int | None = None,
        now: datetime | None = None,
    ) -> list[ScoredCategory]:
        """Top suggestions followed by the remaining top-level categories.

        The top list holds at most five categories with a positive score,
        highest first (ties keep input order). The rest are top-level
        categories not already suggested, ordered by case-insensitive name.
        """

        scored = self.score(fields, categories, history, hour=hour, now=now)
        top = sorted((s for s in scored if s.score > 0), key=lambda s: s.score, reverse=True)[
            :TOP_N
        ]
        picked = {s.category.id for s in top}
        remaining = sorted(
            (s for s in scored if s.category.is_top_level and s.category.id not in picked),
            key=lambda s: s.category.name.lower(),
        )
        return top + remaining


class _ScoringContext:
    __slots__ = (
        "fields",
        "relevant",
        "words",
        "bucket",
        "amount_range",
        "recent_cutoff",
        "same_source_total",
    )

    def __init__(
        self,
        *,
        fields: TransactionFields,
        relevant: list[HistoricalTransaction],
        words: set[str],
        bucket: str,
        amount_range: int,
        recent_cutoff: datetime,
        same_source_total: int,
    ) -> None:
        self.fields = fields
        self.relevant = relevant
        self.words = words
        self.bucket = bucket
        self.amount_range = amount_range
        self.recent_cutoff = recent_cutoff
        self.same_source_total = same_source_total

    def score(self, category: Category, ids: set[int]) -> tuple[float, str]:
        fields = self.fields
        mine = [t for t in self.relevant if t.category_id in ids]
        total = 0.0
        reason = ""

        def add(points: float, why: str) -> None:
            nonlocal total, reason
            if points <= 0:
                return
            total += points
            if not reason:
                reason = why

        # 1. merchant
        merchant = (fields.merchant or "").strip().lower()
        if merchant:
            hist = [(t.merchant or "").strip().lower() for t in mine]
            if any(m == merchant for m in hist):
                add(100.0, "Same merchant")
            elif any(m and (merchant in m or m in merchant) for m in hist):
                add(50.0, "Similar merchant")

        # 2. description words
        if self.words:
            matches = sum(
                1
                for t in mine
                if any(
                    w in t.description.lower() or w in (t.merchant or "").lower()
                    for w in self.words
                )
            )
            add(min(40.0, 10.0 * matches), "Similar description")

        # 3. category name
        desc = fields.description.strip().lower()
        name = category.name.lower()
        if desc and (name in desc or desc[:5] in name):
            add(30.0, "Name match")

        # 4. frequency
        if self.relevant:
            add(len(mine) / len(self.relevant) * 25.0, "Frequently used")

        # 5. source
        source_matches = sum(1 for t in mine if t.source_tag == fields.source_tag)
        if source_matches >= 3:
            add(
                source_matches / max(self.same_source_total, 1) * 20.0,
                f"Common for {fields.source_tag.name}",
            )

        # 6. time of day
        if sum(1 for t in mine if time_bucket(t.occurred_at.hour) == self.bucket) >= 3:
            add(15.0, "Common at this time")

        # 7. amount range
        if sum(1 for t in mine if amount_bucket(t.amount) == self.amount_range) >= 2:
            add(15.0, "Similar amount range")

        # 8. recency
        recent = sum(1 for t in mine if _as_aware(t.occurred_at) > self.recent_cutoff)
        add(min(10.0, 2.0 * recent), "Recently used")

        return total, reason


__all__ = [
    "TOP_N",
    "time_bucket",
    "amount_bucket",
    "description_words",
    "CategoryRecommendationScorer",
]
