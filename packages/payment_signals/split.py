"""Split-ratio inference for shared expenses."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from .models import SplitInfo

MAX_DENOMINATOR = 10
_TOLERANCE = Decimal("1.0")
_DEFAULT_RATIO = (1, 2)


def infer_split_ratio(share: Decimal, total: Decimal) -> tuple[int, int]:
    """Infer the simplest fraction ``n/d`` of ``total`` that ``share`` represents.

    Denominators 2..10 and numerators 1..d-1 are searched in increasing
    order; the first pair with ``|total * n / d - share| < 1.0`` wins. When
    nothing is within tolerance the ratio is approximated to tenths, clamped
    to ``[1, 9] / 10``. Degenerate inputs (non-positive values or a share
    larger than the total) yield ``(1, 2)``.
    """

    if total <= 0 or share <= 0 or share > total:
        return _DEFAULT_RATIO

    for denominator in range(2, MAX_DENOMINATOR + 1):
        for numerator in range(1, denominator):
            if abs(total * numerator / denominator - share) < _TOLERANCE:
                return numerator, denominator

    tenths = int((share / total * 10).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    return min(max(tenths, 1), 9), MAX_DENOMINATOR


def build_split_info(share: Decimal, total: Decimal) -> SplitInfo:
    numerator, denominator = infer_split_ratio(share, total)
    return SplitInfo(
        share_amount=share,
        total_amount=total,
        numerator=numerator,
        denominator=denominator,
    )


def half_split(total: Decimal) -> SplitInfo:
    """Default split when the user's share is unknown."""

    share = (total / 2).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    return SplitInfo(share_amount=share, total_amount=total, numerator=1, denominator=2)


__all__ = ["MAX_DENOMINATOR", "infer_split_ratio", "build_split_info", "half_split"]
