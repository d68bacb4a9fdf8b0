from datetime import UTC, datetime
from decimal import Decimal

import pytest

from payment_signals.models import (
    Category,
    Direction,
    HistoricalTransaction,
    SourceTag,
    TransactionFields,
)
from payment_signals.recommend import (
    CategoryRecommendationScorer,
    amount_bucket,
    description_words,
    time_bucket,
)

FOOD = Category(id=1, name="Food", emoji="🍽")
RESTAURANTS = Category(id=2, name="Restaurants", parent_id=1)
TRANSPORT = Category(id=3, name="Transport")


def _tx(
    amount,
    category_id,
    *,
    description="",
    merchant=None,
    source=SourceTag.UPI,
    at=datetime(2024, 6, 1, 3, 0, tzinfo=UTC),
    direction=Direction.EXPENSE,
    pending=False,
):
    return HistoricalTransaction(
        amount=Decimal(amount),
        direction=direction,
        description=description,
        merchant=merchant,
        category_id=category_id,
        source_tag=source,
        occurred_at=at,
        is_pending=pending,
    )


def _fields(amount="100", *, description="", merchant=None, source=SourceTag.UPI):
    return TransactionFields(
        amount=Decimal(amount),
        direction=Direction.EXPENSE,
        description=description,
        merchant=merchant,
        source_tag=source,
    )


@pytest.fixture
def scorer(clock) -> CategoryRecommendationScorer:
    return CategoryRecommendationScorer(clock)


def _by_name(scored):
    return {s.category.name: s for s in scored}


def _swiggy_and_uber():
    return [
        _tx("420", 2, description="Swiggy", merchant="SWIGGY", at=datetime(2024, 12, 30, 13, tzinfo=UTC)),
        _tx("60", 3, description="Uber ride", merchant="UBER", at=datetime(2024, 12, 31, 9, tzinfo=UTC)),
    ]


@pytest.mark.parametrize(
    ("hour", "bucket"),
    [
        (5, "night"),
        (6, "morning"),
        (10, "morning"),
        (11, "lunch"),
        (14, "lunch"),
        (15, "afternoon"),
        (18, "afternoon"),
        (19, "evening"),
        (22, "evening"),
        (23, "night"),
    ],
)
def test_time_bucket_boundaries(hour, bucket):
    assert time_bucket(hour) == bucket


@pytest.mark.parametrize(
    ("amount", "bucket"),
    [("49.99", 0), ("50", 1), ("199", 1), ("200", 2), ("999.99", 3), ("9999", 6), ("10000", 7)],
)
def test_amount_bucket_boundaries(amount, bucket):
    assert amount_bucket(Decimal(amount)) == bucket


def test_description_words():
    assert description_words("Uber ride - airport/home, ok") == {"uber", "ride", "airport", "home"}


def test_same_merchant_scores_child_and_parent(scorer):
    history = _swiggy_and_uber()
    fields = _fields("350", description="Swiggy order", merchant=" Swiggy ")

    scored = _by_name(scorer.score(fields, [FOOD, RESTAURANTS, TRANSPORT], history, hour=13))

    # 100 merchant + 10 description + 12.5 frequency + 2 recency
    assert scored["Restaurants"].score == pytest.approx(124.5)
    assert scored["Restaurants"].reason == "Same merchant"
    assert scored["Food"].score == pytest.approx(124.5)
    assert scored["Transport"].score == pytest.approx(14.5)
    assert scored["Transport"].reason == "Frequently used"


def test_recommend_orders_by_score_keeping_input_order_for_ties(scorer):
    history = _swiggy_and_uber()
    fields = _fields("350", description="Swiggy order", merchant="Swiggy")
    ranked = scorer.recommend(fields, [FOOD, RESTAURANTS, TRANSPORT], history, hour=13)
    assert [s.category.name for s in ranked] == ["Food", "Restaurants", "Transport"]


def test_similar_merchant(scorer):
    history = [_tx("420", 2, merchant="SWIGGY")]
    scored = _by_name(
        scorer.score(_fields(merchant="Swiggy Instamart"), [RESTAURANTS], history, hour=3)
    )
    assert scored["Restaurants"].reason == "Similar merchant"


def test_blank_historical_merchant_never_matches(scorer):
    history = [_tx("420", 2, merchant=""), _tx("420", 2, merchant=None)]
    scored = _by_name(scorer.score(_fields(merchant="Swiggy"), [RESTAURANTS], history, hour=3))
    assert scored["Restaurants"].reason == "Frequently used"
    assert scored["Restaurants"].score == pytest.approx(25.0)


def test_name_match_with_empty_history(scorer):
    scored = _by_name(
        scorer.score(_fields(description="Transport to airport"), [FOOD, TRANSPORT], [], hour=3)
    )
    assert scored["Transport"].score == pytest.approx(30.0)
    assert scored["Transport"].reason == "Name match"
    assert scored["Food"].score == 0.0
    assert scored["Food"].reason == ""


def test_blank_description_never_name_matches(scorer):
    scored = scorer.score(_fields(description="  "), [FOOD, TRANSPORT], [], hour=3)
    assert all(s.score == 0.0 for s in scored)


def test_source_time_and_amount_rules(scorer):
    evening = datetime(2024, 6, 1, 20, 0, tzinfo=UTC)
    history = [_tx("150", 3, source=SourceTag.CREDIT_CARD, at=evening) for _ in range(3)]
    history.append(_tx("5000", 1, source=SourceTag.UPI, at=datetime(2024, 6, 1, 9, 0, tzinfo=UTC)))
    fields = _fields("100", source=SourceTag.CREDIT_CARD)

    scored = _by_name(scorer.score(fields, [FOOD, TRANSPORT], history, hour=20))

    # 18.75 frequency + 20 source + 15 time + 15 amount
    assert scored["Transport"].score == pytest.approx(68.75)
    assert scored["Transport"].reason == "Frequently used"
    assert scored["Food"].score == pytest.approx(6.25)


def test_source_rule_uses_share_of_same_source_history(scorer):
    history = [_tx("150", 3, source=SourceTag.CREDIT_CARD) for _ in range(3)]
    # 25 frequency + 20 source + 15 amount; 03:00 is outside the lunch bucket.
    scored = scorer.score(_fields(source=SourceTag.CREDIT_CARD), [TRANSPORT], history, hour=12)
    assert scored[0].score == pytest.approx(25.0 + 20.0 + 15.0)


def test_pending_and_other_direction_history_is_ignored(scorer):
    history = [
        _tx("100", 3, merchant="UBER", pending=True),
        _tx("100", 3, merchant="UBER", direction=Direction.INCOME),
        _tx("100", None, merchant="UBER"),
    ]
    scored = scorer.score(_fields(merchant="Uber"), [TRANSPORT], history, hour=3)
    assert scored[0].score == 0.0


def test_recency_uses_clock(scorer, clock):
    recent = [_tx("100", 3, at=clock.now().replace(month=1, day=1, hour=3)) for _ in range(6)]
    scored = scorer.score(_fields("99999", source=SourceTag.CASH), [TRANSPORT], recent, hour=12)
    # 25 frequency + min(10, 2 * 6) recency
    assert scored[0].score == pytest.approx(35.0)


def test_hour_defaults_to_clock(scorer, clock):
    lunch = [_tx("100", 3, at=datetime(2024, 6, 1, 12, 30, tzinfo=UTC)) for _ in range(3)]
    fields = _fields("99999", source=SourceTag.CASH)
    assert clock.now().hour == 12
    # 25 frequency + 15 time of day
    assert scorer.score(fields, [TRANSPORT], lunch)[0].score == pytest.approx(40.0)
    assert scorer.score(fields, [TRANSPORT], lunch, hour=3)[0].score == pytest.approx(25.0)


def test_recommend_top_five_then_remaining_top_level_by_name(scorer):
    categories = [
        Category(id=1, name="zeta"),
        Category(id=2, name="B"),
        Category(id=3, name="C"),
        Category(id=4, name="D"),
        Category(id=5, name="E"),
        Category(id=6, name="F"),
        Category(id=7, name="Alpha"),
        Category(id=8, name="child of zeta", parent_id=1),
    ]
    history = [_tx("10", cid) for cid in range(1, 7) for _ in range(cid)]

    ranked = scorer.recommend(_fields("99999"), categories, history, hour=12)

    assert [s.category.id for s in ranked] == [6, 5, 4, 3, 2, 7, 1]


def test_no_categories(scorer):
    assert scorer.recommend(_fields(), [], []) == []


def test_naive_history_timestamps_are_read_as_utc(scorer, clock):
    # 2025-01-01 03:00 and 2024-06-01 03:00, without an offset.
    history = [
        _tx("100", 3, at=datetime(2025, 1, 1, 3, 0)),
        _tx("100", 3, at=datetime(2024, 6, 1, 3, 0)),
    ]
    scored = scorer.score(_fields("99999", source=SourceTag.CASH), [TRANSPORT], history, hour=12)
    # 25 frequency + 2 recency for the single row inside the last 30 days
    assert scored[0].score == pytest.approx(27.0)


def test_naive_now_is_read_as_utc(scorer):
    history = [_tx("100", 3, at=datetime(2024, 12, 31, 3, 0, tzinfo=UTC))]
    scored = scorer.score(
        _fields("99999", source=SourceTag.CASH),
        [TRANSPORT],
        history,
        hour=12,
        now=datetime(2025, 1, 1, 12, 0),
    )
    assert scored[0].score == pytest.approx(27.0)
