from datetime import UTC, datetime, timedelta
from decimal import Decimal

import pytest

from payment_signals.classify import classify_payment_notification
from payment_signals.dedup import ProcessedNameCache
from payment_signals.models import (
    Channel,
    Direction,
    RawSignal,
    Rejected,
    Suppressed,
    SourceTag,
    TransactionCandidate,
)
from payment_signals.patterns import SPLITWISE_PACKAGE
from payment_signals.splitwise import SplitwiseNotificationParser, parse_expense

T0 = datetime(2025, 1, 1, 12, 0, tzinfo=UTC)
GPAY = "com.google.android.apps.nbu.paisa.user"
PHONEPE = "com.phonepe.app"
PAYTM = "net.one97.paytm"


def _notification(app, *, title="", text="", big_text="", ticker="", lines=()):
    return RawSignal(
        channel=Channel.NOTIFICATION,
        source_app=app,
        text=text,
        observed_at=T0,
        title=title,
        big_text=big_text,
        ticker=ticker,
        lines=tuple(lines),
    )


# ---- payment apps -------------------------------------------------------------


def test_gpay_income_with_sender():
    result = classify_payment_notification(
        _notification(GPAY, title="Rahul Sharma sent you ₹500.00", text="Money received in your bank")
    )
    assert isinstance(result, TransactionCandidate)
    assert result.direction is Direction.INCOME
    assert result.amount == Decimal("500.00")
    assert result.merchant == "Rahul Sharma"
    assert result.description == "Received from Rahul Sharma via GPay"
    assert result.source_tag is SourceTag.GOOGLE_PAY


def test_phonepe_income_without_sender():
    result = classify_payment_notification(
        _notification(PHONEPE, title="Money received", text="₹1,250 credited to your account")
    )
    assert isinstance(result, TransactionCandidate)
    assert result.amount == Decimal("1250")
    assert result.merchant is None
    assert result.description == "Payment received via PhonePe"
    assert result.source_tag is SourceTag.PHONEPE


def test_unlisted_app_source_defaults_to_upi():
    result = classify_payment_notification(_notification(PAYTM, title="Received ₹300 from Amit"))
    assert isinstance(result, TransactionCandidate)
    assert result.merchant == "Amit"
    assert result.source_tag is SourceTag.UPI


def test_big_text_contributes_amount():
    result = classify_payment_notification(
        _notification(GPAY, title="Money received", big_text="Rs 42 received from Kiran")
    )
    assert isinstance(result, TransactionCandidate)
    assert result.amount == Decimal("42")


@pytest.mark.parametrize(
    ("title", "text"),
    [
        ("You received a reward!", "Win cashback up to ₹100"),
        ("Pre-approved loan", "₹50,000 credited instantly"),
        ("You paid ₹200", "Payment received by merchant"),
    ],
)
def test_promotional_and_outgoing_notifications_are_excluded(title, text):
    result = classify_payment_notification(_notification(GPAY, title=title, text=text))
    assert result == Rejected("excluded notification")


def test_non_income_notification():
    result = classify_payment_notification(_notification(GPAY, title="Your bill is ready"))
    assert result == Rejected("not an income notification")


def test_income_without_amount():
    result = classify_payment_notification(_notification(GPAY, title="Rahul sent you money"))
    assert result == Rejected("no amount")


def test_unknown_app_is_rejected():
    result = classify_payment_notification(_notification("com.whatsapp", title="Asha sent you ₹5"))
    assert isinstance(result, Rejected)


# ---- Splitwise ----------------------------------------------------------------


@pytest.fixture
def parser() -> SplitwiseNotificationParser:
    return SplitwiseNotificationParser(ProcessedNameCache(timedelta(hours=24)))


def test_splitwise_single_expense(parser):
    [result] = parser.parse(
        _notification(SPLITWISE_PACKAGE, title="Dinner (₹600.00)", text="– You owe ₹200.00"), T0
    )
    assert isinstance(result, TransactionCandidate)
    assert result.amount == Decimal("200.00")
    assert result.direction is Direction.EXPENSE
    assert result.source_tag is SourceTag.SPLITWISE
    assert result.description == "Dinner"
    assert result.split is not None
    assert (result.split.numerator, result.split.denominator) == (1, 3)
    assert result.split.total_amount == Decimal("600.00")


def test_splitwise_single_without_share_defaults_to_half(parser):
    [result] = parser.parse(
        _notification(SPLITWISE_PACKAGE, title="Cab (₹450.00)", text="You owe your share"), T0
    )
    assert isinstance(result, TransactionCandidate)
    assert result.amount == Decimal("225.00")
    assert (result.split.numerator, result.split.denominator) == (1, 2)


def test_splitwise_single_reads_ticker_when_title_has_no_total(parser):
    [result] = parser.parse(
        _notification(
            SPLITWISE_PACKAGE,
            title="Splitwise",
            ticker='Alice added "Groceries" (₹900.00)',
            text="You owe ₹300.00",
        ),
        T0,
    )
    assert isinstance(result, TransactionCandidate)
    assert result.description == "Groceries"
    assert (result.split.numerator, result.split.denominator) == (1, 3)


def test_splitwise_single_is_processed_once_per_ttl(parser):
    signal = _notification(SPLITWISE_PACKAGE, title="Dinner (₹600.00)", text="You owe ₹200.00")
    assert isinstance(parser.parse(signal, T0)[0], TransactionCandidate)
    assert parser.parse(signal, T0 + timedelta(hours=23)) == [Suppressed("already processed")]
    assert isinstance(parser.parse(signal, T0 + timedelta(hours=24))[0], TransactionCandidate)


def test_splitwise_ignores_non_you_owe(parser):
    result = parser.parse(
        _notification(SPLITWISE_PACKAGE, title="Alice paid you ₹300.00", text="Settled up"), T0
    )
    assert result == [Rejected("not a you-owe notification")]


def _bundle(lines, ticker):
    return _notification(
        SPLITWISE_PACKAGE,
        title=f"{len(lines)} new expenses",
        text="You owe money in 2 groups",
        ticker=ticker,
        lines=lines,
    )


def test_splitwise_bundle_yields_one_candidate_per_line(parser):
    results = parser.parse(
        _bundle(
            ["Dinner (₹600.00)", "Movie (₹900.00)", "Cab (₹300.00)"],
            "Cab (₹300.00) - You owe ₹100.00",
        ),
        T0,
    )
    assert all(isinstance(r, TransactionCandidate) for r in results)
    by_name = {r.description: r for r in results}
    assert by_name["Dinner"].amount == Decimal("300.00")
    assert by_name["Movie"].amount == Decimal("450.00")
    # Only the ticker's expense carries an exact share.
    assert by_name["Cab"].amount == Decimal("100.00")
    assert (by_name["Cab"].split.numerator, by_name["Cab"].split.denominator) == (1, 3)


def test_splitwise_bundle_repost_only_yields_new_lines(parser):
    parser.parse(_bundle(["Dinner (₹600.00)", "Movie (₹900.00)"], "Movie (₹900.00)"), T0)
    results = parser.parse(
        _bundle(
            ["Dinner (₹600.00)", "movie  (₹900.00)", "Snacks (₹120.00)"],
            "Snacks (₹120.00) - You owe ₹40.00",
        ),
        T0 + timedelta(minutes=5),
    )
    new = [r for r in results if isinstance(r, TransactionCandidate)]
    assert [r.description for r in new] == ["Snacks"]
    assert new[0].amount == Decimal("40.00")
    assert sum(1 for r in results if r == Suppressed("already processed")) == 2


def test_splitwise_bundle_unparseable_line(parser):
    results = parser.parse(_bundle(["Dinner (₹600.00)", "garbage line"], ""), T0)
    assert isinstance(results[0], TransactionCandidate)
    assert isinstance(results[1], Rejected)
    assert "unparseable" in results[1].reason


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("Dinner (₹600.00)", ("Dinner", Decimal("600.00"))),
        ('"Team lunch" (Rs. 1,200)', ("Team lunch", Decimal("1200"))),
        ("Bob added “Taxi” (INR 80)", ("Taxi", Decimal("80"))),
        ("No total here", None),
        ("Free (₹0.00)", None),
    ],
)
def test_parse_expense(text, expected):
    assert parse_expense(text) == expected
