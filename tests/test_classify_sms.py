from datetime import UTC, datetime
from decimal import Decimal

import pytest

from payment_signals.classify import classify_sms, infer_source_tag
from payment_signals.models import Direction, Rejected, SourceTag, TransactionCandidate

T0 = datetime(2025, 1, 1, 12, 0, tzinfo=UTC)


def _classify(text):
    return classify_sms(text, observed_at=T0)


def test_card_purchase_sms():
    result = _classify("Rs. 450 debited for purchase at AMAZON on ICICI Card")
    assert isinstance(result, TransactionCandidate)
    assert result.amount == Decimal("450")
    assert result.direction is Direction.EXPENSE
    assert result.source_tag is SourceTag.CREDIT_CARD
    assert result.merchant == "AMAZON"
    assert result.description == "AMAZON"
    assert result.observed_at == T0
    assert result.suggested_category is None


@pytest.mark.parametrize(
    "text",
    [
        "OTP is 4521",
        "Your OTP for Rs. 5000 debited transaction is 123456",
        "Use verification code 8812 to confirm payment of Rs 200",
        "Your credit card bill of Rs 5,000 is due on 05-Feb",
        "Minimum amount due Rs 1,200 for card XX12. Pay now",
        "Pre-approved loan of Rs 5,00,000 credited instantly. Apply now",
        "Shop now and get Rs 500 cashback credited",
    ],
)
def test_exclusions_reject_regardless_of_amount_and_keywords(text):
    result = _classify(text)
    assert isinstance(result, Rejected)
    assert result.reason.startswith("excluded")


def test_no_transaction_keywords():
    assert _classify("Rs 500 balance in your account") == Rejected("no transaction keywords")


def test_no_amount():
    assert _classify("Your account was debited") == Rejected("no amount")


def test_non_positive_amount():
    assert _classify("Rs 0 debited from a/c XX12") == Rejected("non-positive amount")


def test_income_without_merchant_uses_received():
    result = _classify("Rs 1500 credited to your a/c XX1234 by NEFT")
    assert isinstance(result, TransactionCandidate)
    assert result.direction is Direction.INCOME
    assert result.source_tag is SourceTag.BANK_TRANSFER
    assert result.merchant is None
    assert result.description == "Received"


def test_expense_without_merchant_uses_payment():
    result = _classify("Rs 300 debited from a/c XX1234 by NEFT")
    assert isinstance(result, TransactionCandidate)
    assert result.direction is Direction.EXPENSE
    assert result.description == "Payment"


def test_credit_card_bill_payment_is_an_expense_with_hint():
    result = _classify("Payment of Rs 15,000 received towards your Credit Card XX1234. Thank you")
    assert isinstance(result, TransactionCandidate)
    assert result.direction is Direction.EXPENSE
    assert result.amount == Decimal("15000")
    assert result.source_tag is SourceTag.CREDIT_CARD
    assert result.suggested_category == "Credit Card Bill"


@pytest.mark.parametrize(
    ("text", "tag"),
    [
        ("Rs.250.00 debited from A/c XX1234 for UPI/412345678 to swiggy@icici", SourceTag.UPI),
        ("Rs.500 debited from A/c XX1234 trf to RAMESH Refno 5123", SourceTag.UPI),
        ("Rs 900 spent on your HDFC credit card XX12", SourceTag.CREDIT_CARD),
        ("Rs 2000 withdrawn at ATM using Debit Card XX12", SourceTag.DEBIT_CARD),
        ("Rs 499 auto-debited for Netflix subscription", SourceTag.AUTO_DEBIT),
        ("Rs 1200 debited via NACH mandate", SourceTag.AUTO_DEBIT),
        ("Rs 10000 sent via IMPS to a/c XX99", SourceTag.BANK_TRANSFER),
        ("Rs 75 spent at CAFE on HDFC Bank Card XX12", SourceTag.CREDIT_CARD),
        ("Rs 75 paid at CAFE", SourceTag.OTHER),
    ],
)
def test_source_tags(text, tag):
    result = _classify(text)
    assert isinstance(result, TransactionCandidate)
    assert result.source_tag is tag


def test_source_rules_first_match_wins():
    # Mentions both UPI and a debit card; the UPI rule is earlier.
    assert infer_source_tag("UPI Ref 1234 debit card XX12") is SourceTag.UPI


@pytest.mark.parametrize(
    "text",
    [None, "", "   ", "Rs ,,,, debited", "₹" * 10_000, "debited " * 5_000, "\x00\x01 Rs. debited"],
)
def test_malformed_text_never_raises(text):
    assert isinstance(_classify(text), Rejected)
