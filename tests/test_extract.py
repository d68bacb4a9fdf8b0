from decimal import Decimal

import pytest

from payment_signals.extract import extract_amount, extract_merchant, extract_sender, parse_amount


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("Rs. 450 debited for purchase", Decimal("450")),
        ("₹1,234.50 credited to your account", Decimal("1234.50")),
        ("INR 99.00 spent on card", Decimal("99.00")),
        ("Your a/c XX12 is debited by 500.00 on 02-Jan", Decimal("500.00")),
        ("A/c credited by 75 via NEFT", Decimal("75")),
        ("USD 12.5 charged", Decimal("12.5")),
        ("EUR 40 charged", Decimal("40")),
        ("GBP 7.25 charged", Decimal("7.25")),
        ("Rs 5. debited", Decimal("5")),
    ],
)
def test_extract_amount_patterns(text, expected):
    assert extract_amount(text) == expected


def test_extract_amount_table_order_wins_over_text_order():
    # The rupee-symbol pattern is tried before "Rs", whatever comes first in the text.
    assert extract_amount("Rs 100 debited, balance ₹200") == Decimal("200")


def test_extract_amount_unparseable_capture_falls_through():
    # "Rs ,,," captures only commas; the INR pattern still finds the amount.
    assert extract_amount("Rs ,,, debited INR 300") == Decimal("300")


@pytest.mark.parametrize("text", [None, "", "no money here", "Rs ,,,, debited"])
def test_extract_amount_absent(text):
    assert extract_amount(text) is None


def test_parse_amount_rejects_non_finite():
    assert parse_amount("NaN") is None
    assert parse_amount("1,000") == Decimal("1000")


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("Rs. 450 debited for purchase at AMAZON on ICICI Card", "AMAZON"),
        ("Rs.500 debited from A/c XX1234 trf to CHUNDURU VENKATA Refno 512345", "CHUNDURU VENKATA"),
        ("Sent Rs.200 from HDFC Bank to PAILA VENKATA S.Ref: 123", "PAILA VENKATA S"),
        ("Spent INR 1,200 At SWIGGY On 2025-01-02", "SWIGGY"),
        ("Rs 649 paid towards NETFLIX using card XX12", "NETFLIX"),
        ("Rs 100 credited via VPA john@okhdfc", "john@okhdfc"),
    ],
)
def test_extract_merchant_patterns(text, expected):
    assert extract_merchant(text) == expected


def test_extract_merchant_is_capped_at_50_chars():
    merchant = extract_merchant("Paid Rs 10 to " + "A" * 80 + ".")
    assert merchant == "A" * 50


@pytest.mark.parametrize("text", [None, "", "Rs 500 debited", "   "])
def test_extract_merchant_absent(text):
    assert extract_merchant(text) is None


def test_extract_sender_from_title_first():
    assert extract_sender("Rahul Sharma sent you ₹500", "from Someone Else") == "Rahul Sharma"


def test_extract_sender_falls_back_to_body():
    assert extract_sender("Payment received", "₹500 received from Priya via UPI") == "Priya"


def test_extract_sender_paid_you():
    assert extract_sender("Anita paid you ₹120") == "Anita"


def test_extract_sender_rejects_overlong_names():
    assert extract_sender("X" * 150 + " sent you ₹5") is None


def test_extract_sender_handles_missing_text():
    assert extract_sender(None, "") is None
