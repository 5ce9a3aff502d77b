import re

import pytest

from conftest import valid_payment
from validation import (
    check_amount_bounds,
    generate_reference,
    matches,
    sanitize_input,
    sanitize_payment,
    validate_credentials,
    validate_payment,
)


def test_sanitize_strips_markup_and_sql_keywords():
    assert sanitize_input("<script>alert('x')</script>") == "scriptalert(x)/script"
    assert sanitize_input("  pay rent; DROP table users  ") == "pay rent;  table users"
    assert sanitize_input("select * from accounts") == "* from accounts"


def test_sanitize_keeps_words_containing_keywords():
    assert sanitize_input("Selection of updates") == "Selection of updates"


def test_sanitize_truncates_and_passes_non_strings():
    assert len(sanitize_input("a" * 5000)) == 1000
    assert sanitize_input(12.5) == 12.5
    assert sanitize_input(None) is None


def test_valid_payment_has_no_errors():
    assert validate_payment(sanitize_payment(valid_payment())) == []


@pytest.mark.parametrize(
    "field,value,fragment",
    [
        ("amount", "12.345", "amount format"),
        ("amount", "-5", "amount format"),
        ("currency", "usd", "currency"),
        ("source_account", "short", "source account"),
        ("target_account", "acc123456789", "destination account"),
        ("beneficiary_name", "J4ne", "beneficiary name"),
        ("beneficiary_bank", "NWBKGB2", "SWIFT"),
        ("purpose", "hey", "purpose"),
    ],
)
def test_invalid_fields_report_field_messages(field, value, fragment):
    errors = validate_payment(valid_payment(**{field: value}))
    assert len(errors) == 1
    assert fragment in errors[0]


def test_missing_fields_are_invalid():
    errors = validate_payment({})
    assert len(errors) == 7


def test_swift_accepts_8_and_11_characters():
    assert matches("swift_code", "BOFAUS3N")
    assert matches("swift_code", "DEUTDEFF500")
    assert not matches("swift_code", "DEUTDEFF50")


def test_patterns_reject_trailing_newline():
    assert not matches("currency", "USD\nX")


def test_amount_bounds():
    assert check_amount_bounds("10") is None
    assert check_amount_bounds("100000") is None
    assert "Minimum" in check_amount_bounds("9.99")
    assert "Maximum" in check_amount_bounds("100000.01")


def test_credentials_rules():
    assert validate_credentials("alice", "StrongPass@123") == []
    errors = validate_credentials("a", "password123")
    assert len(errors) == 2


def test_reference_format_and_uniqueness():
    refs = {generate_reference() for _ in range(200)}
    assert len(refs) == 200
    for ref in refs:
        assert re.fullmatch(r"PAY-\d{13}-[A-Z0-9]{9}", ref)
