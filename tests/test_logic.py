from datetime import date, datetime, timezone

import pytest

from budget.errors import ValidationError
from budget.logic import (
    parse_amount_to_cents,
    parse_date,
    validate_category,
    validate_description,
    validate_new_transaction,
    validate_type,
    validate_update,
)
from budget.models import UNSET


@pytest.mark.parametrize(
    "s,expected",
    [
        ("0.01", 1),
        ("1", 100),
        ("1.2", 120),
        ("1.20", 120),
        ("10.05", 1005),
        (12.5, 1250),
        (7, 700),
        (" 3.10 ", 310),
    ],
)
def test_parse_amount_to_cents_ok(s, expected):
    assert parse_amount_to_cents(s) == expected


@pytest.mark.parametrize(
    "s",
    [
        "",
        "-1",
        "abc",
        "1.234",
        "0",
        "0.00",
        -5,
        0,
        None,
        True,
        "NaN",
        "Infinity",
        "1" + "0" * 29,
        "1e999999999",
        "1e-999999999",
        "10000000000000",
    ],
)
def test_parse_amount_to_cents_bad(s):
    with pytest.raises(ValueError):
        parse_amount_to_cents(s)


@pytest.mark.parametrize("s", ["income", "expense"])
def test_validate_type_ok(s):
    assert validate_type(s) == s


@pytest.mark.parametrize("s", ["in", "out", "", "Income", None])
def test_validate_type_bad(s):
    with pytest.raises(ValueError):
        validate_type(s)


def test_validate_category_trims_and_limits_length():
    assert validate_category("  Food & Dining ") == "Food & Dining"
    assert validate_category("x" * 30) == "x" * 30
    with pytest.raises(ValueError, match="cannot exceed 30"):
        validate_category("x" * 31)
    with pytest.raises(ValueError, match="required"):
        validate_category("   ")


def test_validate_description():
    assert validate_description(None) is None
    assert validate_description("  ") is None
    assert validate_description(" lunch ") == "lunch"
    assert validate_description("d" * 200) == "d" * 200
    with pytest.raises(ValueError, match="cannot exceed 200"):
        validate_description("d" * 201)


@pytest.mark.parametrize(
    "value,expected",
    [
        ("2024-03-15", "2024-03-15T00:00:00.000000"),
        ("2024-03-15T10:30:00", "2024-03-15T10:30:00.000000"),
        ("2024-03-15T10:30:00Z", "2024-03-15T10:30:00.000000"),
        ("2024-04-01T01:00:00+02:00", "2024-03-31T23:00:00.000000"),
        (date(2024, 1, 2), "2024-01-02T00:00:00.000000"),
    ],
)
def test_parse_date_normalises_to_utc(value, expected):
    assert parse_date(value) == expected


@pytest.mark.parametrize(
    "value",
    ["", "yesterday", "2024-13-01", 20240315, "0001-01-01T00:00:00+05:00"],
)
def test_parse_date_bad(value):
    with pytest.raises(ValueError):
        parse_date(value)


def test_validate_new_transaction_defaults_date_to_now():
    now = datetime(2024, 3, 15, 8, 0, tzinfo=timezone.utc)
    fields = validate_new_transaction(
        {"type": "expense", "category": " Food ", "amount": "12.50"}, now=now
    )
    assert fields == {
        "type": "expense",
        "category": "Food",
        "amount_cents": 1250,
        "date": "2024-03-15T08:00:00.000000",
        "description": None,
    }


def test_validate_new_transaction_reports_every_violation():
    with pytest.raises(ValidationError) as excinfo:
        validate_new_transaction(
            {
                "type": "transfer",
                "category": "",
                "amount": "0",
                "date": "not-a-date",
                "description": "d" * 201,
                "userId": "someone-else",
            }
        )
    fields = sorted(error["field"] for error in excinfo.value.errors)
    assert fields == ["amount", "category", "date", "description", "type", "userId"]


def test_validate_new_transaction_requires_core_fields():
    with pytest.raises(ValidationError) as excinfo:
        validate_new_transaction({})
    fields = sorted(error["field"] for error in excinfo.value.errors)
    assert fields == ["amount", "category", "type"]


def test_validate_new_transaction_rejects_non_object():
    with pytest.raises(ValidationError) as excinfo:
        validate_new_transaction(["type", "income"])
    assert excinfo.value.errors[0]["field"] == "body"


def test_validate_update_only_sets_provided_slots():
    update = validate_update({"amount": "99.99"})
    assert update.amount_cents == 9999
    assert update.type is None
    assert update.category is None
    assert update.description is UNSET
    assert update.changes() == {"amount_cents": 9999}


def test_validate_update_can_clear_description():
    update = validate_update({"description": None})
    assert update.changes() == {"description": None}


def test_validate_update_rejects_unknown_and_null_fields():
    with pytest.raises(ValidationError) as excinfo:
        validate_update({"_id": "abc", "ownerId": "x", "amount": None})
    fields = sorted(error["field"] for error in excinfo.value.errors)
    assert fields == ["_id", "amount", "ownerId"]


def test_validate_update_rejects_empty_payload():
    with pytest.raises(ValidationError, match="no fields to update"):
        validate_update({})


def test_parse_amount_accepts_largest_supported_value():
    assert parse_amount_to_cents("9999999999999.99") == 999999999999999


def test_parse_date_pads_early_years():
    assert parse_date("0999-05-01") == "0999-05-01T00:00:00.000000"
    assert parse_date("9999-12-31T23:00:00-00:30") == "9999-12-31T23:30:00.000000"


def test_validate_new_transaction_reports_oversized_amount_and_date():
    with pytest.raises(ValidationError) as excinfo:
        validate_new_transaction(
            {
                "type": "expense",
                "category": "misc",
                "amount": "1e999999999",
                "date": "0001-01-01T00:00:00+05:00",
            }
        )
    fields = sorted(error["field"] for error in excinfo.value.errors)
    assert fields == ["amount", "date"]
