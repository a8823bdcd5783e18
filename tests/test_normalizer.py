import pytest

from app.analytics.normalizer import (
    NormalizedRow,
    normalize_row,
    normalize_values,
    parse_date_string,
    parse_float_prefix,
)


def test_paycode_empty_is_none_and_float_rounds():
    assert normalize_row({"paycode": ""})["paycode"] is None
    assert normalize_row({"paycode": "NULL"})["paycode"] is None
    assert normalize_row({"paycode": "2.0"})["paycode"] == 2
    assert isinstance(normalize_row({"paycode": "2.0"})["paycode"], int)


def test_paycode_rounds_half_up():
    assert normalize_row({"paycode": "1.5"})["paycode"] == 2
    assert normalize_row({"paycode": "2.5"})["paycode"] == 3
    assert normalize_row({"paycode": "1.49"})["paycode"] == 1


def test_money_fields_default_to_zero():
    record = normalize_row({
        "total_amount": "NULL",
        "parts_cost": "",
        "sales_tax": "abc",
        "parts_sold": "12abc",
        "merchandise_sold": " 19.99 ",
    })
    assert record["total_amount"] == 0
    assert record["parts_cost"] == 0
    assert record["sales_tax"] == 0
    assert record["parts_sold"] == 12
    assert record["merchandise_sold"] == pytest.approx(19.99)


def test_text_fields_trimmed_and_nulled():
    record = normalize_row({"customer_name": "  Jane Doe ", "technician": "NULL", "invoice_number": "   "})
    assert record["customer_name"] == "Jane Doe"
    assert record["technician"] is None
    assert record["invoice_number"] is None


@pytest.mark.parametrize("value,expected", [
    ("yes", True),
    ("YES", True),
    (" True ", True),
    ("no", False),
    ("", False),
    (None, False),
    ("1", False),
])
def test_oem_flag(value, expected):
    assert normalize_row({"is_oem_client": value})["is_oem_client"] is expected


def test_dates_normalized():
    assert parse_date_string("1/5/2024") == "2024-01-05"
    assert parse_date_string("12/31/2023") == "2023-12-31"
    assert parse_date_string("2024-02-03") == "2024-02-03"
    assert parse_date_string("2024-02-03T10:00:00") == "2024-02-03"
    assert parse_date_string("not a date") is None
    assert parse_date_string("13/45/2024") is None
    assert parse_date_string("NULL") is None


def test_audit_columns_dropped_and_unknown_headers_kept():
    record = normalize_row({"id": "7", "created_at": "x", "updated_at": "y", "notes": " hi ", "other": "NULL"})
    assert "id" not in record
    assert "created_at" not in record
    assert "updated_at" not in record
    assert record["notes"] == "hi"
    assert record["other"] is None


def test_never_raises_on_garbage():
    record = normalize_row({"total_amount": object(), "date_recorded": "??", "paycode": "x"})
    assert record["total_amount"] == 0
    assert record["date_recorded"] is None
    assert record["paycode"] is None


def test_strict_mode_collects_errors():
    result = normalize_row({"total_amount": "abc", "date_recorded": "soon", "city": "Austin"}, strict=True)
    assert isinstance(result, NormalizedRow)
    assert {error.column for error in result.errors} == {"total_amount", "date_recorded"}
    # Values are still coerced
    assert result.record["total_amount"] == 0
    assert result.record["city"] == "Austin"


def test_missing_trailing_values_are_null():
    record = normalize_values(["city", "state", "total_amount"], ["Austin"])
    assert record == {"city": "Austin", "state": None, "total_amount": 0}


def test_float_prefix():
    assert parse_float_prefix("3.5e2x") == 350
    assert parse_float_prefix("-4") == -4
    assert parse_float_prefix(".5") == 0.5
    assert parse_float_prefix("x1") is None
