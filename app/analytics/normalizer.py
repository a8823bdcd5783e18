"""
Record Normalizer

Coerces raw spreadsheet values into typed job record fields.

Rules per column:
- text columns: trimmed, "" or "NULL" -> None
- money columns: float prefix parse, anything else -> 0
- paycode: float then round half up, empty -> None
- is_oem_client: True only for "yes"/"true" (any case)
- date_recorded: M/D/YYYY or ISO -> YYYY-MM-DD, unparsable -> None
- id, created_at, updated_at: dropped (the database owns them)

The default mode never raises. strict=True collects field errors instead.
"""

import math
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Tuple

from app.models.schemas import MONEY_FIELDS

TEXT_FIELDS = (
    "zip_code_for_job",
    "city",
    "state",
    "technician",
    "customer_name",
    "consumer_name_if_not_customer",
    "invoice_number",
    "dept",
    "type_serviced",
    "make_serviced",
    "tp_money_rcvd",
    "dt_of_prior_py_cd2_entry",
)

DROPPED_FIELDS = ("id", "created_at", "updated_at")

NULL_MARKER = "NULL"

_FLOAT_PREFIX = re.compile(r"^\s*[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?")


@dataclass
class NormalizationError:
    """A value strict mode refused to coerce"""
    column: str
    value: Any
    reason: str


@dataclass
class NormalizedRow:
    record: Dict[str, Any]
    errors: List[NormalizationError] = field(default_factory=list)


def _clean(value: Any) -> Optional[str]:
    """Trimmed string, or None for empty and NULL markers"""
    if value is None:
        return None
    text = str(value).strip()
    if not text or text == NULL_MARKER:
        return None
    return text


def parse_float_prefix(value: Any) -> Optional[float]:
    """
    Parse the leading number of a string ("12abc" -> 12.0).

    Returns None when no numeric prefix exists.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else None
    if value is None:
        return None
    match = _FLOAT_PREFIX.match(str(value))
    if not match:
        return None
    return float(match.group(0))


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def parse_date_string(value: Any) -> Optional[str]:
    """Normalize M/D/YYYY or ISO-like dates to YYYY-MM-DD"""
    text = _clean(value)
    if text is None:
        return None

    if "/" in text:
        parts = text.split("/")
        if len(parts) == 3:
            try:
                month, day, year = (int(p.strip()) for p in parts)
                return date(year, month, day).isoformat()
            except ValueError:
                return None
        return None

    try:
        return date.fromisoformat(text[:10]).isoformat()
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text).date().isoformat()
    except ValueError:
        return None


def _normalize_value(column: str, raw: Any) -> Tuple[Any, Optional[str]]:
    """Return (coerced value, strict-mode error reason or None)"""
    if column in MONEY_FIELDS:
        text = _clean(raw)
        if text is None:
            return 0, None
        number = parse_float_prefix(text)
        if number is None:
            return 0, "not a number"
        return number, None

    if column == "paycode":
        text = _clean(raw)
        if text is None:
            return None, None
        number = parse_float_prefix(text)
        if number is None:
            return None, "not a number"
        return round_half_up(number), None

    if column == "is_oem_client":
        if isinstance(raw, bool):
            return raw, None
        text = str(raw).strip().lower() if raw is not None else ""
        return text in ("yes", "true"), None

    if column == "date_recorded":
        text = _clean(raw)
        if text is None:
            return None, None
        parsed = parse_date_string(text)
        if parsed is None:
            return None, "unrecognized date"
        return parsed, None

    # Text columns and any header we don't recognize
    return _clean(raw), None


def normalize_row(row: Dict[str, Any], strict: bool = False) -> Any:
    """
    Normalize one header->value mapping into a job record dict.

    Args:
        row: Raw values keyed by column header
        strict: Collect coercion problems instead of silently defaulting

    Returns:
        The record dict, or a NormalizedRow (record + errors) in strict mode
    """
    record: Dict[str, Any] = {}
    errors: List[NormalizationError] = []

    for column, raw in row.items():
        column = column.strip()
        if not column or column in DROPPED_FIELDS:
            continue
        value, reason = _normalize_value(column, raw)
        record[column] = value
        if reason:
            errors.append(NormalizationError(column=column, value=raw, reason=reason))

    if strict:
        return NormalizedRow(record=record, errors=errors)
    return record


def normalize_values(headers: List[str], values: List[str], strict: bool = False) -> Any:
    """Zip a parsed line against its headers and normalize it"""
    row = {
        header: values[index] if index < len(values) else None
        for index, header in enumerate(headers)
    }
    return normalize_row(row, strict=strict)
