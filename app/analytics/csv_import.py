"""
CSV / TSV Import Adapter

Turns exported spreadsheet text into normalized job record dicts.
Quoted fields may contain the delimiter or a line break; "" inside quotes
is a literal quote.
"""

import csv
import io
from typing import Any, Dict, List, Tuple

from app.analytics.normalizer import normalize_values

JOB_IMPORT_HEADERS = [
    "zip_code_for_job",
    "city",
    "state",
    "date_recorded",
    "technician",
    "customer_name",
    "consumer_name_if_not_customer",
    "invoice_number",
    "merchandise_sold",
    "parts_sold",
    "service_call_amount",
    "other_labor",
    "sales_tax",
    "total_amount",
    "paycode",
    "dept",
    "parts_cost",
    "type_serviced",
    "make_serviced",
    "tp_money_rcvd",
    "is_oem_client",
    "dt_of_prior_py_cd2_entry",
]

PREVIEW_ROWS = 5


def read_rows(text: str, delimiter: str = ",") -> List[List[str]]:
    """Every non-blank record as trimmed fields; quoted fields may span lines"""
    reader = csv.reader(io.StringIO(text), delimiter=delimiter)
    rows = [[field.strip() for field in record] for record in reader]
    return [row for row in rows if any(row)]


def split_records(text: str, delimiter: str = ",") -> Tuple[List[str], List[List[str]]]:
    """Header row and data rows"""
    rows = read_rows(text, delimiter)
    if not rows:
        return [], []
    return rows[0], rows[1:]


def clean_csv_headers(text: str, delimiter: str = ",") -> str:
    """Replace the export's header row with the canonical job columns"""
    records = list(csv.reader(io.StringIO(text), delimiter=delimiter))
    out = io.StringIO()
    writer = csv.writer(out, delimiter=delimiter, lineterminator="\n")
    writer.writerow(JOB_IMPORT_HEADERS)
    writer.writerows(records[1:])
    return out.getvalue()


def parse_rows(text: str, delimiter: str = ",", strict: bool = False) -> List[Any]:
    """Header row plus data rows -> normalized records"""
    headers, body = split_records(text, delimiter)
    return [normalize_values(headers, values, strict=strict) for values in body]


def preview(text: str, delimiter: str = ",", rows: int = PREVIEW_ROWS) -> Dict[str, Any]:
    """First few normalized rows and the total data row count"""
    headers, body = split_records(text, delimiter)
    return {
        "rows": [normalize_values(headers, values) for values in body[:rows]],
        "total_rows": len(body),
    }
