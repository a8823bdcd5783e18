"""
Metrics & Payout Aggregation Engine

Pure aggregation over fetched job records plus the services that fetch
them, repair them and import them.
"""

from .normalizer import normalize_row, parse_date_string, parse_float_prefix, NormalizationError
from .csv_import import read_rows, clean_csv_headers, parse_rows, JOB_IMPORT_HEADERS
from .metrics_aggregator import compute_dashboard_metrics, is_service_call, MetricsAggregator
from .payout_calculator import overview_payout, job_commission, calculate_enhanced_payout, PayoutService
from .client_rollup import build_client_summaries, top_clients, monthly_client_sales, ClientRollupService
from .backfill import lookup_zip_code, next_invoice_number, BackfillService
from .importer import ImportService
from .part_requests import validate_part_request, PartRequestService

__all__ = [
    "normalize_row",
    "parse_date_string",
    "parse_float_prefix",
    "NormalizationError",
    "read_rows",
    "clean_csv_headers",
    "parse_rows",
    "JOB_IMPORT_HEADERS",
    "compute_dashboard_metrics",
    "is_service_call",
    "MetricsAggregator",
    "overview_payout",
    "job_commission",
    "calculate_enhanced_payout",
    "PayoutService",
    "build_client_summaries",
    "top_clients",
    "monthly_client_sales",
    "ClientRollupService",
    "lookup_zip_code",
    "next_invoice_number",
    "BackfillService",
    "ImportService",
    "validate_part_request",
    "PartRequestService",
]
