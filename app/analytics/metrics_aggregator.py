"""
Dashboard Metrics Aggregator

Computes dashboard metrics from a fully fetched job list.

Key rules:
- Filters are applied at query time, never inside aggregation
- Aggregation only starts once every page has been fetched
- Every ratio is 0 when its denominator is 0
- totalPayout uses the overview payout rate (6.5% OEM), not the
  per-technician commission rate
"""

import logging
from datetime import date
from typing import Callable, Dict, Iterable, List, Optional

from app.analytics.payout_calculator import summarize_overview_payout
from app.models.schemas import (
    ApplianceStats,
    CategoryStats,
    DashboardMetrics,
    JobFilters,
    JobRecord,
    JobTypeSales,
    MonthlySales,
    StateSales,
    TypeBrandCombination,
)

logger = logging.getLogger(__name__)

SERVICE_CALL_AMOUNTS = (74.95, 89.45, 75, 90)
SERVICE_CALL_RANGE = (70, 100)
RETURN_CUSTOMER_PAYCODE = 2
UNKNOWN = "Unknown"
TOP_COMBINATIONS = 20


def _ratio(numerator: float, denominator: float, scale: float = 1) -> float:
    """numerator / denominator, 0 when the denominator is 0"""
    if not denominator:
        return 0
    return numerator / denominator * scale


def is_service_call(job: JobRecord) -> bool:
    """
    Heuristic service call detection.

    An exact match on a known service call price wins regardless of parts;
    otherwise a parts-free job priced between 70 and 100 counts.
    """
    amount = job.total_amount
    if amount in SERVICE_CALL_AMOUNTS:
        return True
    low, high = SERVICE_CALL_RANGE
    return low <= amount <= high and job.parts_cost == 0


def is_return_customer(job: JobRecord) -> bool:
    return job.paycode == RETURN_CUSTOMER_PAYCODE


def month_key(job: JobRecord) -> Optional[str]:
    """YYYY-MM bucket for a job, None when undated"""
    if job.date_recorded is None:
        return None
    return job.date_recorded.isoformat()[:7]


def sales_by_state(jobs: Iterable[JobRecord]) -> List[StateSales]:
    """Sales and job count per state, highest sales first"""
    buckets: Dict[str, Dict[str, float]] = {}
    for job in jobs:
        state = job.state or UNKNOWN
        bucket = buckets.setdefault(state, {"sales": 0, "count": 0})
        bucket["sales"] += job.total_amount
        bucket["count"] += 1

    rows = [
        StateSales(state=state, sales=data["sales"], count=int(data["count"]))
        for state, data in buckets.items()
    ]
    return sorted(rows, key=lambda row: row.sales, reverse=True)


def compute_dashboard_metrics(
    jobs: List[JobRecord],
    total_technicians: int = 0,
    today: Optional[date] = None
) -> DashboardMetrics:
    """
    Aggregate a materialized job list into the dashboard metrics block.

    Args:
        jobs: Filtered jobs (already fetched in full)
        total_technicians: Count of every technician row, independent of filters
        today: Reference date for the "this month" figures (defaults to now)

    Returns:
        DashboardMetrics
    """
    today = today or date.today()
    month_start = today.replace(day=1)

    total_jobs = len(jobs)
    total_sales = sum(job.total_amount for job in jobs)
    total_parts = sum(job.parts_cost for job in jobs)
    total_labor = total_sales - total_parts

    service_calls = [job for job in jobs if is_service_call(job)]
    total_service_call_sales = sum(job.total_amount for job in service_calls)

    invoices = {job.invoice_number for job in jobs if job.invoice_number}

    return_customer_count = sum(1 for job in jobs if is_return_customer(job))

    total_part_profit = sum(job.parts_sold - job.parts_cost for job in jobs)

    # None is neither OEM nor non-OEM
    oem_jobs = [job for job in jobs if job.is_oem_client is True]
    non_oem_jobs = [job for job in jobs if job.is_oem_client is False]

    this_month = [
        job for job in jobs
        if job.date_recorded is not None and job.date_recorded >= month_start
    ]

    payout = summarize_overview_payout(jobs)

    metrics = DashboardMetrics(
        total_jobs=total_jobs,
        total_sales=total_sales,
        total_technicians=total_technicians,
        avg_sale_per_job=_ratio(total_sales, total_jobs),
        total_labor=total_labor,
        total_parts=total_parts,
        avg_labor_per_job=_ratio(total_labor, total_jobs),
        parts_sales_ratio=_ratio(total_parts, total_sales, 100),
        labor_sales_ratio=_ratio(total_labor, total_sales, 100),
        jobs_this_month=len(this_month),
        sales_this_month=sum(job.total_amount for job in this_month),
        invoice_count=len(invoices),
        sales_by_state=sales_by_state(jobs),
        service_call_count=len(service_calls),
        total_service_call_sales=total_service_call_sales,
        service_call_percentage=_ratio(len(service_calls), total_jobs, 100),
        service_call_to_total_sales_ratio=_ratio(total_service_call_sales, total_sales, 100),
        return_customer_count=return_customer_count,
        return_customer_percentage=_ratio(return_customer_count, total_jobs, 100),
        total_part_profit=total_part_profit,
        avg_part_profit=_ratio(total_part_profit, total_jobs),
        total_payout=payout.total_payout,
        oem_jobs_count=len(oem_jobs),
        non_oem_jobs_count=len(non_oem_jobs),
        oem_sales=sum(job.total_amount for job in oem_jobs),
        non_oem_sales=sum(job.total_amount for job in non_oem_jobs),
    )

    logger.info(
        f"[Metrics] {total_jobs} jobs, sales={total_sales:.2f}, "
        f"service_calls={len(service_calls)}, oem={len(oem_jobs)}, non_oem={len(non_oem_jobs)}"
    )
    return metrics


def sales_over_time(jobs: Iterable[JobRecord]) -> List[MonthlySales]:
    """Total sales per YYYY-MM, oldest month first"""
    months: Dict[str, float] = {}
    for job in jobs:
        key = month_key(job)
        if key is None:
            continue
        months[key] = months.get(key, 0) + job.total_amount
    return [MonthlySales(month=month, sales=sales) for month, sales in sorted(months.items())]


def job_type_summary(jobs: Iterable[JobRecord]) -> List[JobTypeSales]:
    """Sales and count per type serviced, highest sales first"""
    types: Dict[str, Dict[str, float]] = {}
    for job in jobs:
        bucket = types.setdefault(job.type_serviced or UNKNOWN, {"total_sales": 0, "count": 0})
        bucket["total_sales"] += job.total_amount
        bucket["count"] += 1

    rows = [
        JobTypeSales(type=name, total_sales=data["total_sales"], count=int(data["count"]))
        for name, data in types.items()
    ]
    return sorted(rows, key=lambda row: row.total_sales, reverse=True)


def _category_stats(jobs: Iterable[JobRecord], key: Callable[[JobRecord], Optional[str]]) -> List[CategoryStats]:
    groups: Dict[str, Dict[str, float]] = {}
    for job in jobs:
        bucket = groups.setdefault(key(job) or UNKNOWN, {"count": 0, "total_sales": 0, "total_labor": 0})
        bucket["count"] += 1
        bucket["total_sales"] += job.total_amount
        bucket["total_labor"] += job.labor

    rows = [
        CategoryStats(
            name=name,
            count=int(data["count"]),
            total_sales=data["total_sales"],
            total_labor=data["total_labor"],
            avg_sale=_ratio(data["total_sales"], data["count"]),
            avg_labor=_ratio(data["total_labor"], data["count"]),
        )
        for name, data in groups.items()
    ]
    return sorted(rows, key=lambda row: row.total_sales, reverse=True)


def type_stats(jobs: Iterable[JobRecord]) -> List[CategoryStats]:
    return _category_stats(jobs, lambda job: job.type_serviced)


def brand_summary(jobs: Iterable[JobRecord]) -> List[CategoryStats]:
    return _category_stats(jobs, lambda job: job.make_serviced)


def type_brand_combinations(jobs: Iterable[JobRecord], top: int = TOP_COMBINATIONS) -> List[TypeBrandCombination]:
    """Top appliance type / brand pairs by sales"""
    combos: Dict[str, TypeBrandCombination] = {}
    for job in jobs:
        appliance = job.type_serviced or UNKNOWN
        brand = job.make_serviced or UNKNOWN
        label = f"{appliance} - {brand}"
        combo = combos.get(label)
        if combo is None:
            combo = combos[label] = TypeBrandCombination(
                combination=label, type=appliance, brand=brand, count=0, total_sales=0
            )
        combo.count += 1
        combo.total_sales += job.total_amount

    return sorted(combos.values(), key=lambda row: row.total_sales, reverse=True)[:top]


def appliance_stats(jobs: List[JobRecord]) -> ApplianceStats:
    return ApplianceStats(
        types=type_stats(jobs),
        brands=brand_summary(jobs),
        combinations=type_brand_combinations(jobs),
    )


class MetricsAggregator:
    """Fetches filtered jobs and runs the dashboard aggregations over them."""

    def __init__(self, db):
        self.db = db

    async def get_dashboard_metrics(self, filters: JobFilters, today: Optional[date] = None) -> DashboardMetrics:
        jobs = await self.db.get_jobs(filters)
        total_technicians = await self.db.count_technicians()
        return compute_dashboard_metrics(jobs, total_technicians, today=today)

    async def get_sales_over_time(self, filters: JobFilters) -> List[MonthlySales]:
        return sales_over_time(await self.db.get_jobs(filters))

    async def get_job_type_summary(self, filters: JobFilters) -> List[JobTypeSales]:
        return job_type_summary(await self.db.get_jobs(filters))

    async def get_appliance_stats(self, filters: JobFilters) -> ApplianceStats:
        return appliance_stats(await self.db.get_jobs(filters))
