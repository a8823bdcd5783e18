"""
Client Rollup

Groups jobs by customer name into client summaries, plus the cross-client
monthly series and KPI block shown on the client tracker.
"""

import logging
from datetime import date
from typing import Dict, List, Optional

from app.analytics.metrics_aggregator import is_return_customer, month_key
from app.models.enums import ClientSortKey, SortOrder
from app.models.schemas import (
    ClientFilters,
    ClientKPIs,
    ClientMonth,
    ClientSummary,
    ClientTracker,
    JobRecord,
    MonthlyClientSales,
)

logger = logging.getLogger(__name__)

UNKNOWN_CUSTOMER = "Unknown Customer"
UNKNOWN_LOCATION = "Unknown"
MONTHLY_SERIES_LENGTH = 12


def calculate_monthly_data(jobs: List[JobRecord]) -> List[ClientMonth]:
    """Per YYYY-MM sales, jobs, parts and labor, oldest month first"""
    months: Dict[str, ClientMonth] = {}
    for job in jobs:
        key = month_key(job)
        if key is None:
            continue
        bucket = months.setdefault(key, ClientMonth(month=key))
        bucket.sales += job.total_amount
        bucket.jobs += 1
        bucket.parts += job.parts_cost
        bucket.labor += job.labor
    return [months[key] for key in sorted(months)]


def summarize_client(customer_name: str, jobs: List[JobRecord]) -> ClientSummary:
    total_sales = sum(job.total_amount for job in jobs)
    total_parts = sum(job.parts_cost for job in jobs)
    total_jobs = len(jobs)

    dates = sorted(job.date_recorded for job in jobs if job.date_recorded is not None)
    return_customer = any(is_return_customer(job) for job in jobs)

    # Location comes from the most recent job, undated jobs last
    most_recent = max(jobs, key=lambda job: (job.date_recorded is not None, job.date_recorded or date.min))

    return ClientSummary(
        customer_name=customer_name,
        total_sales=total_sales,
        total_jobs=total_jobs,
        avg_sale_per_job=total_sales / total_jobs if total_jobs else 0,
        total_parts=total_parts,
        total_labor=total_sales - total_parts,
        first_job_date=dates[0] if dates else None,
        last_job_date=dates[-1] if dates else None,
        return_customer=return_customer,
        paycode=2 if return_customer else 1,
        state=most_recent.state or UNKNOWN_LOCATION,
        city=most_recent.city or UNKNOWN_LOCATION,
        monthly_data=calculate_monthly_data(jobs),
    )


def build_client_summaries(jobs: List[JobRecord]) -> List[ClientSummary]:
    """One summary per customer name, in first-seen order"""
    groups: Dict[str, List[JobRecord]] = {}
    for job in jobs:
        groups.setdefault(job.customer_name or UNKNOWN_CUSTOMER, []).append(job)
    return [summarize_client(name, client_jobs) for name, client_jobs in groups.items()]


def _within_bounds(client: ClientSummary, filters: ClientFilters) -> bool:
    if filters.min_sales and client.total_sales < filters.min_sales:
        return False
    if filters.max_sales and client.total_sales > filters.max_sales:
        return False
    if filters.min_jobs and client.total_jobs < filters.min_jobs:
        return False
    if filters.max_jobs and client.total_jobs > filters.max_jobs:
        return False
    return True


def _sort_value(client: ClientSummary, sort_by: ClientSortKey):
    if sort_by == ClientSortKey.LAST_JOB_DATE:
        return client.last_job_date or date.min
    return getattr(client, sort_by.value)


def top_clients(jobs: List[JobRecord], filters: Optional[ClientFilters] = None) -> List[ClientSummary]:
    """
    Roll up jobs per client, apply the post-rollup bounds, sort and truncate.

    Args:
        jobs: Jobs already filtered at query time
        filters: Bounds, sort key, order and limit

    Returns:
        At most filters.limit client summaries
    """
    filters = filters or ClientFilters()
    clients = [client for client in build_client_summaries(jobs) if _within_bounds(client, filters)]
    clients.sort(
        key=lambda client: _sort_value(client, filters.sort_by),
        reverse=filters.sort_order == SortOrder.DESC,
    )
    return clients[:filters.limit]


def monthly_client_sales(clients: List[ClientSummary], today: Optional[date] = None) -> List[MonthlyClientSales]:
    """
    Combine client monthly data into one series, newest month first.

    year_to_date_sales is a running total, walking newest to oldest, of the
    months that fall in the current calendar year. At most 12 months are
    returned.
    """
    current_year = (today or date.today()).year

    months: Dict[str, Dict[str, float]] = {}
    for client in clients:
        for month in client.monthly_data:
            bucket = months.setdefault(month.month, {"sales": 0, "jobs": 0})
            bucket["sales"] += month.sales
            bucket["jobs"] += month.jobs

    series: List[MonthlyClientSales] = []
    running_ytd = 0.0
    for month in sorted(months, reverse=True):
        sales = months[month]["sales"]
        jobs = int(months[month]["jobs"])
        if int(month[:4]) == current_year:
            running_ytd += sales
        series.append(MonthlyClientSales(
            month=month,
            total_sales=sales,
            total_jobs=jobs,
            avg_job_value=sales / jobs if jobs else 0,
            year_to_date_sales=running_ytd,
        ))

    return series[:MONTHLY_SERIES_LENGTH]


def client_kpis(
    clients: List[ClientSummary],
    monthly: List[MonthlyClientSales],
    today: Optional[date] = None
) -> ClientKPIs:
    current_year = (today or date.today()).year
    total_jobs = sum(client.total_jobs for client in clients)
    total_sales = sum(client.total_sales for client in clients)
    return ClientKPIs(
        total_jobs=total_jobs,
        avg_job_value=total_sales / total_jobs if total_jobs else 0,
        year_to_date_sales=sum(m.total_sales for m in monthly if int(m.month[:4]) == current_year),
    )


class ClientRollupService:
    """Client tracker queries over the jobs table."""

    def __init__(self, db):
        self.db = db

    async def get_top_clients(self, filters: ClientFilters) -> List[ClientSummary]:
        jobs = await self.db.get_client_jobs(filters)
        clients = top_clients(jobs, filters)
        logger.info(f"[Clients] {len(clients)} clients from {len(jobs)} jobs")
        return clients

    async def get_tracker(self, filters: ClientFilters, today: Optional[date] = None) -> ClientTracker:
        clients = await self.get_top_clients(filters)
        monthly = monthly_client_sales(clients, today=today)
        return ClientTracker(
            clients=clients,
            monthly=monthly,
            kpis=client_kpis(clients, monthly, today=today),
        )
