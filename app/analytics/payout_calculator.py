"""
Payout Calculator

Two payout formulas are live and must stay separate:

Overview (dashboard totals and the simple payout view):
    payout = (total - parts) * rate + parts
    rate = 6.5% OEM, 50% non-OEM

Enhanced (per technician):
    commission = (total - parts) * rate
    rate = 65% OEM, 50% non-OEM
    payout = sum(commission) + approved technician-ordered part requests

Office-ordered part requests are reported but never paid out.
Jobs with an unknown OEM flag are paid at the non-OEM rate.
"""

import logging
from datetime import date
from typing import Iterable, List, Optional

from app.models.enums import PartRequestStatus, PartsOrderedBy
from app.models.schemas import EnhancedPayout, JobFilters, JobRecord, PartCostRequest, PayoutOverview

logger = logging.getLogger(__name__)

# Overview rates
OVERVIEW_OEM_RATE = 0.065
OVERVIEW_NON_OEM_RATE = 0.5

# Per-technician commission rates
COMMISSION_OEM_RATE = 0.65
COMMISSION_NON_OEM_RATE = 0.50


def overview_payout(job: JobRecord) -> float:
    """Labor at the overview rate plus the job's parts cost"""
    rate = OVERVIEW_OEM_RATE if job.is_oem_client else OVERVIEW_NON_OEM_RATE
    return job.labor * rate + job.parts_cost


def summarize_overview_payout(jobs: Iterable[JobRecord]) -> PayoutOverview:
    summary = PayoutOverview()
    for job in jobs:
        payout = overview_payout(job)
        if job.is_oem_client:
            summary.oem_jobs_count += 1
            summary.total_oem_payout += payout
        else:
            summary.non_oem_jobs_count += 1
            summary.total_non_oem_payout += payout
    summary.total_payout = summary.total_oem_payout + summary.total_non_oem_payout
    return summary


def job_commission(job: JobRecord) -> float:
    """Labor at the commission rate (parts are reimbursed separately)"""
    rate = COMMISSION_OEM_RATE if job.is_oem_client else COMMISSION_NON_OEM_RATE
    return job.labor * rate


def calculate_enhanced_payout(
    jobs: List[JobRecord],
    part_requests: List[PartCostRequest],
    technician_code: Optional[str] = None
) -> EnhancedPayout:
    """
    Commission plus reimbursed parts for one technician.

    Args:
        jobs: The technician's jobs (already filtered)
        part_requests: Candidate part cost requests; only approved requests
            belonging to technician_code are counted
        technician_code: Whose requests to count (all when None)

    Returns:
        EnhancedPayout
    """
    result = EnhancedPayout(technician_code=technician_code, jobs_count=len(jobs))

    for job in jobs:
        commission = job_commission(job)
        if job.is_oem_client:
            result.oem_jobs_count += 1
            result.oem_commission += commission
        else:
            result.non_oem_jobs_count += 1
            result.non_oem_commission += commission
    result.total_commission = result.oem_commission + result.non_oem_commission

    for request in part_requests:
        if request.status != PartRequestStatus.APPROVED:
            continue
        if technician_code and request.technician_id != technician_code:
            continue
        if request.parts_ordered_by == PartsOrderedBy.TECHNICIAN:
            result.tech_parts_count += 1
            result.tech_parts_total += request.requested_parts_cost
        elif request.parts_ordered_by == PartsOrderedBy.OFFICE:
            result.office_parts_count += 1
            result.office_parts_total += request.requested_parts_cost

    result.total_parts_value = result.tech_parts_total + result.office_parts_total
    result.total_payout = result.total_commission + result.tech_parts_total

    logger.info(
        f"[Payout] {technician_code or 'all technicians'}: commission={result.total_commission:.2f}, "
        f"tech_parts={result.tech_parts_total:.2f}, payout={result.total_payout:.2f}"
    )
    return result


class PayoutService:
    """Loads jobs and approved part requests and applies the payout formulas."""

    def __init__(self, db):
        self.db = db

    async def get_overview(self, filters: JobFilters) -> PayoutOverview:
        return summarize_overview_payout(await self.db.get_jobs(filters))

    async def get_enhanced(self, filters: JobFilters) -> EnhancedPayout:
        jobs = await self.db.get_jobs(filters)
        requests = await self.db.get_approved_part_requests(
            technician=filters.technician,
            start_date=filters.start_date,
            created_before=_day_after(filters.end_date),
        )
        return calculate_enhanced_payout(jobs, requests, filters.technician)


def _day_after(end_date: Optional[date]) -> Optional[date]:
    # created_at is a timestamp; the end date is inclusive, so stop before the next midnight
    if end_date is None:
        return None
    return date.fromordinal(end_date.toordinal() + 1)
