"""
Dashboard Endpoints

Metrics computed from the filtered job set. Technicians only ever see
their own jobs; admins may pick any technician or none (all).
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException

from app.dependencies import get_db, get_metrics, require_capability, scoped_job_filters
from app.models.enums import Capability
from app.models.schemas import (
    ApplianceStats,
    DashboardMetrics,
    JobFilters,
    JobRecord,
    JobTypeSales,
    MonthlySales,
)
from app.services.errors import BackendError

router = APIRouter()


@router.get("/metrics", response_model=DashboardMetrics)
async def get_dashboard_metrics(
    filters: JobFilters = Depends(scoped_job_filters),
    _=Depends(require_capability(Capability.VIEW_OWN_DASHBOARD)),
    metrics=Depends(get_metrics)
):
    """
    Summary metrics for the filtered jobs

    - **technician**: Technician code (admins only; technicians are pinned to themselves)
    - **start_date** / **end_date**: Inclusive date_recorded bounds
    - **preset**: Date range preset instead of explicit bounds

    Fetch failures come back as zeroed metrics.
    """
    return await metrics.get_dashboard_metrics(filters)


@router.get("/sales-over-time", response_model=List[MonthlySales])
async def get_sales_over_time(
    filters: JobFilters = Depends(scoped_job_filters),
    _=Depends(require_capability(Capability.VIEW_OWN_DASHBOARD)),
    metrics=Depends(get_metrics)
):
    """Monthly sales totals, oldest month first"""
    return await metrics.get_sales_over_time(filters)


@router.get("/job-types", response_model=List[JobTypeSales])
async def get_job_type_summary(
    filters: JobFilters = Depends(scoped_job_filters),
    _=Depends(require_capability(Capability.VIEW_OWN_DASHBOARD)),
    metrics=Depends(get_metrics)
):
    """Sales per type serviced"""
    return await metrics.get_job_type_summary(filters)


@router.get("/appliances", response_model=ApplianceStats)
async def get_appliance_stats(
    filters: JobFilters = Depends(scoped_job_filters),
    _=Depends(require_capability(Capability.VIEW_APPLIANCES)),
    metrics=Depends(get_metrics)
):
    """Appliance type, brand and type/brand combination breakdowns"""
    return await metrics.get_appliance_stats(filters)


@router.get("/jobs", response_model=List[JobRecord])
async def list_jobs(
    filters: JobFilters = Depends(scoped_job_filters),
    _=Depends(require_capability(Capability.VIEW_JOBS)),
    db=Depends(get_db)
):
    """Jobs matching the filters, newest first"""
    try:
        return await db.fetch_jobs(filters)
    except BackendError as e:
        raise HTTPException(status_code=500, detail=e.describe())
