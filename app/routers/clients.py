"""
Client Tracker Endpoints

Per-customer rollups, the combined monthly series and filter options.
"""

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from pydantic import ValidationError

from app.dependencies import get_client_rollup, get_db, require_capability
from app.models.enums import Capability, ClientSortKey, SortOrder
from app.models.schemas import ClientFilters, ClientSummary, ClientTracker, FilterOptions

router = APIRouter()


def client_filters(
    request: Request,
    technician: Optional[str] = Query(None),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    state: Optional[str] = Query(None),
    city: Optional[str] = Query(None),
    return_customer: Optional[bool] = Query(None, description="Only return (paycode 2) or only new (paycode 1)"),
    min_sales: Optional[float] = Query(None),
    max_sales: Optional[float] = Query(None),
    min_jobs: Optional[int] = Query(None),
    max_jobs: Optional[int] = Query(None),
    sort_by: ClientSortKey = Query(ClientSortKey.TOTAL_SALES),
    sort_order: SortOrder = Query(SortOrder.DESC),
    limit: Optional[int] = Query(None, ge=1)
) -> ClientFilters:
    if start_date and end_date and start_date > end_date:
        raise HTTPException(status_code=400, detail="start_date must be on or before end_date")
    try:
        return ClientFilters(
            technician=technician,
            start_date=start_date,
            end_date=end_date,
            state=state,
            city=city,
            return_customer=return_customer,
            min_sales=min_sales,
            max_sales=max_sales,
            min_jobs=min_jobs,
            max_jobs=max_jobs,
            sort_by=sort_by,
            sort_order=sort_order,
            limit=limit or request.app.state.settings.top_clients_limit,
        )
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.errors()[0]["msg"])


@router.get("/top", response_model=List[ClientSummary])
async def get_top_clients(
    filters: ClientFilters = Depends(client_filters),
    _=Depends(require_capability(Capability.VIEW_CLIENTS)),
    clients=Depends(get_client_rollup)
):
    """
    Top clients by the chosen sort key

    - **sort_by**: total_sales, total_jobs, avg_sale_per_job or last_job_date
    - **sort_order**: asc or desc
    - **limit**: Number of clients (default 25)
    """
    return await clients.get_top_clients(filters)


@router.get("/monthly", response_model=ClientTracker)
async def get_client_tracker(
    filters: ClientFilters = Depends(client_filters),
    _=Depends(require_capability(Capability.VIEW_CLIENTS)),
    clients=Depends(get_client_rollup)
):
    """Top clients plus the last 12 months across them and the KPI block"""
    return await clients.get_tracker(filters)


@router.get("/filter-options", response_model=FilterOptions)
async def get_filter_options(
    _=Depends(require_capability(Capability.VIEW_CLIENTS)),
    db=Depends(get_db)
):
    """Distinct states and cities present on jobs"""
    return await db.get_client_filter_options()
