"""
Request Dependencies

Services built in the lifespan live on app.state; routes pull them in
through these functions. Authorization is one capability check shared by
every route.
"""

from datetime import date
from typing import Optional

from fastapi import Depends, Header, HTTPException, Query, Request
from pydantic import ValidationError

from app.analytics.date_ranges import resolve_date_preset
from app.models.enums import Capability, DatePreset
from app.models.schemas import CurrentUser, JobFilters
from app.services.auth import can


def get_db(request: Request):
    return request.app.state.db


def get_auth_service(request: Request):
    return request.app.state.auth


def get_metrics(request: Request):
    return request.app.state.metrics


def get_payout_service(request: Request):
    return request.app.state.payout


def get_client_rollup(request: Request):
    return request.app.state.clients


def get_backfill(request: Request):
    return request.app.state.backfill


def get_importer(request: Request):
    return request.app.state.importer


def get_part_requests(request: Request):
    return request.app.state.part_requests


def bearer_token(authorization: Optional[str] = Header(None)) -> str:
    """Access token from an 'Authorization: Bearer <token>' header"""
    if not authorization or not authorization.lower().startswith("bearer "):
        raise HTTPException(status_code=401, detail="Not authenticated")
    return authorization.split(" ", 1)[1].strip()


async def get_current_user(
    token: str = Depends(bearer_token),
    auth=Depends(get_auth_service)
) -> CurrentUser:
    user = await auth.current_user(token)
    if user is None:
        raise HTTPException(status_code=401, detail="Invalid or expired session")
    if user.technician is None:
        raise HTTPException(status_code=403, detail="Technician not found")
    return user


def require_capability(capability: Capability):
    """Dependency factory: the signed-in user must hold capability"""

    async def check(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if not can(user.technician.role, capability):
            raise HTTPException(status_code=403, detail=f"Not permitted: {capability.value}")
        return user

    return check


def scope_technician(user: CurrentUser, requested: Optional[str]) -> Optional[str]:
    """Admins may look at any technician (or all); technicians only at themselves"""
    if can(user.technician.role, Capability.VIEW_ALL_TECHNICIANS):
        return requested
    return user.technician.technician_code


def job_filters(
    technician: Optional[str] = Query(None, description="Technician code"),
    start_date: Optional[date] = Query(None, description="Inclusive start (YYYY-MM-DD)"),
    end_date: Optional[date] = Query(None, description="Inclusive end (YYYY-MM-DD)"),
    preset: Optional[DatePreset] = Query(None, description="Date range preset"),
    limit: Optional[int] = Query(None, ge=1, description="Max rows (newest first)")
) -> JobFilters:
    """Validate the shared job filter query parameters once"""
    if preset and preset != DatePreset.CUSTOM:
        start_date, end_date = resolve_date_preset(preset)
    try:
        return JobFilters(technician=technician, start_date=start_date, end_date=end_date, limit=limit)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.errors()[0]["msg"])


def scoped_job_filters(
    filters: JobFilters = Depends(job_filters),
    user: CurrentUser = Depends(get_current_user)
) -> JobFilters:
    """Job filters with the technician restricted to what the user may see"""
    return filters.model_copy(update={"technician": scope_technician(user, filters.technician)})
