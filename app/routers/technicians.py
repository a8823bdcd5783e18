"""
Technician Endpoints
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException

from app.dependencies import get_db, require_capability, scope_technician
from app.models.enums import Capability
from app.models.schemas import CurrentUser, Technician
from app.services.errors import BackendError

router = APIRouter()


@router.get("", response_model=List[Technician])
async def list_technicians(
    _=Depends(require_capability(Capability.VIEW_ALL_TECHNICIANS)),
    db=Depends(get_db)
):
    """All technicians, by name"""
    try:
        return await db.get_technicians()
    except BackendError as e:
        raise HTTPException(status_code=500, detail=e.describe())


@router.get("/{technician_code}", response_model=Technician)
async def get_technician(
    technician_code: str,
    user: CurrentUser = Depends(require_capability(Capability.VIEW_OWN_DASHBOARD)),
    db=Depends(get_db)
):
    """A single technician; technicians may only look up themselves"""
    if scope_technician(user, technician_code) != technician_code:
        raise HTTPException(status_code=403, detail="Not permitted: view_all_technicians")
    try:
        technician = await db.get_technician_by_code(technician_code)
    except BackendError as e:
        raise HTTPException(status_code=500, detail=e.describe())
    if technician is None:
        raise HTTPException(status_code=404, detail=f"Technician {technician_code} not found")
    return technician
