"""
Part Cost Request Endpoints

Technicians submit parts cost corrections; admins approve or reject them.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from app.dependencies import get_part_requests, require_capability
from app.models.enums import Capability, PartRequestStatus
from app.models.schemas import CurrentUser, PartCostRequest, PartCostRequestCreate, PartRequestDecision
from app.services.errors import BackendError, PartRequestNotFoundError, PartRequestValidationError

router = APIRouter()


@router.post("", response_model=PartCostRequest, status_code=201)
async def submit_part_request(
    data: PartCostRequestCreate,
    user: CurrentUser = Depends(require_capability(Capability.SUBMIT_PART_REQUEST)),
    requests=Depends(get_part_requests)
):
    """
    Submit a parts cost correction for a job

    - **notes**: Required
    - **requested_parts_cost**: Must not be negative
    """
    try:
        return await requests.create(data, user.technician)
    except PartRequestValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except BackendError as e:
        raise HTTPException(status_code=500, detail=e.describe())


@router.get("", response_model=List[PartCostRequest])
async def list_part_requests(
    status: Optional[PartRequestStatus] = Query(None),
    _=Depends(require_capability(Capability.DECIDE_PART_REQUEST)),
    requests=Depends(get_part_requests)
):
    """All part cost requests, newest first"""
    try:
        return await requests.list(status)
    except BackendError as e:
        raise HTTPException(status_code=500, detail=e.describe())


async def _decide(action, request_id: int, decision: PartRequestDecision, user: CurrentUser):
    try:
        return await action(request_id, decision, user.technician)
    except PartRequestNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PartRequestValidationError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except BackendError as e:
        raise HTTPException(status_code=500, detail=e.describe())


@router.post("/{request_id}/approve", response_model=PartCostRequest)
async def approve_part_request(
    request_id: int,
    decision: PartRequestDecision,
    user: CurrentUser = Depends(require_capability(Capability.DECIDE_PART_REQUEST)),
    requests=Depends(get_part_requests)
):
    """Approve a pending request; parts_ordered_by decides reimbursement"""
    return await _decide(requests.approve, request_id, decision, user)


@router.post("/{request_id}/reject", response_model=PartCostRequest)
async def reject_part_request(
    request_id: int,
    decision: PartRequestDecision,
    user: CurrentUser = Depends(require_capability(Capability.DECIDE_PART_REQUEST)),
    requests=Depends(get_part_requests)
):
    """Reject a pending request"""
    return await _decide(requests.reject, request_id, decision, user)
