"""
Payout Endpoints

Overview payout (6.5% OEM / 50% non-OEM with parts added back) and the
per-technician enhanced payout (65% / 50% commission plus reimbursed parts).
"""

from fastapi import APIRouter, Depends

from app.dependencies import get_payout_service, require_capability, scoped_job_filters
from app.models.enums import Capability
from app.models.schemas import EnhancedPayout, JobFilters, PayoutOverview

router = APIRouter()


@router.get("/overview", response_model=PayoutOverview)
async def get_payout_overview(
    filters: JobFilters = Depends(scoped_job_filters),
    _=Depends(require_capability(Capability.VIEW_PAYOUT)),
    payout=Depends(get_payout_service)
):
    """Overview payout split by OEM and non-OEM jobs"""
    return await payout.get_overview(filters)


@router.get("/enhanced", response_model=EnhancedPayout)
async def get_enhanced_payout(
    filters: JobFilters = Depends(scoped_job_filters),
    _=Depends(require_capability(Capability.VIEW_PAYOUT)),
    payout=Depends(get_payout_service)
):
    """
    Commission plus approved technician-ordered part requests

    Office-ordered parts are reported in office_parts_total but not paid.
    """
    return await payout.get_enhanced(filters)
