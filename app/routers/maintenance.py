"""
Maintenance Endpoints

Invoice number and zip code backfill. Safe to re-run: only NULL values
are filled.
"""

from typing import List

from fastapi import APIRouter, Depends

from app.dependencies import get_backfill, require_capability
from app.models.enums import Capability
from app.models.schemas import BackfillResult

router = APIRouter()


@router.post("/invoice-numbers", response_model=BackfillResult)
async def generate_invoice_numbers(
    _=Depends(require_capability(Capability.RUN_CLEANUP)),
    backfill=Depends(get_backfill)
):
    """Assign sequential invoice numbers to jobs missing one (batched)"""
    return await backfill.assign_invoice_numbers_batch()


@router.post("/zip-codes", response_model=BackfillResult)
async def fix_zip_codes(
    _=Depends(require_capability(Capability.RUN_CLEANUP)),
    backfill=Depends(get_backfill)
):
    """Fill missing zip codes from the city table ("00000" when unknown)"""
    return await backfill.fix_null_zip_codes()


@router.post("/cleanup", response_model=List[BackfillResult])
async def run_data_cleanup(
    _=Depends(require_capability(Capability.RUN_CLEANUP)),
    backfill=Depends(get_backfill)
):
    """Invoice pass, zip pass, final invoice pass"""
    return await backfill.run_data_cleanup()
