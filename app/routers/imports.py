"""
Import Endpoints

Load jobs from a Google Sheets export or pasted CSV/TSV text.
"""

import httpx
from fastapi import APIRouter, Depends, HTTPException

from app.dependencies import get_importer, require_capability
from app.models.enums import Capability
from app.models.schemas import ImportPreview, ImportRequest, ImportStatus
from app.services.sheet_client import InvalidSheetUrlError

router = APIRouter()


@router.post("/preview", response_model=ImportPreview)
async def preview_import(
    request: ImportRequest,
    _=Depends(require_capability(Capability.IMPORT_DATA)),
    importer=Depends(get_importer)
):
    """First five normalized rows and the total row count"""
    try:
        return await importer.preview(request)
    except InvalidSheetUrlError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except httpx.HTTPError as e:
        raise HTTPException(status_code=502, detail=f"Failed to fetch Google Sheet: {e}")


@router.post("/jobs", response_model=ImportStatus)
async def import_jobs(
    request: ImportRequest,
    _=Depends(require_capability(Capability.IMPORT_DATA)),
    importer=Depends(get_importer)
):
    """
    Import jobs in batches of 100

    - **clear_first**: Delete every existing job before importing
    """
    return await importer.import_jobs(request)
