"""
Job Importer

Bulk loads spreadsheet rows into the jobs table.

Rows go in batches of batch_size with a short pause between batches.
When a batch insert fails, its rows are retried one at a time and the
rows that still fail are counted as skipped.
"""

import asyncio
import logging
from typing import Any, Dict, List

import httpx

from app.analytics.csv_import import clean_csv_headers, preview, split_records
from app.analytics.normalizer import normalize_values
from app.models.schemas import ImportPreview, ImportRequest, ImportStatus
from app.services.errors import BackendError
from app.services.sheet_client import InvalidSheetUrlError

logger = logging.getLogger(__name__)


class ImportService:
    """Spreadsheet import into the jobs table"""

    def __init__(self, db, sheets, batch_size: int = 100, batch_delay: float = 0.1):
        self.db = db
        self.sheets = sheets
        self.batch_size = batch_size
        self.batch_delay = batch_delay

    async def load_text(self, request: ImportRequest) -> str:
        """Raw CSV text from the request, or the sheet export with canonical headers"""
        if request.csv_text:
            return request.csv_text
        text = await self.sheets.fetch_csv(request.spreadsheet_url)
        return clean_csv_headers(text, request.delimiter)

    async def preview(self, request: ImportRequest) -> ImportPreview:
        text = await self.load_text(request)
        return ImportPreview(**preview(text, request.delimiter))

    async def _insert_batch(self, jobs: List[Dict[str, Any]], batch_number: int) -> Dict[str, Any]:
        try:
            await self.db.insert_jobs(jobs)
            logger.info(f"[Import] Batch {batch_number} imported ({len(jobs)} jobs)")
            return {"imported": len(jobs), "skipped": 0, "errors": []}
        except BackendError as e:
            logger.warning(f"[Import] Batch {batch_number} failed, retrying rows one by one: {e.describe()}")

        imported = 0
        skipped = 0
        errors: List[str] = []
        for index, job in enumerate(jobs):
            try:
                await self.db.insert_jobs([job])
                imported += 1
            except BackendError as e:
                logger.error(f"[Import] Batch {batch_number} row {index} skipped: {e.describe()}")
                errors.append(e.describe())
                skipped += 1
        return {"imported": imported, "skipped": skipped, "errors": errors}

    async def import_text(self, text: str, delimiter: str = ",", clear_first: bool = False) -> ImportStatus:
        if clear_first:
            try:
                await self.db.delete_all_jobs()
                logger.info("[Import] Cleared existing jobs")
            except BackendError as e:
                return ImportStatus(error=f"Import failed: Failed to clear data: {e.describe()}")

        headers, records = split_records(text, delimiter)
        total_batches = (len(records) + self.batch_size - 1) // self.batch_size
        logger.info(f"[Import] {len(records)} data rows in {total_batches} batches")

        imported = 0
        skipped = 0
        first_error = None
        for offset in range(0, len(records), self.batch_size):
            batch_number = offset // self.batch_size + 1
            jobs = [
                normalize_values(headers, values)
                for values in records[offset:offset + self.batch_size]
            ]
            if jobs:
                outcome = await self._insert_batch(jobs, batch_number)
                imported += outcome["imported"]
                skipped += outcome["skipped"]
                if outcome["errors"] and first_error is None:
                    first_error = outcome["errors"][0]

            if batch_number < total_batches:
                await asyncio.sleep(self.batch_delay)

        if skipped:
            message = f"Import completed! {imported} jobs imported, {skipped} skipped due to errors."
        else:
            message = f"Successfully imported {imported} jobs!"
        logger.info(f"[Import] {message}")

        return ImportStatus(
            success=message,
            error=f"Error: {first_error}" if first_error else None,
            imported=imported,
            skipped=skipped,
            total=len(records),
        )

    async def import_jobs(self, request: ImportRequest) -> ImportStatus:
        try:
            text = await self.load_text(request)
        except InvalidSheetUrlError as e:
            return ImportStatus(error=str(e))
        except httpx.HTTPError as e:
            logger.error(f"[Import] Sheet download failed: {e}")
            return ImportStatus(error=f"Import failed: Failed to fetch Google Sheet: {e}")
        return await self.import_text(text, request.delimiter, request.clear_first)
