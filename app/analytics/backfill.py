"""
Invoice / Zip Backfill

Idempotent repair of jobs missing an invoice number or zip code.

Key rules:
- Only rows whose target column IS NULL are touched, so re-running is safe
  and a value filled by another process is never overwritten
- Invoice numbers continue from the largest numeric value among existing
  numbers (digits only), 5-digit zero-padded, assigned newest job first
- Zip codes come from a fixed city table, "00000" when unknown
- Failed updates are logged and skipped; the batch path retries a failed
  row once by primary key and then moves on
"""

import asyncio
import logging
import re
from typing import Dict, Iterable, List, Optional, Tuple

from app.models.schemas import BackfillResult, JobRecord
from app.services.errors import BackendError

logger = logging.getLogger(__name__)

FIRST_INVOICE_NUMBER = 10000
UNPARSABLE_INVOICE_NUMBER = 9999
INVOICE_WIDTH = 5
DEFAULT_ZIP_CODE = "00000"

ZIP_CODE_MAP: Dict[str, str] = {
    "new york, ny": "10001",
    "los angeles, ca": "90001",
    "chicago, il": "60601",
    "houston, tx": "77001",
    "phoenix, az": "85001",
    "philadelphia, pa": "19101",
    "san antonio, tx": "78201",
    "san diego, ca": "92101",
    "dallas, tx": "75201",
    "san jose, ca": "95101",
    "austin, tx": "73301",
    "jacksonville, fl": "32099",
    "fort worth, tx": "76101",
    "columbus, oh": "43201",
    "charlotte, nc": "28201",
    "san francisco, ca": "94101",
    "indianapolis, in": "46201",
    "seattle, wa": "98101",
    "denver, co": "80201",
    "washington, dc": "20001",
}


def lookup_zip_code(city: Optional[str], state: Optional[str]) -> str:
    """Zip code for a city/state pair, DEFAULT_ZIP_CODE when unknown"""
    if not city or not state:
        return DEFAULT_ZIP_CODE
    return ZIP_CODE_MAP.get(f"{city.strip()}, {state.strip()}".lower(), DEFAULT_ZIP_CODE)


def invoice_suffix(invoice_number: str) -> int:
    """Digits of an invoice number as an integer, 0 when there are none"""
    digits = re.sub(r"\D", "", invoice_number)
    return int(digits) if digits else 0


def next_invoice_number(existing: Iterable[str]) -> int:
    """First number to hand out given every existing invoice number"""
    suffixes = [invoice_suffix(number) for number in existing]
    if not suffixes:
        return FIRST_INVOICE_NUMBER
    return (max(suffixes) or UNPARSABLE_INVOICE_NUMBER) + 1


def format_invoice_number(number: int) -> str:
    return str(number).zfill(INVOICE_WIDTH)


def plan_invoice_numbers(jobs: List[JobRecord], start: int) -> List[Tuple[JobRecord, str]]:
    """Pair each job (in fetch order) with its new invoice number"""
    return [(job, format_invoice_number(start + index)) for index, job in enumerate(jobs)]


class BackfillService:
    """Fills missing invoice numbers and zip codes on the jobs table."""

    def __init__(self, db, batch_size: int = 10, batch_delay: float = 0.1):
        self.db = db
        self.batch_size = batch_size
        self.batch_delay = batch_delay

    async def _load_invoice_plan(self) -> Tuple[Optional[BackfillResult], List[Tuple[JobRecord, str]]]:
        try:
            jobs = await self.db.get_jobs_missing("invoice_number")
        except BackendError as e:
            logger.error(f"[Backfill] Error fetching jobs without invoice numbers: {e.describe()}")
            return BackfillResult(success=False, message="Error fetching jobs"), []

        if not jobs:
            return BackfillResult(success=True, message="All jobs already have invoice numbers"), []

        try:
            existing = await self.db.get_invoice_numbers()
        except BackendError as e:
            logger.error(f"[Backfill] Error reading existing invoice numbers: {e.describe()}")
            return BackfillResult(success=False, message="Error fetching jobs"), []

        start = next_invoice_number(existing)
        logger.info(f"[Backfill] {len(jobs)} jobs need invoice numbers, starting at {format_invoice_number(start)}")
        return None, plan_invoice_numbers(jobs, start)

    async def _update_invoice(self, job: JobRecord, invoice_number: str) -> int:
        return await self.db.update_job_by_natural_key(
            job, {"invoice_number": invoice_number}, "invoice_number"
        )

    async def generate_missing_invoice_numbers(self) -> BackfillResult:
        """
        Assign invoice numbers one record at a time.

        A record whose update fails is logged and skipped.
        """
        done, plan = await self._load_invoice_plan()
        if done:
            return done

        updated = 0
        for job, invoice_number in plan:
            try:
                changed = await self._update_invoice(job, invoice_number)
            except BackendError as e:
                logger.warning(f"[Backfill] Skipping {job.customer_name} ({job.date_recorded}): {e.describe()}")
                continue
            updated += changed
            if not changed:
                logger.debug(f"[Backfill] {job.customer_name} ({job.date_recorded}) already has an invoice number")

        return BackfillResult(
            success=True,
            message=f"Successfully generated invoice numbers for {updated} jobs",
            updated_count=updated,
        )

    async def assign_invoice_numbers_batch(self) -> BackfillResult:
        """
        Assign invoice numbers in batches of batch_size.

        Rows in a batch are sent together; a row that fails is retried once
        on its own by primary key, then skipped.
        """
        done, plan = await self._load_invoice_plan()
        if done:
            return done

        updated = 0
        for offset in range(0, len(plan), self.batch_size):
            batch = plan[offset:offset + self.batch_size]
            results = await asyncio.gather(
                *(self._update_invoice(job, number) for job, number in batch),
                return_exceptions=True,
            )

            for (job, number), outcome in zip(batch, results):
                if isinstance(outcome, BackendError):
                    logger.warning(f"[Backfill] Batch {offset // self.batch_size + 1} row failed: {outcome.describe()}")
                    outcome = await self._retry_single(job, number)
                elif isinstance(outcome, BaseException):
                    raise outcome
                updated += outcome

            if offset + self.batch_size < len(plan):
                await asyncio.sleep(self.batch_delay)

        return BackfillResult(
            success=True,
            message=f"Successfully generated invoice numbers for {updated} jobs",
            updated_count=updated,
        )

    async def _retry_single(self, job: JobRecord, invoice_number: str) -> int:
        if job.id is None:
            logger.warning(f"[Backfill] No id to retry {job.customer_name} ({job.date_recorded}), skipped")
            return 0
        try:
            return await self.db.update_job_by_id(job.id, {"invoice_number": invoice_number}, "invoice_number")
        except BackendError as e:
            logger.warning(f"[Backfill] Retry for job {job.id} failed, skipped: {e.describe()}")
            return 0

    async def fix_null_zip_codes(self) -> BackfillResult:
        """Fill every NULL zip code from the city table (default "00000")"""
        try:
            jobs = await self.db.get_jobs_missing("zip_code_for_job")
        except BackendError as e:
            logger.error(f"[Backfill] Error fetching jobs without zip codes: {e.describe()}")
            return BackfillResult(success=False, message="Error fetching jobs")

        if not jobs:
            return BackfillResult(success=True, message="All jobs already have zip codes")

        updated = 0
        for job in jobs:
            zip_code = lookup_zip_code(job.city, job.state)
            try:
                changed = await self.db.update_job_by_natural_key(
                    job, {"zip_code_for_job": zip_code}, "zip_code_for_job"
                )
            except BackendError as e:
                logger.warning(f"[Backfill] Skipping zip for {job.customer_name} ({job.date_recorded}): {e.describe()}")
                continue
            updated += changed

        return BackfillResult(
            success=True,
            message=f"Successfully fixed zip codes for {updated} jobs",
            updated_count=updated,
        )

    async def run_data_cleanup(self) -> List[BackfillResult]:
        """Invoice pass, zip pass, then a final invoice pass"""
        logger.info("[Backfill] Starting data cleanup")
        results = [
            await self.generate_missing_invoice_numbers(),
            await self.fix_null_zip_codes(),
            await self.generate_missing_invoice_numbers(),
        ]
        logger.info(f"[Backfill] Data cleanup finished: {[r.updated_count for r in results]}")
        return results
