"""
Dashboard Database Client

Data access for the jobs, technicians and part_cost_requests tables.
Large job sets are fetched in fixed-size pages and concatenated before any
aggregation runs. Natural-key updates carry an IS NULL guard on the column
being filled so a concurrently repaired record is never overwritten.
"""

import logging
from datetime import date, datetime, timezone
from typing import Any, Callable, Dict, List, Optional

import httpx
from postgrest.exceptions import APIError

from app.models.enums import PartRequestStatus
from app.models.schemas import (
    ClientFilters,
    FilterOptions,
    JobFilters,
    JobRecord,
    PartCostRequest,
    Technician,
)
from app.services.errors import BackendError, to_backend_error

logger = logging.getLogger(__name__)

JOBS_TABLE = "jobs"
TECHNICIANS_TABLE = "technicians"
PART_REQUESTS_TABLE = "part_cost_requests"

DEFAULT_PAGE_SIZE = 1000


class DashboardDatabase:
    """Client for dashboard table operations"""

    def __init__(self, client: Any, admin: Optional[Any] = None, page_size: int = DEFAULT_PAGE_SIZE):
        self.client = client
        # Service role client for imports and cleanup (bypasses RLS)
        self.admin = admin or client
        self.page_size = page_size

    async def _execute(self, query: Any) -> List[Dict]:
        """Run a query, translating client failures into BackendError"""
        try:
            result = await query.execute()
        except (APIError, httpx.HTTPError) as e:
            error = to_backend_error(e)
            logger.error(f"[Database] Query failed: {error.message} (code={error.code})")
            if error.hint:
                logger.error(f"[Database] Hint: {error.hint}")
            raise error
        return result.data or []

    # =========================================================================
    # Connection
    # =========================================================================

    async def ping(self) -> Dict[str, Any]:
        """Check that the technicians table is reachable"""
        try:
            await self._execute(self.client.table(TECHNICIANS_TABLE).select("technician_code").limit(1))
        except BackendError as e:
            return {"success": False, "message": f"Connection failed: {e.describe()}"}
        return {"success": True, "message": "Database connection successful"}

    # =========================================================================
    # Jobs
    # =========================================================================

    def _apply_job_filters(self, query: Any, filters: JobFilters) -> Any:
        if filters.technician:
            query = query.eq("technician", filters.technician)
        if filters.start_date:
            query = query.gte("date_recorded", filters.start_date.isoformat())
        if filters.end_date:
            query = query.lte("date_recorded", filters.end_date.isoformat())
        return query

    async def _fetch_paged(self, build_query: Callable[[], Any]) -> List[Dict]:
        """Fetch every row of a query in page_size ranges"""
        rows: List[Dict] = []
        offset = 0
        while True:
            page = await self._execute(build_query().range(offset, offset + self.page_size - 1))
            rows.extend(page)
            logger.debug(f"[Database] Fetched page {offset // self.page_size + 1}, rows so far: {len(rows)}")
            if len(page) < self.page_size:
                break
            offset += self.page_size
        return rows

    async def fetch_jobs(self, filters: Optional[JobFilters] = None) -> List[JobRecord]:
        """
        Fetch jobs matching the filters, newest first.

        Raises:
            BackendError if any page fails
        """
        filters = filters or JobFilters()

        if filters.limit:
            query = self._apply_job_filters(
                self.client.table(JOBS_TABLE).select("*"), filters
            ).order("date_recorded", desc=True).limit(filters.limit)
            rows = await self._execute(query)
        else:
            rows = await self._fetch_paged(
                lambda: self._apply_job_filters(
                    self.client.table(JOBS_TABLE).select("*"), filters
                ).order("date_recorded", desc=True)
            )

        logger.info(f"[Database] Fetched {len(rows)} jobs")
        return [JobRecord.model_validate(row) for row in rows]

    async def get_jobs(self, filters: Optional[JobFilters] = None) -> List[JobRecord]:
        """Fetch jobs; returns an empty list on backend failure"""
        try:
            return await self.fetch_jobs(filters)
        except BackendError as e:
            logger.error(f"[Database] Returning no jobs after fetch failure: {e.describe()}")
            return []

    async def get_client_jobs(self, filters: ClientFilters) -> List[JobRecord]:
        """Fetch jobs for the client rollup (location and return-customer filters included)"""
        job_filters = filters.job_filters()

        def build_query():
            query = self._apply_job_filters(self.client.table(JOBS_TABLE).select("*"), job_filters)
            if filters.state:
                query = query.eq("state", filters.state)
            if filters.city:
                query = query.eq("city", filters.city)
            if filters.return_customer is not None:
                query = query.eq("paycode", 2 if filters.return_customer else 1)
            return query.order("date_recorded", desc=True)

        try:
            rows = await self._fetch_paged(build_query)
        except BackendError as e:
            logger.error(f"[Database] Returning no client jobs after fetch failure: {e.describe()}")
            return []
        return [JobRecord.model_validate(row) for row in rows]

    async def get_client_filter_options(self) -> FilterOptions:
        """Distinct states and cities present on jobs"""
        try:
            rows = await self._fetch_paged(
                lambda: self.client.table(JOBS_TABLE)
                .select("state, city")
                .not_.is_("state", "null")
                .not_.is_("city", "null")
            )
        except BackendError as e:
            logger.error(f"[Database] Error loading client filter options: {e.describe()}")
            return FilterOptions()

        states = sorted({row["state"] for row in rows if row.get("state")})
        cities = sorted({row["city"] for row in rows if row.get("city")})
        return FilterOptions(states=states, cities=cities)

    async def get_jobs_missing(self, column: str) -> List[JobRecord]:
        """Jobs where column IS NULL, newest first (raises BackendError)"""
        rows = await self._fetch_paged(
            lambda: self.admin.table(JOBS_TABLE)
            .select("*")
            .is_(column, "null")
            .order("date_recorded", desc=True)
        )
        return [JobRecord.model_validate(row) for row in rows]

    async def get_invoice_numbers(self) -> List[str]:
        """Every non-null invoice number (raises BackendError)"""
        rows = await self._fetch_paged(
            lambda: self.admin.table(JOBS_TABLE)
            .select("id, invoice_number")
            .not_.is_("invoice_number", "null")
            .order("id")
        )
        return [row["invoice_number"] for row in rows if row.get("invoice_number")]

    async def update_job_by_natural_key(self, job: JobRecord, patch: Dict[str, Any], null_column: str) -> int:
        """
        Update jobs sharing (date_recorded, customer_name, technician) whose
        null_column is still NULL. Returns the number of rows changed.
        """
        query = self.admin.table(JOBS_TABLE).update(patch)
        key = {
            "date_recorded": job.date_recorded.isoformat() if job.date_recorded else None,
            "customer_name": job.customer_name,
            "technician": job.technician,
        }
        for column, value in key.items():
            query = query.is_(column, "null") if value is None else query.eq(column, value)
        query = query.is_(null_column, "null")
        return len(await self._execute(query))

    async def update_job_by_id(self, job_id: int, patch: Dict[str, Any], null_column: str) -> int:
        """Update a single job by primary key, guarded by null_column IS NULL"""
        rows = await self._execute(
            self.admin.table(JOBS_TABLE).update(patch).eq("id", job_id).is_(null_column, "null")
        )
        return len(rows)

    async def insert_jobs(self, rows: List[Dict[str, Any]]) -> int:
        """Insert job rows with the admin client"""
        await self._execute(self.admin.table(JOBS_TABLE).insert(rows))
        return len(rows)

    async def delete_all_jobs(self) -> None:
        """Clear the jobs table before a full re-import"""
        await self._execute(self.admin.table(JOBS_TABLE).delete().neq("id", 0))

    # =========================================================================
    # Technicians
    # =========================================================================

    async def get_technicians(self) -> List[Technician]:
        rows = await self._execute(self.client.table(TECHNICIANS_TABLE).select("*").order("name"))
        return [Technician.model_validate(row) for row in rows]

    async def count_technicians(self) -> int:
        """Count of all technician rows; 0 if the table can't be read"""
        try:
            rows = await self._execute(self.client.table(TECHNICIANS_TABLE).select("technician_code"))
        except BackendError:
            return 0
        return len(rows)

    async def get_technician_by_code(self, technician_code: str) -> Optional[Technician]:
        rows = await self._execute(
            self.client.table(TECHNICIANS_TABLE)
            .select("*")
            .eq("technician_code", technician_code)
            .limit(1)
        )
        if rows:
            return Technician.model_validate(rows[0])
        return None

    async def get_technician_by_email(self, email: str) -> Optional[Technician]:
        rows = await self._execute(
            self.client.table(TECHNICIANS_TABLE)
            .select("*")
            .eq("email", email)
            .limit(1)
        )
        if rows:
            return Technician.model_validate(rows[0])
        return None

    # =========================================================================
    # Part Cost Requests
    # =========================================================================

    async def insert_part_request(self, data: Dict[str, Any]) -> PartCostRequest:
        rows = await self._execute(self.client.table(PART_REQUESTS_TABLE).insert(data))
        return PartCostRequest.model_validate(rows[0] if rows else data)

    async def get_part_request(self, request_id: int) -> Optional[PartCostRequest]:
        rows = await self._execute(
            self.client.table(PART_REQUESTS_TABLE).select("*").eq("id", request_id).limit(1)
        )
        if rows:
            return PartCostRequest.model_validate(rows[0])
        return None

    async def list_part_requests(self, status: Optional[PartRequestStatus] = None) -> List[PartCostRequest]:
        query = self.client.table(PART_REQUESTS_TABLE).select("*")
        if status:
            query = query.eq("status", status.value)
        rows = await self._execute(query.order("created_at", desc=True))
        return [PartCostRequest.model_validate(row) for row in rows]

    async def get_approved_part_requests(
        self,
        technician: Optional[str] = None,
        start_date: Optional[date] = None,
        created_before: Optional[date] = None
    ) -> List[PartCostRequest]:
        """Approved requests, optionally limited to a technician and created_at in [start_date, created_before)"""
        query = self.client.table(PART_REQUESTS_TABLE).select("*").eq(
            "status", PartRequestStatus.APPROVED.value
        )
        if technician:
            query = query.eq("technician_id", technician)
        if start_date:
            query = query.gte("created_at", start_date.isoformat())
        if created_before:
            query = query.lt("created_at", created_before.isoformat())

        try:
            rows = await self._execute(query.order("created_at", desc=True))
        except BackendError as e:
            logger.error(f"[Database] Returning no part requests after fetch failure: {e.describe()}")
            return []
        return [PartCostRequest.model_validate(row) for row in rows]

    async def update_part_request(self, request_id: int, patch: Dict[str, Any]) -> Optional[PartCostRequest]:
        patch = {**patch, "updated_at": datetime.now(timezone.utc).isoformat()}
        rows = await self._execute(
            self.client.table(PART_REQUESTS_TABLE).update(patch).eq("id", request_id)
        )
        if rows:
            return PartCostRequest.model_validate(rows[0])
        return None
