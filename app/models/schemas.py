"""
Pydantic Models for Records, Filters and Responses
"""

import math
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from app.models.enums import (
    ClientSortKey,
    PartRequestStatus,
    PartsOrderedBy,
    Role,
    SortOrder,
)

MONEY_FIELDS = (
    "total_amount",
    "parts_cost",
    "merchandise_sold",
    "parts_sold",
    "service_call_amount",
    "other_labor",
    "sales_tax",
)


def _date_prefix(value: Any) -> Any:
    """Accept 'YYYY-MM-DD' or a timestamp string and keep only the date part"""
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
        return value[:10]
    return value


# ============== Stored Records ==============

class JobRecord(BaseModel):
    """One serviced job / invoice line from the jobs table"""
    model_config = ConfigDict(extra="allow")

    id: Optional[int] = None
    invoice_number: Optional[str] = None
    customer_name: Optional[str] = None
    technician: Optional[str] = None

    total_amount: float = 0
    parts_cost: float = 0
    merchandise_sold: float = 0
    parts_sold: float = 0
    service_call_amount: float = 0
    other_labor: float = 0
    sales_tax: float = 0

    type_serviced: Optional[str] = None
    make_serviced: Optional[str] = None
    is_oem_client: Optional[bool] = None
    paycode: Optional[int] = None

    city: Optional[str] = None
    state: Optional[str] = None
    zip_code_for_job: Optional[str] = None

    date_recorded: Optional[date] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator(*MONEY_FIELDS, mode="before")
    @classmethod
    def _null_money_is_zero(cls, value: Any) -> Any:
        return 0 if value is None else value

    @field_validator("paycode", mode="before")
    @classmethod
    def _round_paycode(cls, value: Any) -> Any:
        if value is None or value == "":
            return None
        return math.floor(float(value) + 0.5)

    @field_validator("date_recorded", mode="before")
    @classmethod
    def _date_only(cls, value: Any) -> Any:
        return _date_prefix(value)

    @property
    def labor(self) -> float:
        """Revenue minus parts cost"""
        return self.total_amount - self.parts_cost


class Technician(BaseModel):
    """Row from the technicians table"""
    model_config = ConfigDict(extra="ignore")

    id: Optional[int] = None
    technician_code: str
    name: Optional[str] = None
    email: Optional[str] = None
    role: Role = Role.TECHNICIAN
    is_active: bool = True

    @field_validator("role", mode="before")
    @classmethod
    def _default_role(cls, value: Any) -> Any:
        return value or Role.TECHNICIAN

    @field_validator("is_active", mode="before")
    @classmethod
    def _default_active(cls, value: Any) -> Any:
        return True if value is None else value


class PartCostRequest(BaseModel):
    """Row from the part_cost_requests table"""
    model_config = ConfigDict(extra="ignore")

    id: Optional[int] = None
    job_invoice_number: Optional[str] = None
    technician_id: str
    current_parts_cost: float = 0
    requested_parts_cost: float = 0
    notes: str = ""
    status: PartRequestStatus = PartRequestStatus.PENDING
    parts_ordered_by: Optional[PartsOrderedBy] = None
    admin_notes: Optional[str] = None
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("current_parts_cost", "requested_parts_cost", mode="before")
    @classmethod
    def _null_cost_is_zero(cls, value: Any) -> Any:
        return 0 if value is None else value

    @field_validator("technician_id", mode="before")
    @classmethod
    def _technician_id_as_text(cls, value: Any) -> Any:
        return str(value) if value is not None else value


# ============== Requests ==============

class JobFilters(BaseModel):
    """Filters applied to the jobs query before any aggregation"""
    technician: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    limit: Optional[int] = Field(default=None, ge=1)

    @model_validator(mode="after")
    def _check_range(self) -> "JobFilters":
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValueError("start_date must be on or before end_date")
        return self


class ClientFilters(BaseModel):
    """Filters and sorting for the top clients rollup"""
    technician: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    state: Optional[str] = None
    city: Optional[str] = None
    return_customer: Optional[bool] = None
    min_sales: Optional[float] = None
    max_sales: Optional[float] = None
    min_jobs: Optional[int] = None
    max_jobs: Optional[int] = None
    sort_by: ClientSortKey = ClientSortKey.TOTAL_SALES
    sort_order: SortOrder = SortOrder.DESC
    limit: int = Field(default=25, ge=1)

    def job_filters(self) -> JobFilters:
        """Query-level part of the filter (no row limit)"""
        return JobFilters(
            technician=self.technician,
            start_date=self.start_date,
            end_date=self.end_date,
        )


class PartCostRequestCreate(BaseModel):
    """Technician-submitted correction to a job's parts cost"""
    job_invoice_number: Optional[str] = None
    current_parts_cost: float = 0
    requested_parts_cost: float
    notes: str = ""


class PartRequestDecision(BaseModel):
    """Admin decision on a pending part cost request"""
    admin_notes: Optional[str] = None
    parts_ordered_by: PartsOrderedBy = PartsOrderedBy.TECHNICIAN


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=3)
    password: str = Field(..., min_length=6)


class ImportRequest(BaseModel):
    """Spreadsheet import source: a Google Sheets URL or raw CSV/TSV text"""
    spreadsheet_url: Optional[str] = None
    csv_text: Optional[str] = None
    delimiter: str = Field(default=",", description="',' for CSV or '\\t' for TSV")
    clear_first: bool = False

    @model_validator(mode="after")
    def _need_source(self) -> "ImportRequest":
        if not self.spreadsheet_url and not self.csv_text:
            raise ValueError("spreadsheet_url or csv_text is required")
        return self


# ============== Metrics Responses ==============

class StateSales(BaseModel):
    state: str
    sales: float
    count: int


class DashboardMetrics(BaseModel):
    """Fixed-shape summary statistics over a filtered job set"""
    total_jobs: int = 0
    total_sales: float = 0
    total_technicians: int = 0
    avg_sale_per_job: float = 0
    total_labor: float = 0
    total_parts: float = 0
    avg_labor_per_job: float = 0
    parts_sales_ratio: float = 0
    labor_sales_ratio: float = 0
    jobs_this_month: int = 0
    sales_this_month: float = 0
    invoice_count: int = 0
    sales_by_state: List[StateSales] = []
    service_call_count: int = 0
    total_service_call_sales: float = 0
    service_call_percentage: float = 0
    service_call_to_total_sales_ratio: float = 0
    return_customer_count: int = 0
    return_customer_percentage: float = 0
    total_part_profit: float = 0
    avg_part_profit: float = 0
    total_payout: float = 0
    oem_jobs_count: int = 0
    non_oem_jobs_count: int = 0
    oem_sales: float = 0
    non_oem_sales: float = 0


class MonthlySales(BaseModel):
    month: str
    sales: float


class JobTypeSales(BaseModel):
    type: str
    total_sales: float
    count: int


class CategoryStats(BaseModel):
    """Per appliance type or brand totals"""
    name: str
    count: int
    total_sales: float
    total_labor: float
    avg_sale: float
    avg_labor: float


class TypeBrandCombination(BaseModel):
    combination: str
    type: Optional[str] = None
    brand: Optional[str] = None
    count: int
    total_sales: float


class ApplianceStats(BaseModel):
    types: List[CategoryStats] = []
    brands: List[CategoryStats] = []
    combinations: List[TypeBrandCombination] = []


# ============== Client Rollup ==============

class ClientMonth(BaseModel):
    month: str
    sales: float = 0
    jobs: int = 0
    parts: float = 0
    labor: float = 0


class ClientSummary(BaseModel):
    """All jobs sharing a customer name"""
    customer_name: str
    total_sales: float
    total_jobs: int
    avg_sale_per_job: float
    total_parts: float
    total_labor: float
    first_job_date: Optional[date] = None
    last_job_date: Optional[date] = None
    return_customer: bool
    paycode: int
    state: str
    city: str
    monthly_data: List[ClientMonth] = []


class MonthlyClientSales(BaseModel):
    month: str
    total_sales: float
    total_jobs: int
    avg_job_value: float
    year_to_date_sales: float = 0


class ClientKPIs(BaseModel):
    total_jobs: int = 0
    avg_job_value: float = 0
    year_to_date_sales: float = 0


class ClientTracker(BaseModel):
    clients: List[ClientSummary] = []
    monthly: List[MonthlyClientSales] = []
    kpis: ClientKPIs = ClientKPIs()


class FilterOptions(BaseModel):
    states: List[str] = []
    cities: List[str] = []


# ============== Payout ==============

class PayoutOverview(BaseModel):
    """Dashboard-level payout (6.5% OEM / 50% non-OEM, parts added back per job)"""
    oem_jobs_count: int = 0
    non_oem_jobs_count: int = 0
    total_oem_payout: float = 0
    total_non_oem_payout: float = 0
    total_payout: float = 0


class EnhancedPayout(BaseModel):
    """Per-technician payout (65% OEM / 50% non-OEM commission plus reimbursed parts)"""
    technician_code: Optional[str] = None
    total_commission: float = 0
    oem_commission: float = 0
    non_oem_commission: float = 0
    tech_parts_total: float = 0
    office_parts_total: float = 0
    total_parts_value: float = 0
    total_payout: float = 0
    jobs_count: int = 0
    oem_jobs_count: int = 0
    non_oem_jobs_count: int = 0
    tech_parts_count: int = 0
    office_parts_count: int = 0


# ============== Maintenance / Import ==============

class BackfillResult(BaseModel):
    success: bool
    message: str
    updated_count: int = 0


class ImportPreview(BaseModel):
    rows: List[Dict[str, Any]] = []
    total_rows: int = 0


class ImportStatus(BaseModel):
    """UI status message plus counters"""
    success: Optional[str] = None
    error: Optional[str] = None
    imported: int = 0
    skipped: int = 0
    total: int = 0


class CurrentUser(BaseModel):
    email: Optional[str] = None
    technician: Optional[Technician] = None
