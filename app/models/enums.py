"""
Dashboard Enums

Standardized constants for roles, request states and sort options.
"""

from enum import Enum


class Role(str, Enum):
    """Technician table roles"""
    TECHNICIAN = "technician"
    ADMIN = "admin"


class Capability(str, Enum):
    """Actions a signed-in user may perform"""
    VIEW_OWN_DASHBOARD = "view_own_dashboard"
    VIEW_JOBS = "view_jobs"
    VIEW_PAYOUT = "view_payout"
    VIEW_ALL_TECHNICIANS = "view_all_technicians"
    VIEW_CLIENTS = "view_clients"
    VIEW_APPLIANCES = "view_appliances"
    SUBMIT_PART_REQUEST = "submit_part_request"
    DECIDE_PART_REQUEST = "decide_part_request"
    IMPORT_DATA = "import_data"
    RUN_CLEANUP = "run_cleanup"


class PartRequestStatus(str, Enum):
    """Part cost request lifecycle"""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class PartsOrderedBy(str, Enum):
    """Who bought the parts; only technician purchases are reimbursed"""
    TECHNICIAN = "technician"
    OFFICE = "office"


class ClientSortKey(str, Enum):
    """Sort keys for the top clients table"""
    TOTAL_SALES = "total_sales"
    TOTAL_JOBS = "total_jobs"
    AVG_SALE_PER_JOB = "avg_sale_per_job"
    LAST_JOB_DATE = "last_job_date"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


class DatePreset(str, Enum):
    """Predefined date ranges for dashboard filters"""
    ALL_TIME = "all_time"
    THIS_MONTH = "this_month"
    LAST_MONTH = "last_month"
    LAST_WEEK = "last_week"
    THIS_YEAR = "this_year"
    LAST_YEAR = "last_year"
    LAST_30_DAYS = "last_30_days"
    LAST_90_DAYS = "last_90_days"
    CUSTOM = "custom"
