from datetime import date

import pytest

from app.models.enums import PartRequestStatus
from app.models.schemas import JobFilters, JobRecord
from app.services.database import DashboardDatabase
from app.services.errors import BackendError
from conftest import FakeSupabase, make_job


@pytest.mark.asyncio
async def test_jobs_are_paged_and_concatenated():
    backend = FakeSupabase({"jobs": [
        make_job(id=i, date_recorded=f"2024-01-{(i % 28) + 1:02d}") for i in range(1, 26)
    ]})
    db = DashboardDatabase(backend, page_size=10)

    jobs = await db.fetch_jobs()

    assert len(jobs) == 25
    assert backend.calls.count(("jobs", "select")) == 3
    dates = [job.date_recorded for job in jobs]
    assert dates == sorted(dates, reverse=True)


@pytest.mark.asyncio
async def test_exact_page_multiple_needs_one_extra_empty_page():
    backend = FakeSupabase({"jobs": [make_job(id=i) for i in range(1, 11)]})
    db = DashboardDatabase(backend, page_size=5)

    jobs = await db.fetch_jobs()

    assert len(jobs) == 10
    assert backend.calls.count(("jobs", "select")) == 3


@pytest.mark.asyncio
async def test_limit_returns_newest_rows_in_one_query():
    backend = FakeSupabase({"jobs": [
        make_job(id=1, date_recorded="2024-01-01"),
        make_job(id=2, date_recorded="2024-03-01"),
        make_job(id=3, date_recorded="2024-02-01"),
    ]})
    jobs = await DashboardDatabase(backend).fetch_jobs(JobFilters(limit=2))
    assert [job.id for job in jobs] == [2, 3]


@pytest.mark.asyncio
async def test_fetch_error_carries_hint_and_get_jobs_returns_empty():
    backend = FakeSupabase({"jobs": [make_job(id=1)]})
    backend.fail_when(lambda q: q.table == "jobs", message="new row violates row-level security policy", code="42501")
    db = DashboardDatabase(backend)

    with pytest.raises(BackendError) as excinfo:
        await db.fetch_jobs()
    assert excinfo.value.code == "42501"
    assert "permission denied" in excinfo.value.hint

    assert await db.get_jobs() == []


@pytest.mark.asyncio
async def test_null_money_columns_read_as_zero():
    backend = FakeSupabase({"jobs": [make_job(id=1, total_amount=None, parts_cost=None, sales_tax=None)]})
    [job] = await DashboardDatabase(backend).fetch_jobs()
    assert job.total_amount == 0
    assert job.parts_cost == 0
    assert job.sales_tax == 0


@pytest.mark.asyncio
async def test_natural_key_update_handles_null_customer():
    backend = FakeSupabase({"jobs": [
        make_job(id=1, customer_name=None, date_recorded="2024-01-01"),
        make_job(id=2, customer_name="Acme", date_recorded="2024-01-01"),
    ]})
    db = DashboardDatabase(backend)
    job = JobRecord.model_validate(backend.tables["jobs"][0])

    changed = await db.update_job_by_natural_key(job, {"zip_code_for_job": "00000"}, "zip_code_for_job")

    assert changed == 1
    assert backend.tables["jobs"][0]["zip_code_for_job"] == "00000"
    assert backend.tables["jobs"][1]["zip_code_for_job"] is None


@pytest.mark.asyncio
async def test_technician_lookups():
    backend = FakeSupabase({"technicians": [
        {"id": 1, "technician_code": "T1", "name": "Tina", "email": "tina@example.com", "role": "technician"},
        {"id": 2, "technician_code": "A1", "name": "Adam", "email": "adam@example.com", "role": "admin"},
    ]})
    db = DashboardDatabase(backend)

    assert await db.count_technicians() == 2
    assert (await db.get_technician_by_email("adam@example.com")).technician_code == "A1"
    assert (await db.get_technician_by_code("T1")).name == "Tina"
    assert await db.get_technician_by_code("nope") is None
    assert [t.name for t in await db.get_technicians()] == ["Adam", "Tina"]


@pytest.mark.asyncio
async def test_count_technicians_is_zero_on_error():
    backend = FakeSupabase({"technicians": [{"technician_code": "T1"}]})
    backend.fail_when(lambda q: q.table == "technicians")
    assert await DashboardDatabase(backend).count_technicians() == 0


@pytest.mark.asyncio
async def test_approved_requests_filtered_by_technician_and_window():
    backend = FakeSupabase({"part_cost_requests": [
        {"id": 1, "technician_id": "T1", "status": "approved", "created_at": "2024-01-10T00:00:00+00:00"},
        {"id": 2, "technician_id": "T1", "status": "approved", "created_at": "2024-03-10T00:00:00+00:00"},
        {"id": 3, "technician_id": "T2", "status": "approved", "created_at": "2024-01-10T00:00:00+00:00"},
        {"id": 4, "technician_id": "T1", "status": "pending", "created_at": "2024-01-11T00:00:00+00:00"},
    ]})
    db = DashboardDatabase(backend)

    requests = await db.get_approved_part_requests("T1", date(2024, 1, 1), date(2024, 2, 1))

    assert [r.id for r in requests] == [1]
    assert all(r.status == PartRequestStatus.APPROVED for r in requests)


@pytest.mark.asyncio
async def test_ping_reports_failure_message():
    backend = FakeSupabase()
    backend.fail_when(lambda q: True, message="relation missing", code="42P01")
    result = await DashboardDatabase(backend).ping()
    assert result["success"] is False
    assert "relation missing" in result["message"]


@pytest.mark.asyncio
async def test_created_before_bound_is_exclusive():
    backend = FakeSupabase({"part_cost_requests": [
        {"id": 1, "technician_id": "T1", "status": "approved", "created_at": "2024-01-31T12:00:00+00:00"},
        {"id": 2, "technician_id": "T1", "status": "approved", "created_at": "2024-02-01T00:00:00+00:00"},
    ]})

    requests = await DashboardDatabase(backend).get_approved_part_requests("T1", created_before=date(2024, 2, 1))

    assert [r.id for r in requests] == [1]
