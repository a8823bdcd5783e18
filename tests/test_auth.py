from datetime import date

import pytest

from app.analytics.date_ranges import resolve_date_preset
from app.models.enums import Capability, DatePreset, Role
from app.services.auth import CAPABILITIES, AuthService, can
from app.services.database import DashboardDatabase
from conftest import FakeSupabase


def test_admin_can_do_everything_a_technician_can():
    assert CAPABILITIES[Role.TECHNICIAN] < CAPABILITIES[Role.ADMIN]


@pytest.mark.parametrize("capability", [
    Capability.VIEW_OWN_DASHBOARD,
    Capability.VIEW_JOBS,
    Capability.VIEW_PAYOUT,
    Capability.SUBMIT_PART_REQUEST,
])
def test_technician_capabilities(capability):
    assert can(Role.TECHNICIAN, capability)


@pytest.mark.parametrize("capability", [
    Capability.VIEW_CLIENTS,
    Capability.IMPORT_DATA,
    Capability.RUN_CLEANUP,
    Capability.DECIDE_PART_REQUEST,
])
def test_admin_only_capabilities(capability):
    assert not can(Role.TECHNICIAN, capability)
    assert can(Role.ADMIN, capability)


def test_no_role_no_capabilities():
    assert not can(None, Capability.VIEW_JOBS)


@pytest.mark.asyncio
async def test_login_current_user_and_logout():
    backend = FakeSupabase({"technicians": [
        {"technician_code": "T1", "name": "Tina", "email": "tina@example.com", "role": None},
    ]})
    backend.auth.passwords["tina@example.com"] = "secret1"
    auth = AuthService(backend, DashboardDatabase(backend))

    session = await auth.login("tina@example.com", "secret1")
    token = session["access_token"]
    user = await auth.current_user(token)

    assert user.email == "tina@example.com"
    assert user.technician.technician_code == "T1"
    assert user.technician.role == Role.TECHNICIAN

    await auth.logout(token)
    assert await auth.current_user(token) is None


@pytest.mark.parametrize("preset,expected", [
    (DatePreset.THIS_MONTH, (date(2024, 2, 1), date(2024, 2, 29))),
    (DatePreset.LAST_MONTH, (date(2024, 1, 1), date(2024, 1, 31))),
    (DatePreset.LAST_WEEK, (date(2024, 2, 5), date(2024, 2, 11))),
    (DatePreset.THIS_YEAR, (date(2024, 1, 1), date(2024, 12, 31))),
    (DatePreset.LAST_YEAR, (date(2023, 1, 1), date(2023, 12, 31))),
    (DatePreset.LAST_30_DAYS, (date(2024, 1, 15), date(2024, 2, 14))),
    (DatePreset.ALL_TIME, (None, None)),
])
def test_date_presets(preset, expected):
    # Wednesday
    assert resolve_date_preset(preset, today=date(2024, 2, 14)) == expected
