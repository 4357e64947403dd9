"""Shared test fixtures."""
import os

import pytest

# Keep a developer's .env from leaking audit/log settings into tests
os.environ.setdefault("LOG_LEVEL", "INFO")

from heritage_rbac.infra.staff_roster import InMemoryStaffRoster
from heritage_rbac.schemas.subject import Subject
from heritage_rbac.services.permission_service import PermissionService


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def roster():
    """museum m1 is run by admin u-admin-1 with two staff members."""
    return InMemoryStaffRoster(
        museum_admins={"m1": "u-admin-1", "m2": "u-admin-2"},
        museum_staff={"m1": ["u-staff-1", "u-staff-2"], "m2": ["u-staff-3"]},
    )


@pytest.fixture
def service(roster):
    return PermissionService(roster=roster)


@pytest.fixture
def super_admin():
    return Subject(id="u-root", role="super_admin")


@pytest.fixture
def museum_admin():
    return Subject(id="u-admin-1", role="museum_admin", museum_id="m1")


@pytest.fixture
def visitor():
    return Subject(id="u-visitor", role="visitor")
