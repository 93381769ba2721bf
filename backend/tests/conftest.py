from __future__ import annotations

from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest
from httpx import ASGITransport, AsyncClient
from starlette.testclient import TestClient

from orgchart.core.dependencies import get_ledger
from orgchart.main import app
from orgchart.models.employee import CommissionTier, Employee, Role, Site, Status
from orgchart.services.employee_service import employee_service
from orgchart.services.pending_ledger import PendingChangeLedger

NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


def _make_employee(
    employee_id: str,
    role: Role,
    *,
    name: str | None = None,
    manager_id: str | None = None,
    site: Site = Site.AUSTIN,
    status: Status = Status.ACTIVE,
    commission_tier: CommissionTier | None = None,
    tenure_days: int = 365,
) -> Employee:
    return Employee(
        id=employee_id,
        name=name or f"Employee {employee_id}",
        role=role,
        site=site,
        manager_id=manager_id,
        status=status,
        commission_tier=commission_tier,
        start_date=NOW - timedelta(days=tenure_days),
    )


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def make_employee():
    return _make_employee


@pytest.fixture
def org() -> dict[str, Employee]:
    """A small two-branch chart: D1 → M1/M2 → T1/T2 → A1/A2."""
    return {
        "D1": _make_employee("D1", Role.DIRECTOR, name="Dana Director"),
        "M1": _make_employee("M1", Role.MANAGER, name="Morgan Manager", manager_id="D1"),
        "M2": _make_employee("M2", Role.MANAGER, name="Max Manager", manager_id="D1"),
        "T1": _make_employee("T1", Role.TEAM_LEAD, name="Taylor Lead", manager_id="M1"),
        "T2": _make_employee("T2", Role.TEAM_LEAD, name="Tobi Lead", manager_id="M2"),
        "A1": _make_employee(
            "A1", Role.AGENT, name="Alex Agent", manager_id="T1", commission_tier=CommissionTier.NEW
        ),
        "A2": _make_employee(
            "A2", Role.AGENT, name="Ari Agent", manager_id="T2", commission_tier=CommissionTier.NEW
        ),
    }


@pytest.fixture
def ledger() -> PendingChangeLedger:
    return PendingChangeLedger(clock=lambda: NOW)


@pytest.fixture
def client(ledger):
    app.dependency_overrides[get_ledger] = lambda: ledger
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
async def async_client(ledger):
    app.dependency_overrides[get_ledger] = lambda: ledger
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def roster(org):
    """Serve ``org`` from the employee service singleton."""

    async def get_employee(employee_id):
        return org.get(employee_id)

    async def get_employees(site=None, include_terminated=False):
        return [
            e
            for e in org.values()
            if (site is None or e.site is site) and (include_terminated or not e.is_terminated)
        ]

    with (
        patch.object(employee_service, "get_employee", side_effect=get_employee),
        patch.object(employee_service, "get_employees", side_effect=get_employees),
    ):
        yield org
