from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from orgchart.core.dependencies import get_coordinator
from orgchart.main import app
from orgchart.models.employee import CommissionTier
from orgchart.services.commit_coordinator import ChangeCommitCoordinator


def test_list_pending_starts_empty(client):
    response = client.get("/api/v1/changes")
    assert response.status_code == 200
    assert response.json() == {"count": 0, "has_unsaved": False, "changes": []}


def test_stage_move(client, roster):
    response = client.post("/api/v1/changes/move", json={"employee_id": "A1", "target_id": "T2"})

    assert response.status_code == 201
    data = response.json()
    assert data["type"] == "move"
    assert data["employee_name"] == "Alex Agent"
    assert data["updates"] == {"manager_id": "T2"}
    assert client.get("/api/v1/changes").json()["count"] == 1


def test_stage_move_denied_returns_reason(client, roster):
    response = client.post("/api/v1/changes/move", json={"employee_id": "A1", "target_id": "T1"})

    assert response.status_code == 422
    assert response.json()["detail"] == "already assigned to this target"
    assert client.get("/api/v1/changes").json()["count"] == 0


def test_stage_move_unknown_employee(client, roster):
    response = client.post("/api/v1/changes/move", json={"employee_id": "NOPE", "target_id": "T2"})
    assert response.status_code == 404


def test_stage_promotion(client, roster):
    response = client.post("/api/v1/changes/promote", json={"employee_id": "A1"})

    assert response.status_code == 201
    assert response.json()["updates"] == {"role": "TeamLead", "manager_id": None}


def test_stage_promotion_of_director_denied(client, roster):
    response = client.post("/api/v1/changes/promote", json={"employee_id": "D1"})

    assert response.status_code == 422
    assert response.json()["detail"] == "directors cannot be promoted"


def test_stage_transfer_defaults_to_other_site(client, roster):
    response = client.post("/api/v1/changes/transfer", json={"employee_id": "A1"})

    assert response.status_code == 201
    assert response.json()["updates"] == {"site": "Charlotte"}


def test_stage_transfer_to_same_site_rejected(client, roster):
    response = client.post("/api/v1/changes/transfer", json={"employee_id": "A1", "new_site": "Austin"})
    assert response.status_code == 400


def test_stage_termination(client, roster):
    response = client.post(
        "/api/v1/changes/terminate",
        json={"employee_id": "A2", "details": {"reason": "Resigned", "terminationDate": "2025-06-15T00:00:00Z"}},
    )

    assert response.status_code == 201
    data = response.json()
    assert data["type"] == "terminate"
    assert data["updates"]["status"] == "terminated"
    assert data["description"] == "Employee terminated - Reason: Resigned"


def test_stage_creation_under_team_lead(client, roster):
    response = client.post(
        "/api/v1/changes/create",
        json={
            "employee": {
                "name": "Nia New",
                "role": "Agent",
                "site": "Austin",
                "startDate": "2025-06-01T00:00:00Z",
                "managerId": "T1",
            }
        },
    )

    assert response.status_code == 201
    data = response.json()
    assert data["employee_id"] is None
    assert data["updates"]["manager_id"] == "T1"
    assert data["updates"]["commission_tier"] == "new"


def test_stage_creation_under_wrong_level_rejected(client, roster):
    response = client.post(
        "/api/v1/changes/create",
        json={
            "employee": {
                "name": "Nia New",
                "role": "Agent",
                "site": "Austin",
                "startDate": "2025-06-01T00:00:00Z",
                "managerId": "M1",
            }
        },
    )
    assert response.status_code == 400


def test_stage_edit_is_last_write_wins(client, roster):
    client.put("/api/v1/changes/edits/A1", json={"name": "Alexandra Agent"})
    response = client.put("/api/v1/changes/edits/A1", json={"site": "Charlotte"})

    assert response.status_code == 200
    data = response.json()
    assert data["count"] == 1
    assert data["changes"][0]["id"] == "edit-A1"
    assert data["changes"][0]["updates"] == {"site": "Charlotte"}


def test_tier_correction_requires_confirmation(client, roster):
    roster["A1"] = roster["A1"].model_copy(update={"commission_tier": CommissionTier.VETERAN})

    response = client.put("/api/v1/changes/edits/A1", json={"commissionTier": "new"})
    assert response.status_code == 409

    response = client.put(
        "/api/v1/changes/edits/A1",
        params={"confirm_tier_correction": "true"},
        json={"commissionTier": "new"},
    )
    assert response.status_code == 200
    assert response.json()["count"] == 1


def test_discard_pending(client, roster):
    client.post("/api/v1/changes/transfer", json={"employee_id": "A1"})
    client.put("/api/v1/changes/edits/A2", json={"name": "Arianna Agent"})

    response = client.delete("/api/v1/changes")

    assert response.status_code == 200
    assert response.json()["count"] == 0


def test_commit_reports_results(client, roster):
    employees = MagicMock()
    employees.get_employee = AsyncMock(side_effect=lambda employee_id: roster.get(employee_id))
    employees.find_by_name = AsyncMock(return_value=None)
    employees.update_employee = AsyncMock()
    notifier = MagicMock()
    notifier.notify_change = AsyncMock(return_value=["n8n"])
    notifier.send_bulk_summary = AsyncMock(return_value=True)
    app.dependency_overrides[get_coordinator] = lambda: ChangeCommitCoordinator(employees, notifier)

    client.post("/api/v1/changes/move", json={"employee_id": "A1", "target_id": "T2"})
    client.put("/api/v1/changes/edits/A2", json={"name": "Arianna Agent"})

    response = client.post("/api/v1/changes/commit", json={"preferences": {"send_slack": False}})

    assert response.status_code == 200
    data = response.json()
    assert data["edits_applied"] == 1
    assert data["changes_applied"] == 1
    assert data["total_applied"] == 2
    assert data["total_failed"] == 0
    # falls back to the default site
    assert notifier.notify_change.await_args.args[3] == "Austin"
    assert client.get("/api/v1/changes").json()["count"] == 0


@pytest.mark.anyio
async def test_pending_count_over_async_client(async_client, roster):
    await async_client.post("/api/v1/changes/promote", json={"employee_id": "T1"})
    response = await async_client.get("/api/v1/changes")

    assert response.status_code == 200
    assert response.json()["has_unsaved"] is True
