from __future__ import annotations

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, patch

from orgchart.models.employee import CommissionTier
from orgchart.services.employee_service import employee_service


def test_list_employees_uses_camel_case(client, roster):
    response = client.get("/api/v1/employees")

    assert response.status_code == 200
    data = response.json()
    assert len(data) == 7
    agent = next(e for e in data if e["id"] == "A1")
    assert agent["managerId"] == "T1"
    assert agent["commissionTier"] == "new"


def test_list_employees_by_site(client, roster):
    response = client.get("/api/v1/employees", params={"site": "Charlotte"})
    assert response.status_code == 200
    assert response.json() == []


def test_get_employee(client, roster):
    response = client.get("/api/v1/employees/T2")
    assert response.status_code == 200
    assert response.json()["name"] == "Tobi Lead"


def test_get_employee_not_found(client, roster):
    response = client.get("/api/v1/employees/NOPE")
    assert response.status_code == 404


def test_get_employee_store_failure(client):
    with patch.object(employee_service, "get_employee", AsyncMock(side_effect=RuntimeError("cosmos down"))):
        response = client.get("/api/v1/employees/A1")
    assert response.status_code == 502


def test_agent_commission(client, roster):
    response = client.get("/api/v1/employees/A1/commission")

    assert response.status_code == 200
    data = response.json()
    # tenure is well past the milestone
    assert data["tier"] == "veteran"
    assert data["will_change_to_veteran"] is False


def test_commission_for_non_agent_rejected(client, roster):
    response = client.get("/api/v1/employees/M1/commission")
    assert response.status_code == 400


def test_valid_targets(client, roster):
    response = client.get("/api/v1/employees/A1/valid-targets")

    assert response.status_code == 200
    assert [e["id"] for e in response.json()] == ["T2"]


def test_preview_move(client, roster):
    response = client.post("/api/v1/hierarchy/validate", json={"employee_id": "D1", "target_id": "M1"})

    assert response.status_code == 200
    assert response.json() == {"allowed": False, "reason": "directors cannot be reassigned"}


def test_tenure_alerts_list(client, roster):
    response = client.get("/api/v1/commission/alerts")

    assert response.status_code == 200
    alerts = response.json()
    assert {a["employee_id"] for a in alerts} == {"A1", "A2"}
    assert all(a["alert_type"] == "overdue" for a in alerts)


def test_send_alerts_without_slack_fails(client, roster):
    response = client.post("/api/v1/commission/alerts/send")
    assert response.status_code == 502


def test_batch_updates_are_staged_as_edits(client, roster):
    preview = client.get("/api/v1/commission/batch-updates")
    assert [e["id"] for e in preview.json()] == ["A1", "A2"]

    response = client.post("/api/v1/commission/batch-updates")

    assert response.status_code == 200
    data = response.json()
    assert data["count"] == 2
    assert {c["id"] for c in data["changes"]} == {"edit-A1", "edit-A2"}
    assert data["changes"][0]["updates"] == {"commission_tier": "veteran"}


def test_batch_updates_keep_already_staged_edits(client, roster, ledger):
    client.put("/api/v1/changes/edits/A1", json={"name": "Renamed Agent", "note": "Asked for a new badge"})

    response = client.post("/api/v1/commission/batch-updates")

    assert response.status_code == 200
    edit = next(e for e in ledger.edits() if e.employee_id == "A1")
    assert edit.update.name == "Renamed Agent"
    assert edit.update.note == "Asked for a new badge"
    assert edit.update.commission_tier is CommissionTier.VETERAN


def test_compensation_for_agent_and_manager(client, roster):
    agent = client.get("/api/v1/employees/A1/compensation").json()
    manager = client.get("/api/v1/employees/M1/compensation").json()

    assert agent["role"] == "Agent"
    assert agent["compensation"] == "$30,000 annual + 20% commission"
    assert manager == {"employee_id": "M1", "role": "Manager", "compensation": "$90k annual salary"}


def test_agents_approaching_milestone(client, roster):
    start = datetime.now(timezone.utc) - timedelta(days=176)
    roster["A2"] = roster["A2"].model_copy(update={"start_date": start})

    response = client.get("/api/v1/commission/milestones")

    assert response.status_code == 200
    assert [e["id"] for e in response.json()] == ["A2"]


def test_early_promoted_agents(client, roster):
    start = datetime.now(timezone.utc) - timedelta(days=20)
    roster["A1"] = roster["A1"].model_copy(update={"start_date": start, "commission_tier": CommissionTier.VETERAN})

    response = client.get("/api/v1/commission/early-promotions")

    assert response.status_code == 200
    assert [e["id"] for e in response.json()] == ["A1"]
