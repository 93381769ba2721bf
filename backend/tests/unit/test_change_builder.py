from __future__ import annotations

from unittest.mock import patch

import pytest

from orgchart.core.errors import UsageError
from orgchart.models.changes import ChangeType
from orgchart.models.employee import CommissionTier, EmployeeCreate, Role, Site, Status, TerminationDetails
from orgchart.services import change_builder


def test_stage_move_records_new_manager(ledger, org):
    change = change_builder.stage_move(ledger, org["A1"], org["T2"])

    assert change.type is ChangeType.MOVE
    assert change.employee_id == "A1"
    assert change.updates == {"manager_id": "T2"}
    assert change.description == "Moved Alex Agent (Agent) to report to Tobi Lead (TeamLead)"


def test_stage_move_denied_raises_without_staging(ledger, org):
    with pytest.raises(UsageError, match="already assigned"):
        change_builder.stage_move(ledger, org["A1"], org["T1"])
    assert ledger.count() == 0


def test_promotion_of_agent_keeps_tier(ledger, org):
    change = change_builder.stage_promotion(ledger, org["A1"])

    assert change.updates == {"role": Role.TEAM_LEAD, "manager_id": None}
    assert change.description == "Promote Alex Agent from Agent to TeamLead"


def test_promotion_of_team_lead_clears_tier(ledger, org):
    change = change_builder.stage_promotion(ledger, org["T1"])

    assert change.updates == {"role": Role.MANAGER, "manager_id": None, "commission_tier": None}


def test_promotion_of_director_rejected(ledger, org):
    with pytest.raises(UsageError):
        change_builder.stage_promotion(ledger, org["D1"])


def test_transfer_defaults_to_other_site(ledger, org, make_employee):
    assert change_builder.stage_transfer(ledger, org["A1"]).updates == {"site": Site.CHARLOTTE}

    remote = make_employee("C1", Role.AGENT, site=Site.CHARLOTTE)
    assert change_builder.stage_transfer(ledger, remote).updates == {"site": Site.AUSTIN}


def test_transfer_to_current_site_rejected(ledger, org):
    with pytest.raises(UsageError):
        change_builder.stage_transfer(ledger, org["A1"], Site.AUSTIN)


def test_transfer_of_terminated_rejected(ledger, make_employee):
    gone = make_employee("X", Role.AGENT, status=Status.TERMINATED)
    with pytest.raises(UsageError):
        change_builder.stage_transfer(ledger, gone)


def test_termination_carries_details(ledger, org, now):
    details = TerminationDetails(reason="Performance", termination_date=now, payout_amount=1200.0)

    change = change_builder.stage_termination(ledger, org["A2"], details)

    assert change.updates == {"status": Status.TERMINATED, "termination_details": details}
    assert change.description == "Employee terminated - Reason: Performance"


def test_termination_twice_rejected(ledger, make_employee, now):
    gone = make_employee("X", Role.AGENT, status=Status.TERMINATED)
    with pytest.raises(UsageError):
        change_builder.stage_termination(ledger, gone, TerminationDetails(reason="Again", termination_date=now))


def test_creation_defaults_agent_tier(ledger, org, now):
    hire = EmployeeCreate(name="Nia New", role=Role.AGENT, site=Site.CHARLOTTE, start_date=now)

    change = change_builder.stage_creation(ledger, hire, manager=org["T2"])

    assert change.type is ChangeType.CREATE
    assert change.employee_id is None
    assert change.updates["manager_id"] == "T2"
    assert change.updates["commission_tier"] is CommissionTier.NEW


def test_creation_without_manager(ledger, now):
    hire = EmployeeCreate(name="Mo Manager", role=Role.MANAGER, site=Site.AUSTIN, start_date=now)

    change = change_builder.stage_creation(ledger, hire)

    assert "manager_id" not in change.updates
    assert "commission_tier" not in change.updates


def test_creation_under_wrong_level_rejected(ledger, org, now):
    hire = EmployeeCreate(name="Nia New", role=Role.AGENT, site=Site.AUSTIN, start_date=now)
    with pytest.raises(UsageError):
        change_builder.stage_creation(ledger, hire, manager=org["M1"])


def test_creation_with_unresolved_manager_id_rejected(ledger, now):
    hire = EmployeeCreate(name="Nia New", role=Role.AGENT, site=Site.AUSTIN, start_date=now, manager_id="T1")
    with pytest.raises(UsageError):
        change_builder.stage_creation(ledger, hire)


def test_promotion_without_higher_role_raises(ledger, org):
    with patch("orgchart.services.change_builder.promotion_role_of", return_value=None):
        with pytest.raises(UsageError, match="no role above"):
            change_builder.stage_promotion(ledger, org["A1"])
    assert ledger.count() == 0
