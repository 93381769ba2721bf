"""Turn validated user actions into staged ledger entries.

Each helper re-checks the structural rules and raises ``UsageError`` when a
caller tries to stage something the validator would deny; callers that want
a friendly message should run the validator themselves first.
"""

from __future__ import annotations

import uuid
from typing import Any

from orgchart.core.errors import UsageError
from orgchart.models.changes import ChangeType, PendingChange
from orgchart.models.employee import (
    TIERED_ROLES,
    CommissionTier,
    Employee,
    EmployeeCreate,
    Role,
    Site,
    Status,
    TerminationDetails,
)
from orgchart.services.hierarchy_validator import validate_move, validate_promotion
from orgchart.services.pending_ledger import PendingChangeLedger
from orgchart.services.role_hierarchy import promotion_role_of


def _other_site(site: Site) -> Site:
    return Site.CHARLOTTE if site is Site.AUSTIN else Site.AUSTIN


def stage_move(ledger: PendingChangeLedger, subject: Employee, target: Employee) -> PendingChange:
    decision = validate_move(subject, target)
    if not decision.allowed:
        raise UsageError(f"Cannot stage move of {subject.name}: {decision.reason}")

    return ledger.stage(
        ChangeType.MOVE,
        subject.name,
        f"Moved {subject.name} ({subject.role.value}) to report to {target.name} ({target.role.value})",
        employee_id=subject.id,
        updates={"manager_id": target.id},
    )


def stage_promotion(ledger: PendingChangeLedger, subject: Employee) -> PendingChange:
    decision = validate_promotion(subject)
    if not decision.allowed:
        raise UsageError(f"Cannot stage promotion of {subject.name}: {decision.reason}")

    new_role = promotion_role_of(subject.role)
    if new_role is None:
        raise UsageError(f"{subject.role.value} has no role above it")

    # The old manager sits at the new role's level, so the employee becomes unassigned.
    updates: dict[str, Any] = {"role": new_role, "manager_id": None}
    if new_role not in TIERED_ROLES:
        updates["commission_tier"] = None

    return ledger.stage(
        ChangeType.PROMOTE,
        subject.name,
        f"Promote {subject.name} from {subject.role.value} to {new_role.value}",
        employee_id=subject.id,
        updates=updates,
    )


def stage_transfer(ledger: PendingChangeLedger, subject: Employee, new_site: Site | None = None) -> PendingChange:
    target_site = new_site or _other_site(subject.site)
    if target_site is subject.site:
        raise UsageError(f"{subject.name} is already at the {target_site.value} site")
    if subject.is_terminated:
        raise UsageError(f"Cannot transfer terminated employee {subject.name}")

    return ledger.stage(
        ChangeType.TRANSFER,
        subject.name,
        f"Transfer {subject.name} from {subject.site.value} to {target_site.value} site",
        employee_id=subject.id,
        updates={"site": target_site},
    )


def stage_termination(
    ledger: PendingChangeLedger,
    subject: Employee,
    details: TerminationDetails,
) -> PendingChange:
    if subject.is_terminated:
        raise UsageError(f"{subject.name} is already terminated")

    return ledger.stage(
        ChangeType.TERMINATE,
        subject.name,
        f"Employee terminated - Reason: {details.reason}",
        employee_id=subject.id,
        updates={"status": Status.TERMINATED, "termination_details": details},
    )


def stage_creation(
    ledger: PendingChangeLedger,
    new_employee: EmployeeCreate,
    manager: Employee | None = None,
) -> PendingChange:
    if manager is not None:
        # Checked as a provisional record that does not report to anyone yet.
        provisional = Employee(
            id=f"new-{uuid.uuid4().hex}",
            name=new_employee.name,
            role=new_employee.role,
            site=new_employee.site,
            start_date=new_employee.start_date,
        )
        decision = validate_move(provisional, manager)
        if not decision.allowed:
            raise UsageError(f"Cannot place {new_employee.name} under {manager.name}: {decision.reason}")
    elif new_employee.manager_id is not None:
        raise UsageError("The manager record is required to validate a new hire's reporting line")

    fields = new_employee.model_dump(exclude_none=True)
    if manager is not None:
        fields["manager_id"] = manager.id
    if new_employee.role is Role.AGENT and new_employee.commission_tier is None:
        fields["commission_tier"] = CommissionTier.NEW

    return ledger.stage(
        ChangeType.CREATE,
        new_employee.name,
        f"Hire {new_employee.name} as {new_employee.role.value} at {new_employee.site.value}",
        updates=fields,
    )
