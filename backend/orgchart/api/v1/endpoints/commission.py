from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Query, status

from orgchart.core.dependencies import get_ledger
from orgchart.models.changes import PendingChangesResponse, TenureAlert
from orgchart.models.employee import Employee, EmployeeUpdate, Site
from orgchart.services.commission_engine import (
    agents_approaching_milestone,
    agents_needing_update,
    batch_tier_updates,
    early_promoted_agents,
)
from orgchart.services.employee_service import employee_service
from orgchart.services.notification_service import notification_service
from orgchart.services.pending_ledger import PendingChangeLedger
from orgchart.services.tenure_alerts import build_tenure_alerts, send_tenure_alerts

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/commission", tags=["commission"])


@router.get("/alerts", response_model=list[TenureAlert])
async def list_tenure_alerts(site: Site | None = None):
    employees = await employee_service.get_employees(site=site)
    return build_tenure_alerts(employees, datetime.now(timezone.utc))


@router.post("/alerts/send")
async def send_alerts(site: Site | None = None):
    employees = await employee_service.get_employees(site=site)
    alerts = build_tenure_alerts(employees, datetime.now(timezone.utc))
    try:
        sent = await send_tenure_alerts(alerts, notification_service)
    except Exception as err:
        logger.exception("Failed to send tenure alerts")
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Failed to send tenure alerts: {err}",
        ) from err
    return {"sent": sent, "alerts": len(alerts)}


@router.get("/batch-updates", response_model=list[Employee])
async def list_batch_updates(site: Site | None = None):
    employees = await employee_service.get_employees(site=site)
    return agents_needing_update(employees, datetime.now(timezone.utc))


@router.post("/batch-updates", response_model=PendingChangesResponse)
async def stage_batch_updates(
    site: Site | None = None,
    ledger: PendingChangeLedger = Depends(get_ledger),  # noqa: B008
):
    employees = await employee_service.get_employees(site=site)
    names = {e.id: e.name for e in employees}
    staged = {edit.employee_id: edit.update for edit in ledger.edits()}
    updates = batch_tier_updates(employees, datetime.now(timezone.utc))
    for employee_id, update in updates.items():
        # Fold the tier into an edit the user already staged.
        if employee_id in staged:
            update = EmployeeUpdate.model_validate(
                {**staged[employee_id].model_dump(exclude_unset=True), "commission_tier": update.commission_tier}
            )
        ledger.stage_edit(employee_id, names[employee_id], update)

    logger.info("Staged %d veteran tier updates", len(updates))
    return PendingChangesResponse(count=ledger.count(), has_unsaved=ledger.has_unsaved(), changes=ledger.all())


@router.get("/milestones", response_model=list[Employee])
async def list_approaching_milestone(site: Site | None = None, window_days: int = Query(default=7, ge=1, le=90)):
    employees = await employee_service.get_employees(site=site)
    return agents_approaching_milestone(employees, datetime.now(timezone.utc), window_days)


@router.get("/early-promotions", response_model=list[Employee])
async def list_early_promotions(site: Site | None = None):
    employees = await employee_service.get_employees(site=site)
    return early_promoted_agents(employees, datetime.now(timezone.utc))
