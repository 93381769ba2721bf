from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from orgchart.core.config import settings
from orgchart.core.dependencies import get_coordinator, get_ledger, load_employee
from orgchart.core.errors import UsageError
from orgchart.models.changes import (
    CommitReport,
    CommitRequest,
    CreateRequest,
    MoveRequest,
    PendingChange,
    PendingChangesResponse,
    PromoteRequest,
    TerminateRequest,
    TransferRequest,
)
from orgchart.models.employee import EmployeeUpdate
from orgchart.services import change_builder
from orgchart.services.commission_engine import validate_tier_change
from orgchart.services.commit_coordinator import ChangeCommitCoordinator
from orgchart.services.hierarchy_validator import validate_move, validate_promotion
from orgchart.services.pending_ledger import PendingChangeLedger

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/changes", tags=["changes"])


def _pending(ledger: PendingChangeLedger) -> PendingChangesResponse:
    return PendingChangesResponse(
        count=ledger.count(),
        has_unsaved=ledger.has_unsaved(),
        changes=ledger.all(),
    )


def _usage_error(err: UsageError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(err))


@router.get("", response_model=PendingChangesResponse)
async def list_pending(ledger: PendingChangeLedger = Depends(get_ledger)):  # noqa: B008
    return _pending(ledger)


@router.delete("", response_model=PendingChangesResponse)
async def discard_pending(ledger: PendingChangeLedger = Depends(get_ledger)):  # noqa: B008
    discarded = ledger.count()
    ledger.discard()
    logger.info("Discarded %d pending changes", discarded)
    return _pending(ledger)


@router.post("/move", response_model=PendingChange, status_code=status.HTTP_201_CREATED)
async def stage_move(
    request: MoveRequest,
    ledger: PendingChangeLedger = Depends(get_ledger),  # noqa: B008
):
    subject = await load_employee(request.employee_id)
    target = await load_employee(request.target_id)

    decision = validate_move(subject, target)
    if not decision.allowed:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=decision.reason)

    return change_builder.stage_move(ledger, subject, target)


@router.post("/promote", response_model=PendingChange, status_code=status.HTTP_201_CREATED)
async def stage_promotion(
    request: PromoteRequest,
    ledger: PendingChangeLedger = Depends(get_ledger),  # noqa: B008
):
    subject = await load_employee(request.employee_id)

    decision = validate_promotion(subject)
    if not decision.allowed:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=decision.reason)

    return change_builder.stage_promotion(ledger, subject)


@router.post("/transfer", response_model=PendingChange, status_code=status.HTTP_201_CREATED)
async def stage_transfer(
    request: TransferRequest,
    ledger: PendingChangeLedger = Depends(get_ledger),  # noqa: B008
):
    subject = await load_employee(request.employee_id)
    try:
        return change_builder.stage_transfer(ledger, subject, request.new_site)
    except UsageError as err:
        raise _usage_error(err) from err


@router.post("/terminate", response_model=PendingChange, status_code=status.HTTP_201_CREATED)
async def stage_termination(
    request: TerminateRequest,
    ledger: PendingChangeLedger = Depends(get_ledger),  # noqa: B008
):
    subject = await load_employee(request.employee_id)
    try:
        return change_builder.stage_termination(ledger, subject, request.details)
    except UsageError as err:
        raise _usage_error(err) from err


@router.post("/create", response_model=PendingChange, status_code=status.HTTP_201_CREATED)
async def stage_creation(
    request: CreateRequest,
    ledger: PendingChangeLedger = Depends(get_ledger),  # noqa: B008
):
    manager = None
    if request.employee.manager_id:
        manager = await load_employee(request.employee.manager_id)
    try:
        return change_builder.stage_creation(ledger, request.employee, manager)
    except UsageError as err:
        raise _usage_error(err) from err


@router.put("/edits/{employee_id}", response_model=PendingChangesResponse)
async def stage_edit(
    employee_id: str,
    update: EmployeeUpdate,
    confirm_tier_correction: bool = False,
    ledger: PendingChangeLedger = Depends(get_ledger),  # noqa: B008
):
    employee = await load_employee(employee_id)

    if update.commission_tier is not None:
        check = validate_tier_change(employee.commission_tier, update.commission_tier)
        if check.requires_confirmation and not confirm_tier_correction:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=check.message)

    ledger.stage_edit(employee.id, employee.name, update)
    return _pending(ledger)


@router.post("/commit", response_model=CommitReport)
async def commit_pending(
    request: CommitRequest,
    ledger: PendingChangeLedger = Depends(get_ledger),  # noqa: B008
    coordinator: ChangeCommitCoordinator = Depends(get_coordinator),  # noqa: B008
):
    site = request.site.value if request.site else settings.DEFAULT_SITE
    report = await coordinator.commit_all(ledger, request.preferences, site)
    if report.total_failed:
        logger.warning("Commit finished with %d failed items", report.total_failed)
    return report
