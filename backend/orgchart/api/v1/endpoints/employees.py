from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, HTTPException, status

from orgchart.core.dependencies import load_employee
from orgchart.models.changes import CommissionResult, CompensationSummary
from orgchart.models.employee import Employee, Role, Site
from orgchart.services.commission_engine import calculate_commission, compensation_for
from orgchart.services.employee_service import employee_service
from orgchart.services.hierarchy_validator import valid_targets

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/employees", tags=["employees"])


@router.get("", response_model=list[Employee])
async def list_employees(site: Site | None = None, include_terminated: bool = False):
    try:
        return await employee_service.get_employees(site=site, include_terminated=include_terminated)
    except Exception as err:
        logger.exception("Failed to list employees")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve employees",
        ) from err


@router.get("/{employee_id}", response_model=Employee)
async def get_employee(employee_id: str):
    return await load_employee(employee_id)


@router.get("/{employee_id}/commission", response_model=CommissionResult)
async def get_commission(employee_id: str):
    employee = await load_employee(employee_id)
    if employee.role is not Role.AGENT:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Commission tiers apply to agents only, {employee.name} is a {employee.role.value}",
        )
    return calculate_commission(employee, datetime.now(timezone.utc))


@router.get("/{employee_id}/valid-targets", response_model=list[Employee])
async def get_valid_targets(employee_id: str):
    employee = await load_employee(employee_id)
    candidates = await employee_service.get_employees()
    return valid_targets(employee, candidates)


@router.get("/{employee_id}/compensation", response_model=CompensationSummary)
async def get_compensation(employee_id: str):
    employee = await load_employee(employee_id)
    return CompensationSummary(
        employee_id=employee.id,
        role=employee.role,
        compensation=compensation_for(employee, datetime.now(timezone.utc)),
    )
