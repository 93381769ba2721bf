from __future__ import annotations

from fastapi import APIRouter

from orgchart.core.dependencies import load_employee
from orgchart.models.changes import MoveDecision, MoveRequest
from orgchart.services.hierarchy_validator import validate_move

router = APIRouter(prefix="/hierarchy", tags=["hierarchy"])


@router.post("/validate", response_model=MoveDecision)
async def preview_move(request: MoveRequest):
    subject = await load_employee(request.employee_id)
    target = await load_employee(request.target_id)
    return validate_move(subject, target)
