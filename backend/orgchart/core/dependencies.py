from __future__ import annotations

import logging
from functools import lru_cache

from fastapi import HTTPException, status

from orgchart.core.config import settings
from orgchart.models.employee import Employee
from orgchart.services.commit_coordinator import ChangeCommitCoordinator
from orgchart.services.employee_service import employee_service
from orgchart.services.notification_service import notification_service
from orgchart.services.pending_ledger import PendingChangeLedger
from orgchart.services.staging_store import InMemoryStagingStore, JsonFileStagingStore, StagingStore

logger = logging.getLogger(__name__)


def _build_store() -> StagingStore:
    if settings.STAGING_FILE:
        logger.info("Staging edits in %s", settings.STAGING_FILE)
        return JsonFileStagingStore(settings.STAGING_FILE)
    return InMemoryStagingStore()


@lru_cache(maxsize=1)
def get_ledger() -> PendingChangeLedger:
    # One pending-changes session per process.
    return PendingChangeLedger(store=_build_store())


def get_coordinator() -> ChangeCommitCoordinator:
    return ChangeCommitCoordinator(employee_service, notification_service)


async def load_employee(employee_id: str) -> Employee:
    try:
        employee = await employee_service.get_employee(employee_id)
    except Exception as err:
        logger.exception("Failed to load employee %s", employee_id)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Failed to retrieve employee",
        ) from err

    if not employee:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Employee '{employee_id}' not found",
        )
    return employee
