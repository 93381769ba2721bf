"""Staging area for hierarchy changes awaiting review.

Discrete changes (moves, promotions, transfers, terminations, creations) are
kept as an ordered list. Full-record edits are kept separately, keyed by
employee, with the last staged edit for an employee replacing any earlier one.
When a ``StagingStore`` is supplied the edit map lives in the store and is
re-read on every access, so edits staged by another session sharing the
store are counted too.

Callers serialize access; no method awaits, so readers always observe either
the state before or after a mutation.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable, Iterable
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict

from orgchart.models.changes import ChangeType, PendingChange
from orgchart.models.employee import EmployeeUpdate
from orgchart.services.staging_store import StagingStore

logger = logging.getLogger(__name__)

EDITS_KEY = "pending_employee_edits"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StagedEdit(BaseModel):
    model_config = ConfigDict(frozen=True)

    employee_id: str
    employee_name: str
    update: EmployeeUpdate
    staged_at: datetime


class PendingChangeLedger:
    def __init__(
        self,
        store: StagingStore | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.store = store
        self.clock = clock
        self._changes: list[PendingChange] = []
        self._edits: dict[str, StagedEdit] = {}

    # edit map storage

    def _load_edits(self) -> dict[str, StagedEdit]:
        if self.store is None:
            return dict(self._edits)

        raw = self.store.get(EDITS_KEY) or {}
        edits: dict[str, StagedEdit] = {}
        for employee_id, entry in raw.items():
            edits[employee_id] = StagedEdit(
                employee_id=employee_id,
                employee_name=entry["employeeName"],
                update=EmployeeUpdate.model_validate(entry["update"]),
                staged_at=entry["stagedAt"],
            )
        return edits

    def _save_edits(self, edits: dict[str, StagedEdit]) -> None:
        if self.store is None:
            self._edits = edits
            return

        if not edits:
            self.store.remove(EDITS_KEY)
            return
        self.store.set(
            EDITS_KEY,
            {
                employee_id: {
                    "employeeName": edit.employee_name,
                    "update": edit.update.model_dump(mode="json", exclude_unset=True),
                    "stagedAt": edit.staged_at.isoformat(),
                }
                for employee_id, edit in edits.items()
            },
        )

    # staging

    def stage(
        self,
        change_type: ChangeType,
        employee_name: str,
        description: str,
        *,
        employee_id: str | None = None,
        updates: dict[str, Any] | None = None,
    ) -> PendingChange:
        change = PendingChange(
            id=f"change-{uuid.uuid4().hex}",
            type=change_type,
            employee_name=employee_name,
            description=description,
            timestamp=self.clock(),
            employee_id=employee_id,
            updates=updates or {},
        )
        self._changes = [*self._changes, change]
        logger.debug("Staged %s for %s", change_type.value, employee_name)
        return change

    def stage_edit(self, employee_id: str, employee_name: str, fields: EmployeeUpdate | dict[str, Any]) -> StagedEdit:
        update = fields if isinstance(fields, EmployeeUpdate) else EmployeeUpdate.model_validate(fields)
        edit = StagedEdit(
            employee_id=employee_id,
            employee_name=employee_name,
            update=update,
            staged_at=self.clock(),
        )
        edits = self._load_edits()
        edits[employee_id] = edit
        self._save_edits(edits)
        return edit

    def restore(self, changes: Iterable[PendingChange]) -> None:
        """Put previously staged changes back, keeping their ids."""
        self._changes = [*self._changes, *changes]

    # reads

    def changes(self) -> list[PendingChange]:
        return list(self._changes)

    def edits(self) -> list[StagedEdit]:
        return list(self._load_edits().values())

    def count(self) -> int:
        return len(self._changes) + len(self._load_edits())

    def all(self) -> list[PendingChange]:
        synthesized = [
            PendingChange(
                id=f"edit-{edit.employee_id}",
                type=ChangeType.EDIT,
                employee_name=edit.employee_name,
                description=f"Edit {edit.employee_name}",
                timestamp=edit.staged_at,
                employee_id=edit.employee_id,
                updates=edit.update.to_fields(),
            )
            for edit in self._load_edits().values()
        ]
        return [*self._changes, *synthesized]

    def has_unsaved(self) -> bool:
        return self.count() > 0

    # clearing

    def clear_edits(self) -> None:
        self._save_edits({})

    def clear_changes(self) -> None:
        self._changes = []

    def discard(self) -> None:
        self.clear_changes()
        self.clear_edits()
