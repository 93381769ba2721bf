"""Apply everything staged in a ``PendingChangeLedger``.

Commits are best effort, not transactional: each edit and each discrete
change succeeds or fails on its own, failures are logged and reported, and
the batch always runs to the end. Edits are processed before any discrete
change, and each group in staging order. A change whose record was written
but whose notification failed is reported with its updates stripped, so
staging it again only re-sends the notification.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

from orgchart.models.changes import (
    ChangeType,
    CommitItemKind,
    CommitItemResult,
    CommitReport,
    NotificationPreferences,
    PendingChange,
)
from orgchart.models.employee import Employee, EmployeeSummary, NoteEntry
from orgchart.services.employee_service import EmployeeService, EmployeeServiceError, employee_service
from orgchart.services.notification_service import NotificationService, notification_service
from orgchart.services.pending_ledger import PendingChangeLedger, StagedEdit

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ChangeCommitCoordinator:
    def __init__(
        self,
        employees: EmployeeService = employee_service,
        notifier: NotificationService = notification_service,
        *,
        retain_failed: bool = False,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.employees = employees
        self.notifier = notifier
        self.retain_failed = retain_failed
        self.clock = clock

    async def commit_all(
        self,
        ledger: PendingChangeLedger,
        prefs: NotificationPreferences,
        site: str | None = None,
    ) -> CommitReport:
        report = CommitReport()
        edits = ledger.edits()
        changes = ledger.changes()

        if not edits and not changes:
            return report

        applied_summaries: list[PendingChange] = []

        for edit in edits:
            try:
                await self._apply_edit(edit)
            except Exception as e:
                logger.exception("Failed to apply edit for employee %s", edit.employee_id)
                report.edits_failed += 1
                report.items.append(
                    CommitItemResult(
                        kind=CommitItemKind.EDIT,
                        employee_id=edit.employee_id,
                        employee_name=edit.employee_name,
                        ok=False,
                        error=str(e),
                    )
                )
                continue

            report.edits_applied += 1
            report.items.append(
                CommitItemResult(
                    kind=CommitItemKind.EDIT,
                    employee_id=edit.employee_id,
                    employee_name=edit.employee_name,
                    ok=True,
                )
            )
            applied_summaries.append(
                PendingChange(
                    id=f"edit-{edit.employee_id}",
                    type=ChangeType.EDIT,
                    employee_name=edit.employee_name,
                    description=f"Edit {edit.employee_name}",
                    timestamp=edit.staged_at,
                    employee_id=edit.employee_id,
                )
            )

        ledger.clear_edits()

        for change in changes:
            result = await self._commit_change(change, prefs, site)
            report.items.append(result)
            if result.skipped:
                report.changes_skipped += 1
            elif result.ok:
                report.changes_applied += 1
                applied_summaries.append(change)
            else:
                report.changes_failed += 1

        await self._send_bulk_summaries(applied_summaries, prefs, site)

        ledger.clear_changes()
        if self.retain_failed and report.failed_changes:
            ledger.restore(report.failed_changes)
            logger.info("Retained %d failed changes for retry", len(report.failed_changes))

        logger.info(
            "Commit finished: %d edits applied, %d failed; %d changes applied, %d failed, %d skipped",
            report.edits_applied,
            report.edits_failed,
            report.changes_applied,
            report.changes_failed,
            report.changes_skipped,
        )
        return report

    async def _apply_edit(self, edit: StagedEdit) -> None:
        fields: dict[str, Any] = edit.update.to_fields()
        if edit.update.note:
            current = await self.employees.get_employee(edit.employee_id)
            if current is None:
                raise EmployeeServiceError(f"Employee {edit.employee_id} not found")
            fields["notes_history"] = [
                *current.notes_history,
                NoteEntry(text=edit.update.note, created_at=self.clock()),
            ]
        await self.employees.update_employee(edit.employee_id, fields)

    async def _commit_change(
        self,
        change: PendingChange,
        prefs: NotificationPreferences,
        site: str | None,
    ) -> CommitItemResult:
        employee_id = change.employee_id
        persisted = False

        try:
            if change.updates:
                if change.type is ChangeType.CREATE:
                    employee_id = await self.employees.create_employee(dict(change.updates))
                    persisted = True
                elif employee_id is not None:
                    await self.employees.update_employee(employee_id, dict(change.updates))
                    persisted = True

            employee = await self._resolve(change, employee_id)
            if employee is None:
                logger.warning("Skipping notification for %s: employee not found", change.employee_name)
                return CommitItemResult(
                    kind=CommitItemKind.CHANGE,
                    employee_id=employee_id,
                    employee_name=change.employee_name,
                    ok=False,
                    skipped=True,
                    persisted=persisted,
                    change=change,
                )

            summary = await self._summarize(employee)
            await self.notifier.notify_change(
                change.type,
                summary,
                change.description,
                site or employee.site.value,
                send_to_n8n=True,
                send_to_slack=prefs.send_slack,
            )
        except Exception as e:
            logger.exception("Failed to commit %s for %s", change.type.value, change.employee_name)
            if persisted:
                # The record is written; a retry must only re-send the notification.
                change = change.model_copy(update={"employee_id": employee_id, "updates": {}})
            return CommitItemResult(
                kind=CommitItemKind.CHANGE,
                employee_id=employee_id,
                employee_name=change.employee_name,
                ok=False,
                persisted=persisted,
                error=str(e),
                change=change,
            )

        return CommitItemResult(
            kind=CommitItemKind.CHANGE,
            employee_id=employee_id,
            employee_name=change.employee_name,
            ok=True,
            persisted=persisted,
            change=change,
        )

    async def _resolve(self, change: PendingChange, employee_id: str | None) -> Employee | None:
        if employee_id is not None:
            employee = await self.employees.get_employee(employee_id)
            if employee is not None:
                return employee
        return await self.employees.find_by_name(change.employee_name)

    async def _summarize(self, employee: Employee) -> EmployeeSummary:
        manager_name: str | None = None
        if employee.manager_id:
            manager = await self.employees.get_employee(employee.manager_id)
            manager_name = manager.name if manager else None

        return EmployeeSummary(
            id=employee.id,
            name=employee.name,
            role=employee.role,
            site=employee.site,
            manager_id=employee.manager_id,
            manager_name=manager_name,
        )

    async def _send_bulk_summaries(
        self,
        applied: list[PendingChange],
        prefs: NotificationPreferences,
        site: str | None,
    ) -> None:
        channels = [name for name, enabled in (("slack", prefs.send_slack), ("email", prefs.send_email)) if enabled]
        for channel in channels:
            try:
                await self.notifier.send_bulk_summary(
                    channel,
                    applied,
                    site or "",
                    recipients=prefs.recipients,
                    include_details=prefs.include_details,
                )
            except Exception:
                logger.exception("Failed to send %s summary", channel)
