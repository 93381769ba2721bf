"""Models for staged hierarchy changes, validation decisions and commit reports."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, computed_field

from orgchart.models.employee import CommissionTier, EmployeeCreate, Role, Site, TerminationDetails


class ChangeType(str, Enum):
    MOVE = "move"
    PROMOTE = "promote"
    TRANSFER = "transfer"
    TERMINATE = "terminate"
    CREATE = "create"
    EDIT = "edit"


class PendingChange(BaseModel):
    """A user-proposed mutation that has not been applied yet.

    ``updates`` holds the persistence fields the change writes on commit;
    ``employee_id`` is absent for creations until the store assigns one.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    type: ChangeType
    employee_name: str
    description: str
    timestamp: datetime
    employee_id: str | None = None
    updates: dict[str, Any] = {}


class MoveDecision(BaseModel):
    model_config = ConfigDict(frozen=True)

    allowed: bool
    reason: str


class CommissionResult(BaseModel):
    """Effective compensation for an agent at a point in time."""

    tier: CommissionTier
    base_salary: int
    current_commission_rate: float
    will_change_to_veteran: bool
    days_until_change: int | None = None
    is_early_promotion: bool
    tenure_days: int
    description: str


class CompensationSummary(BaseModel):
    employee_id: str
    role: Role
    compensation: str


class TierChangeCheck(BaseModel):
    is_valid: bool
    requires_confirmation: bool = False
    message: str = ""


class NotificationPreferences(BaseModel):
    send_slack: bool = True
    send_email: bool = False
    recipients: list[str] = []
    include_details: bool = True


class CommitItemKind(str, Enum):
    EDIT = "edit"
    CHANGE = "change"


class CommitItemResult(BaseModel):
    kind: CommitItemKind
    employee_id: str | None = None
    employee_name: str
    ok: bool
    skipped: bool = False
    persisted: bool = False
    error: str | None = None
    change: PendingChange | None = None


class CommitReport(BaseModel):
    edits_applied: int = 0
    edits_failed: int = 0
    changes_applied: int = 0
    changes_failed: int = 0
    changes_skipped: int = 0
    items: list[CommitItemResult] = []

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_applied(self) -> int:
        return self.edits_applied + self.changes_applied

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_failed(self) -> int:
        return self.edits_failed + self.changes_failed

    @property
    def failed_changes(self) -> list[PendingChange]:
        """Changes safe to stage again; persisted ones carry no updates."""
        return [item.change for item in self.items if not item.ok and not item.skipped and item.change is not None]


class TenureAlertType(str, Enum):
    UPCOMING = "upcoming"
    IMMINENT = "imminent"
    OVERDUE = "overdue"


class TenureAlert(BaseModel):
    employee_id: str
    employee_name: str
    site: Site
    days_until_eligible: int
    eligibility_date: datetime
    alert_type: TenureAlertType
    message: str


# Request bodies for the changes API


class MoveRequest(BaseModel):
    employee_id: str
    target_id: str


class PromoteRequest(BaseModel):
    employee_id: str


class TransferRequest(BaseModel):
    employee_id: str
    new_site: Site | None = None


class TerminateRequest(BaseModel):
    employee_id: str
    details: TerminationDetails


class CreateRequest(BaseModel):
    employee: EmployeeCreate


class CommitRequest(BaseModel):
    preferences: NotificationPreferences = Field(default_factory=NotificationPreferences)
    site: Site | None = None


class PendingChangesResponse(BaseModel):
    count: int
    has_unsaved: bool
    changes: list[PendingChange]
