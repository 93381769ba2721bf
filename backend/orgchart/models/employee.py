"""Employee models for the org chart hierarchy."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class Role(str, Enum):
    DIRECTOR = "Director"
    MANAGER = "Manager"
    TEAM_LEAD = "TeamLead"
    AGENT = "Agent"


class Site(str, Enum):
    AUSTIN = "Austin"
    CHARLOTTE = "Charlotte"


class Status(str, Enum):
    ACTIVE = "active"
    TERMINATED = "terminated"


class CommissionTier(str, Enum):
    NEW = "new"
    VETERAN = "veteran"


TIERED_ROLES = frozenset({Role.AGENT, Role.TEAM_LEAD})


class CamelModel(BaseModel):
    """Stored documents use camelCase keys; Python code uses snake_case."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class NoteEntry(CamelModel):
    text: str = Field(..., min_length=1)
    created_at: datetime


class TerminationDetails(CamelModel):
    """Paperwork captured when an employee is terminated."""

    reason: str = Field(..., min_length=1)
    termination_date: datetime
    last_working_day: datetime | None = None
    documents: list[str] = []
    payout_amount: float | None = Field(default=None, ge=0)
    notes: str | None = None


class Employee(CamelModel):
    """A single person in the org chart."""

    id: str
    name: str = Field(..., min_length=1)
    role: Role
    site: Site
    start_date: datetime
    manager_id: str | None = None
    status: Status = Status.ACTIVE
    commission_tier: CommissionTier | None = None
    termination_details: TerminationDetails | None = None
    notes_history: list[NoteEntry] = []

    @model_validator(mode="after")
    def _check_role_fields(self) -> Employee:
        if self.role is Role.DIRECTOR and self.manager_id:
            raise ValueError("A Director never reports to a manager")
        if self.commission_tier is not None and self.role not in TIERED_ROLES:
            raise ValueError(f"Commission tier is only tracked for Agents and Team Leads, not {self.role.value}")
        if self.termination_details is not None and self.status is not Status.TERMINATED:
            raise ValueError("Termination details require a terminated status")
        return self

    @property
    def is_terminated(self) -> bool:
        return self.status is Status.TERMINATED


class EmployeeSummary(CamelModel):
    """Normalized employee info sent along with change notifications."""

    id: str
    name: str
    role: Role
    site: Site
    manager_id: str | None = None
    manager_name: str | None = None


class EmployeeUpdate(CamelModel):
    """Partial field set staged as a full-record edit.

    ``note`` is appended to the employee's notes history on commit; the
    history itself is never replaced.
    """

    name: str | None = Field(default=None, min_length=1)
    role: Role | None = None
    site: Site | None = None
    manager_id: str | None = None
    status: Status | None = None
    commission_tier: CommissionTier | None = None
    start_date: datetime | None = None
    note: str | None = Field(default=None, min_length=1)

    def to_fields(self) -> dict:
        """Fields explicitly set on this update, without ``note``."""
        return self.model_dump(exclude_unset=True, exclude={"note"})


class EmployeeCreate(CamelModel):
    name: str = Field(..., min_length=1)
    role: Role
    site: Site
    start_date: datetime
    manager_id: str | None = None
    commission_tier: CommissionTier | None = None
