"""Structural rules for reporting-line and role changes.

Every function here is pure: it never touches storage and may be called as
often as needed, e.g. to color a drop target while a drag is in progress.
"""

from __future__ import annotations

from collections.abc import Iterable

from orgchart.models.changes import MoveDecision
from orgchart.models.employee import Employee, Role
from orgchart.services.role_hierarchy import parent_role_of, promotion_role_of

REASON_SELF = "cannot assign to self"
REASON_DIRECTOR = "directors cannot be reassigned"
REASON_SUBJECT_TERMINATED = "terminated employees cannot be reassigned"
REASON_TARGET_TERMINATED = "terminated employees cannot receive reports"
REASON_ALREADY_ASSIGNED = "already assigned to this target"
REASON_NOT_PERMITTED = "move not permitted by business rules"
REASON_ALLOWED = "move allowed"

REASON_TOP_LEVEL = "directors cannot be promoted"
REASON_PROMOTION_ALLOWED = "promotion allowed"


def _deny(reason: str) -> MoveDecision:
    return MoveDecision(allowed=False, reason=reason)


def validate_move(subject: Employee, target: Employee) -> MoveDecision:
    if subject.id == target.id:
        return _deny(REASON_SELF)

    if subject.role is Role.DIRECTOR:
        return _deny(REASON_DIRECTOR)

    if subject.is_terminated:
        return _deny(REASON_SUBJECT_TERMINATED)
    if target.is_terminated:
        return _deny(REASON_TARGET_TERMINATED)

    if target.role is parent_role_of(subject.role):
        if subject.manager_id == target.id:
            return _deny(REASON_ALREADY_ASSIGNED)
        return MoveDecision(allowed=True, reason=REASON_ALLOWED)

    return _deny(REASON_NOT_PERMITTED)


def validate_promotion(subject: Employee) -> MoveDecision:
    if subject.is_terminated:
        return _deny(REASON_SUBJECT_TERMINATED)
    if promotion_role_of(subject.role) is None:
        return _deny(REASON_TOP_LEVEL)
    return MoveDecision(allowed=True, reason=REASON_PROMOTION_ALLOWED)


def valid_targets(subject: Employee, candidates: Iterable[Employee]) -> list[Employee]:
    return [c for c in candidates if validate_move(subject, c).allowed]
