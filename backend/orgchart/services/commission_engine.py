from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timedelta, timezone

from orgchart.core.errors import UsageError
from orgchart.models.changes import CommissionResult, TierChangeCheck
from orgchart.models.employee import CommissionTier, Employee, EmployeeUpdate, Role

# Six months of tenure, pinned to a fixed day count.
VETERAN_TENURE_DAYS = 180
MILESTONE_WINDOW_DAYS = 7

NEW_AGENT_BASE_SALARY = 60_000
NEW_AGENT_COMMISSION_RATE = 0.05
VETERAN_AGENT_BASE_SALARY = 30_000
VETERAN_AGENT_COMMISSION_RATE = 0.20

NEW_AGENT_DESCRIPTION = "$60k salary + 5% commission (first 6 months), then $30k + 20% commission"
VETERAN_AGENT_DESCRIPTION = "$30k annual salary + 20% commission"

# Non-agent roles are paid flat, independent of tenure.
ROLE_COMPENSATION: dict[Role, tuple[int, float, str]] = {
    Role.DIRECTOR: (0, 0.0, "Compensation TBD"),
    Role.MANAGER: (90_000, 0.0, "$90k annual salary"),
    Role.TEAM_LEAD: (40_000, 0.20, "$40k annual salary + 20% commission"),
}


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def tenure_days(start_date: datetime, now: datetime) -> int:
    """Whole days elapsed since ``start_date``; negative for future hires."""
    return (_as_utc(now) - _as_utc(start_date)).days


def calculate_commission(employee: Employee, now: datetime) -> CommissionResult:
    if employee.role is not Role.AGENT:
        raise UsageError(f"Commission tiers are only computed for agents, got {employee.role.value}")

    days = tenure_days(employee.start_date, now)
    reached_threshold = days >= VETERAN_TENURE_DAYS

    # A stored veteran tier is a manual override; otherwise tenure decides.
    if employee.commission_tier is CommissionTier.VETERAN or reached_threshold:
        tier = CommissionTier.VETERAN
    else:
        tier = CommissionTier.NEW

    if tier is CommissionTier.NEW:
        return CommissionResult(
            tier=tier,
            base_salary=NEW_AGENT_BASE_SALARY,
            current_commission_rate=NEW_AGENT_COMMISSION_RATE,
            will_change_to_veteran=True,
            days_until_change=VETERAN_TENURE_DAYS - days,
            is_early_promotion=False,
            tenure_days=days,
            description=NEW_AGENT_DESCRIPTION,
        )

    return CommissionResult(
        tier=tier,
        base_salary=VETERAN_AGENT_BASE_SALARY,
        current_commission_rate=VETERAN_AGENT_COMMISSION_RATE,
        will_change_to_veteran=False,
        days_until_change=None,
        is_early_promotion=not reached_threshold,
        tenure_days=days,
        description=VETERAN_AGENT_DESCRIPTION,
    )


def format_commission(result: CommissionResult) -> str:
    info = f"${result.base_salary:,} annual + {result.current_commission_rate * 100:g}% commission"
    if result.is_early_promotion:
        info += " (early promotion)"
    elif result.will_change_to_veteran and result.days_until_change:
        info += f" ({result.days_until_change} days until veteran eligibility)"
    return info


def compensation_for(employee: Employee, now: datetime) -> str:
    if employee.role is Role.AGENT:
        return format_commission(calculate_commission(employee, now))
    return ROLE_COMPENSATION[employee.role][2]


def validate_tier_change(current: CommissionTier | None, new: CommissionTier) -> TierChangeCheck:
    """Veteran back to new is a data correction, allowed only after confirmation."""
    if current is CommissionTier.VETERAN and new is CommissionTier.NEW:
        return TierChangeCheck(
            is_valid=True,
            requires_confirmation=True,
            message="Setting a veteran agent back to new is treated as a data correction, not a demotion.",
        )
    return TierChangeCheck(is_valid=True)


def _active_agents(employees: Iterable[Employee]) -> list[Employee]:
    return [e for e in employees if e.role is Role.AGENT and not e.is_terminated]


def agents_needing_update(employees: Iterable[Employee], now: datetime) -> list[Employee]:
    """Agents past the tenure threshold whose stored tier still says otherwise."""
    return [
        e
        for e in _active_agents(employees)
        if e.commission_tier is not CommissionTier.VETERAN and tenure_days(e.start_date, now) >= VETERAN_TENURE_DAYS
    ]


def batch_tier_updates(employees: Iterable[Employee], now: datetime) -> dict[str, EmployeeUpdate]:
    return {
        e.id: EmployeeUpdate(commission_tier=CommissionTier.VETERAN) for e in agents_needing_update(employees, now)
    }


def agents_approaching_milestone(
    employees: Iterable[Employee],
    now: datetime,
    window_days: int = MILESTONE_WINDOW_DAYS,
) -> list[Employee]:
    results: list[Employee] = []
    for employee in _active_agents(employees):
        if employee.commission_tier is CommissionTier.VETERAN:
            continue
        remaining = VETERAN_TENURE_DAYS - tenure_days(employee.start_date, now)
        if 0 < remaining <= window_days:
            results.append(employee)
    return results


def early_promoted_agents(employees: Iterable[Employee], now: datetime) -> list[Employee]:
    return [e for e in _active_agents(employees) if calculate_commission(e, now).is_early_promotion]


def eligibility_date(employee: Employee) -> datetime:
    return _as_utc(employee.start_date) + timedelta(days=VETERAN_TENURE_DAYS)
