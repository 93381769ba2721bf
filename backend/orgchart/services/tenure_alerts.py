"""Alerts for agents approaching or past the veteran tenure milestone."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime

from orgchart.models.changes import TenureAlert, TenureAlertType
from orgchart.models.employee import CommissionTier, Employee, Role
from orgchart.services.commission_engine import (
    MILESTONE_WINDOW_DAYS,
    VETERAN_TENURE_DAYS,
    eligibility_date,
    tenure_days,
)
from orgchart.services.notification_service import NotificationService

logger = logging.getLogger(__name__)


def _classify(employee: Employee, days_left: int) -> TenureAlert | None:
    if 1 < days_left <= MILESTONE_WINDOW_DAYS:
        alert_type = TenureAlertType.UPCOMING
        days = days_left
        message = f"{employee.name} will be eligible for veteran tier in {days_left} days"
    elif days_left == 1:
        alert_type = TenureAlertType.IMMINENT
        days = 1
        message = f"{employee.name} will be eligible for veteran tier tomorrow"
    elif days_left <= 0:
        alert_type = TenureAlertType.OVERDUE
        days = abs(days_left)
        message = f"{employee.name} is {days} days overdue for veteran tier promotion"
    else:
        return None

    return TenureAlert(
        employee_id=employee.id,
        employee_name=employee.name,
        site=employee.site,
        days_until_eligible=days,
        eligibility_date=eligibility_date(employee),
        alert_type=alert_type,
        message=message,
    )


def build_tenure_alerts(employees: Iterable[Employee], now: datetime) -> list[TenureAlert]:
    """Alerts ordered by signed days left, so the most overdue come first."""
    ranked: list[tuple[int, TenureAlert]] = []
    for employee in employees:
        if employee.is_terminated or employee.role is not Role.AGENT:
            continue
        if employee.commission_tier is CommissionTier.VETERAN:
            continue
        days_left = VETERAN_TENURE_DAYS - tenure_days(employee.start_date, now)
        alert = _classify(employee, days_left)
        if alert is not None:
            ranked.append((days_left, alert))

    ranked.sort(key=lambda pair: pair[0])
    return [alert for _, alert in ranked]


async def send_tenure_alerts(alerts: list[TenureAlert], notifier: NotificationService) -> bool:
    if not alerts:
        return False

    lines = [f"*{len(alerts)} agents* are approaching or past the 6-month veteran milestone."]
    for alert_type in (TenureAlertType.OVERDUE, TenureAlertType.IMMINENT, TenureAlertType.UPCOMING):
        group = [a for a in alerts if a.alert_type is alert_type]
        if group:
            lines.append(f"\n*{alert_type.value.title()}*")
            lines.extend(f"• {a.message} ({a.site.value})" for a in group)

    await notifier.send_slack_text("Commission Tier Eligibility Alerts", "\n".join(lines))
    logger.info("Sent %d tenure alerts", len(alerts))
    return True
