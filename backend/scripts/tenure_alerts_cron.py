#!/usr/bin/env python3
"""Daily tenure-alert job.

Reads active agents from Cosmos DB, finds those approaching or past the
veteran tenure milestone and posts one Slack summary. Run from the backend/
directory:

    python3 scripts/tenure_alerts_cron.py [--site Austin|Charlotte] [--dry-run] [--verbose]
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from datetime import datetime, timezone

_project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

from orgchart.core.config import Settings  # noqa: E402
from orgchart.models.changes import TenureAlert  # noqa: E402
from orgchart.models.employee import Site  # noqa: E402
from orgchart.services.employee_service import EmployeeService  # noqa: E402
from orgchart.services.notification_service import NotificationService  # noqa: E402
from orgchart.services.tenure_alerts import build_tenure_alerts, send_tenure_alerts  # noqa: E402

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Send commission tier tenure alerts to Slack")
    parser.add_argument("--site", choices=[s.value for s in Site], default=None, help="Limit to one site")
    parser.add_argument("--dry-run", action="store_true", help="Log alerts without posting to Slack")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def format_alert_lines(alerts: list[TenureAlert]) -> list[str]:
    return [f"[{a.alert_type.value}] {a.message} ({a.site.value})" for a in alerts]


async def run(args: argparse.Namespace, settings: Settings | None = None) -> int:
    settings = settings or Settings()
    employees = EmployeeService()
    notifier = NotificationService()

    await employees.initialize(settings)
    if not employees.initialized:
        logger.error("Cosmos DB is not configured. Set COSMOS_DB_ENDPOINT and COSMOS_DB_KEY.")
        return 1

    try:
        site = Site(args.site) if args.site else None
        roster = await employees.get_employees(site=site)
        alerts = build_tenure_alerts(roster, datetime.now(timezone.utc))
        logger.info("Checked %d employees, %d alerts", len(roster), len(alerts))

        for line in format_alert_lines(alerts):
            logger.info(line)

        if args.dry_run:
            logger.info("[DRY RUN] Slack summary not sent.")
            return 0

        await notifier.initialize(settings)
        await send_tenure_alerts(alerts, notifier)
        return 0
    finally:
        await employees.close()
        await notifier.close()


def main() -> None:
    args = parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
    )
    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
