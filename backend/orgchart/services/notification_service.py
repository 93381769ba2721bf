"""Outbound change notifications: n8n workflow webhook and Slack incoming webhook."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

import aiohttp

from orgchart.core.config import Settings
from orgchart.models.changes import ChangeType, PendingChange
from orgchart.models.employee import EmployeeSummary

logger = logging.getLogger(__name__)

PAYLOAD_VERSION = "1.0.0"
BULK_ACTION = "bulk_action"

_CHANGE_EMOJI: dict[str, str] = {
    "employee_move": "🔄",
    "employee_promote": "⬆️",
    "employee_transfer": "🏢",
    "employee_terminate": "❌",
    "employee_create": "✅",
    "employee_edit": "✏️",
    BULK_ACTION: "📦",
}


class NotificationError(Exception):
    pass


def webhook_change_type(change_type: ChangeType) -> str:
    return f"employee_{change_type.value}"


def format_change_type(webhook_type: str) -> str:
    return " ".join(word.capitalize() for word in webhook_type.split("_"))


class NotificationService:
    def __init__(self) -> None:
        self.initialized = False
        self.n8n_webhook_url = ""
        self.slack_webhook_url = ""
        self.source = ""
        self.timeout_seconds = 15

    async def initialize(self, settings: Settings) -> None:
        if self.initialized:
            return

        self.n8n_webhook_url = settings.N8N_WEBHOOK_URL
        self.slack_webhook_url = settings.SLACK_WEBHOOK_URL
        self.source = settings.NOTIFICATION_SOURCE
        self.timeout_seconds = settings.NOTIFICATION_TIMEOUT_SECONDS

        if not self.n8n_webhook_url:
            logger.warning("n8n webhook URL missing — workflow notifications disabled")
        if not self.slack_webhook_url:
            logger.warning("Slack webhook URL missing — Slack notifications disabled")
        self.initialized = True

    async def close(self) -> None:
        self.initialized = False
        self.n8n_webhook_url = ""
        self.slack_webhook_url = ""

    def check_configuration(self) -> dict[str, bool]:
        return {
            "n8n_configured": bool(self.n8n_webhook_url),
            "slack_configured": bool(self.slack_webhook_url),
        }

    def build_payload(
        self,
        webhook_type: str,
        employee: EmployeeSummary | None,
        description: str,
        site: str,
        extra: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "site": site,
            "changeType": webhook_type,
            "employee": employee.model_dump(mode="json", by_alias=True) if employee else None,
            "change": {"description": description},
            "metadata": {"source": self.source, "version": PAYLOAD_VERSION},
        }
        if extra:
            payload.update(extra)
        return payload

    def build_slack_message(self, payload: dict[str, Any]) -> dict[str, Any]:
        webhook_type = payload["changeType"]
        emoji = _CHANGE_EMOJI.get(webhook_type, "📝")
        description = payload["change"]["description"]
        employee = payload.get("employee") or {}

        return {
            "text": f"{emoji} Organizational Change: {description}",
            "blocks": [
                {
                    "type": "header",
                    "text": {"type": "plain_text", "text": f"{emoji} Org Chart - Organizational Update"},
                },
                {
                    "type": "section",
                    "fields": [
                        {"type": "mrkdwn", "text": f"*Employee:* {employee.get('name', '')}"},
                        {"type": "mrkdwn", "text": f"*Role:* {employee.get('role', '')}"},
                        {"type": "mrkdwn", "text": f"*Site:* {employee.get('site', '')}"},
                        {"type": "mrkdwn", "text": f"*Change Type:* {format_change_type(webhook_type)}"},
                    ],
                },
                {
                    "type": "section",
                    "text": {"type": "mrkdwn", "text": f"*Description:* {description}"},
                },
                {
                    "type": "context",
                    "elements": [
                        {"type": "mrkdwn", "text": f"📅 {payload['timestamp']} | 🏢 {payload['site']} Site"},
                    ],
                },
            ],
        }

    async def _post_json(self, url: str, payload: dict[str, Any]) -> None:
        timeout = aiohttp.ClientTimeout(total=self.timeout_seconds)
        async with aiohttp.ClientSession(timeout=timeout) as session:
            async with session.post(url, json=payload) as response:
                if response.status >= 300:
                    error_text = await response.text()
                    raise NotificationError(f"Webhook failed: {response.status} - {error_text}")

    async def notify_change(
        self,
        change_type: ChangeType,
        employee: EmployeeSummary,
        description: str,
        site: str,
        *,
        send_to_n8n: bool = True,
        send_to_slack: bool = True,
    ) -> list[str]:
        """Send one change to each requested channel; returns the channels reached.

        Channels are attempted independently. Raises ``NotificationError``
        listing every channel that failed.
        """
        payload = self.build_payload(webhook_change_type(change_type), employee, description, site)
        delivered: list[str] = []
        errors: list[str] = []

        if send_to_n8n:
            if not self.n8n_webhook_url:
                logger.warning("Skipping n8n notification for %s — webhook not configured", employee.id)
            else:
                try:
                    await self._post_json(self.n8n_webhook_url, payload)
                    delivered.append("n8n")
                except Exception as e:
                    errors.append(f"n8n: {e}")

        if send_to_slack:
            if not self.slack_webhook_url:
                logger.warning("Skipping Slack notification for %s — webhook not configured", employee.id)
            else:
                try:
                    await self._post_json(self.slack_webhook_url, self.build_slack_message(payload))
                    delivered.append("slack")
                except Exception as e:
                    errors.append(f"Slack: {e}")

        if errors:
            raise NotificationError("; ".join(errors))
        return delivered

    async def send_bulk_summary(
        self,
        channel: str,
        changes: list[PendingChange],
        site: str,
        recipients: list[str] | None = None,
        include_details: bool = True,
    ) -> bool:
        """Send one summary of a committed batch over ``slack`` or ``email``.

        Email goes out through the n8n workflow, which owns the mail transport.
        """
        description = f"{len(changes)} organizational changes applied"
        lines = [f"• {c.description}" for c in changes] if include_details else []

        if channel == "slack":
            if not self.slack_webhook_url:
                logger.warning("Slack webhook not configured — bulk summary not sent")
                return False
            text = "\n".join([f"*{description}*", *lines])
            await self.send_slack_text("Org Chart - Changes Applied", text)
            return True

        if channel == "email":
            if not self.n8n_webhook_url:
                logger.warning("n8n webhook not configured — email summary not sent")
                return False
            payload = self.build_payload(
                BULK_ACTION,
                None,
                description,
                site,
                extra={
                    "channel": "email",
                    "recipients": recipients or [],
                    "changes": [c.model_dump(mode="json", exclude={"updates"}) for c in changes]
                    if include_details
                    else [],
                },
            )
            await self._post_json(self.n8n_webhook_url, payload)
            return True

        raise ValueError(f"Unknown notification channel: {channel}")

    async def send_slack_text(self, title: str, text: str) -> None:
        if not self.slack_webhook_url:
            raise NotificationError("Slack webhook URL not configured")

        message = {
            "text": title,
            "blocks": [
                {"type": "header", "text": {"type": "plain_text", "text": title}},
                {"type": "section", "text": {"type": "mrkdwn", "text": text}},
            ],
        }
        await self._post_json(self.slack_webhook_url, message)


notification_service = NotificationService()
