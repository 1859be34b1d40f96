# core/notifications.py
import requests
from typing import Protocol

from core.config import settings
from core.logging_config import logger
from models.organization import Organization, UserRecord


# -----------------------------------------------------
# 📨 Send webhook (Discord, Slack, etc.)
# -----------------------------------------------------
def send_webhook_message(message: str) -> bool:
    webhook_url = settings.SYNC_WEBHOOK_URL
    if not webhook_url:
        logger.debug("Webhook URL not configured - skipping.")
        return False

    try:
        payload = {"content": message}
        response = requests.post(webhook_url, json=payload, timeout=10)
        logger.info(f"Webhook sent (status {response.status_code})")
        return response.ok
    except requests.RequestException as e:
        logger.warning(f"Webhook failed: {e}")
        return False


# -----------------------------------------------------
# Trial notices (delivery lives in the email service)
# -----------------------------------------------------
class TrialNotifier(Protocol):
    def trial_expired(self, owner: UserRecord, organization: Organization) -> None: ...

    def trial_expiring(self, owner: UserRecord, organization: Organization, days_left: int) -> None: ...


class LoggingTrialNotifier:
    """Default notifier: records the notice so the email service can pick it up."""

    def trial_expired(self, owner: UserRecord, organization: Organization) -> None:
        logger.info(f"Trial expired notice for {owner.email} ({organization.name or organization.id})")

    def trial_expiring(self, owner: UserRecord, organization: Organization, days_left: int) -> None:
        logger.info(
            f"Trial expiring in {days_left} day(s) notice for {owner.email} "
            f"({organization.name or organization.id})"
        )
