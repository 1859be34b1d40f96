# core/trials.py

"""
Organization trial lifecycle: stamping new trials and the nightly sweep
that expires overdue trials and reminds owners of upcoming expiry.
"""

from datetime import datetime, timedelta, timezone
from typing import Dict, Optional, Sequence

from core.config import settings
from core.directories import OrganizationDirectory, UserDirectory
from core.errors import NotFoundError
from core.logging_config import logger
from core.notifications import LoggingTrialNotifier, TrialNotifier
from models.enums import SubscriptionStatus, TrialStatus
from models.organization import Organization


def new_trial_fields(now: Optional[datetime] = None) -> dict:
    """Column values stamped on an organization when it is created."""
    now = now or datetime.now(timezone.utc)
    return {
        "trial_status": TrialStatus.active.value,
        "trial_started_at": now.isoformat(),
        "trial_expires_at": (now + timedelta(days=settings.TRIAL_LENGTH_DAYS)).isoformat(),
        "subscription_status": SubscriptionStatus.trialing.value,
        "max_properties": settings.TRIAL_MAX_PROPERTIES,
        "max_users": settings.TRIAL_MAX_USERS,
    }


def _notify_owner(users: UserDirectory, organization: Organization, send) -> bool:
    if not organization.agent_owner_id:
        logger.warning(f"Organization {organization.id} has no owner to notify")
        return False
    try:
        owner = users.get_user_by_id(organization.agent_owner_id)
    except NotFoundError:
        logger.warning(f"Owner {organization.agent_owner_id} of organization {organization.id} not found")
        return False
    send(owner)
    return True


def process_expired_trials(
    organizations: OrganizationDirectory,
    users: UserDirectory,
    notifier: Optional[TrialNotifier] = None,
    now: Optional[datetime] = None,
    reminder_days: Optional[Sequence[int]] = None,
) -> Dict[str, int]:
    """
    Expire every active trial whose expiry has passed, then send reminders.

    Safe to run concurrently with itself: mark_trial_expired only moves rows
    still in `active`, and an organization another run already expired is
    counted as skipped and not notified twice. One failing organization is
    logged and the sweep moves on.
    """
    notifier = notifier or LoggingTrialNotifier()
    now = now or datetime.now(timezone.utc)
    reminder_days = settings.TRIAL_REMINDER_DAYS if reminder_days is None else reminder_days

    summary = {"expired": 0, "skipped": 0, "failed": 0, "reminded": 0}

    for organization in organizations.list_active_trials_expiring_before(now):
        try:
            if not organizations.mark_trial_expired(organization.id, now):
                summary["skipped"] += 1
                continue
            summary["expired"] += 1
            _notify_owner(users, organization, lambda owner: notifier.trial_expired(owner, organization))
        except Exception as e:
            summary["failed"] += 1
            logger.error(f"Failed to expire trial for organization {organization.id}: {e}", exc_info=True)

    for days_left in reminder_days:
        target = now + timedelta(days=days_left)
        start_of_day = target.replace(hour=0, minute=0, second=0, microsecond=0)
        end_of_day = target.replace(hour=23, minute=59, second=59, microsecond=999999)

        for organization in organizations.list_active_trials_expiring_between(start_of_day, end_of_day):
            try:
                if _notify_owner(
                    users,
                    organization,
                    lambda owner: notifier.trial_expiring(owner, organization, days_left),
                ):
                    summary["reminded"] += 1
            except Exception as e:
                summary["failed"] += 1
                logger.error(f"Failed to send trial reminder for organization {organization.id}: {e}", exc_info=True)

    logger.info(
        f"Trial sweep finished: {summary['expired']} expired, {summary['skipped']} skipped, "
        f"{summary['reminded']} reminded, {summary['failed']} failed"
    )
    return summary


def format_sweep_summary(summary: Dict[str, int], start_time: datetime, end_time: datetime) -> str:
    duration = (end_time - start_time).total_seconds()
    return (
        "Trial Sweep\n"
        f"Started: {start_time.isoformat()}\n"
        f"Duration: {duration:.1f}s\n"
        f"Expired: {summary.get('expired', 0)}\n"
        f"Skipped: {summary.get('skipped', 0)}\n"
        f"Reminded: {summary.get('reminded', 0)}\n"
        f"Failed: {summary.get('failed', 0)}"
    )
