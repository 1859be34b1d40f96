# tests/test_trials.py

"""
Tests for the trial lifecycle sweep.
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import Mock, patch

from core.trials import format_sweep_summary, new_trial_fields, process_expired_trials
from models.enums import TrialStatus
from models.organization import Organization

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def expired_org(org_id, owner_id="owner-1", days_ago=1):
    return Organization(
        id=org_id,
        agent_owner_id=owner_id,
        trial_status="active",
        trial_expires_at=NOW - timedelta(days=days_ago),
    )


def test_new_trial_fields():
    fields = new_trial_fields(NOW)
    assert fields["trial_status"] == "active"
    assert fields["subscription_status"] == "trialing"
    assert fields["trial_expires_at"] == (NOW + timedelta(days=30)).isoformat()
    assert fields["max_properties"] == 5


def test_sweep_expires_overdue_trials(organizations, users):
    organizations.add(expired_org("org-a"))
    notifier = Mock()

    summary = process_expired_trials(organizations, users, notifier=notifier, now=NOW, reminder_days=[])

    assert summary["expired"] == 1
    assert organizations.get_organization_by_id("org-a").trial_status == TrialStatus.expired
    # org-1 still has 20 days left
    assert organizations.get_organization_by_id("org-1").trial_status == TrialStatus.active
    notifier.trial_expired.assert_called_once()
    owner, org = notifier.trial_expired.call_args.args
    assert owner.id == "owner-1"
    assert org.id == "org-a"


def test_sweep_expires_at_the_exact_instant(organizations, users):
    organizations.add(expired_org("org-a", days_ago=0))
    summary = process_expired_trials(organizations, users, notifier=Mock(), now=NOW, reminder_days=[])
    assert summary["expired"] == 1


def test_sweep_is_idempotent(organizations, users):
    organizations.add(expired_org("org-a"))
    notifier = Mock()

    process_expired_trials(organizations, users, notifier=notifier, now=NOW, reminder_days=[])
    second = process_expired_trials(organizations, users, notifier=notifier, now=NOW, reminder_days=[])

    assert second["expired"] == 0
    assert notifier.trial_expired.call_count == 1


def test_concurrent_sweep_is_skipped(organizations, users):
    organizations.add(expired_org("org-a"))
    notifier = Mock()

    # another run expired the row between listing and updating
    with patch.object(organizations, "mark_trial_expired", return_value=False):
        summary = process_expired_trials(organizations, users, notifier=notifier, now=NOW, reminder_days=[])

    assert summary["skipped"] == 1
    notifier.trial_expired.assert_not_called()


def test_one_failure_does_not_stop_the_sweep(organizations, users):
    organizations.add(expired_org("org-a"))
    organizations.add(expired_org("org-b", days_ago=2))
    organizations.fail_on.add("org-a")

    summary = process_expired_trials(organizations, users, notifier=Mock(), now=NOW, reminder_days=[])

    assert summary["failed"] == 1
    assert summary["expired"] == 1
    assert organizations.get_organization_by_id("org-b").trial_status == TrialStatus.expired


def test_missing_owner_is_not_fatal(organizations, users):
    organizations.add(expired_org("org-a", owner_id="ghost"))
    notifier = Mock()

    summary = process_expired_trials(organizations, users, notifier=notifier, now=NOW, reminder_days=[])

    assert summary["expired"] == 1
    notifier.trial_expired.assert_not_called()


def test_reminders(organizations, users):
    organizations.add(Organization(
        id="org-r",
        agent_owner_id="owner-1",
        trial_status="active",
        trial_expires_at=NOW + timedelta(days=7, hours=3),
    ))
    notifier = Mock()

    summary = process_expired_trials(organizations, users, notifier=notifier, now=NOW, reminder_days=[7, 3])

    assert summary["reminded"] == 1
    owner, org, days_left = notifier.trial_expiring.call_args.args
    assert org.id == "org-r"
    assert days_left == 7


def test_format_sweep_summary():
    text = format_sweep_summary(
        {"expired": 2, "skipped": 1, "reminded": 3, "failed": 0},
        NOW,
        NOW + timedelta(seconds=4),
    )
    assert "Expired: 2" in text
    assert "Duration: 4.0s" in text
