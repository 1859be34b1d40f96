# core/subscription_gate.py

"""
Subscription and trial gating for organizations.

Trial rules:
- `trial_expires_at` is authoritative; `trial_status` is a cache that the
  nightly sweep catches up. A trial is over the instant now >= expiry,
  whatever the stored status says.
- A trial that was expired or converted never counts as active again.
"""

from datetime import datetime, timezone
from typing import Callable

from core.config import settings
from core.directories import OrganizationDirectory
from core.errors import SubscriptionLimitError, ValidationError
from core.logging_config import logger
from core.subscription_plans import get_plan
from models.enums import Feature, LimitKind, SubscriptionStatus, TrialStatus
from models.organization import Organization
from models.subscription import SubscriptionFeatures, SubscriptionLimits, SubscriptionStatusRead


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _as_aware(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


def is_trial_active(organization: Organization, now: datetime) -> bool:
    """
    Check if a trial is currently active.

    Strictly before the expiry instant; equal counts as expired.
    """
    if organization.trial_status != TrialStatus.active:
        return False
    if not organization.trial_expires_at:
        return False
    return _as_aware(now) < _as_aware(organization.trial_expires_at)


def trial_days_remaining(organization: Organization, now: datetime) -> int:
    """Whole days left in an active trial; 0 otherwise."""
    if not is_trial_active(organization, now):
        return 0
    remaining = _as_aware(organization.trial_expires_at) - _as_aware(now)
    return remaining.days


class SubscriptionGate:
    def __init__(
        self,
        organizations: OrganizationDirectory,
        now: Callable[[], datetime] = _utc_now,
    ):
        self.organizations = organizations
        self.now = now

    # -----------------------------------------------------
    # Trial
    # -----------------------------------------------------
    def is_in_trial(self, organization_id: str) -> bool:
        organization = self.organizations.get_organization_by_id(organization_id)
        return is_trial_active(organization, self.now())

    def get_trial_days_remaining(self, organization_id: str) -> int:
        organization = self.organizations.get_organization_by_id(organization_id)
        return trial_days_remaining(organization, self.now())

    # -----------------------------------------------------
    # Subscription
    # -----------------------------------------------------
    def has_active_subscription(self, organization_id: str) -> bool:
        organization = self.organizations.get_organization_by_id(organization_id)
        return organization.subscription_status == SubscriptionStatus.active

    def get_subscription_features(self, organization_id: str) -> SubscriptionFeatures:
        organization = self.organizations.get_organization_by_id(organization_id)
        return self._features_for(organization)

    def get_subscription_status(self, organization_id: str) -> SubscriptionStatusRead:
        organization = self.organizations.get_organization_by_id(organization_id)
        now = self.now()
        features = self._features_for(organization)

        return SubscriptionStatusRead(
            organization_id=organization.id,
            on_trial=is_trial_active(organization, now),
            trial_days_remaining=trial_days_remaining(organization, now),
            subscription_active=organization.subscription_status == SubscriptionStatus.active,
            subscription_plan=organization.subscription_plan or "none",
            limits=SubscriptionLimits(
                max_properties=features.max_properties,
                max_users=features.max_users,
            ),
        )

    # -----------------------------------------------------
    # Gates (call before any work starts)
    # -----------------------------------------------------
    def assert_within_limit(self, organization_id: str, limit_kind: LimitKind, current_count: int):
        """
        Raise SubscriptionLimitError when one more resource of `limit_kind`
        would exceed the plan, i.e. when current_count >= limit.
        """
        kind = LimitKind.parse(limit_kind)
        if kind is None:
            raise ValidationError(f"Unknown limit kind: {limit_kind}")
        if current_count < 0:
            raise ValidationError("current_count cannot be negative")

        features = self.get_subscription_features(organization_id)
        limit = features.max_properties if kind == LimitKind.properties else features.max_users

        if current_count >= limit:
            logger.info(
                f"Organization {organization_id} hit its {kind} limit ({current_count}/{limit})"
            )
            raise SubscriptionLimitError(
                f"Your plan allows up to {limit} {kind}. Upgrade to add more.",
                limit_kind=kind.value,
                limit=limit,
                current=current_count,
            )

    def assert_feature_enabled(self, organization_id: str, feature: Feature):
        feature = Feature.parse(feature)
        if feature is None:
            raise ValidationError("Unknown feature")

        features = self.get_subscription_features(organization_id)
        if not getattr(features, feature.value):
            raise SubscriptionLimitError(
                f"Your plan does not include {feature.value.replace('_', ' ')}",
                limit_kind=feature.value,
            )

    def assert_access_allowed(self, organization_id: str):
        """An organization needs an active trial or an active subscription."""
        organization = self.organizations.get_organization_by_id(organization_id)
        if is_trial_active(organization, self.now()):
            return
        if organization.subscription_status == SubscriptionStatus.active:
            return
        raise SubscriptionLimitError("Your trial has expired. Please subscribe to continue.")

    # -----------------------------------------------------
    # Helpers
    # -----------------------------------------------------
    def _features_for(self, organization: Organization) -> SubscriptionFeatures:
        if is_trial_active(organization, self.now()):
            return SubscriptionFeatures(
                max_properties=organization.max_properties or settings.TRIAL_MAX_PROPERTIES,
                max_users=organization.max_users or settings.TRIAL_MAX_USERS,
                advanced_reporting=False,
                document_storage=True,
            )

        plan = get_plan(organization.subscription_plan)
        if organization.subscription_status == SubscriptionStatus.active and plan:
            return SubscriptionFeatures(
                max_properties=organization.max_properties or plan["max_properties"],
                max_users=organization.max_users or plan["max_users"],
                advanced_reporting=plan["advanced_reporting"],
                document_storage=plan["document_storage"],
            )

        return SubscriptionFeatures(
            max_properties=organization.max_properties or settings.FREE_MAX_PROPERTIES,
            max_users=organization.max_users or settings.FREE_MAX_USERS,
            advanced_reporting=False,
            document_storage=False,
        )
