# models/subscription.py

from typing import Optional
from pydantic import BaseModel, Field


class SubscriptionFeatures(BaseModel):
    """Limits and feature flags resolved from an organization's plan or trial."""
    max_properties: int = Field(..., description="Maximum properties the organization may hold")
    max_users: int = Field(..., description="Maximum users the organization may hold")
    advanced_reporting: bool = False
    document_storage: bool = False


class SubscriptionLimits(BaseModel):
    max_properties: Optional[int] = None
    max_users: Optional[int] = None


class SubscriptionStatusRead(BaseModel):
    """Subscription state with trial info, as shown on the billing page."""
    organization_id: str
    on_trial: bool
    trial_days_remaining: int
    subscription_active: bool
    subscription_plan: str = "none"
    limits: SubscriptionLimits


class TrialRead(BaseModel):
    organization_id: str
    on_trial: bool
    trial_days_remaining: int
