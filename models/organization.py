# models/organization.py

from typing import Optional
from datetime import datetime
from pydantic import BaseModel, Field

from models.enums import Role, SubscriptionStatus, TrialStatus


class Organization(BaseModel):
    """Tenant boundary. Every property, lease and tenant belongs to exactly one."""
    id: str
    name: Optional[str] = None
    agent_owner_id: Optional[str] = Field(None, description="User ID of the agent_owner who created it")
    subscription_status: SubscriptionStatus = SubscriptionStatus.none
    subscription_plan: Optional[str] = None
    trial_status: Optional[TrialStatus] = None
    trial_started_at: Optional[datetime] = None
    trial_expires_at: Optional[datetime] = None
    max_properties: Optional[int] = None
    max_users: Optional[int] = None

    model_config = {"from_attributes": True}


class Team(BaseModel):
    """Sub-grouping inside an organization that scopes staff to some properties."""
    id: str
    organization_id: str
    name: Optional[str] = None
    team_admin_role: Optional[Role] = None

    model_config = {"from_attributes": True}


class Property(BaseModel):
    id: str
    organization_id: str
    name: Optional[str] = None
    owner_id: Optional[str] = None

    model_config = {"from_attributes": True}


class UserRecord(BaseModel):
    """User as returned by the user directory (not the session actor)."""
    id: str
    email: Optional[str] = None
    name: Optional[str] = None
    role: Optional[str] = None
    organization_id: Optional[str] = None

    model_config = {"from_attributes": True}
