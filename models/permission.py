# models/permission.py

from typing import Annotated, Dict, Literal, Optional, Union
from datetime import datetime
from pydantic import BaseModel, Field

from models.enums import Action, GrantRole, Resource


class Capability(BaseModel):
    """A (resource, action) pair whose permission is being evaluated."""
    resource: Resource
    action: Action

    model_config = {"frozen": True}

    def __str__(self):
        return f"{self.resource}:{self.action}"


# ============================================================
# Property ACL flags
# ============================================================
class CapabilityFlags(BaseModel):
    can_manage_tenants: bool = False
    can_manage_leases: bool = False
    can_collect_payments: bool = False
    can_view_financials: bool = False
    can_manage_maintenance: bool = False
    can_manage_properties: bool = False


class CustomPermissions(BaseModel):
    """Partial flag overrides; only explicitly-set fields are applied."""
    can_manage_tenants: Optional[bool] = None
    can_manage_leases: Optional[bool] = None
    can_collect_payments: Optional[bool] = None
    can_view_financials: Optional[bool] = None
    can_manage_maintenance: Optional[bool] = None
    can_manage_properties: Optional[bool] = None


# ============================================================
# Grants
# ============================================================
class PropertyGrant(CapabilityFlags):
    """Explicit, persisted ACL row. Unique per (user_id, property_id)."""
    kind: Literal["explicit"] = "explicit"
    id: str
    user_id: str
    property_id: str
    role: GrantRole
    granted_by: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    # Display annotations (filled by the store, never persisted)
    property_name: Optional[str] = None
    granted_by_name: Optional[str] = None

    model_config = {"from_attributes": True}


class OwnerGrant(CapabilityFlags):
    """
    Synthesized at read time for properties the user owns.
    Never persisted and never revocable.
    """
    kind: Literal["owner"] = "owner"
    id: str
    user_id: str
    property_id: str
    role: Literal["owner"] = "owner"
    granted_by: str
    property_name: Optional[str] = None
    granted_by_name: Optional[str] = None

    can_manage_tenants: bool = True
    can_manage_leases: bool = True
    can_collect_payments: bool = True
    can_view_financials: bool = True
    can_manage_maintenance: bool = True
    can_manage_properties: bool = True


Grant = Annotated[Union[PropertyGrant, OwnerGrant], Field(discriminator="kind")]


class PropertyGrantRead(PropertyGrant):
    """Grant annotated with grantee details for the property audit view."""
    user_name: Optional[str] = None
    user_email: Optional[str] = None
    user_role: Optional[str] = None


# ============================================================
# Requests
# ============================================================
class AssignPermissionRequest(BaseModel):
    property_id: str = Field(..., min_length=1, description="Property ID is required")
    user_id: str = Field(..., min_length=1, description="User ID is required")
    role: GrantRole
    custom_permissions: Optional[CustomPermissions] = None


class RevokePermissionRequest(BaseModel):
    property_id: str = Field(..., min_length=1)
    user_id: str = Field(..., min_length=1)


# ============================================================
# Decisions
# ============================================================
class PermissionDecision(BaseModel):
    """Resolver output. Recomputed per request, never persisted."""
    allowed: bool
    organization_id: Optional[str] = None
    permissions: Optional[Dict[str, bool]] = None
    reason: Optional[str] = None
