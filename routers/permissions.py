# routers/permissions.py

from typing import List, Optional
from fastapi import APIRouter, Depends
from pydantic import BaseModel

from core.permission_helpers import (
    get_request_context,
    requires_active_subscription,
    requires_property_permission,
)
from core.permissions import PermissionResolver, RequestContext
from core.property_grants import PropertyGrantStore
from dependencies.auth import get_current_user, CurrentUser
from dependencies.services import get_grant_store, get_permission_resolver
from models.organization import UserRecord
from models.permission import (
    AssignPermissionRequest,
    Capability,
    Grant,
    PermissionDecision,
    PropertyGrant,
    PropertyGrantRead,
    RevokePermissionRequest,
)

router = APIRouter(
    prefix="/permissions",
    tags=["Permissions"],
)


class PermissionSnapshot(BaseModel):
    organization_id: Optional[str] = None
    team_id: Optional[str] = None
    permissions: dict


class ResolveRequest(BaseModel):
    capability: Capability
    organization_id: Optional[str] = None
    property_id: Optional[str] = None


# ============================================================
# Snapshot - drives the UI and coarse gating
# ============================================================
@router.get("/snapshot", response_model=PermissionSnapshot)
def get_permission_snapshot(context: RequestContext = Depends(get_request_context)):
    return PermissionSnapshot(
        organization_id=context.organization_id,
        team_id=context.team.id if context.team else None,
        permissions=context.permissions,
    )


# ============================================================
# Hard gate for a single capability
# ============================================================
@router.post("/resolve", response_model=PermissionDecision)
def resolve_capability(
    payload: ResolveRequest,
    context: RequestContext = Depends(get_request_context),
    resolver: PermissionResolver = Depends(get_permission_resolver),
):
    return resolver.resolve(
        context.actor,
        payload.capability,
        organization_id=payload.organization_id,
        property_id=payload.property_id,
        context=context,
    )


@router.get("/properties", response_model=List[str])
def get_accessible_properties(
    context: RequestContext = Depends(get_request_context),
    resolver: PermissionResolver = Depends(get_permission_resolver),
):
    """Ids of the active organization's properties the user can see."""
    return resolver.get_accessible_property_ids(context.actor, context=context)


@router.get("/property/{property_id}/access")
def check_property_access(
    access: dict = Depends(requires_property_permission("view")),
):
    """Succeeds only when the current user may view the property."""
    return {"allowed": True, **access}


# ============================================================
# Property ACL - reads
# ============================================================
@router.get("/me", response_model=List[Grant])
def get_user_permissions(
    current_user: CurrentUser = Depends(get_current_user),
    store: PropertyGrantStore = Depends(get_grant_store),
):
    """Explicit grants plus synthesized owner grants for owned properties."""
    return store.get_permissions_for_user(current_user)


@router.get("/property/{property_id}", response_model=List[PropertyGrantRead])
def get_property_permissions(
    property_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    resolver: PermissionResolver = Depends(get_permission_resolver),
    store: PropertyGrantStore = Depends(get_grant_store),
):
    resolver.check_property_owner(current_user, property_id)
    return store.get_permissions_for_property(property_id)


@router.get("/assignable-users", response_model=List[UserRecord])
def get_assignable_users(
    context: RequestContext = Depends(get_request_context),
    resolver: PermissionResolver = Depends(get_permission_resolver),
    store: PropertyGrantStore = Depends(get_grant_store),
):
    scope = resolver.check_grant_manager(context.actor, context=context)
    return store.get_assignable_users(scope["organization_id"])


# ============================================================
# Property ACL - mutations (property owner or admin only)
# ============================================================
@router.post(
    "/assign",
    response_model=PropertyGrant,
    dependencies=[Depends(requires_active_subscription)],
)
def assign_permission(
    payload: AssignPermissionRequest,
    current_user: CurrentUser = Depends(get_current_user),
    resolver: PermissionResolver = Depends(get_permission_resolver),
    store: PropertyGrantStore = Depends(get_grant_store),
):
    resolver.check_property_owner(current_user, payload.property_id)
    return store.assign_permission(
        granter=current_user,
        property_id=payload.property_id,
        user_id=payload.user_id,
        role=payload.role,
        custom_permissions=payload.custom_permissions,
    )


@router.post("/revoke", dependencies=[Depends(requires_active_subscription)])
def revoke_permission(
    payload: RevokePermissionRequest,
    current_user: CurrentUser = Depends(get_current_user),
    resolver: PermissionResolver = Depends(get_permission_resolver),
    store: PropertyGrantStore = Depends(get_grant_store),
):
    resolver.check_property_owner(current_user, payload.property_id)
    return store.revoke_permission(payload.property_id, payload.user_id)
