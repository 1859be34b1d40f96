from fastapi import Depends

from core.errors import AuthorizationError
from core.permissions import PermissionResolver, RequestContext
from core.subscription_gate import SubscriptionGate
from dependencies.auth import get_current_user, CurrentUser
from dependencies.services import get_permission_resolver, get_subscription_gate
from models.enums import Role


# -----------------------------------------------------
# Request context: organization, team, snapshot
# -----------------------------------------------------
def get_request_context(
    current_user: CurrentUser = Depends(get_current_user),
    resolver: PermissionResolver = Depends(get_permission_resolver),
) -> RequestContext:
    return resolver.load_context(current_user)


# -----------------------------------------------------
# FastAPI dependency wrappers
# -----------------------------------------------------
def requires_permission(permission: str):
    """
    Usage:
        @router.post("/", dependencies=[Depends(requires_permission("can_manage_tenants"))])

    Returns {"organization_id", "user_id"} for scoping the handler's queries.
    """

    def dependency(
        context: RequestContext = Depends(get_request_context),
        resolver: PermissionResolver = Depends(get_permission_resolver),
    ):
        return resolver.check_permissions(context.actor, permission, context=context)

    return dependency


def requires_property_permission(action: str = "view"):
    """
    Guard for routes with a {property_id} path parameter (or none, for
    list/create routes).
    """

    def dependency(
        property_id: str = None,
        context: RequestContext = Depends(get_request_context),
        resolver: PermissionResolver = Depends(get_permission_resolver),
    ):
        return resolver.check_property_permissions(
            context.actor, action, property_id=property_id, context=context
        )

    return dependency


def requires_active_subscription(
    context: RequestContext = Depends(get_request_context),
    gate: SubscriptionGate = Depends(get_subscription_gate),
):
    """
    Mutations need a live trial or a paid subscription (402 otherwise).
    Admins are not tied to an organization's billing.
    """
    if context.actor is not None and context.actor.role == Role.admin:
        return
    if context.organization is None:
        raise AuthorizationError("No active organization selected")
    gate.assert_access_allowed(context.organization.id)
