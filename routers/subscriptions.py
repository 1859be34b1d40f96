# routers/subscriptions.py

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from core.errors import AuthorizationError
from core.permission_helpers import get_request_context, requires_active_subscription
from core.permissions import PermissionResolver, RequestContext
from core.subscription_gate import SubscriptionGate
from dependencies.services import get_permission_resolver, get_subscription_gate
from models.enums import LimitKind
from models.subscription import SubscriptionFeatures, SubscriptionStatusRead, TrialRead

router = APIRouter(
    prefix="/subscriptions",
    tags=["Subscriptions"],
)

# Managing the counted resource is required before asking about its limit
LIMIT_PERMISSIONS = {
    LimitKind.properties: "can_manage_properties",
    LimitKind.users: "can_manage_users",
}


class LimitCheckRequest(BaseModel):
    limit_kind: LimitKind
    current_count: int = Field(..., ge=0)


def require_organization(context: RequestContext) -> str:
    if context.organization is None:
        raise AuthorizationError("No active organization selected")
    return context.organization.id


@router.get("/status", response_model=SubscriptionStatusRead)
def get_subscription_status(
    context: RequestContext = Depends(get_request_context),
    gate: SubscriptionGate = Depends(get_subscription_gate),
):
    """Subscription state with trial info for the active organization."""
    return gate.get_subscription_status(require_organization(context))


@router.get("/features", response_model=SubscriptionFeatures)
def get_subscription_features(
    context: RequestContext = Depends(get_request_context),
    gate: SubscriptionGate = Depends(get_subscription_gate),
):
    return gate.get_subscription_features(require_organization(context))


@router.get("/trial", response_model=TrialRead)
def get_trial(
    context: RequestContext = Depends(get_request_context),
    gate: SubscriptionGate = Depends(get_subscription_gate),
):
    organization_id = require_organization(context)
    return TrialRead(
        organization_id=organization_id,
        on_trial=gate.is_in_trial(organization_id),
        trial_days_remaining=gate.get_trial_days_remaining(organization_id),
    )


@router.post("/check-limit", dependencies=[Depends(requires_active_subscription)])
def check_limit(
    payload: LimitCheckRequest,
    context: RequestContext = Depends(get_request_context),
    resolver: PermissionResolver = Depends(get_permission_resolver),
    gate: SubscriptionGate = Depends(get_subscription_gate),
):
    """
    Pre-flight for billable creates: 402 when the plan is full,
    otherwise the organization can add one more.
    """
    scope = resolver.check_permissions(
        context.actor, LIMIT_PERMISSIONS[payload.limit_kind], context=context
    )
    gate.assert_within_limit(scope["organization_id"], payload.limit_kind, payload.current_count)
    return {"allowed": True, "organization_id": scope["organization_id"]}
