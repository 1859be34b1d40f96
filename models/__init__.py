# -------------------------
# Enums
# -------------------------
from .enums import (
    Action,
    Feature,
    GrantRole,
    LimitKind,
    Resource,
    Role,
    SubscriptionStatus,
    TrialStatus,
)

# -------------------------
# Session / Tenancy Models
# -------------------------
from .actor import Actor
from .organization import (
    Organization,
    Property,
    Team,
    UserRecord,
)

# -------------------------
# Permission Models
# -------------------------
from .permission import (
    AssignPermissionRequest,
    Capability,
    CapabilityFlags,
    CustomPermissions,
    Grant,
    OwnerGrant,
    PermissionDecision,
    PropertyGrant,
    PropertyGrantRead,
    RevokePermissionRequest,
)

# -------------------------
# Subscription Models
# -------------------------
from .subscription import (
    SubscriptionFeatures,
    SubscriptionLimits,
    SubscriptionStatusRead,
    TrialRead,
)
