from enum import Enum
from typing import Optional


class BaseStrEnum(str, Enum):
    """
    Base enum that serializes cleanly to a string
    and provides a .list() method for UI dropdowns.
    """

    def __str__(self):
        return str(self.value)

    @classmethod
    def list(cls):
        return [item.value for item in cls]

    @classmethod
    def parse(cls, value) -> Optional["BaseStrEnum"]:
        """Return the member for `value`, or None when it is not a member."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return None


# -----------------------------------------------------
# GLOBAL USER ROLE
# -----------------------------------------------------
class Role(BaseStrEnum):
    """System-wide role carried on the session."""

    admin = "admin"
    agent_owner = "agent_owner"
    agent_staff = "agent_staff"
    property_owner = "property_owner"
    caretaker = "caretaker"
    tenant_user = "tenant_user"


# -----------------------------------------------------
# RESOURCE
# -----------------------------------------------------
class Resource(BaseStrEnum):
    property = "property"
    unit = "unit"
    tenant = "tenant"
    lease = "lease"
    payment = "payment"
    expense = "expense"
    financial = "financial"
    maintenance = "maintenance"
    document = "document"
    organization = "organization"
    member = "member"
    team = "team"
    staff = "staff"
    settings = "settings"


# -----------------------------------------------------
# ACTION
# -----------------------------------------------------
class Action(BaseStrEnum):
    """Every action used anywhere in the statement catalog."""

    view = "view"
    create = "create"
    update = "update"
    delete = "delete"
    manage = "manage"
    assign = "assign"
    assign_caretaker = "assign_caretaker"
    assign_properties = "assign_properties"
    contact = "contact"
    terminate = "terminate"
    renew = "renew"
    record = "record"
    process = "process"
    approve = "approve"
    report = "report"
    resolve = "resolve"
    upload = "upload"
    manage_subscription = "manage_subscription"
    invite = "invite"
    remove = "remove"
    update_role = "update_role"
    read = "read"


# -----------------------------------------------------
# PROPERTY GRANT ROLE (ACL presets)
# -----------------------------------------------------
class GrantRole(BaseStrEnum):
    caretaker = "caretaker"
    agent = "agent"
    readonly = "readonly"
    custom = "custom"


# -----------------------------------------------------
# ORGANIZATION SUBSCRIPTION STATUS
# -----------------------------------------------------
class SubscriptionStatus(BaseStrEnum):
    none = "none"
    trialing = "trialing"
    active = "active"
    past_due = "past_due"
    canceled = "canceled"


# -----------------------------------------------------
# TRIAL STATUS (cached; trial_expires_at is authoritative)
# -----------------------------------------------------
class TrialStatus(BaseStrEnum):
    active = "active"
    expired = "expired"
    converted = "converted"


# -----------------------------------------------------
# PLAN LIMITS / FEATURES
# -----------------------------------------------------
class LimitKind(BaseStrEnum):
    properties = "properties"
    users = "users"


class Feature(BaseStrEnum):
    advanced_reporting = "advanced_reporting"
    document_storage = "document_storage"
