# core/permissions.py

"""
Permission resolution: combines the role catalog, team overrides,
organization ownership and team-property assignment into one decision.

Two shapes of answer:
  • determine_permissions() - a broad {name: bool} snapshot for the UI
    and coarse gating.
  • resolve() / check_*() - hard gates that raise AuthorizationError
    with a readable reason, and return the organization to scope by.
"""

from typing import Callable, Dict, List, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict

from core.access_control import AccessControl, is_organization_owner
from core.directories import OrganizationDirectory, PropertyDirectory, TeamDirectory
from core.errors import AuthorizationError, ValidationError
from core.logging_config import logger
from core.roles import PermissionTable, is_known_capability, permissions_for_role
from models.actor import Actor
from models.enums import Action, Resource, Role
from models.organization import Organization, Team
from models.permission import Capability, PermissionDecision

A = Action
R = Resource


# ============================================================
# SNAPSHOT FIELDS - one AC.can() call each for staff roles
# ============================================================
PERMISSION_CHECKS: Dict[str, Tuple[Resource, List[Action]]] = {
    "can_view_properties": (R.property, [A.view]),
    "can_manage_properties": (R.property, [A.create, A.update]),
    "can_delete_properties": (R.property, [A.delete]),
    "can_view_tenants": (R.tenant, [A.view]),
    "can_manage_tenants": (R.tenant, [A.create, A.update, A.manage]),
    "can_view_leases": (R.lease, [A.view]),
    "can_manage_leases": (R.lease, [A.create, A.update, A.manage]),
    "can_view_maintenance": (R.maintenance, [A.view]),
    "can_manage_maintenance": (R.maintenance, [A.manage]),
    "can_view_financials": (R.financial, [A.view]),
    "can_manage_financials": (R.financial, [A.record, A.manage]),
    "can_view_documents": (R.document, [A.view]),
    "can_manage_documents": (R.document, [A.upload, A.delete]),
    "can_manage_users": (R.staff, [A.assign, A.remove]),
    "can_manage_subscription": (R.organization, [A.manage_subscription]),
}

PERMISSION_NAMES = list(PERMISSION_CHECKS)

# Roles whose snapshot is computed through AccessControl
STAFF_ROLES = {Role.agent_staff, Role.caretaker}

# Fixed sets, independent of the role table and of any grants
PROPERTY_OWNER_PERMISSIONS = {
    "can_view_properties", "can_view_tenants", "can_view_leases", "can_view_maintenance",
}
TENANT_USER_PERMISSIONS = {"can_view_maintenance", "can_manage_maintenance"}

FIXED_ROLE_CAPABILITIES: Dict[Role, Dict[Resource, set]] = {
    Role.property_owner: {
        R.property: {A.view},
        R.tenant: {A.view},
        R.lease: {A.view},
        R.maintenance: {A.view},
    },
    Role.tenant_user: {
        R.maintenance: {A.view, A.create, A.manage},
    },
}

PROPERTY_PERMISSION_LEVELS = {
    "view": "can_view_properties",
    "manage": "can_manage_properties",
    "delete": "can_delete_properties",
}


def get_default_permissions(is_admin: bool) -> Dict[str, bool]:
    return {name: is_admin for name in PERMISSION_NAMES}


def describe_permission(permission: str) -> str:
    """'can_manage_tenants' -> 'manage tenants'"""
    text = permission[4:] if permission.startswith("can_") else permission
    return text.replace("_", " ").strip()


class RequestContext(BaseModel):
    """Everything loaded once per request to answer permission questions."""

    model_config = ConfigDict(frozen=True)

    actor: Optional[Actor] = None
    organization: Optional[Organization] = None
    team: Optional[Team] = None
    team_overrides: Dict[str, Dict[str, bool]] = {}
    permissions: Dict[str, bool] = {}

    @property
    def organization_id(self) -> Optional[str]:
        return self.organization.id if self.organization else None

    @property
    def is_owner(self) -> bool:
        return is_organization_owner(self.actor, self.organization)


class PermissionResolver:
    def __init__(
        self,
        organizations: OrganizationDirectory,
        teams: TeamDirectory,
        properties: PropertyDirectory,
        role_permissions: Callable[[Optional[Role]], PermissionTable] = permissions_for_role,
    ):
        self.organizations = organizations
        self.teams = teams
        self.properties = properties
        self.role_permissions = role_permissions

    # =========================================================
    # Snapshot
    # =========================================================
    def access_control(
        self,
        actor: Optional[Actor],
        organization: Optional[Organization],
        team: Optional[Team] = None,
        team_overrides: Optional[Mapping] = None,
    ) -> AccessControl:
        return AccessControl(
            actor,
            organization,
            team,
            team_overrides=team_overrides,
            role_permissions=self.role_permissions,
        )

    def determine_permissions(
        self,
        actor: Optional[Actor],
        organization: Optional[Organization],
        team: Optional[Team] = None,
        team_overrides: Optional[Mapping] = None,
    ) -> Dict[str, bool]:
        """Priority order; the first matching rule wins."""
        if actor is None:
            return get_default_permissions(False)

        if actor.role == Role.admin:
            return get_default_permissions(True)

        # Every non-admin capability is scoped to an organization
        if organization is None:
            return get_default_permissions(False)

        if is_organization_owner(actor, organization):
            return get_default_permissions(True)

        if actor.role in STAFF_ROLES:
            if team is not None and team_overrides is None and self.teams is not None:
                team_overrides = self.teams.get_team_permissions(team.id)
            ac = self.access_control(actor, organization, team, team_overrides)
            return {
                name: ac.can(resource, actions)
                for name, (resource, actions) in PERMISSION_CHECKS.items()
            }

        if actor.role == Role.property_owner:
            return {name: name in PROPERTY_OWNER_PERMISSIONS for name in PERMISSION_NAMES}

        if actor.role == Role.tenant_user:
            return {name: name in TENANT_USER_PERMISSIONS for name in PERMISSION_NAMES}

        return get_default_permissions(False)

    def load_context(self, actor: Optional[Actor]) -> RequestContext:
        """
        Load organization, team and team overrides for the actor.
        NotFoundError from the directories propagates unchanged.
        """
        if actor is None:
            return RequestContext(permissions=get_default_permissions(False))

        organization = None
        if actor.active_organization_id:
            organization = self.organizations.get_organization_by_id(actor.active_organization_id)

        team = None
        team_overrides: Dict[str, Dict[str, bool]] = {}
        if actor.active_team_id and organization is not None:
            team = self.teams.get_team_by_id(actor.active_team_id)
            if team.organization_id != organization.id and actor.role != Role.admin:
                logger.warning(
                    f"User {actor.user_id} has team {team.id} active outside organization {organization.id}"
                )
                raise AuthorizationError("Active team does not belong to the active organization")
            team_overrides = self.teams.get_team_permissions(team.id)

        permissions = self.determine_permissions(actor, organization, team, team_overrides)
        return RequestContext(
            actor=actor,
            organization=organization,
            team=team,
            team_overrides=team_overrides,
            permissions=permissions,
        )

    # =========================================================
    # Hard gates
    # =========================================================
    def resolve(
        self,
        actor: Optional[Actor],
        capability: Capability,
        organization_id: Optional[str] = None,
        property_id: Optional[str] = None,
        context: Optional[RequestContext] = None,
    ) -> PermissionDecision:
        """
        Decide whether the actor may exercise `capability`, optionally on a
        specific organization and property. Raises AuthorizationError on
        every denial path.
        """
        if actor is None:
            raise AuthorizationError("Authentication required")

        resource, action = capability.resource, capability.action
        if not is_known_capability(resource, action):
            raise AuthorizationError(f"Unknown capability: {capability}")

        if actor.role != Role.admin:
            if not actor.active_organization_id:
                raise AuthorizationError("No active organization selected")
            if organization_id and organization_id != actor.active_organization_id:
                raise AuthorizationError("Access to another organization's resources is not allowed")

        context = context or self.load_context(actor)
        target_org_id = organization_id or context.organization_id

        prop = None
        if property_id:
            prop = self.properties.get_property_by_id(property_id)
            if target_org_id and prop.organization_id != target_org_id:
                raise AuthorizationError("You don't have access to this property")
            target_org_id = target_org_id or prop.organization_id

        if actor.role == Role.admin or context.is_owner:
            return PermissionDecision(
                allowed=True,
                organization_id=target_org_id,
                permissions=context.permissions,
                reason="admin" if actor.role == Role.admin else "organization owner",
            )

        if not self._role_allows(context, resource, action):
            logger.warning(f"Denied {capability} for user {actor.user_id} ({actor.role})")
            raise AuthorizationError(f"You don't have permission to {describe_permission(str(action))} {resource}")

        if prop is not None:
            self._require_team_property(context, prop.id)

        return PermissionDecision(
            allowed=True,
            organization_id=target_org_id,
            permissions=context.permissions,
            reason=f"{actor.role.value} role",
        )

    def check_permissions(
        self,
        actor: Optional[Actor],
        permission: str,
        resource=None,
        action=None,
        context: Optional[RequestContext] = None,
    ) -> dict:
        """
        Snapshot gate, plus a fine-grained AC check when resource and action
        are given. Unknown permission names deny.
        """
        if actor is None:
            raise AuthorizationError("Authentication required")

        context = context or self.load_context(actor)
        if context.organization is None:
            raise AuthorizationError("No active organization selected")

        if not context.permissions.get(permission, False):
            logger.warning(f"Denied '{permission}' for user {actor.user_id} ({actor.role})")
            raise AuthorizationError(f"You don't have permission to {describe_permission(permission)}")

        if resource is not None and action is not None:
            ac = self.access_control(actor, context.organization, context.team, context.team_overrides)
            if not ac.can(resource, action):
                raise AuthorizationError(f"You don't have permission to {action} {resource}")

        return {"organization_id": context.organization.id, "user_id": actor.user_id}

    def check_property_permissions(
        self,
        actor: Optional[Actor],
        action: str = "view",
        property_id: Optional[str] = None,
        context: Optional[RequestContext] = None,
    ) -> dict:
        """
        Guard for property and unit operations. `action` is view, manage or
        delete. Team members (other than admins and the organization's
        owner) are further limited to the properties assigned to their team.
        """
        permission = PROPERTY_PERMISSION_LEVELS.get(str(action))
        if permission is None:
            raise ValidationError(f"Unknown property permission level: {action}")

        if actor is None:
            raise AuthorizationError("Authentication required")

        context = context or self.load_context(actor)
        result = self.check_permissions(actor, permission, context=context)

        if property_id:
            prop = self.properties.get_property_by_id(property_id)
            if prop.organization_id != result["organization_id"]:
                raise AuthorizationError("You don't have access to this property")
            if actor.role != Role.admin and not context.is_owner:
                self._require_team_property(context, property_id)

        return {"organization_id": result["organization_id"]}

    def check_property_owner(self, actor: Optional[Actor], property_id: str) -> dict:
        """
        Gate for the property ACL surface: admins, the owning agent_owner
        of the property's organization, or the property's own owner.
        """
        if actor is None:
            raise AuthorizationError("Authentication required")

        prop = self.properties.get_property_by_id(property_id)

        if actor.role == Role.admin:
            return {"organization_id": prop.organization_id}

        if actor.role == Role.property_owner and prop.owner_id == actor.user_id:
            return {"organization_id": prop.organization_id}

        if actor.role == Role.agent_owner:
            organization = self.organizations.get_organization_by_id(prop.organization_id)
            if is_organization_owner(actor, organization):
                return {"organization_id": prop.organization_id}

        logger.warning(f"User {actor.user_id} tried to manage permissions on property {property_id}")
        raise AuthorizationError("Only the property owner or an admin can manage property permissions")

    def check_grant_manager(self, actor: Optional[Actor], context: Optional[RequestContext] = None) -> dict:
        """Admins, organization owners and landlords may list assignable users."""
        if actor is None:
            raise AuthorizationError("Authentication required")

        context = context or self.load_context(actor)
        if context.organization is None:
            raise AuthorizationError("No active organization selected")

        if actor.role == Role.admin or context.is_owner or actor.role == Role.property_owner:
            return {"organization_id": context.organization.id}

        raise AuthorizationError("Only organization owners can assign property permissions")

    def get_accessible_property_ids(
        self, actor: Optional[Actor], context: Optional[RequestContext] = None
    ) -> List[str]:
        """
        Properties of the active organization the actor can see. Admins and
        owners see all of them, staff on a team see the team's properties,
        landlords see the ones they own. Everyone else sees none.
        """
        if actor is None:
            return []

        context = context or self.load_context(actor)
        if context.organization is None:
            return []

        org_properties = self.properties.list_organization_properties(context.organization.id)

        if actor.role == Role.admin or context.is_owner:
            return sorted(prop.id for prop in org_properties)

        if actor.role in STAFF_ROLES:
            if not context.permissions.get("can_view_properties", False):
                return []
            if context.team is None:
                return sorted(prop.id for prop in org_properties)
            team_property_ids = set(self.teams.get_team_property_ids(context.team.id))
            return sorted(prop.id for prop in org_properties if prop.id in team_property_ids)

        if actor.role == Role.property_owner:
            return sorted(prop.id for prop in org_properties if prop.owner_id == actor.user_id)

        return []

    # =========================================================
    # Helpers
    # =========================================================
    def _role_allows(self, context: RequestContext, resource: Resource, action: Action) -> bool:
        role = context.actor.role
        if role in STAFF_ROLES:
            ac = self.access_control(context.actor, context.organization, context.team, context.team_overrides)
            return ac.can(resource, action)
        if context.organization is None:
            return False
        fixed = FIXED_ROLE_CAPABILITIES.get(role)
        if fixed is None:
            return False
        return action in fixed.get(resource, set())

    def _require_team_property(self, context: RequestContext, property_id: str):
        """Teams only narrow access: the property must be assigned to the active team."""
        if context.team is None:
            return
        if not self.teams.is_property_in_team(context.team.id, property_id):
            logger.warning(
                f"User {context.actor.user_id} denied property {property_id}: not assigned to team {context.team.id}"
            )
            raise AuthorizationError("You don't have access to this property")
