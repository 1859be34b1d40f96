# core/property_grants.py

"""
Per-property, per-user ACL entries.

Explicit grants sit on top of role defaults and are created only by the
property's owner or an admin; that check belongs to the caller
(PermissionResolver.check_property_owner), not to this store.
"""

from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

from core.directories import GrantRepository, PropertyDirectory, UserDirectory
from core.errors import NotFoundError, ValidationError
from core.logging_config import logger
from models.actor import Actor
from models.enums import GrantRole, Role
from models.organization import UserRecord
from models.permission import (
    CapabilityFlags,
    CustomPermissions,
    Grant,
    OwnerGrant,
    PropertyGrant,
    PropertyGrantRead,
)


# ============================================================
# PRESETS - base flags before custom overrides
# ============================================================
GRANT_PRESETS: Dict[GrantRole, CapabilityFlags] = {
    GrantRole.caretaker: CapabilityFlags(
        can_manage_tenants=True,
        can_collect_payments=True,
        can_manage_maintenance=True,
    ),
    GrantRole.agent: CapabilityFlags(
        can_manage_tenants=True,
        can_manage_leases=True,
    ),
    GrantRole.readonly: CapabilityFlags(),
    GrantRole.custom: CapabilityFlags(),
}

# Roles that own properties and get synthesized owner grants
OWNER_CLASS_ROLES = {Role.property_owner, Role.agent_owner}

# Roles that can be handed a property grant
ASSIGNABLE_ROLES = [Role.caretaker.value, Role.agent_staff.value]


def resolve_flags(role: GrantRole, custom_permissions: Optional[CustomPermissions] = None) -> CapabilityFlags:
    """
    Preset first, then only the override fields the caller actually set.

    Raises ValidationError for a custom role without custom permissions.
    """
    role = GrantRole(role)
    if role == GrantRole.custom and custom_permissions is None:
        raise ValidationError("Custom permissions must be provided when role is 'custom'")

    flags = GRANT_PRESETS[role].model_dump()
    if custom_permissions is not None:
        overrides = custom_permissions.model_dump(exclude_none=True)
        flags.update(overrides)
    return CapabilityFlags(**flags)


class PropertyGrantStore:
    def __init__(
        self,
        grants: GrantRepository,
        properties: PropertyDirectory,
        users: UserDirectory,
        now: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.grants = grants
        self.properties = properties
        self.users = users
        self.now = now

    # -----------------------------------------------------
    # Mutations
    # -----------------------------------------------------
    def assign_permission(
        self,
        granter: Actor,
        property_id: str,
        user_id: str,
        role: GrantRole,
        custom_permissions: Optional[CustomPermissions] = None,
    ) -> PropertyGrant:
        flags = resolve_flags(role, custom_permissions)

        # Both lookups raise NotFoundError
        self.users.get_user_by_id(user_id)
        self.properties.get_property_by_id(property_id)

        timestamp = self.now().isoformat()
        record = {
            "user_id": user_id,
            "property_id": property_id,
            "role": GrantRole(role).value,
            "granted_by": granter.user_id,
            "updated_at": timestamp,
            **flags.model_dump(),
        }

        saved = self.grants.upsert_grant(record)
        logger.info(
            f"Property permission '{record['role']}' set for user {user_id} "
            f"on property {property_id} by {granter.user_id}"
        )
        return PropertyGrant(**saved)

    def revoke_permission(self, property_id: str, user_id: str) -> dict:
        deleted = self.grants.delete_grant(property_id, user_id)
        if not deleted:
            raise NotFoundError("Property permission", f"{user_id}/{property_id}")

        logger.info(f"Property permission revoked for user {user_id} on property {property_id}")
        return {"success": True}

    # -----------------------------------------------------
    # Reads
    # -----------------------------------------------------
    def get_permissions_for_user(self, user: Actor) -> List[Grant]:
        """Explicit grants plus an owner pseudo-grant per owned property."""
        rows = self.grants.list_grants_for_user(user.user_id)

        property_names = self._property_names([row["property_id"] for row in rows])
        granter_names = self._user_names([row["granted_by"] for row in rows])

        result: List[Grant] = [
            PropertyGrant(
                **row,
                property_name=property_names.get(row["property_id"]),
                granted_by_name=granter_names.get(row["granted_by"]),
            )
            for row in rows
        ]

        if user.role in OWNER_CLASS_ROLES:
            for prop in self.properties.get_properties_owned_by(user.user_id):
                result.append(OwnerGrant(
                    id=f"owner-{prop.id}",
                    user_id=user.user_id,
                    property_id=prop.id,
                    property_name=prop.name,
                    granted_by=user.user_id,
                    granted_by_name=user.full_name or "Self",
                ))

        return result

    def get_permissions_for_property(self, property_id: str) -> List[PropertyGrantRead]:
        prop = self.properties.get_property_by_id(property_id)
        rows = self.grants.list_grants_for_property(property_id)

        users = {
            u.id: u
            for u in self.users.get_users_by_ids(
                [row["user_id"] for row in rows] + [row["granted_by"] for row in rows]
            )
        }

        annotated = []
        for row in rows:
            grantee = users.get(row["user_id"])
            granter = users.get(row["granted_by"])
            annotated.append(PropertyGrantRead(
                **row,
                property_name=prop.name,
                user_name=grantee.name if grantee else None,
                user_email=grantee.email if grantee else None,
                user_role=grantee.role if grantee else None,
                granted_by_name=granter.name if granter else None,
            ))
        return annotated

    def get_assignable_users(self, organization_id: str) -> List[UserRecord]:
        users = self.users.list_organization_users(organization_id, ASSIGNABLE_ROLES)
        return sorted(users, key=lambda u: (u.name or "").lower())

    # -----------------------------------------------------
    # Helpers
    # -----------------------------------------------------
    def _property_names(self, property_ids: List[str]) -> Dict[str, Optional[str]]:
        return {p.id: p.name for p in self.properties.get_properties_by_ids(list(set(property_ids)))}

    def _user_names(self, user_ids: List[str]) -> Dict[str, Optional[str]]:
        return {u.id: u.name for u in self.users.get_users_by_ids(list(set(user_ids)))}
