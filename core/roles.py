# core/roles.py

"""
Static role catalog.

RESOURCE_ACTIONS is the full statement set: a (resource, action) pair that
is not listed here does not exist and is always denied. ROLE_PERMISSIONS
maps each role onto that set. Lookups are enum-keyed so a typo fails at
import time instead of silently reading as "not allowed".
"""

from typing import Dict, FrozenSet, Mapping, Optional

from models.enums import Action, Resource, Role

A = Action
R = Resource

PermissionTable = Mapping[Resource, Mapping[Action, bool]]


# ============================================================
# STATEMENTS - every resource and the actions it supports
# ============================================================
RESOURCE_ACTIONS: Dict[Resource, FrozenSet[Action]] = {
    R.property: frozenset({A.view, A.create, A.update, A.delete, A.assign_caretaker, A.manage}),
    R.unit: frozenset({A.view, A.create, A.update, A.delete}),
    R.tenant: frozenset({A.view, A.create, A.update, A.delete, A.contact, A.manage}),
    R.lease: frozenset({A.view, A.create, A.update, A.terminate, A.renew, A.manage}),
    R.payment: frozenset({A.view, A.record, A.process, A.approve}),
    R.expense: frozenset({A.view, A.create, A.update, A.delete}),
    R.financial: frozenset({A.view, A.record, A.manage, A.report}),
    R.maintenance: frozenset({A.view, A.create, A.update, A.resolve, A.assign, A.manage}),
    R.document: frozenset({A.view, A.upload, A.delete}),
    R.organization: frozenset({A.view, A.update, A.delete, A.manage_subscription}),
    R.member: frozenset({A.invite, A.remove, A.update_role}),
    R.team: frozenset({A.view, A.create, A.update, A.delete, A.assign_properties}),
    R.staff: frozenset({A.view, A.invite, A.assign, A.remove}),
    R.settings: frozenset({A.read, A.update}),
}


def is_known_capability(resource, action) -> bool:
    """True when (resource, action) is part of the statement catalog."""
    resource = Resource.parse(resource)
    action = Action.parse(action)
    if resource is None or action is None:
        return False
    return action in RESOURCE_ACTIONS[resource]


def _grant(allowed: Dict[Resource, set]) -> Dict[Resource, Dict[Action, bool]]:
    """
    Expand an allow-list into a full matrix: listed actions True,
    every other catalog action for the resource False.
    """
    return {
        resource: {action: action in allowed.get(resource, set()) for action in actions}
        for resource, actions in RESOURCE_ACTIONS.items()
    }


FULL_ACCESS = _grant({resource: set(actions) for resource, actions in RESOURCE_ACTIONS.items()})


# ============================================================
# CENTRALIZED ROLE → PERMISSIONS MAP
# ============================================================
ROLE_PERMISSIONS: Dict[Role, Dict[Resource, Dict[Action, bool]]] = {

    # =====================================================
    # ADMIN - callers short-circuit before reading this
    # =====================================================
    Role.admin: FULL_ACCESS,

    # =====================================================
    # AGENT OWNER - nothing by role; owning the organization is the
    # only path to access (AccessControl checks ownership first)
    # =====================================================
    Role.agent_owner: _grant({}),

    # =====================================================
    # AGENT STAFF - day-to-day management, no destructive actions
    # =====================================================
    Role.agent_staff: _grant({
        R.property: {A.view, A.create, A.update},
        R.unit: {A.view, A.create, A.update},
        R.tenant: {A.view, A.create, A.update, A.contact, A.manage},
        R.lease: {A.view, A.create, A.update, A.renew, A.manage},
        R.payment: {A.view, A.record},
        R.expense: {A.view, A.create, A.update},
        R.financial: {A.view, A.record, A.report},
        R.maintenance: {A.view, A.create, A.update, A.resolve, A.assign, A.manage},
        R.document: {A.view, A.upload},
        R.organization: {A.view},
        R.staff: {A.view},
        R.settings: {A.read},
    }),

    # =====================================================
    # PROPERTY OWNER - read-only on their properties
    # =====================================================
    Role.property_owner: _grant({
        R.property: {A.view},
        R.unit: {A.view},
        R.tenant: {A.view},
        R.lease: {A.view},
        R.payment: {A.view},
        R.expense: {A.view},
        R.financial: {A.view, A.report},
        R.maintenance: {A.view, A.create},
        R.document: {A.view},
        R.settings: {A.read},
    }),

    # =====================================================
    # CARETAKER - maintenance and tenant communication
    # =====================================================
    Role.caretaker: _grant({
        R.property: {A.view},
        R.unit: {A.view},
        R.tenant: {A.view, A.contact, A.manage},
        R.lease: {A.view},
        R.maintenance: {A.view, A.create, A.update, A.resolve, A.manage},
        R.document: {A.view},
        R.settings: {A.read},
    }),

    # =====================================================
    # TENANT USER - own lease and maintenance requests
    # =====================================================
    Role.tenant_user: _grant({
        R.lease: {A.view},
        R.payment: {A.view, A.record},
        R.financial: {A.view},
        R.maintenance: {A.view, A.create, A.manage},
        R.document: {A.view},
    }),
}


def permissions_for_role(role: Optional[Role]) -> PermissionTable:
    """
    Permission matrix for a role. Unknown or missing roles get an empty
    map, which every caller reads as deny.
    """
    role = Role.parse(role) if role is not None else None
    if role is None:
        return {}
    return ROLE_PERMISSIONS.get(role, {})
