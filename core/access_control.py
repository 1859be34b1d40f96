# core/access_control.py

"""
Single (resource, action) permission checks against role and team rules.

An AccessControl is built once per request from already-loaded state
(actor, organization, team and the team's override table) and does no I/O.
"""

from typing import Callable, Mapping, Optional, Sequence, Union

from core.roles import PermissionTable, is_known_capability, permissions_for_role
from models.actor import Actor
from models.enums import Action, Resource, Role
from models.organization import Organization, Team

ActionArg = Union[str, Action, Sequence[Union[str, Action]]]


def is_organization_owner(actor: Optional[Actor], organization: Optional[Organization]) -> bool:
    """agent_owner whose organization records them as its owner."""
    if actor is None or organization is None:
        return False
    return (
        actor.role == Role.agent_owner
        and organization.agent_owner_id is not None
        and organization.agent_owner_id == actor.user_id
    )


def normalize_overrides(raw: Optional[Mapping]) -> PermissionTable:
    """
    Coerce a {resource: {action: bool}} mapping (as stored) into enum keys.
    Entries naming unknown resources or actions are dropped.
    """
    table = {}
    for resource_key, actions in (raw or {}).items():
        resource = Resource.parse(resource_key)
        if resource is None or not isinstance(actions, Mapping):
            continue
        for action_key, value in actions.items():
            action = Action.parse(action_key)
            if action is None or value is None:
                continue
            table.setdefault(resource, {})[action] = bool(value)
    return table


class AccessControl:
    def __init__(
        self,
        actor: Optional[Actor],
        organization: Optional[Organization],
        team: Optional[Team] = None,
        team_overrides: Optional[Mapping] = None,
        role_permissions: Callable[[Optional[Role]], PermissionTable] = permissions_for_role,
    ):
        self.actor = actor
        self.organization = organization
        self.team = team
        self.team_overrides = normalize_overrides(team_overrides) if team else {}
        self.role_permissions = role_permissions

    def can(self, resource, action: ActionArg) -> bool:
        """
        True when the actor may perform `action` on `resource`.

        A list of actions is an OR: any single allowed action is enough.
        A team override that is present (True or False) wins over the
        role default. Anything undefined is False; this never raises.
        """
        if self.actor is None or self.organization is None:
            return False

        if isinstance(action, (list, tuple, set, frozenset)):
            return any(self.can(resource, a) for a in action)

        resource = Resource.parse(resource)
        action = Action.parse(action)
        if resource is None or action is None:
            return False
        if not is_known_capability(resource, action):
            return False

        if self.actor.role == Role.admin:
            return True

        if is_organization_owner(self.actor, self.organization):
            return True

        if self.team is not None:
            override = self.team_overrides.get(resource, {}).get(action)
            if override is not None:
                return override

        role_table = self.role_permissions(self.actor.role) or {}
        value = _lookup(role_table, resource, action)
        return bool(value) if value is not None else False


def _lookup(table: Mapping, resource: Resource, action: Action) -> Optional[bool]:
    # Injected tables may be keyed by plain strings; enums compare equal to them.
    actions = table.get(resource)
    if actions is None:
        actions = table.get(resource.value)
    if not actions:
        return None
    value = actions.get(action)
    if value is None:
        value = actions.get(action.value)
    return value
