# core/directories.py

"""
Lookups the access engine consumes but does not own.

Each directory is a Protocol so the resolver, grant store and
subscription gate can be built with test doubles; the Supabase classes
below are the production implementations.
"""

from datetime import datetime
from typing import Dict, List, Optional, Protocol, Sequence

from supabase import Client

from core.errors import NotFoundError, handle_supabase_error
from core.logging_config import logger
from models.enums import TrialStatus
from models.organization import Organization, Property, Team, UserRecord


# ============================================================
# Protocols
# ============================================================
class OrganizationDirectory(Protocol):
    def get_organization_by_id(self, organization_id: str) -> Organization: ...

    def list_active_trials_expiring_before(self, moment: datetime) -> List[Organization]: ...

    def list_active_trials_expiring_between(self, start: datetime, end: datetime) -> List[Organization]: ...

    def mark_trial_expired(self, organization_id: str, now: datetime) -> bool: ...


class TeamDirectory(Protocol):
    def get_team_by_id(self, team_id: str) -> Team: ...

    def is_property_in_team(self, team_id: str, property_id: str) -> bool: ...

    def get_team_property_ids(self, team_id: str) -> List[str]: ...

    def get_team_permissions(self, team_id: str) -> Dict[str, Dict[str, bool]]: ...


class PropertyDirectory(Protocol):
    def get_property_by_id(self, property_id: str) -> Property: ...

    def get_properties_by_ids(self, property_ids: Sequence[str]) -> List[Property]: ...

    def get_properties_owned_by(self, user_id: str) -> List[Property]: ...

    def list_organization_properties(self, organization_id: str) -> List[Property]: ...


class UserDirectory(Protocol):
    def get_user_by_id(self, user_id: str) -> UserRecord: ...

    def get_users_by_ids(self, user_ids: Sequence[str]) -> List[UserRecord]: ...

    def list_organization_users(self, organization_id: str, roles: Sequence[str]) -> List[UserRecord]: ...


class GrantRepository(Protocol):
    def upsert_grant(self, record: dict) -> dict: ...

    def delete_grant(self, property_id: str, user_id: str) -> int: ...

    def list_grants_for_user(self, user_id: str) -> List[dict]: ...

    def list_grants_for_property(self, property_id: str) -> List[dict]: ...


# ============================================================
# Supabase implementations
# ============================================================
class SupabaseDirectory:
    """Shared plumbing: one client, consistent error conversion."""

    def __init__(self, client: Client):
        self.client = client

    def _fetch_one(self, table: str, record_id: str, label: str) -> dict:
        try:
            result = (
                self.client.table(table)
                .select("*")
                .eq("id", record_id)
                .limit(1)
                .execute()
            )
        except Exception as e:
            raise handle_supabase_error(e, f"Failed to fetch {label}")

        if not result.data:
            raise NotFoundError(label, record_id)
        return result.data[0]


class SupabaseOrganizationDirectory(SupabaseDirectory):
    def get_organization_by_id(self, organization_id: str) -> Organization:
        return Organization(**self._fetch_one("organizations", organization_id, "Organization"))

    def list_active_trials_expiring_before(self, moment: datetime) -> List[Organization]:
        try:
            result = (
                self.client.table("organizations")
                .select("*")
                .eq("trial_status", TrialStatus.active.value)
                .lte("trial_expires_at", moment.isoformat())
                .execute()
            )
        except Exception as e:
            raise handle_supabase_error(e, "Failed to list expired trials")
        return [Organization(**row) for row in (result.data or [])]

    def list_active_trials_expiring_between(self, start: datetime, end: datetime) -> List[Organization]:
        try:
            result = (
                self.client.table("organizations")
                .select("*")
                .eq("trial_status", TrialStatus.active.value)
                .gte("trial_expires_at", start.isoformat())
                .lte("trial_expires_at", end.isoformat())
                .execute()
            )
        except Exception as e:
            raise handle_supabase_error(e, "Failed to list expiring trials")
        return [Organization(**row) for row in (result.data or [])]

    def mark_trial_expired(self, organization_id: str, now: datetime) -> bool:
        """
        Transition active -> expired. The status guard makes the update a
        no-op when a concurrent sweep already moved the row; returns False then.
        """
        try:
            result = (
                self.client.table("organizations")
                .update({
                    "trial_status": TrialStatus.expired.value,
                    "updated_at": now.isoformat(),
                })
                .eq("id", organization_id)
                .eq("trial_status", TrialStatus.active.value)
                .execute()
            )
        except Exception as e:
            raise handle_supabase_error(e, "Failed to expire trial")
        return bool(result.data)


class SupabaseTeamDirectory(SupabaseDirectory):
    def get_team_by_id(self, team_id: str) -> Team:
        return Team(**self._fetch_one("teams", team_id, "Team"))

    def is_property_in_team(self, team_id: str, property_id: str) -> bool:
        try:
            result = (
                self.client.table("team_properties")
                .select("id")
                .eq("team_id", team_id)
                .eq("property_id", property_id)
                .limit(1)
                .execute()
            )
        except Exception as e:
            raise handle_supabase_error(e, "Failed to check team property")
        return bool(result.data)

    def get_team_property_ids(self, team_id: str) -> List[str]:
        try:
            result = (
                self.client.table("team_properties")
                .select("property_id")
                .eq("team_id", team_id)
                .execute()
            )
        except Exception as e:
            raise handle_supabase_error(e, "Failed to list team properties")
        return [row["property_id"] for row in (result.data or [])]

    def get_team_permissions(self, team_id: str) -> Dict[str, Dict[str, bool]]:
        """Team override rows folded into {resource: {action: allowed}}."""
        try:
            result = (
                self.client.table("team_permissions")
                .select("resource, action, allowed")
                .eq("team_id", team_id)
                .execute()
            )
        except Exception as e:
            raise handle_supabase_error(e, "Failed to fetch team permissions")

        overrides: Dict[str, Dict[str, bool]] = {}
        for row in (result.data or []):
            if row.get("allowed") is None:
                continue
            overrides.setdefault(row["resource"], {})[row["action"]] = bool(row["allowed"])
        return overrides


class SupabasePropertyDirectory(SupabaseDirectory):
    def get_property_by_id(self, property_id: str) -> Property:
        return Property(**self._fetch_one("properties", property_id, "Property"))

    def get_properties_by_ids(self, property_ids: Sequence[str]) -> List[Property]:
        if not property_ids:
            return []
        try:
            result = (
                self.client.table("properties")
                .select("*")
                .in_("id", list(property_ids))
                .execute()
            )
        except Exception as e:
            raise handle_supabase_error(e, "Failed to fetch properties")
        return [Property(**row) for row in (result.data or [])]

    def get_properties_owned_by(self, user_id: str) -> List[Property]:
        try:
            result = (
                self.client.table("properties")
                .select("*")
                .eq("owner_id", user_id)
                .execute()
            )
        except Exception as e:
            raise handle_supabase_error(e, "Failed to fetch owned properties")
        return [Property(**row) for row in (result.data or [])]

    def list_organization_properties(self, organization_id: str) -> List[Property]:
        try:
            result = (
                self.client.table("properties")
                .select("*")
                .eq("organization_id", organization_id)
                .execute()
            )
        except Exception as e:
            raise handle_supabase_error(e, "Failed to fetch organization properties")
        return [Property(**row) for row in (result.data or [])]


class SupabaseUserDirectory(SupabaseDirectory):
    def get_user_by_id(self, user_id: str) -> UserRecord:
        return UserRecord(**self._fetch_one("users", user_id, "User"))

    def get_users_by_ids(self, user_ids: Sequence[str]) -> List[UserRecord]:
        if not user_ids:
            return []
        try:
            result = (
                self.client.table("users")
                .select("*")
                .in_("id", list(set(user_ids)))
                .execute()
            )
        except Exception as e:
            raise handle_supabase_error(e, "Failed to fetch users")
        return [UserRecord(**row) for row in (result.data or [])]

    def list_organization_users(self, organization_id: str, roles: Sequence[str]) -> List[UserRecord]:
        try:
            result = (
                self.client.table("users")
                .select("id, email, name, role, organization_id")
                .eq("organization_id", organization_id)
                .in_("role", list(roles))
                .order("name")
                .execute()
            )
        except Exception as e:
            raise handle_supabase_error(e, "Failed to list organization users")
        return [UserRecord(**row) for row in (result.data or [])]


class SupabaseGrantRepository(SupabaseDirectory):
    TABLE = "property_permissions"

    def upsert_grant(self, record: dict) -> dict:
        """
        Insert-or-update on the (user_id, property_id) unique key in a
        single statement, so concurrent assigns never leave mixed state.
        """
        try:
            result = (
                self.client.table(self.TABLE)
                .upsert(record, on_conflict="user_id,property_id")
                .execute()
            )
        except Exception as e:
            raise handle_supabase_error(e, "Failed to save property permission")

        if not result.data:
            logger.error(f"Grant upsert returned no data for {record.get('user_id')}/{record.get('property_id')}")
            raise handle_supabase_error(Exception("Upsert returned no data"), "Failed to save property permission")
        return result.data[0]

    def delete_grant(self, property_id: str, user_id: str) -> int:
        try:
            result = (
                self.client.table(self.TABLE)
                .delete()
                .eq("property_id", property_id)
                .eq("user_id", user_id)
                .execute()
            )
        except Exception as e:
            raise handle_supabase_error(e, "Failed to revoke property permission")
        return len(result.data or [])

    def list_grants_for_user(self, user_id: str) -> List[dict]:
        try:
            result = (
                self.client.table(self.TABLE)
                .select("*")
                .eq("user_id", user_id)
                .execute()
            )
        except Exception as e:
            raise handle_supabase_error(e, "Failed to list user permissions")
        return result.data or []

    def list_grants_for_property(self, property_id: str) -> List[dict]:
        try:
            result = (
                self.client.table(self.TABLE)
                .select("*")
                .eq("property_id", property_id)
                .execute()
            )
        except Exception as e:
            raise handle_supabase_error(e, "Failed to list property permissions")
        return result.data or []
