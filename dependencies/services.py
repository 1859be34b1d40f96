# dependencies/services.py

"""
Request-scoped construction of the access engine.

Every service is built from its collaborators here instead of living as a
module-level singleton; tests swap any of these through
app.dependency_overrides.
"""

from fastapi import Depends, HTTPException
from supabase import Client

from core.directories import (
    SupabaseGrantRepository,
    SupabaseOrganizationDirectory,
    SupabasePropertyDirectory,
    SupabaseTeamDirectory,
    SupabaseUserDirectory,
)
from core.permissions import PermissionResolver
from core.property_grants import PropertyGrantStore
from core.subscription_gate import SubscriptionGate
from core.supabase_client import get_supabase_client


def get_client() -> Client:
    client = get_supabase_client()
    if not client:
        raise HTTPException(500, "Supabase client not configured")
    return client


def get_permission_resolver(client: Client = Depends(get_client)) -> PermissionResolver:
    return PermissionResolver(
        organizations=SupabaseOrganizationDirectory(client),
        teams=SupabaseTeamDirectory(client),
        properties=SupabasePropertyDirectory(client),
    )


def get_grant_store(client: Client = Depends(get_client)) -> PropertyGrantStore:
    return PropertyGrantStore(
        grants=SupabaseGrantRepository(client),
        properties=SupabasePropertyDirectory(client),
        users=SupabaseUserDirectory(client),
    )


def get_subscription_gate(client: Client = Depends(get_client)) -> SubscriptionGate:
    return SubscriptionGate(organizations=SupabaseOrganizationDirectory(client))
