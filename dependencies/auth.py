from typing import Optional
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from supabase import Client

from core.logging_config import logger
from dependencies.services import get_client
from models.actor import Actor
from models.enums import Role


bearer_scheme = HTTPBearer()

# The session actor is the backend identity for every request
CurrentUser = Actor


# ============================================================
# AUTH DECODING (Supabase: validates JWT + reads session metadata)
# ============================================================
def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    client: Client = Depends(get_client),
) -> CurrentUser:

    token = credentials.credentials

    unauthorized = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid or expired authentication token",
        headers={"WWW-Authenticate": "Bearer"},
    )

    # ---------------------------------------------------------
    # Validate JWT via Supabase GoTrue
    # ---------------------------------------------------------
    try:
        auth_resp = client.auth.get_user(token)
    except Exception:
        raise unauthorized

    if not auth_resp or not auth_resp.user:
        raise unauthorized

    return actor_from_auth_user(auth_resp.user)


def actor_from_auth_user(auth_user) -> CurrentUser:
    """
    Build the request actor from a Supabase auth user.
    An unknown role string leaves role unset (deny everything).
    """
    metadata = auth_user.user_metadata or {}

    raw_role = metadata.get("role")
    role = Role.parse(raw_role) if raw_role else None
    if raw_role and role is None:
        logger.warning(f"User {auth_user.id} has unknown role '{raw_role}'")

    return CurrentUser(
        user_id=auth_user.id,
        role=role,
        email=auth_user.email,
        full_name=metadata.get("full_name"),
        active_organization_id=metadata.get("active_organization_id"),
        active_team_id=metadata.get("active_team_id"),
    )


# ============================================================
# ROLE CHECKER (basic role list guard)
# ============================================================
def requires_role(allowed_roles: list):
    allowed = {Role(r) for r in allowed_roles}

    def checker(current_user: CurrentUser = Depends(get_current_user)):
        if current_user.role not in allowed:
            raise HTTPException(
                status_code=403,
                detail=f"Requires one of: {sorted(r.value for r in allowed)}",
            )
        return current_user
    return checker


# ============================================================
# OPTIONAL AUTHENTICATION (for hybrid endpoints)
# ============================================================
def get_optional_auth(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(HTTPBearer(auto_error=False)),
    client: Client = Depends(get_client),
) -> Optional[CurrentUser]:
    """
    Returns CurrentUser if a valid token was provided, None otherwise.
    """
    if not credentials:
        return None

    try:
        return get_current_user(credentials, client)
    except HTTPException:
        return None
