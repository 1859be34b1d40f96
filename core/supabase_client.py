# core/supabase_client.py

from typing import Optional
from supabase import create_client, Client
from core.config import settings
from core.logging_config import logger

# Tables the access engine reads or writes
ACCESS_TABLES = [
    "organizations",
    "teams",
    "team_properties",
    "team_permissions",
    "properties",
    "property_permissions",
]


# ============================================================
# Supabase Client Factory (service role)
# ============================================================
def get_supabase_client() -> Optional[Client]:
    """
    Service-role client, or None when credentials are missing.

    The service role is needed for auth.get_user on incoming tokens and
    for the trial sweep, which updates organizations outside any session.
    """
    supabase_url = settings.SUPABASE_URL
    supabase_key = settings.SUPABASE_SERVICE_ROLE_KEY

    if not supabase_url or not supabase_key:
        logger.error(
            f"Missing Supabase credentials (URL: {'SET' if supabase_url else 'MISSING'}, "
            f"SERVICE ROLE KEY: {'SET' if supabase_key else 'MISSING'})"
        )
        return None

    try:
        return create_client(supabase_url, supabase_key)
    except Exception as e:
        logger.error(f"Supabase Init Error: {e}", exc_info=True)
        return None


# ============================================================
# Table reachability for /health/db
# ============================================================
def ping_supabase(client: Optional[Client] = None) -> dict:
    """
    Probe each access table with a one-row select.
    Overall status is "degraded" when any single table fails.
    """
    client = client or get_supabase_client()
    if client is None:
        return {"service": "Supabase", "status": "not_configured"}

    tables = {}
    for table in ACCESS_TABLES:
        try:
            res = client.table(table).select("*").limit(1).execute()
            tables[table] = {"status": "ok", "rows_found": len(res.data or [])}
        except Exception as err:
            logger.warning(f"Health check failed for table {table}: {err}")
            tables[table] = {"status": "error", "detail": str(err)}

    failed = [name for name, result in tables.items() if result["status"] != "ok"]
    return {
        "service": "Supabase",
        "status": "degraded" if failed else "ok",
        "failed_tables": failed,
        "tables": tables,
    }
