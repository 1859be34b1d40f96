# routers/health.py

from fastapi import APIRouter

from core.config import settings
from core.config_validator import validate_optional_config, validate_required_config
from core.supabase_client import ping_supabase

router = APIRouter(
    prefix="/health",
    tags=["Health"],
)


# -----------------------------------------------------
# GET /health/app  (uptime monitors, no auth)
# -----------------------------------------------------
@router.get("/app", summary="App health check")
async def health_app():
    return {"service": settings.PROJECT_NAME, "env": settings.ENV, "status": "ok"}


# -----------------------------------------------------
# GET /health/db  (access tables reachable, no auth)
# -----------------------------------------------------
@router.get("/db", summary="Supabase / access tables health check")
async def health_db():
    try:
        return ping_supabase()
    except Exception as e:
        return {"service": "Supabase", "status": "error", "error": str(e)}


# -----------------------------------------------------
# GET /health/config  (names of missing settings only)
# -----------------------------------------------------
@router.get("/config", summary="Configuration check")
async def health_config():
    missing = validate_required_config()
    return {
        "status": "error" if missing else "ok",
        "missing": missing,
        "warnings": validate_optional_config(),
        "scheduler_enabled": settings.ENABLE_SCHEDULER,
    }
