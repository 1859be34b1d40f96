from typing import List, Optional
from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    # -------------------------------------------------
    # General
    # -------------------------------------------------
    PROJECT_NAME: str = "Keja Access API"
    ENV: str = "development"

    # -------------------------------------------------
    # Frontend Domains
    # -------------------------------------------------
    FRONTEND_DOMAIN: Optional[str] = Field(None, env="FRONTEND_DOMAIN")

    FRONTEND_DOMAINS: List[str] = [
        "https://app.keja.co",
        "https://www.keja.co",
    ]

    # -------------------------------------------------
    # CORS (auto-built below)
    # -------------------------------------------------
    BACKEND_CORS_ORIGINS: List[str] = []

    # -------------------------------------------------
    # Supabase (Primary DB & Auth)
    # -------------------------------------------------
    SUPABASE_URL: Optional[str] = Field(None, env="SUPABASE_URL")
    SUPABASE_ANON_KEY: Optional[str] = Field(None, env="SUPABASE_ANON_KEY")
    SUPABASE_SERVICE_ROLE_KEY: Optional[str] = Field(None, env="SUPABASE_SERVICE_ROLE_KEY")
    SUPABASE_JWT_SECRET: Optional[str] = Field(None, env="SUPABASE_JWT_SECRET")

    # -------------------------------------------------
    # Webhooks / Sweep notifications
    # -------------------------------------------------
    SYNC_WEBHOOK_URL: Optional[str] = Field(None, env="SYNC_WEBHOOK_URL")

    # -------------------------------------------------
    # Trial Defaults
    # -------------------------------------------------
    TRIAL_LENGTH_DAYS: int = Field(30, env="TRIAL_LENGTH_DAYS", description="Length of the organization trial in days (default: 30)")
    TRIAL_MAX_PROPERTIES: int = Field(5, env="TRIAL_MAX_PROPERTIES", description="Property limit stamped on new trial organizations")
    TRIAL_MAX_USERS: int = Field(3, env="TRIAL_MAX_USERS", description="User limit stamped on new trial organizations")
    TRIAL_REMINDER_DAYS: List[int] = Field([7, 3], env="TRIAL_REMINDER_DAYS", description="Days-before-expiry on which owners are reminded")

    # -------------------------------------------------
    # Free Tier Limits (no trial, no subscription)
    # -------------------------------------------------
    FREE_MAX_PROPERTIES: int = Field(5, env="FREE_MAX_PROPERTIES")
    FREE_MAX_USERS: int = Field(3, env="FREE_MAX_USERS")

    # -------------------------------------------------
    # Scheduler
    # -------------------------------------------------
    ENABLE_SCHEDULER: bool = Field(False, env="ENABLE_SCHEDULER")
    TRIAL_SWEEP_HOUR_UTC: int = Field(2, env="TRIAL_SWEEP_HOUR_UTC")

    # -------------------------------------------------
    # Model Config
    # -------------------------------------------------
    class Config:
        case_sensitive = True


# Instantiate settings
settings = Settings()

# -------------------------------------------------
# Build CORS list dynamically after loading settings
# -------------------------------------------------
cors_origins = []

# 1) add the configured frontend domain
if settings.FRONTEND_DOMAIN:
    domain = settings.FRONTEND_DOMAIN
    if not domain.startswith("http"):
        domain = f"https://{domain}"
    cors_origins.append(domain.rstrip("/"))

# 2) add the known frontend domains
cors_origins.extend([d.rstrip("/") for d in settings.FRONTEND_DOMAINS])

# 3) remove duplicates
settings.BACKEND_CORS_ORIGINS = sorted(list(set(cors_origins)))
