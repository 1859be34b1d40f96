# core/config_validator.py

from typing import List
from core.config import settings
from core.logging_config import logger

# Without these no directory can be built and every request fails
REQUIRED_SETTINGS = ["SUPABASE_URL", "SUPABASE_SERVICE_ROLE_KEY"]


def validate_required_config() -> List[str]:
    """Names of required settings that are unset."""
    return [name for name in REQUIRED_SETTINGS if not getattr(settings, name, None)]


def validate_optional_config() -> List[str]:
    """Warnings for settings the service can run without."""
    warnings = []

    if settings.ENABLE_SCHEDULER and not settings.SYNC_WEBHOOK_URL:
        warnings.append("SYNC_WEBHOOK_URL (trial sweep summaries will only be logged)")
    if not settings.FRONTEND_DOMAIN:
        warnings.append("FRONTEND_DOMAIN (CORS allows the default domains only)")
    if sorted(settings.TRIAL_REMINDER_DAYS, reverse=True) != list(settings.TRIAL_REMINDER_DAYS):
        warnings.append("TRIAL_REMINDER_DAYS is not in descending order")

    return warnings


def validate_config_on_startup():
    """
    Raises RuntimeError if critical config is missing.
    Logs warnings for optional config.
    """
    missing_required = validate_required_config()
    if missing_required:
        error_msg = f"Missing required environment variables: {', '.join(missing_required)}"
        logger.error(error_msg)
        raise RuntimeError(error_msg)

    for warning in validate_optional_config():
        logger.warning(f"Optional configuration missing: {warning}")

    logger.info("Configuration validation passed")
