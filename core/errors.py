# core/errors.py

from typing import Optional
from fastapi import HTTPException


# ============================================================
# Typed access errors
# ============================================================
class KejaError(Exception):
    """Base class for errors raised by the access engine."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"detail": self.message, "error": type(self).__name__}


class AuthorizationError(KejaError):
    """Actor lacks the required capability. Never retried."""

    status_code = 403


class ValidationError(KejaError):
    """Malformed permission-assignment input."""

    status_code = 400


class NotFoundError(KejaError):
    """Referenced organization, team, property, user or grant does not exist."""

    status_code = 404

    def __init__(self, resource: str, resource_id: Optional[str] = None):
        if resource_id:
            message = f"{resource} not found: {resource_id}"
        else:
            message = f"{resource} not found"
        super().__init__(message)
        self.resource = resource
        self.resource_id = resource_id


class SubscriptionLimitError(KejaError):
    """
    Plan limit reached or feature not on the plan.

    Kept apart from AuthorizationError so the UI can render an
    upgrade prompt instead of a generic denial.
    """

    status_code = 402

    def __init__(
        self,
        message: str,
        limit_kind: Optional[str] = None,
        limit: Optional[int] = None,
        current: Optional[int] = None,
    ):
        super().__init__(message)
        self.limit_kind = limit_kind
        self.limit = limit
        self.current = current

    def to_dict(self) -> dict:
        data = super().to_dict()
        if self.limit_kind:
            data["limit_kind"] = self.limit_kind
        if self.limit is not None:
            data["limit"] = self.limit
        if self.current is not None:
            data["current"] = self.current
        return data


# ============================================================
# Supabase error helpers
# ============================================================
def extract_supabase_error(error: Exception) -> str:
    """
    Safely extract readable details from Supabase Python client errors.
    Handles:
      • PostgREST errors
      • GoTrue (Auth) errors
      • Generic Python exceptions
    """

    # Case 1 - Supabase Auth / GoTrue / PostgREST APIError
    message = getattr(error, "message", None)
    if message:
        return str(message)

    # Case 2 - errors with args (common)
    if getattr(error, "args", None):
        return str(error.args[0])

    # Case 3 - Plain string fallback
    return str(error) or "Unknown Supabase error"


def handle_supabase_error(error: Exception, operation: str = "Database operation", status_code: int = 500) -> HTTPException:
    """
    Handle Supabase errors with consistent formatting.
    Returns HTTPException (doesn't raise) so caller can customize or re-raise.

    Args:
        error: The exception that occurred
        operation: Description of what operation failed (e.g., "Failed to upsert grant")
        status_code: HTTP status code (default 500)

    Returns:
        HTTPException with standardized error message
    """
    from core.logging_config import logger

    error_detail = extract_supabase_error(error)
    logger.error(f"{operation}: {error_detail}")

    # Provide user-friendly messages for common errors
    error_lower = error_detail.lower()
    if "duplicate" in error_lower or "unique" in error_lower:
        return HTTPException(status_code=400, detail=f"{operation}: Record already exists")
    elif "foreign key" in error_lower:
        return HTTPException(status_code=400, detail=f"{operation}: Invalid reference")
    else:
        return HTTPException(status_code=status_code, detail=f"{operation} failed")
