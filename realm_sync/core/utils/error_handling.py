"""
Centralized Error Handling Utility
Provides error messages for API responses that never leak implementation details.

Typed RealmSyncException messages are safe to return verbatim: they describe the
caller's input or the remote platform's answer. Anything else is reported with a
generic message and a tracking ID, and full details are logged server side.
"""

import logging
import uuid
from typing import Any, Dict, Optional

from realm_sync.core.exceptions import ErrorCategory, RealmSyncException

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "An internal error occurred. Please contact support."

SENSITIVE_KEYS = {"password", "credential", "api_key", "secret", "token", "private_key", "authorization"}


def generate_error_id() -> str:
    """Generate a unique error ID for tracking."""
    return f"ERR-{uuid.uuid4().hex[:12].upper()}"


def sanitize_context(context: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Redact values whose keys look like secrets."""
    sanitized: Dict[str, Any] = {}
    for key, value in (context or {}).items():
        if any(s in key.lower() for s in SENSITIVE_KEYS):
            sanitized[key] = "[REDACTED]"
        else:
            sanitized[key] = value
    return sanitized


def log_error_details(
    error_id: str,
    error: Exception,
    context: Optional[Dict[str, Any]] = None,
    operation: Optional[str] = None
) -> None:
    """
    Log detailed error information server-side only.

    Args:
        error_id: Unique error identifier
        error: The exception that occurred
        context: Additional context for debugging (sensitive keys are redacted)
        operation: Description of the operation that failed
    """
    category = error.category.value if isinstance(error, RealmSyncException) else "INTERNAL"
    log_data = {
        "error_id": error_id,
        "error_category": category,
        "error_type": type(error).__name__,
        "error_message": str(error),
        "operation": operation,
    }
    log_data.update(sanitize_context(context))

    message = f"[{category}] Error {error_id}: {type(error).__name__} during {operation or 'operation'}"

    if not isinstance(error, RealmSyncException) or error.category == ErrorCategory.TRANSIENT:
        logger.error(message, extra=log_data, exc_info=error)
    elif error.category == ErrorCategory.AUTHENTICATION:
        logger.warning(message, extra=log_data)
    else:
        logger.info(message, extra=log_data)


def format_error_for_response(
    error: Exception,
    operation: str,
    expose_details: bool = False,
    context: Optional[Dict[str, Any]] = None
) -> str:
    """
    Build the `error` string of an API response envelope.

    Args:
        error: The exception that failed the call
        operation: Description of the operation that failed (for logs)
        expose_details: Return raw messages of unexpected exceptions too
        context: Additional context for server-side logging

    Returns:
        Message safe to send to the client
    """
    error_id = generate_error_id()
    log_error_details(error_id, error, context=context, operation=operation)

    if isinstance(error, RealmSyncException):
        return error.message
    if expose_details:
        return f"{type(error).__name__}: {error}"
    return f"{GENERIC_ERROR_MESSAGE} (error ID {error_id})"
