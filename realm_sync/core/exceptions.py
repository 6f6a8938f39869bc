"""
Structured Error Handling for Realm Sync
Provides error hierarchy with categorization, error codes, and structured context.

Only ValidationError and CredentialError ever fail a whole import/export call.
Every other error is raised inside a single node's processing and converted into
an entry of the export result's error list at that node's boundary.
"""

from typing import Dict, Any, Optional
from enum import Enum


class ErrorCategory(str, Enum):
    """Error categories for classification and handling."""
    TRANSIENT = "TRANSIENT"  # Timeouts, network failures, 5xx
    VALIDATION = "VALIDATION"  # Input and structural errors
    AUTHENTICATION = "AUTHENTICATION"  # Credentials and permissions
    EXTERNAL = "EXTERNAL"  # Other remote platform errors


class ErrorCode(str, Enum):
    """Standardized error codes for monitoring and debugging."""
    # Validation
    INVALID_REQUEST = "INVALID_REQUEST"
    CONSTRAINT_VIOLATION = "CONSTRAINT_VIOLATION"
    UNRESOLVED_ANCHOR = "UNRESOLVED_ANCHOR"
    UNKNOWN_VARIANT = "UNKNOWN_VARIANT"

    # Authentication
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    PERMISSION_DENIED = "PERMISSION_DENIED"

    # Remote platform
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    RESOURCE_CONFLICT = "RESOURCE_CONFLICT"
    NETWORK_ERROR = "NETWORK_ERROR"
    EXTERNAL_API_ERROR = "EXTERNAL_API_ERROR"


class RealmSyncException(Exception):
    """
    Base exception for all Realm Sync errors.

    Provides structured error information for monitoring, debugging, and error recovery.
    """

    def __init__(
        self,
        message: str,
        category: ErrorCategory,
        error_code: ErrorCode,
        http_status: int = 500,
        context: Optional[Dict[str, Any]] = None,
        original_error: Optional[Exception] = None
    ):
        """
        Initialize structured exception.

        Args:
            message: Human-readable error message
            category: Error category for classification
            error_code: Standardized error code
            http_status: HTTP status code to return
            context: Additional context (node id, org name, etc.)
            original_error: Original exception if wrapped
        """
        super().__init__(message)
        self.message = message
        self.category = category
        self.error_code = error_code
        self.http_status = http_status
        self.context = context or {}
        self.original_error = original_error

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        result = {
            "error": self.error_code.value,
            "message": self.message,
            "category": self.category.value,
            "http_status": self.http_status
        }

        if self.context:
            result["context"] = self.context

        if self.original_error:
            result["original_error"] = str(self.original_error)

        return result

    def is_retryable(self) -> bool:
        """Check if this error could succeed on a later run."""
        return self.category == ErrorCategory.TRANSIENT


# ============================================
# Validation Errors
# ============================================

class ValidationError(RealmSyncException):
    """Malformed or missing top-level input. Fatal, raised before traversal."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            category=ErrorCategory.VALIDATION,
            error_code=ErrorCode.INVALID_REQUEST,
            http_status=400,
            context=context
        )


class ConstraintViolation(RealmSyncException):
    """Parent/child variant pairing not allowed by the constraint table."""

    def __init__(
        self,
        message: str,
        node_id: Optional[str] = None,
        parent_variant: Optional[str] = None
    ):
        super().__init__(
            message=message,
            category=ErrorCategory.VALIDATION,
            error_code=ErrorCode.CONSTRAINT_VIOLATION,
            http_status=422,
            context={"node_id": node_id, "parent_variant": parent_variant}
        )
        self.node_id = node_id
        self.parent_variant = parent_variant


class UnresolvedAnchor(RealmSyncException):
    """Owning organization (or team) could not be determined from ancestry."""

    def __init__(self, message: str, node_id: Optional[str] = None):
        super().__init__(
            message=message,
            category=ErrorCategory.VALIDATION,
            error_code=ErrorCode.UNRESOLVED_ANCHOR,
            http_status=422,
            context={"node_id": node_id}
        )
        self.node_id = node_id


class UnknownVariant(RealmSyncException):
    """Unrecognized node Type tag."""

    def __init__(self, type_tag: str):
        super().__init__(
            message=f"Unknown node type: {type_tag}",
            category=ErrorCategory.VALIDATION,
            error_code=ErrorCode.UNKNOWN_VARIANT,
            http_status=422,
            context={"type": type_tag}
        )
        self.type_tag = type_tag


# ============================================
# Credential Errors
# ============================================

class CredentialError(RealmSyncException):
    """Credentials missing or not satisfiable by any auth strategy."""

    def __init__(self, message: str = "Invalid GitHub credentials"):
        super().__init__(
            message=message,
            category=ErrorCategory.AUTHENTICATION,
            error_code=ErrorCode.INVALID_CREDENTIALS,
            http_status=500
        )


# ============================================
# Remote Platform Errors
# ============================================

class RemoteError(RealmSyncException):
    """Base class for failed calls against the remote platform."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        category: ErrorCategory = ErrorCategory.EXTERNAL,
        error_code: ErrorCode = ErrorCode.EXTERNAL_API_ERROR,
        context: Optional[Dict[str, Any]] = None,
        original_error: Optional[Exception] = None
    ):
        super().__init__(
            message=message,
            category=category,
            error_code=error_code,
            http_status=502,
            context=context,
            original_error=original_error
        )
        self.status_code = status_code


class RemoteNotFoundError(RemoteError):
    """404 from the remote platform. Used as the negative existence probe."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            status_code=404,
            error_code=ErrorCode.RESOURCE_NOT_FOUND,
            context=context
        )


class RemotePermissionDeniedError(RemoteError):
    """401/403 from the remote platform."""

    def __init__(self, message: str, status_code: int = 403, context: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            status_code=status_code,
            category=ErrorCategory.AUTHENTICATION,
            error_code=ErrorCode.PERMISSION_DENIED,
            context=context
        )


class RemoteConflictError(RemoteError):
    """409/422 from the remote platform, typically 'already exists'."""

    def __init__(self, message: str, status_code: int = 422, context: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            status_code=status_code,
            error_code=ErrorCode.RESOURCE_CONFLICT,
            context=context
        )


class RemoteTransientError(RemoteError):
    """Timeouts, connection failures and 5xx responses."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
        original_error: Optional[Exception] = None
    ):
        super().__init__(
            message=message,
            status_code=status_code,
            category=ErrorCategory.TRANSIENT,
            error_code=ErrorCode.NETWORK_ERROR,
            context=context,
            original_error=original_error
        )
