"""
Custom exception hierarchy for structured error handling.

WHAT: A closed set of error kinds plus the exception classes that carry them.

WHY: Every failure in the quotation/invoice/ledger flows falls into one of a
handful of categories (bad input, wrong status, blocked by references,
missing record, not allowed, remote failure). The kind travels with the
exception as structured context and is turned into a user-facing message
only at the HTTP boundary (see exception_handlers.py).

IMPORTANT: Raise these instead of bare Exception subclasses.
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    """
    Enumerated error categories.

    VALIDATION_FAILURE: input missing or out of range, caught before any write
    INVALID_TRANSITION: the record's status does not allow the operation
    REFERENTIAL_BLOCK: the record is still referenced by other records
    NOT_FOUND: no such record inside the caller's organization
    FORBIDDEN: the caller's role lacks the capability
    UNAUTHENTICATED: missing, expired or invalid credentials
    REMOTE_FAILURE: the database or an outbound service failed
    INTERNAL: anything unexpected
    """

    VALIDATION_FAILURE = "validation_failure"
    INVALID_TRANSITION = "invalid_transition"
    REFERENTIAL_BLOCK = "referential_block"
    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"
    UNAUTHENTICATED = "unauthenticated"
    REMOTE_FAILURE = "remote_failure"
    INTERNAL = "internal"


class AppException(Exception):
    """
    Base exception class for all application exceptions.

    All custom exceptions inherit from this class and set ``kind``,
    ``status_code`` and ``default_message`` at class level.
    """

    kind: ErrorKind = ErrorKind.INTERNAL
    status_code: int = 500
    default_message: str = "An unexpected error occurred"

    def __init__(
        self,
        message: Optional[str] = None,
        status_code: Optional[int] = None,
        **context: Any,
    ):
        """
        Initialize exception with message and context.

        Args:
            message: Human-readable error message
            status_code: HTTP status code (overrides class default)
            **context: Structured context (ids, states, counts)
        """
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        self.context = context
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """
        Serialize exception to dictionary for JSON response.

        Returns:
            Dictionary with error details (sensitive fields filtered out)
        """
        sensitive_fields = {"password", "token", "secret", "key", "api_key"}
        filtered_context = {
            k: v for k, v in self.context.items() if k.lower() not in sensitive_fields
        }

        return {
            "error": self.__class__.__name__,
            "kind": self.kind.value,
            "message": self.message,
            "status_code": self.status_code,
            "details": filtered_context if filtered_context else None,
        }


# ============================================================================
# Authentication & Authorization Exceptions
# ============================================================================


class AuthenticationError(AppException):
    """
    Raised when authentication fails.

    HTTP Status: 401 Unauthorized
    """

    kind = ErrorKind.UNAUTHENTICATED
    status_code = 401
    default_message = "Authentication failed"


class TokenExpiredError(AuthenticationError):
    """Raised when the bearer token has expired."""

    default_message = "Token has expired"


class TokenInvalidError(AuthenticationError):
    """Raised when the bearer token is malformed or has an invalid signature."""

    default_message = "Token is invalid"


class AuthorizationError(AppException):
    """
    Raised when the caller lacks permission for an action.

    HTTP Status: 403 Forbidden
    """

    kind = ErrorKind.FORBIDDEN
    status_code = 403
    default_message = "You do not have permission to perform this action"


class InsufficientPermissionsError(AuthorizationError):
    """
    Raised when the caller's role is not granted (resource, action).

    Context carries ``role``, ``resource`` and ``action``.
    """

    default_message = "Insufficient permissions"


# ============================================================================
# Validation Exceptions
# ============================================================================


class ValidationError(AppException):
    """
    Raised when input validation fails.

    HTTP Status: 400 Bad Request
    """

    kind = ErrorKind.VALIDATION_FAILURE
    status_code = 400
    default_message = "Validation failed"


# ============================================================================
# Resource Exceptions
# ============================================================================


class ResourceNotFoundError(AppException):
    """
    Raised when a requested resource doesn't exist in the caller's organization.

    WHY: Records belonging to another organization are reported exactly like
    missing ones so their existence is not disclosed.

    HTTP Status: 404 Not Found
    """

    kind = ErrorKind.NOT_FOUND
    status_code = 404
    default_message = "Resource not found"


class QuotationNotFoundError(ResourceNotFoundError):
    """Raised when a quotation doesn't exist."""

    default_message = "Quotation not found"


class InvoiceNotFoundError(ResourceNotFoundError):
    """Raised when an invoice doesn't exist."""

    default_message = "Invoice not found"


class CustomerNotFoundError(ResourceNotFoundError):
    """Raised when a customer doesn't exist."""

    default_message = "Customer not found"


class VendorNotFoundError(ResourceNotFoundError):
    """Raised when a vendor doesn't exist."""

    default_message = "Vendor not found"


class VendorBillNotFoundError(ResourceNotFoundError):
    """Raised when a vendor bill doesn't exist or belongs to another vendor."""

    default_message = "Vendor bill not found"


class ExpenseCategoryNotFoundError(ResourceNotFoundError):
    """Raised when an expense category doesn't exist."""

    default_message = "Expense category not found"


class ExpenseNotFoundError(ResourceNotFoundError):
    """Raised when an expense doesn't exist."""

    default_message = "Expense not found"


class MemberNotFoundError(ResourceNotFoundError):
    """Raised when a team member doesn't exist."""

    default_message = "Team member not found"


# ============================================================================
# Business Logic Exceptions
# ============================================================================


class InvalidStateTransitionError(AppException):
    """
    Raised when a status change or status-gated operation is not allowed.

    Context carries ``current_state`` and ``requested_state``. The record is
    left untouched when this is raised.

    HTTP Status: 409 Conflict
    """

    kind = ErrorKind.INVALID_TRANSITION
    status_code = 409
    default_message = "Invalid state transition"


class ReferentialIntegrityError(AppException):
    """
    Raised when a delete is blocked because other records still reference
    the target.

    Context carries ``resource_type``, ``resource_id`` and ``reference_count``.

    HTTP Status: 409 Conflict
    """

    kind = ErrorKind.REFERENTIAL_BLOCK
    status_code = 409
    default_message = "Resource is still referenced by other records"


# ============================================================================
# Remote Failures
# ============================================================================


class PersistenceError(AppException):
    """
    Raised when the database rejects or fails an operation.

    HTTP Status: 503 Service Unavailable
    """

    kind = ErrorKind.REMOTE_FAILURE
    status_code = 503
    default_message = "The data store is temporarily unavailable"


class NotificationError(AppException):
    """
    Raised by notification channels (Slack webhook) when delivery fails.

    Callers on the primary flow catch and log this; it never reaches clients.

    HTTP Status: 502 Bad Gateway
    """

    kind = ErrorKind.REMOTE_FAILURE
    status_code = 502
    default_message = "Failed to send notification"
