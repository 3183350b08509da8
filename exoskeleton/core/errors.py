"""Standardized errors for ledger operations.

Every rejected mutation raises a LedgerError subclass carrying a
machine-readable code and category, so callers (and the read API) can
switch on the failure without parsing messages.

- InvalidOperation: validation, permission and resource rejections.
  Always raised before any state is touched.
- TransferFailed: an outbound payment was refused by its recipient.
  The enclosing operation is rolled back as a whole.

Usage:
    from exoskeleton.core.errors import ErrorCode, invalid

    raise invalid("name too long", ErrorCode.NAME_TOO_LONG, max_length=32)
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ErrorCategory(str, Enum):
    """Categories for error classification.

    - VALIDATION: Caller provided bad input
    - PERMISSION: Caller not authorized
    - RESOURCE: Referenced record missing, exists already, or exhausted
    - TRANSFER: Outbound value transfer refused
    - SYSTEM: Internal error
    """

    VALIDATION = "validation"
    PERMISSION = "permission"
    RESOURCE = "resource"
    TRANSFER = "transfer"
    SYSTEM = "system"


class ErrorCode(str, Enum):
    """Specific error codes for programmatic handling."""

    # Validation errors
    INVALID_ARGUMENT = "invalid_argument"
    ZERO_ADDRESS = "zero_address"
    EMPTY_KEY = "empty_key"
    NAME_TOO_LONG = "name_too_long"
    VALUE_TOO_LARGE = "value_too_large"
    INSUFFICIENT_PAYMENT = "insufficient_payment"
    UNEXPECTED_PAYMENT = "unexpected_payment"
    REENTRANT_CALL = "reentrant_call"

    # Permission errors
    NOT_OWNER = "not_owner"
    NOT_ADMIN = "not_admin"
    NOT_WHITELISTED = "not_whitelisted"
    SCORER_NOT_ALLOWED = "scorer_not_allowed"
    INSUFFICIENT_FUNDS = "insufficient_funds"

    # Resource errors
    NOT_FOUND = "not_found"
    NAME_TAKEN = "name_taken"
    MINT_PAUSED = "mint_paused"
    MINT_LIMIT_REACHED = "mint_limit_reached"
    MODULE_NOT_FOUND = "module_not_found"
    MODULE_ALREADY_REGISTERED = "module_already_registered"
    MODULE_ALREADY_ACTIVE = "module_already_active"
    MODULE_NOT_ACTIVE = "module_not_active"
    MODULE_CAPACITY_REACHED = "module_capacity_reached"

    # Transfer errors
    TRANSFER_REFUSED = "transfer_refused"

    # System errors
    INTERNAL_ERROR = "internal_error"


_CATEGORY_BY_CODE: dict[ErrorCode, ErrorCategory] = {
    ErrorCode.NOT_OWNER: ErrorCategory.PERMISSION,
    ErrorCode.NOT_ADMIN: ErrorCategory.PERMISSION,
    ErrorCode.NOT_WHITELISTED: ErrorCategory.PERMISSION,
    ErrorCode.SCORER_NOT_ALLOWED: ErrorCategory.PERMISSION,
    ErrorCode.INSUFFICIENT_FUNDS: ErrorCategory.PERMISSION,
    ErrorCode.NOT_FOUND: ErrorCategory.RESOURCE,
    ErrorCode.NAME_TAKEN: ErrorCategory.RESOURCE,
    ErrorCode.MINT_PAUSED: ErrorCategory.RESOURCE,
    ErrorCode.MINT_LIMIT_REACHED: ErrorCategory.RESOURCE,
    ErrorCode.MODULE_NOT_FOUND: ErrorCategory.RESOURCE,
    ErrorCode.MODULE_ALREADY_REGISTERED: ErrorCategory.RESOURCE,
    ErrorCode.MODULE_ALREADY_ACTIVE: ErrorCategory.RESOURCE,
    ErrorCode.MODULE_NOT_ACTIVE: ErrorCategory.RESOURCE,
    ErrorCode.MODULE_CAPACITY_REACHED: ErrorCategory.RESOURCE,
    ErrorCode.TRANSFER_REFUSED: ErrorCategory.TRANSFER,
    ErrorCode.INTERNAL_ERROR: ErrorCategory.SYSTEM,
}


def category_for(code: ErrorCode) -> ErrorCategory:
    """Category of an error code (validation unless listed otherwise)."""
    return _CATEGORY_BY_CODE.get(code, ErrorCategory.VALIDATION)


@dataclass
class ErrorResponse:
    """Standardized error response.

    All error responses include:
    - success: Always False
    - error: Human-readable message
    - code: Machine-readable error code
    - category: Error category (validation, permission, etc.)
    - retriable: Whether the operation should be retried
    - details: Optional additional context
    """

    success: bool = False  # Always False for errors
    error: str = ""  # Human-readable message
    code: str = ""  # Machine-readable error code
    category: str = ""  # Error category (validation, permission, etc.)
    retriable: bool = False  # Whether the operation should be retried
    details: dict[str, object] | None = None  # Optional additional context

    def to_dict(self) -> dict[str, object]:
        """Convert to dictionary for serialization."""
        result: dict[str, object] = {
            "success": self.success,
            "error": self.error,
            "code": self.code,
            "category": self.category,
            "retriable": self.retriable,
        }
        if self.details:
            result["details"] = self.details
        return result


class LedgerError(Exception):
    """Base class for rejected ledger operations."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        **details: object,
    ) -> None:
        self.message = message
        self.code = code
        self.category = category_for(code)
        self.details = dict(details)
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to the serializable error response shape."""
        return ErrorResponse(
            error=self.message,
            code=self.code.value,
            category=self.category.value,
            retriable=False,
            details=self.details or None,
        )


class InvalidOperation(LedgerError):
    """Raised when an operation is rejected before any state changes."""


class TransferFailed(LedgerError):
    """Raised when a payment recipient refuses an outbound transfer."""

    def __init__(self, recipient: str, amount: int, reason: str) -> None:
        super().__init__(
            f"Transfer of {amount} to {recipient} refused: {reason}",
            ErrorCode.TRANSFER_REFUSED,
            recipient=recipient,
            amount=amount,
        )
        self.recipient = recipient
        self.amount = amount


# Factory functions


def invalid(
    message: str,
    code: ErrorCode = ErrorCode.INVALID_ARGUMENT,
    **details: object,
) -> InvalidOperation:
    """Create an InvalidOperation for the caller to raise.

    Args:
        message: Human-readable error message
        code: Specific error code (default: INVALID_ARGUMENT)
        **details: Additional context (e.g., max_length=32)
    """
    return InvalidOperation(message, code, **details)


def not_found(kind: str, key: object) -> InvalidOperation:
    """Create a NOT_FOUND error for a missing record."""
    return InvalidOperation(f"{kind} {key!r} not found", ErrorCode.NOT_FOUND, key=str(key))
