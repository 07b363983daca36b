"""Ledger errors and standardized error responses.

Every precondition failure inside the ledger raises a LedgerError subclass.
The call boundary in Collection discards any partial effect, so an error
always means "nothing happened". At the edges (HTTP API, CLI) errors are
converted to the ErrorResponse dict so callers can switch on a stable code.

Usage:
    from universal_ledger.ledger.errors import NonexistentToken

    try:
        collection.owner_of(token_id)
    except NonexistentToken as e:
        return e.to_response()
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ErrorCategory(str, Enum):
    """Categories for error classification.

    - VALIDATION: Caller provided bad input
    - PERMISSION: Caller not authorized
    - RESOURCE: Token missing, already transferred, config locked
    """

    VALIDATION = "validation"  # Invalid input, bad arguments
    PERMISSION = "permission"  # Not authorized, wrong owner
    RESOURCE = "resource"  # Not found, state conflict


class ErrorCode(str, Enum):
    """Specific error codes for programmatic handling."""

    # Validation errors
    INVALID_ARGUMENT = "invalid_argument"
    INVALID_RECEIVER = "invalid_receiver"
    INVALID_OPERATOR = "invalid_operator"
    INVALID_OWNER = "invalid_owner"

    # Permission errors
    NOT_OWNER = "not_owner"
    NOT_AUTHORIZED = "not_authorized"
    INVALID_APPROVER = "invalid_approver"

    # Resource errors
    NOT_FOUND = "not_found"
    ALREADY_TRANSFERRED = "already_transferred"
    LOCKED = "locked"
    STATE_CONFLICT = "state_conflict"


@dataclass
class ErrorResponse:
    """Standardized error response.

    All error responses include:
    - success: Always False
    - error: Human-readable message
    - code: Machine-readable error code
    - category: Error category (validation, permission, resource)
    - retriable: Always False for ledger errors; resubmit after fixing input
    - details: Optional additional context
    """

    success: bool = False
    error: str = ""
    code: str = ""
    category: str = ""
    retriable: bool = False
    details: dict[str, object] | None = None

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


def validation_error(
    message: str,
    code: ErrorCode = ErrorCode.INVALID_ARGUMENT,
    **details: object,
) -> dict[str, object]:
    """Create a validation error response for malformed caller input."""
    return ErrorResponse(
        error=message,
        code=code.value,
        category=ErrorCategory.VALIDATION.value,
        details=dict(details) if details else None,
    ).to_dict()


class LedgerError(Exception):
    """Base class for every precondition failure raised by the ledger.

    Subclasses set ``code`` and ``category`` and pass the values identifying
    the failure as keyword details (rendered as strings for token ids so
    256-bit values survive JSON).
    """

    code: ErrorCode = ErrorCode.INVALID_ARGUMENT
    category: ErrorCategory = ErrorCategory.VALIDATION

    def __init__(self, message: str, **details: object) -> None:
        self.message = message
        self.details = details
        super().__init__(message)

    def to_response(self) -> dict[str, object]:
        """Convert to the standardized ErrorResponse dict."""
        return ErrorResponse(
            error=self.message,
            code=self.code.value,
            category=self.category.value,
            details={
                k: str(v) if isinstance(v, int) and not isinstance(v, bool) else v
                for k, v in self.details.items()
            } or None,
        ).to_dict()


class NonexistentToken(LedgerError):
    """Token has no resolvable owner: burned, or zero seed and never transferred."""

    code = ErrorCode.NOT_FOUND
    category = ErrorCategory.RESOURCE

    def __init__(self, token_id: int) -> None:
        self.token_id = token_id
        super().__init__(f"Nonexistent token: {token_id}", token_id=token_id)


class InvalidReceiver(LedgerError):
    """Destination is the zero address, or a receiver hook rejected the token."""

    code = ErrorCode.INVALID_RECEIVER
    category = ErrorCategory.VALIDATION

    def __init__(self, receiver: str) -> None:
        self.receiver = receiver
        super().__init__(f"Invalid receiver: {receiver}", receiver=receiver)


class InsufficientApproval(LedgerError):
    """Caller is neither owner, approved account, nor operator for the token."""

    code = ErrorCode.NOT_AUTHORIZED
    category = ErrorCategory.PERMISSION

    def __init__(self, operator: str, token_id: int) -> None:
        self.operator = operator
        self.token_id = token_id
        super().__init__(
            f"{operator} lacks approval for token {token_id}",
            operator=operator,
            token_id=token_id,
        )


class InvalidApprover(LedgerError):
    """Caller tried to approve a token it neither owns nor operates."""

    code = ErrorCode.INVALID_APPROVER
    category = ErrorCategory.PERMISSION

    def __init__(self, approver: str) -> None:
        self.approver = approver
        super().__init__(f"Invalid approver: {approver}", approver=approver)


class InvalidOperator(LedgerError):
    """Operator approval requested for the zero address."""

    code = ErrorCode.INVALID_OPERATOR
    category = ErrorCategory.VALIDATION

    def __init__(self, operator: str) -> None:
        self.operator = operator
        super().__init__(f"Invalid operator: {operator}", operator=operator)


class AlreadyTransferred(LedgerError):
    """Broadcast attempted on a token that has left the virtual state."""

    code = ErrorCode.ALREADY_TRANSFERRED
    category = ErrorCategory.RESOURCE

    def __init__(self, token_id: int) -> None:
        self.token_id = token_id
        super().__init__(
            f"Token {token_id} was already transferred or burned",
            token_id=token_id,
        )


class BaseURIAlreadyLocked(LedgerError):
    """Mutation attempted on locked metadata configuration."""

    code = ErrorCode.LOCKED
    category = ErrorCategory.RESOURCE

    def __init__(self) -> None:
        super().__init__("Base URI is locked")


class UnauthorizedAccount(LedgerError):
    """Non-admin attempted an admin-only operation."""

    code = ErrorCode.NOT_OWNER
    category = ErrorCategory.PERMISSION

    def __init__(self, account: str) -> None:
        self.account = account
        super().__init__(f"Unauthorized account: {account}", account=account)


class InvalidOwner(LedgerError):
    """Admin role handed to the zero address."""

    code = ErrorCode.INVALID_OWNER
    category = ErrorCategory.VALIDATION

    def __init__(self, owner: str) -> None:
        self.owner = owner
        super().__init__(f"Invalid owner: {owner}", owner=owner)


class StateFileConflict(LedgerError):
    """State file was saved by another process after this copy was loaded."""

    code = ErrorCode.STATE_CONFLICT
    category = ErrorCategory.RESOURCE

    def __init__(self, path: str, expected: int, found: int) -> None:
        self.path = path
        super().__init__(
            f"State file {path} is at revision {found}, expected {expected}; reload and retry",
            path=path,
            expected=expected,
            found=found,
        )
