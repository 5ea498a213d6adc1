"""
Domain exceptions for the accounts backend.

Every exception carries a stable error code, a failure kind (the category a
caller switches on), a human-readable message and an optional details dict.
The crud layer raises them; main.py maps them onto HTTP responses.
"""
from typing import Optional


class LedgerException(Exception):
    """Base exception for all accounts backend errors."""

    error_code: str = "ERR_LEDGER_GENERIC"
    kind: str = "LedgerError"
    status_code: int = 500
    default_message: str = "An error occurred in the accounts system."

    def __init__(self, message: Optional[str] = None, details: Optional[dict] = None) -> None:
        """
        Initialize the exception.

        Args:
            message: Custom error message. If None, uses default_message.
            details: Additional context dictionary for the caller.
        """
        self.message = message or self.default_message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict:
        """Convert exception to dictionary for API responses."""
        return {
            "status": "error",
            "kind": self.kind,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
        }


# Validation
class LedgerValidationError(LedgerException):
    """Raised when caller input is malformed or violates a posting rule."""

    error_code = "ERR_VALIDATION"
    kind = "ValidationError"
    status_code = 400
    default_message = "The request data is invalid."


class UnbalancedVoucher(LedgerValidationError):
    """Raised when a voucher's debits and credits do not match."""

    error_code = "ERR_UNBALANCED_VOUCHER"
    default_message = "Total debit must equal total credit."


class MissingPrimaryAccount(LedgerValidationError):
    """Raised when a receipt/payment/contra voucher has no cash or bank account."""

    error_code = "ERR_MISSING_PRIMARY_ACCOUNT"
    default_message = "This voucher type requires a cash or bank account."


# Lookup
class RecordNotFound(LedgerException):
    """Raised when a record does not exist or is not visible to the caller."""

    error_code = "ERR_NOT_FOUND"
    kind = "NotFound"
    status_code = 404
    default_message = "The requested record was not found."


class InvalidAccountReference(RecordNotFound):
    """Raised when a voucher line points at an unknown or invisible account."""

    error_code = "ERR_INVALID_ACCOUNT_REFERENCE"
    status_code = 400
    default_message = "Voucher references an account that does not exist."


# Mutation guards
class ProtectedRecord(LedgerException):
    """Raised when a default or system-generated record is modified."""

    error_code = "ERR_PROTECTED_RECORD"
    kind = "ProtectedRecord"
    status_code = 409
    default_message = "This record is protected and cannot be modified."


class DuplicateCode(LedgerException):
    """Raised when an account code is already used within the owner scope."""

    error_code = "ERR_DUPLICATE_CODE"
    kind = "DuplicateCode"
    status_code = 409
    default_message = "Account code already exists."


# Identity
class Unauthorized(LedgerException):
    """Raised when the caller's identity cannot be resolved."""

    error_code = "ERR_UNAUTHORIZED"
    kind = "Unauthorized"
    status_code = 401
    default_message = "Unauthorized."


# Storage
class InfrastructureError(LedgerException):
    """Raised when the backing store fails (connection loss, constraint violation)."""

    error_code = "ERR_INFRASTRUCTURE"
    kind = "InfrastructureError"
    status_code = 503
    default_message = "The accounts service is temporarily unavailable."
