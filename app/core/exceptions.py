"""
Base exception classes for application-wide error handling.

This module provides a standardized exception hierarchy that enables:
- Consistent error responses across the API
- Machine-readable error codes for client handling
- Structured details (operation, account ids, amounts) for logging

Exception Hierarchy:
    BaseApplicationError (base)
    ├── ValidationError - Caller-supplied parameters violate a precondition
    ├── NotFoundError - Referenced record does not exist
    └── StoreError - Database unavailable or transaction failed to commit

Usage:
    from core.exceptions import ValidationError, NotFoundError

    # Raise with message only
    raise ValidationError("Account name is required")

    # Raise with error code and details
    raise ValidationError(
        "Amount must be positive",
        error_code="INVALID_AMOUNT",
        details={"operation": "transfer", "amount": "-5.00"},
    )

    # Convert to dict for API response
    try:
        ...
    except BaseApplicationError as e:
        return Response(e.to_dict(), status=400)

Note:
    These exceptions are for domain/business logic errors.
    DRF handles API-layer exceptions (serialization, authentication, etc.).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from typing import Any


class BaseApplicationError(Exception):
    """
    Base exception for all application-specific errors.

    Attributes:
        message: Human-readable error description
        error_code: Machine-readable code for client-side handling
        details: Additional error context (operation, ids, amounts)

    Example:
        try:
            account = accounts.get_account(account_id)
        except NotFoundError as e:
            logger.warning(f"Account lookup failed: {e.error_code}")
            return Response(e.to_dict(), status=404)
    """

    default_error_code: str = "APPLICATION_ERROR"

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        """
        Initialize the exception.

        Args:
            message: Human-readable error description
            error_code: Machine-readable error code (defaults to class default)
            details: Additional error context
        """
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert exception to dictionary for API response.

        Example:
            {
                "error": "Account 42 not found",
                "error_code": "ACCOUNT_NOT_FOUND",
                "details": {"account_id": 42}
            }
        """
        return {
            "error": self.message,
            "error_code": self.error_code,
            "details": self.details,
        }

    def __str__(self) -> str:
        """Return string representation with error code."""
        return f"[{self.error_code}] {self.message}"

    def __repr__(self) -> str:
        """Return detailed representation for debugging."""
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code!r}, "
            f"details={self.details!r})"
        )


class ValidationError(BaseApplicationError):
    """
    Raised when caller-supplied parameters violate a precondition.

    Use for:
    - Missing required fields (account name, origin)
    - Non-positive or non-numeric amounts
    - Identical source and destination accounts

    Never retried; the HTTP layer answers 400.

    Note:
        For request-shape validation, use DRF serializers.
        Use this for service-layer validation logic.
    """

    default_error_code: str = "VALIDATION_ERROR"


class NotFoundError(BaseApplicationError):
    """
    Raised when a referenced record does not exist.

    Use NotFoundError for single-record lookups where existence is
    expected. List queries return empty results instead.
    """

    default_error_code: str = "NOT_FOUND"


class StoreError(BaseApplicationError):
    """
    Raised when the database is unavailable or a transaction fails.

    Wraps django.db.DatabaseError raised inside a service operation. The
    operation's transaction has already been rolled back when this is
    raised, so callers may re-submit the whole operation.

    Example:
        try:
            with transaction.atomic():
                ...
        except DatabaseError as exc:
            raise StoreError(
                "Could not record movement",
                details={"operation": "register_movement"},
            ) from exc
    """

    default_error_code: str = "STORE_ERROR"
