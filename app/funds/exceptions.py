"""
Fund ledger exceptions.

Exception Hierarchy:
    FundsError (base)
    ├── InsufficientFunds - Source account balance too low for a transfer
    └── ImmutableMovementError - Attempt to update or delete a movement
    AccountNotFound (core NotFoundError) - Account lookup failures
    MovementNotFound (core NotFoundError) - Movement lookup failures

Validation failures use core.exceptions.ValidationError and store
failures use core.exceptions.StoreError.

Usage:
    from funds.exceptions import AccountNotFound, InsufficientFunds

    try:
        movements.transfer(cash.id, bank.id, Decimal("300"))
    except InsufficientFunds as e:
        print(f"Need {e.required}, have {e.available}")
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from core.exceptions import BaseApplicationError, NotFoundError

if TYPE_CHECKING:
    from decimal import Decimal
    from typing import Any


class FundsError(BaseApplicationError):
    """Base exception for fund ledger rule violations."""

    default_error_code: str = "FUNDS_ERROR"


class AccountNotFound(NotFoundError):
    """
    Raised when a fund account does not exist.

    Example:
        raise AccountNotFound(
            f"Account {account_id} not found",
            details={"account_id": account_id, "operation": "transfer"},
        )
    """

    default_error_code: str = "ACCOUNT_NOT_FOUND"


class MovementNotFound(NotFoundError):
    """Raised when a movement does not exist or is of another type."""

    default_error_code: str = "MOVEMENT_NOT_FOUND"


class InsufficientFunds(FundsError):
    """
    Raised when a transfer source account cannot cover the amount.

    The check runs under a row lock inside the transfer transaction, so
    this can also be raised for a transfer that would have passed a
    check made a moment earlier. Callers retry by re-submitting the
    whole transfer.

    Attributes:
        account_id: Id of the account with insufficient funds
        required: Amount that was required
        available: Balance that was available
    """

    default_error_code: str = "INSUFFICIENT_FUNDS"

    def __init__(
        self,
        account_id: int,
        required: Decimal,
        available: Decimal,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        """
        Initialize with account details and amounts.

        Args:
            account_id: Id of the account with insufficient funds
            required: Amount required
            available: Balance available
            error_code: Optional custom error code
            details: Optional additional error context
        """
        self.account_id = account_id
        self.required = required
        self.available = available

        message = (
            f"Account {account_id} has insufficient funds: "
            f"required {required}, available {available}"
        )

        full_details = {
            "account_id": account_id,
            "required": str(required),
            "available": str(available),
        }
        if details:
            full_details.update(details)

        super().__init__(
            message=message,
            error_code=error_code,
            details=full_details,
        )


class ImmutableMovementError(FundsError):
    """
    Raised when code tries to modify or delete a recorded movement.

    The movement log is append-only; corrections are new movements.
    """

    default_error_code: str = "IMMUTABLE_MOVEMENT"
