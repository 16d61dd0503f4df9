"""
Fund ledger service layer.

This module provides the two services that own every write to the fund
ledger:

- AccountLedger: account creation, lookup and the balance primitive
- MovementRecorder: movement registration, movement queries and transfers

Balances change only together with the movement that explains the
change, inside one transaction. Errors are raised as core/funds
exceptions; database failures surface as core.exceptions.StoreError.

Usage:
    from decimal import Decimal
    from funds.services import accounts, movements

    cash = accounts.create_account("Caja", Decimal("1000"))
    bank = accounts.create_account("Banco")

    result = movements.transfer(cash.id, bank.id, Decimal("300"))
    movements.register_movement(cash.id, "INGRESO", "cobro", Decimal("150"))
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import TYPE_CHECKING

from django.db import DEFAULT_DB_ALIAS, DatabaseError
from django.db.models import CharField, F, Q
from django.db.models.functions import Cast, Now
from django.db.transaction import TransactionManagementError

from core.exceptions import StoreError, ValidationError
from core.services import BaseService

from .exceptions import AccountNotFound, InsufficientFunds, MovementNotFound
from .models import (
    AMOUNT_DECIMAL_PLACES,
    AMOUNT_MAX_DIGITS,
    FundAccount,
    FundMovement,
    MovementOrigin,
    MovementType,
)
from .types import BalanceCheck, MovementFilters, TransferResult

if TYPE_CHECKING:
    from typing import Any

    from django.db.models import QuerySet

DEFAULT_MOVEMENT_LIMIT = 100

_CENT = Decimal(1).scaleb(-AMOUNT_DECIMAL_PLACES)
_AMOUNT_CEILING = Decimal(10) ** (AMOUNT_MAX_DIGITS - AMOUNT_DECIMAL_PLACES)


def _to_amount(value: Any, *, field: str, operation: str) -> Decimal:
    """
    Coerce a caller-supplied amount to a Decimal with two places.

    Accepts Decimal, int, float and numeric strings. Booleans and
    non-finite values are rejected.

    Raises:
        ValidationError: If the value is not a usable amount
    """
    details = {"operation": operation, "field": field, "value": str(value)}

    if value is None or isinstance(value, bool):
        raise ValidationError(
            f"{field} must be a number",
            error_code="INVALID_AMOUNT",
            details=details,
        )

    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError, TypeError):
        raise ValidationError(
            f"{field} must be a number",
            error_code="INVALID_AMOUNT",
            details=details,
        )

    if not amount.is_finite():
        raise ValidationError(
            f"{field} must be a finite number",
            error_code="INVALID_AMOUNT",
            details=details,
        )

    # Range check first: quantize() fails on values past the context precision
    if abs(amount) < _AMOUNT_CEILING:
        amount = amount.quantize(_CENT, rounding=ROUND_HALF_UP)
    if abs(amount) >= _AMOUNT_CEILING:
        raise ValidationError(
            f"{field} is out of range",
            error_code="INVALID_AMOUNT",
            details=details,
        )
    return amount


def _to_positive_amount(value: Any, *, field: str, operation: str) -> Decimal:
    amount = _to_amount(value, field=field, operation=operation)
    if amount <= 0:
        raise ValidationError(
            f"{field} must be greater than zero",
            error_code="INVALID_AMOUNT",
            details={"operation": operation, "field": field, "value": str(amount)},
        )
    return amount


def _to_id(value: Any, *, field: str, operation: str) -> int:
    """Coerce a record id; ids are positive integers."""
    if isinstance(value, bool):
        value = None
    try:
        record_id = int(value)
    except (TypeError, ValueError):
        record_id = 0
    if record_id <= 0 or str(record_id) != str(value).strip():
        raise ValidationError(
            f"{field} must be a positive integer",
            error_code="INVALID_ID",
            details={"operation": operation, "field": field, "value": str(value)},
        )
    return record_id


class AccountLedger(BaseService):
    """
    Service for fund accounts.

    Owns account creation and the single primitive that changes a
    balance. adjust_balance() must run inside the transaction of the
    operation that records the matching movement.
    """

    def list_accounts(self) -> list[FundAccount]:
        """
        Return every account ordered by id.

        Raises:
            StoreError: If the database cannot be read
        """
        try:
            return list(FundAccount.objects.using(self.using).order_by("id"))
        except DatabaseError as e:
            self.get_logger().error(f"Failed to list accounts: {e}", exc_info=True)
            raise StoreError(
                "Could not read accounts",
                details={"operation": "list_accounts"},
            ) from e

    def list_account_names(self) -> list[str]:
        """Return the distinct account names in alphabetical order."""
        try:
            return list(
                FundAccount.objects.using(self.using)
                .order_by("name")
                .values_list("name", flat=True)
                .distinct()
            )
        except DatabaseError as e:
            self.get_logger().error(
                f"Failed to list account names: {e}", exc_info=True
            )
            raise StoreError(
                "Could not read accounts",
                details={"operation": "list_account_names"},
            ) from e

    def create_account(
        self,
        name: str,
        initial_balance: Any = Decimal("0"),
    ) -> FundAccount:
        """
        Create an account.

        Names are not unique. The initial balance is stored as the
        account's opening balance; no movement is recorded for it.

        Args:
            name: Display name, surrounding whitespace is stripped
            initial_balance: Opening balance, may be negative (default: 0)

        Returns:
            The new FundAccount

        Raises:
            ValidationError: If the name is blank or the balance is not numeric
            StoreError: If the account cannot be stored
        """
        if not isinstance(name, str) or not name.strip():
            raise ValidationError(
                "Account name is required",
                error_code="ACCOUNT_NAME_REQUIRED",
                details={"operation": "create_account"},
            )
        name = name.strip()
        if len(name) > FundAccount._meta.get_field("name").max_length:
            raise ValidationError(
                "Account name is too long",
                error_code="ACCOUNT_NAME_TOO_LONG",
                details={"operation": "create_account", "name": name},
            )

        balance = _to_amount(
            initial_balance, field="initial_balance", operation="create_account"
        )

        try:
            with self.atomic():
                account = FundAccount.objects.using(self.using).create(
                    name=name,
                    opening_balance=balance,
                    balance=balance,
                )
        except DatabaseError as e:
            self.get_logger().error(
                f"Failed to create account {name!r}: {e}", exc_info=True
            )
            raise StoreError(
                "Could not create account",
                details={"operation": "create_account", "name": name},
            ) from e

        self.get_logger().info(
            f"Created account {account.id} ({account.name}) "
            f"with opening balance {account.balance}"
        )
        return account

    def get_account(self, account_id: int) -> FundAccount:
        """
        Get an account by id.

        Raises:
            AccountNotFound: If the account doesn't exist
            StoreError: If the database cannot be read
        """
        account_id = _to_id(account_id, field="account_id", operation="get_account")
        try:
            return FundAccount.objects.using(self.using).get(id=account_id)
        except FundAccount.DoesNotExist:
            raise AccountNotFound(
                f"Account {account_id} not found",
                details={"account_id": account_id, "operation": "get_account"},
            )
        except DatabaseError as e:
            raise StoreError(
                "Could not read account",
                details={"account_id": account_id, "operation": "get_account"},
            ) from e

    def lock_accounts(self, account_ids: list[int]) -> dict[int, FundAccount]:
        """
        Lock account rows for the rest of the current transaction.

        Rows are locked in id order so that concurrent callers always
        acquire them in the same sequence. Missing ids are simply absent
        from the result.
        """
        return {
            account.id: account
            for account in FundAccount.objects.using(self.using)
            .select_for_update()
            .filter(id__in=account_ids)
            .order_by("id")
        }

    def adjust_balance(self, account_id: int, delta: Decimal) -> None:
        """
        Add a signed delta to an account balance.

        The increment is computed by the database (balance = balance + delta),
        never read-modify-write.

        Raises:
            TransactionManagementError: If called outside a transaction
            AccountNotFound: If the account doesn't exist
        """
        if not self.in_atomic_block():
            raise TransactionManagementError(
                "adjust_balance() must run inside the transaction that "
                "records the matching movement"
            )

        updated = (
            FundAccount.objects.using(self.using)
            .filter(id=account_id)
            .update(balance=F("balance") + delta, updated_at=Now())
        )
        if not updated:
            raise AccountNotFound(
                f"Account {account_id} not found",
                details={
                    "account_id": account_id,
                    "delta": str(delta),
                    "operation": "adjust_balance",
                },
            )


class MovementRecorder(BaseService):
    """
    Service for movements and transfers.

    Every write locks the affected account rows, inserts the movement(s)
    and adjusts the balance(s) through AccountLedger in one transaction.
    """

    def __init__(
        self,
        accounts: AccountLedger | None = None,
        using: str = DEFAULT_DB_ALIAS,
    ):
        """
        Args:
            accounts: Ledger used for balance changes, bound to the same
                alias (default: a new AccountLedger on `using`)
            using: Key into settings.DATABASES
        """
        super().__init__(using=using)
        self.accounts = accounts if accounts is not None else AccountLedger(using)

    def register_movement(
        self,
        account_id: int,
        movement_type: str,
        origin: str,
        amount: Any,
        reference_id: int | None = None,
    ) -> FundMovement:
        """
        Record one inflow or outflow and apply it to the account balance.

        Expenses are not checked against the balance; only transfers
        require funds.

        Args:
            account_id: Account the movement belongs to
            movement_type: "INGRESO" or "EGRESO"
            origin: Free-text classification, e.g. "cobro"
            amount: Positive amount
            reference_id: Optional id of a related record

        Returns:
            The created FundMovement

        Raises:
            ValidationError: If a parameter is invalid
            AccountNotFound: If the account doesn't exist
            StoreError: If the movement cannot be stored
        """
        operation = "register_movement"
        account_id = _to_id(account_id, field="account_id", operation=operation)

        if movement_type not in MovementType.values:
            raise ValidationError(
                f"Invalid movement type {movement_type!r}",
                error_code="INVALID_MOVEMENT_TYPE",
                details={
                    "operation": operation,
                    "movement_type": str(movement_type),
                    "allowed": list(MovementType.values),
                },
            )

        if not isinstance(origin, str) or not origin.strip():
            raise ValidationError(
                "Movement origin is required",
                error_code="ORIGIN_REQUIRED",
                details={"operation": operation, "account_id": account_id},
            )
        origin = origin.strip()
        if len(origin) > FundMovement._meta.get_field("origin").max_length:
            raise ValidationError(
                "Movement origin is too long",
                error_code="ORIGIN_TOO_LONG",
                details={"operation": operation, "account_id": account_id},
            )

        if reference_id is not None:
            reference_id = _to_id(
                reference_id, field="reference_id", operation=operation
            )

        amount = _to_positive_amount(amount, field="amount", operation=operation)
        delta = amount if movement_type == MovementType.INGRESO else -amount

        try:
            with self.atomic():
                locked = self.accounts.lock_accounts([account_id])
                if account_id not in locked:
                    raise AccountNotFound(
                        f"Account {account_id} not found",
                        details={
                            "account_id": account_id,
                            "amount": str(amount),
                            "operation": operation,
                        },
                    )

                movement = FundMovement.objects.using(self.using).create(
                    account=locked[account_id],
                    movement_type=movement_type,
                    origin=origin,
                    amount=amount,
                    reference_id=reference_id,
                )
                self.accounts.adjust_balance(account_id, delta)
        except DatabaseError as e:
            self.get_logger().error(
                f"Failed to register {movement_type} of {amount} "
                f"on account {account_id}: {e}",
                exc_info=True,
            )
            raise StoreError(
                "Could not register movement",
                details={
                    "account_id": account_id,
                    "movement_type": movement_type,
                    "amount": str(amount),
                    "operation": operation,
                },
            ) from e

        self.get_logger().info(
            f"Registered {movement_type} {movement.id} of {amount} "
            f"on account {account_id} ({origin})"
        )
        return movement

    def register_income(
        self,
        account_id: int,
        amount: Any,
        origin: str = MovementOrigin.MANUAL_INCOME,
        reference_id: int | None = None,
    ) -> FundMovement:
        """Record an INGRESO; origin defaults to "ingreso manual"."""
        return self.register_movement(
            account_id, MovementType.INGRESO, origin, amount, reference_id
        )

    def register_expense(
        self,
        account_id: int,
        amount: Any,
        origin: str = MovementOrigin.MANUAL_EXPENSE,
        reference_id: int | None = None,
    ) -> FundMovement:
        """Record an EGRESO; origin defaults to "egreso manual"."""
        return self.register_movement(
            account_id, MovementType.EGRESO, origin, amount, reference_id
        )

    def list_movements(
        self,
        filters: MovementFilters | None = None,
        limit: int = DEFAULT_MOVEMENT_LIMIT,
    ) -> list[FundMovement]:
        """
        List movements matching every given filter, newest first.

        Dates are compared by calendar day, both ends inclusive. The
        search text is matched as a case-insensitive substring against
        the origin and the reference id.

        Args:
            filters: Optional MovementFilters (default: no filtering)
            limit: Maximum number of movements to return (default: 100)

        Returns:
            List of FundMovement with their account preloaded

        Raises:
            ValidationError: If the limit or a filter value is invalid
            StoreError: If the database cannot be read
        """
        operation = "list_movements"
        filters = filters or MovementFilters()

        if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
            raise ValidationError(
                "Limit must be a positive integer",
                error_code="INVALID_LIMIT",
                details={"operation": operation, "limit": str(limit)},
            )

        queryset: QuerySet[FundMovement] = FundMovement.objects.using(
            self.using
        ).select_related("account")

        if filters.account_id is not None:
            queryset = queryset.filter(
                account_id=_to_id(
                    filters.account_id, field="account_id", operation=operation
                )
            )

        if filters.movement_type is not None:
            if filters.movement_type not in MovementType.values:
                raise ValidationError(
                    f"Invalid movement type {filters.movement_type!r}",
                    error_code="INVALID_MOVEMENT_TYPE",
                    details={
                        "operation": operation,
                        "movement_type": str(filters.movement_type),
                    },
                )
            queryset = queryset.filter(movement_type=filters.movement_type)

        if filters.date_from is not None:
            queryset = queryset.filter(created_at__date__gte=filters.date_from)
        if filters.date_to is not None:
            queryset = queryset.filter(created_at__date__lte=filters.date_to)

        if filters.search:
            queryset = queryset.annotate(
                reference_text=Cast("reference_id", output_field=CharField())
            ).filter(
                Q(origin__icontains=filters.search)
                | Q(reference_text__icontains=filters.search)
            )

        try:
            return list(queryset.order_by("-created_at", "-id")[:limit])
        except DatabaseError as e:
            self.get_logger().error(f"Failed to list movements: {e}", exc_info=True)
            raise StoreError(
                "Could not read movements",
                details={"operation": operation},
            ) from e

    def get_movement(
        self,
        movement_id: int,
        movement_type: str | None = None,
    ) -> FundMovement:
        """
        Get one movement with its account.

        Args:
            movement_id: Id of the movement
            movement_type: If given, the movement must be of this type

        Raises:
            MovementNotFound: If absent or of another type
            StoreError: If the database cannot be read
        """
        movement_id = _to_id(
            movement_id, field="movement_id", operation="get_movement"
        )
        queryset = FundMovement.objects.using(self.using).select_related("account")
        if movement_type is not None:
            queryset = queryset.filter(movement_type=movement_type)

        try:
            return queryset.get(id=movement_id)
        except FundMovement.DoesNotExist:
            details: dict[str, Any] = {
                "movement_id": movement_id,
                "operation": "get_movement",
            }
            if movement_type is not None:
                details["movement_type"] = movement_type
            raise MovementNotFound(f"Movement {movement_id} not found", details=details)
        except DatabaseError as e:
            raise StoreError(
                "Could not read movement",
                details={"movement_id": movement_id, "operation": "get_movement"},
            ) from e

    def transfer(
        self,
        source_account_id: int,
        dest_account_id: int,
        amount: Any,
    ) -> TransferResult:
        """
        Move funds between two accounts.

        Records an EGRESO on the source and an INGRESO on the destination
        whose reference_id is the EGRESO id, and adjusts both balances.
        Either all four writes commit or none do. The funds check is made
        against the locked source row.

        Args:
            source_account_id: Account to debit
            dest_account_id: Account to credit
            amount: Positive amount to move

        Returns:
            TransferResult with both movement ids

        Raises:
            ValidationError: If the accounts are the same or the amount is invalid
            AccountNotFound: If either account doesn't exist
            InsufficientFunds: If the source balance is below the amount
            StoreError: If the transfer cannot be stored

        Example:
            result = movements.transfer(cash.id, bank.id, Decimal("300"))
            result.outflow_movement_id  # EGRESO on cash
        """
        operation = "transfer"
        source_account_id = _to_id(
            source_account_id, field="source_account_id", operation=operation
        )
        dest_account_id = _to_id(
            dest_account_id, field="dest_account_id", operation=operation
        )

        if source_account_id == dest_account_id:
            raise ValidationError(
                "Source and destination accounts must be different",
                error_code="SAME_ACCOUNT_TRANSFER",
                details={
                    "operation": operation,
                    "source_account_id": source_account_id,
                    "dest_account_id": dest_account_id,
                },
            )

        amount = _to_positive_amount(amount, field="amount", operation=operation)
        details = {
            "operation": operation,
            "source_account_id": source_account_id,
            "dest_account_id": dest_account_id,
            "amount": str(amount),
        }

        try:
            with self.atomic():
                locked = self.accounts.lock_accounts(
                    [source_account_id, dest_account_id]
                )

                for role, account_id in (
                    ("source", source_account_id),
                    ("destination", dest_account_id),
                ):
                    if account_id not in locked:
                        raise AccountNotFound(
                            f"{role.capitalize()} account {account_id} not found",
                            details={**details, "account_id": account_id, "role": role},
                        )

                source = locked[source_account_id]
                if source.balance < amount:
                    raise InsufficientFunds(
                        account_id=source_account_id,
                        required=amount,
                        available=source.balance,
                        details={
                            "operation": operation,
                            "dest_account_id": dest_account_id,
                        },
                    )

                outflow = FundMovement.objects.using(self.using).create(
                    account=source,
                    movement_type=MovementType.EGRESO,
                    origin=MovementOrigin.TRANSFER,
                    amount=amount,
                )
                inflow = FundMovement.objects.using(self.using).create(
                    account=locked[dest_account_id],
                    movement_type=MovementType.INGRESO,
                    origin=MovementOrigin.TRANSFER,
                    amount=amount,
                    reference_id=outflow.id,
                )

                self.accounts.adjust_balance(source_account_id, -amount)
                self.accounts.adjust_balance(dest_account_id, amount)
        except DatabaseError as e:
            self.get_logger().error(
                f"Transfer of {amount} from account {source_account_id} "
                f"to account {dest_account_id} failed: {e}",
                exc_info=True,
            )
            raise StoreError("Could not complete transfer", details=details) from e

        self.get_logger().info(
            f"Transferred {amount} from account {source_account_id} "
            f"to account {dest_account_id} "
            f"(movements {outflow.id} -> {inflow.id})"
        )
        return TransferResult(
            source_account_id=source_account_id,
            dest_account_id=dest_account_id,
            amount=amount,
            outflow_movement_id=outflow.id,
            inflow_movement_id=inflow.id,
        )

    def verify_balance(self, account_id: int) -> BalanceCheck:
        """
        Compare an account's stored balance with its movement log.

        Raises:
            AccountNotFound: If the account doesn't exist
        """
        account = self.accounts.get_account(account_id)
        try:
            computed = account.computed_balance()
        except DatabaseError as e:
            raise StoreError(
                "Could not read movements",
                details={"account_id": account.id, "operation": "verify_balance"},
            ) from e

        check = BalanceCheck(
            account_id=account.id,
            stored=account.balance,
            computed=computed,
        )
        if not check.is_consistent:
            self.get_logger().warning(
                f"Account {account.id} balance {check.stored} does not match "
                f"movement log {check.computed}"
            )
        return check


# Singleton instances for convenience
# Usage: from funds.services import accounts, movements
accounts = AccountLedger()
movements = MovementRecorder(accounts)
