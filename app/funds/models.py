"""
Fund ledger models.

This module defines the models for the fund-accounts ledger:
- FundAccount: A named pool of funds ("Caja", "Banco") with a running balance
- FundMovement: One inflow or outflow recorded against an account

The balance stored on FundAccount always equals its opening balance plus
the signed sum of the account's movements (INGRESO adds, EGRESO
subtracts). Balances are only changed by the services in funds.services,
together with the movement that explains the change.

Usage:
    from funds.models import FundAccount, FundMovement, MovementType

    cash = FundAccount.objects.create(name="Caja")
    cash.computed_balance()  # Recomputed from the movement log
"""

from __future__ import annotations

from decimal import Decimal

from django.db import models
from django.db.models import Case, Q, Sum, Value, When
from django.db.models.functions import Coalesce

from core.models import BaseModel

from .exceptions import ImmutableMovementError

# Shared precision for balances and amounts
AMOUNT_MAX_DIGITS = 14
AMOUNT_DECIMAL_PLACES = 2


class MovementType(models.TextChoices):
    """
    Direction of a fund movement.

    The amount of a movement is always positive; the direction is
    carried by its type.

    Values:
        INGRESO: Money coming into the account
        EGRESO: Money leaving the account
    """

    INGRESO = "INGRESO", "Ingreso"
    EGRESO = "EGRESO", "Egreso"


class MovementOrigin:
    """
    Well-known origin tags.

    Origin is free text; these are the values the system itself writes
    or that the back-office forms offer by default.
    """

    TRANSFER = "transferencia"
    MANUAL_INCOME = "ingreso manual"
    MANUAL_EXPENSE = "egreso manual"


class FundAccount(BaseModel):
    """
    A named pool of funds with a running balance.

    Fields:
        id: Auto-increment primary key
        name: Display name (duplicates are allowed)
        opening_balance: Balance given at creation, never changed
        balance: Current balance, signed
        created_at / updated_at: From BaseModel

    Accounts are never deleted: movements reference them with PROTECT.

    Example:
        cash = FundAccount.objects.create(name="Caja", balance=Decimal("1000"))
    """

    name = models.CharField(
        max_length=100,
        help_text="Display name of the account",
    )
    opening_balance = models.DecimalField(
        max_digits=AMOUNT_MAX_DIGITS,
        decimal_places=AMOUNT_DECIMAL_PLACES,
        default=Decimal("0"),
        editable=False,
        help_text="Balance the account was created with",
    )
    balance = models.DecimalField(
        max_digits=AMOUNT_MAX_DIGITS,
        decimal_places=AMOUNT_DECIMAL_PLACES,
        default=Decimal("0"),
        help_text="Opening balance plus the signed sum of movements",
    )

    class Meta:
        ordering = ["id"]

    def __str__(self) -> str:
        """Return string representation."""
        return f"{self.name} ({self.balance})"

    def save(self, *args, **kwargs) -> None:
        """
        Save the account.

        Saving an existing account writes only its name, so a stale
        in-memory balance never overwrites one adjusted by a movement.
        Balances change through AccountLedger.adjust_balance().
        """
        if not self._state.adding and kwargs.get("update_fields") is None:
            kwargs["update_fields"] = ["name", "updated_at"]
        super().save(*args, **kwargs)

    def computed_balance(self) -> Decimal:
        """
        Compute the balance from the movement log.

        Balance is the opening balance plus the sum of INGRESO amounts
        minus the sum of EGRESO amounts. Used to reconcile the stored
        balance.

        Returns:
            Recomputed balance as a Decimal
        """
        amount_field = models.DecimalField(
            max_digits=AMOUNT_MAX_DIGITS,
            decimal_places=AMOUNT_DECIMAL_PLACES,
        )
        result = FundMovement.objects.using(self._state.db).filter(
            account_id=self.pk
        ).aggregate(
            inflow=Coalesce(
                Sum(
                    Case(
                        When(movement_type=MovementType.INGRESO, then="amount"),
                        default=Value(Decimal("0")),
                        output_field=amount_field,
                    )
                ),
                Value(Decimal("0")),
                output_field=amount_field,
            ),
            outflow=Coalesce(
                Sum(
                    Case(
                        When(movement_type=MovementType.EGRESO, then="amount"),
                        default=Value(Decimal("0")),
                        output_field=amount_field,
                    )
                ),
                Value(Decimal("0")),
                output_field=amount_field,
            ),
        )
        return self.opening_balance + result["inflow"] - result["outflow"]


class FundMovement(models.Model):
    """
    One inflow or outflow recorded against a fund account.

    Movements are append-only: once saved they cannot be modified or
    deleted. Corrections are made by recording a new movement.

    Fields:
        id: Auto-increment primary key
        account: Account the movement belongs to
        movement_type: INGRESO or EGRESO
        origin: Free-text classification ("transferencia", "cobro", "venta")
        amount: Always positive
        reference_id: Optional weak pointer to another record (a sale,
            the EGRESO of a transfer); not enforced
        created_at: Timestamp when the movement was recorded

    Constraints:
        - amount must be positive
    """

    account = models.ForeignKey(
        FundAccount,
        on_delete=models.PROTECT,
        related_name="movements",
        help_text="Account this movement belongs to",
    )
    movement_type = models.CharField(
        max_length=10,
        choices=MovementType.choices,
        help_text="Direction of the movement",
    )
    origin = models.CharField(
        max_length=100,
        help_text="Free-text classification of the movement",
    )
    amount = models.DecimalField(
        max_digits=AMOUNT_MAX_DIGITS,
        decimal_places=AMOUNT_DECIMAL_PLACES,
        help_text="Amount (always positive)",
    )
    reference_id = models.PositiveBigIntegerField(
        null=True,
        blank=True,
        help_text="Identifier of a related record (sale, movement, ...)",
    )
    created_at = models.DateTimeField(
        auto_now_add=True,
        db_index=True,
        help_text="Timestamp when this movement was recorded",
    )

    class Meta:
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(
                fields=["account", "created_at"],
                name="funds_fundm_account_2b7c1e_idx",
            ),
            models.Index(
                fields=["movement_type"],
                name="funds_fundm_movemen_8d41a3_idx",
            ),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(amount__gt=0),
                name="fund_movement_amount_positive",
            )
        ]

    def __str__(self) -> str:
        """Return string representation."""
        return f"{self.get_movement_type_display()}: {self.amount} ({self.origin})"

    @property
    def signed_amount(self) -> Decimal:
        """Amount with the sign of its effect on the account balance."""
        if self.movement_type == MovementType.INGRESO:
            return self.amount
        return -self.amount

    def save(self, *args, **kwargs) -> None:
        """Insert the movement; updates of an existing movement are refused."""
        if not self._state.adding:
            raise ImmutableMovementError(
                f"Movement {self.pk} is immutable",
                details={"movement_id": self.pk, "operation": "update"},
            )
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        """Movements are never deleted."""
        raise ImmutableMovementError(
            f"Movement {self.pk} cannot be deleted",
            details={"movement_id": self.pk, "operation": "delete"},
        )
