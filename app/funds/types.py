"""
Data types for fund ledger operations.

Types:
    MovementFilters: Optional filters for listing movements
    TransferResult: Outcome of a completed transfer
    BalanceCheck: Stored vs recomputed balance of an account

Usage:
    from funds.types import MovementFilters

    filters = MovementFilters(account_id=cash.id, movement_type="INGRESO")
    recent = movements.list_movements(filters, limit=20)
"""

from __future__ import annotations

import datetime
from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class MovementFilters:
    """
    Filters for MovementRecorder.list_movements().

    Every attribute is optional; the ones that are set are combined
    with AND.

    Attributes:
        account_id: Only movements of this account
        movement_type: "INGRESO" or "EGRESO"
        date_from: Calendar day, inclusive
        date_to: Calendar day, inclusive
        search: Substring matched against origin and reference id
    """

    account_id: int | None = None
    movement_type: str | None = None
    date_from: datetime.date | None = None
    date_to: datetime.date | None = None
    search: str | None = None


@dataclass(frozen=True)
class TransferResult:
    """
    Outcome of a completed transfer.

    Attributes:
        source_account_id: Account that was debited
        dest_account_id: Account that was credited
        amount: Amount moved
        outflow_movement_id: The EGRESO movement on the source
        inflow_movement_id: The INGRESO movement on the destination
    """

    source_account_id: int
    dest_account_id: int
    amount: Decimal
    outflow_movement_id: int
    inflow_movement_id: int


@dataclass(frozen=True)
class BalanceCheck:
    """Stored balance of an account next to the one derived from its movements."""

    account_id: int
    stored: Decimal
    computed: Decimal

    @property
    def is_consistent(self) -> bool:
        return self.stored == self.computed
