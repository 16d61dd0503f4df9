"""
Funds - Cash and bank accounts of the back office.

Tracks named fund accounts ("Caja", "Banco") and every inflow and
outflow recorded against them. Each movement changes its account's
balance in the same transaction, and transfers move money between two
accounts as a linked EGRESO/INGRESO pair.

Public API:
    Models (funds.models):
        FundAccount - Named account with a running balance
        FundMovement - Append-only inflow or outflow
        MovementType - INGRESO / EGRESO

    Services (funds.services):
        accounts - Singleton AccountLedger
        movements - Singleton MovementRecorder

    Types (funds.types):
        MovementFilters, TransferResult, BalanceCheck

    Exceptions (funds.exceptions):
        AccountNotFound, MovementNotFound, InsufficientFunds,
        ImmutableMovementError

Usage:
    from funds.services import accounts, movements

    cash = accounts.create_account("Caja", Decimal("1000"))
    bank = accounts.create_account("Banco")
    movements.transfer(cash.id, bank.id, Decimal("300"))
"""
