"""
Concurrency tests for transfers.

TestFundsCheckUnderLock and TestRacingTransfers run on any database.
TestConcurrentTransfers needs row-level locking and is skipped unless
the default database is PostgreSQL (DATABASE_URL=postgres://...).
"""

import threading
from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal
from unittest import mock

import pytest
from django.db import connection

from core.exceptions import StoreError
from funds.exceptions import InsufficientFunds
from funds.models import FundAccount, FundMovement, MovementType
from funds.services import MovementRecorder
from funds.tests.factories import FundAccountFactory

requires_postgres = pytest.mark.skipif(
    connection.vendor != "postgresql",
    reason="Row locking requires PostgreSQL",
)


def run_concurrently(jobs):
    """
    Run callables on separate threads, released together.

    Returns one ("ok", value) or ("error", exception) tuple per job.
    """
    barrier = threading.Barrier(len(jobs))

    def run(job):
        try:
            barrier.wait(timeout=10)
            return ("ok", job())
        except (InsufficientFunds, StoreError) as e:
            return ("error", e)
        finally:
            connection.close()  # Each thread has its own connection

    with ThreadPoolExecutor(max_workers=len(jobs)) as executor:
        return list(executor.map(run, jobs))


class TestFundsCheckUnderLock:
    """The funds check uses the balance read with the row lock."""

    def test_stale_caller_balance_is_not_trusted(self, db, recorder):
        cash = FundAccountFactory(name="Caja", balance=Decimal("1000.00"))
        bank = FundAccountFactory(name="Banco")
        other = FundAccountFactory(name="Caja chica")
        seen_by_caller = FundAccount.objects.get(id=cash.id)

        recorder.transfer(cash.id, other.id, Decimal("700"))

        assert seen_by_caller.balance == Decimal("1000.00")
        with pytest.raises(InsufficientFunds) as exc_info:
            recorder.transfer(seen_by_caller.id, bank.id, Decimal("700"))

        assert exc_info.value.available == Decimal("300.00")
        cash.refresh_from_db()
        assert cash.balance == Decimal("300.00")
        assert cash.balance == cash.computed_balance()

    def test_write_just_before_lock_is_seen_by_check(self, db, recorder):
        """A competing transfer lands between validation and locking."""
        cash = FundAccountFactory(name="Caja", balance=Decimal("1000.00"))
        bank = FundAccountFactory(name="Banco")
        other = FundAccountFactory(name="Caja chica")
        original_lock = recorder.accounts.lock_accounts
        competitor = []

        def lock_after_competitor(account_ids):
            if not competitor:
                competitor.append(
                    recorder.transfer(cash.id, other.id, Decimal("700"))
                )
            return original_lock(account_ids)

        with mock.patch.object(
            recorder.accounts, "lock_accounts", side_effect=lock_after_competitor
        ):
            with pytest.raises(InsufficientFunds) as exc_info:
                recorder.transfer(cash.id, bank.id, Decimal("700"))

        assert competitor[0].amount == Decimal("700.00")
        assert exc_info.value.available == Decimal("300.00")
        cash.refresh_from_db()
        assert cash.balance == cash.computed_balance()


@pytest.mark.django_db(transaction=True)
class TestRacingTransfers:
    """Threaded transfers against whichever database is configured."""

    def test_draining_transfers_never_overdraw(self):
        """
        Two transfers of 700 from an account holding 1000.

        At most one succeeds. The other fails with InsufficientFunds or,
        where the database refuses a second writer, StoreError.
        """
        cash = FundAccountFactory(name="Caja", balance=Decimal("1000.00"))
        bank = FundAccountFactory(name="Banco")
        other = FundAccountFactory(name="Caja chica")
        recorder = MovementRecorder()

        outcomes = run_concurrently(
            [
                lambda: recorder.transfer(cash.id, bank.id, Decimal("700")),
                lambda: recorder.transfer(cash.id, other.id, Decimal("700")),
            ]
        )

        successes = [value for status, value in outcomes if status == "ok"]
        assert len(successes) <= 1

        cash.refresh_from_db()
        assert cash.balance >= 0
        assert cash.balance == Decimal("1000.00") - 700 * len(successes)
        for account in FundAccount.objects.all():
            assert account.balance == account.computed_balance(), account.name


@requires_postgres
@pytest.mark.postgres
@pytest.mark.django_db(transaction=True)
class TestConcurrentTransfers:
    """Transfers racing for the same source account."""

    def test_only_one_of_two_draining_transfers_succeeds(self):
        """
        Two transfers of 700 from an account holding 1000.

        The funds check runs under the row lock, so the second transfer
        sees the balance left by the first and fails.
        """
        cash = FundAccountFactory(name="Caja", balance=Decimal("1000.00"))
        bank = FundAccountFactory(name="Banco")
        other = FundAccountFactory(name="Caja chica")
        recorder = MovementRecorder()

        outcomes = run_concurrently(
            [
                lambda: recorder.transfer(cash.id, bank.id, Decimal("700")),
                lambda: recorder.transfer(cash.id, other.id, Decimal("700")),
            ]
        )

        results = [status for status, _ in outcomes]
        assert sorted(results) == ["error", "ok"]
        assert any(isinstance(value, InsufficientFunds) for _, value in outcomes)

        cash.refresh_from_db()
        assert cash.balance == Decimal("300.00")
        assert cash.balance == cash.computed_balance()
        assert (
            FundMovement.objects.filter(
                account=cash, movement_type=MovementType.EGRESO
            ).count()
            == 1
        )

    def test_opposite_transfers_do_not_deadlock(self):
        """Locks are taken in id order whatever the transfer direction."""
        cash = FundAccountFactory(name="Caja", balance=Decimal("500.00"))
        bank = FundAccountFactory(name="Banco", balance=Decimal("500.00"))
        recorder = MovementRecorder()

        jobs = []
        for _ in range(5):
            jobs.append(lambda: recorder.transfer(cash.id, bank.id, Decimal("10")))
            jobs.append(lambda: recorder.transfer(bank.id, cash.id, Decimal("10")))

        outcomes = run_concurrently(jobs)

        assert all(status == "ok" for status, _ in outcomes)
        cash.refresh_from_db()
        bank.refresh_from_db()
        assert cash.balance == Decimal("500.00")
        assert bank.balance == Decimal("500.00")
        assert FundMovement.objects.count() == 20

    def test_concurrent_incomes_are_all_applied(self):
        """Balance increments are computed by the database."""
        cash = FundAccountFactory(name="Caja")
        recorder = MovementRecorder()

        outcomes = run_concurrently(
            [lambda: recorder.register_income(cash.id, Decimal("25")) for _ in range(8)]
        )

        assert all(status == "ok" for status, _ in outcomes)
        cash.refresh_from_db()
        assert cash.balance == Decimal("200.00")
