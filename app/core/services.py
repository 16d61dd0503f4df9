"""
Base service layer patterns for business logic encapsulation.

Services encapsulate business logic separate from views and models.
Views handle HTTP concerns, models handle data, services handle logic.

Every service is bound to a database alias at construction. The alias is
the store handle: the application decides which connection a service
talks to, and the connection lifecycle stays with Django.

Usage:
    from core.services import BaseService

    class AccountLedger(BaseService):
        def create_account(self, name: str) -> FundAccount:
            with self.atomic():
                account = FundAccount.objects.using(self.using).create(name=name)

            self.get_logger().info(f"Created account {account.id}")
            return account

    ledger = AccountLedger()            # default database
    reporting = AccountLedger("replica")  # explicit alias

Related:
    - core.exceptions: Errors raised by services
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING

from django.db import DEFAULT_DB_ALIAS, transaction

if TYPE_CHECKING:
    from collections.abc import Generator


class BaseService:
    """
    Base class for service layer classes.

    Provides common utilities for services:
    - Logging setup per service
    - Database transaction management on the bound alias

    Design Notes:
        - Instances carry only the database alias, no request state
        - Raise core.exceptions errors for expected failures
    """

    def __init__(self, using: str = DEFAULT_DB_ALIAS):
        """
        Bind the service to a database alias.

        Args:
            using: Key into settings.DATABASES (default: "default")
        """
        self.using = using

    @classmethod
    def get_logger(cls) -> logging.Logger:
        """
        Get logger for this service.

        Returns a logger named after the service class for
        easy filtering in logs.
        """
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    @contextmanager
    def atomic(self) -> Generator[None, None, None]:
        """
        Execute operations in a database transaction.

        All database operations within this context manager are
        wrapped in a transaction on the bound alias. If any operation
        fails, all changes are rolled back. Nested calls become
        savepoints.

        Example:
            with self.atomic():
                movement = FundMovement.objects.create(...)
                self.accounts.adjust_balance(account_id, delta)
                # If the balance update fails, the movement is rolled back
        """
        with transaction.atomic(using=self.using):
            yield

    def in_atomic_block(self) -> bool:
        """Return True when the bound connection is inside a transaction."""
        return transaction.get_connection(self.using).in_atomic_block
