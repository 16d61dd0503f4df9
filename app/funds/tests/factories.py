"""
Factory Boy factories for fund ledger test data.

Usage:
    from funds.tests.factories import FundAccountFactory, FundMovementFactory

    # Account with an opening balance
    cash = FundAccountFactory(name="Caja", balance=Decimal("1000.00"))

    # Movement row only; the account balance is NOT adjusted
    movement = FundMovementFactory(account=cash, origin="cobro")
"""

from decimal import Decimal

import factory
from django.contrib.auth import get_user_model

from funds.models import FundAccount, FundMovement, MovementType


class UserFactory(factory.django.DjangoModelFactory):
    """Factory for API users."""

    class Meta:
        model = get_user_model()
        skip_postgeneration_save = True

    username = factory.Sequence(lambda n: f"operator{n}")
    email = factory.Sequence(lambda n: f"operator{n}@example.com")
    password = factory.PostGenerationMethodCall("set_password", "testpass123")
    is_active = True


class FundAccountFactory(factory.django.DjangoModelFactory):
    """
    Factory for creating FundAccount instances.

    The opening balance follows the balance so that a fresh account is
    consistent with its (empty) movement log.
    """

    class Meta:
        model = FundAccount

    name = factory.Sequence(lambda n: f"Cuenta {n}")
    balance = Decimal("0.00")
    opening_balance = factory.SelfAttribute("balance")


class FundMovementFactory(factory.django.DjangoModelFactory):
    """
    Factory for creating FundMovement rows directly.

    Bypasses the services, so the account balance is left untouched.
    Use funds.services to exercise balance changes.
    """

    class Meta:
        model = FundMovement

    account = factory.SubFactory(FundAccountFactory)
    movement_type = MovementType.INGRESO
    origin = "cobro"
    amount = Decimal("100.00")
    reference_id = None
