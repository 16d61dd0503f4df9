"""
Pytest fixtures for fund ledger tests.

Sections:
    - Account Fixtures: The "Caja" / "Banco" pair used across scenarios
    - Service Fixtures: Fresh service instances on the default database
    - API Client Fixtures: Authenticated and anonymous clients
"""

from decimal import Decimal

import pytest
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from funds.services import AccountLedger, MovementRecorder
from funds.tests.factories import FundAccountFactory, UserFactory


# ==========================================================================
# Account Fixtures
# ==========================================================================


@pytest.fixture
def cash_account(db):
    """Cash account ("Caja") opened with 1000.00."""
    return FundAccountFactory(name="Caja", balance=Decimal("1000.00"))


@pytest.fixture
def bank_account(db):
    """Bank account ("Banco") opened with 0."""
    return FundAccountFactory(name="Banco", balance=Decimal("0.00"))


# ==========================================================================
# Service Fixtures
# ==========================================================================


@pytest.fixture
def ledger():
    """AccountLedger bound to the default database."""
    return AccountLedger()


@pytest.fixture
def recorder(ledger):
    """MovementRecorder sharing the ledger fixture."""
    return MovementRecorder(ledger)


# ==========================================================================
# API Client Fixtures
# ==========================================================================


@pytest.fixture
def user(db):
    """Back-office operator."""
    return UserFactory()


@pytest.fixture
def api_client():
    """Unauthenticated API client."""
    return APIClient()


@pytest.fixture
def authenticated_client(user):
    """API client authenticated with a JWT access token."""
    client = APIClient()
    refresh = RefreshToken.for_user(user)
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {refresh.access_token}")
    return client
