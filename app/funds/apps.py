"""
Funds app configuration.

This app provides the fund-accounts ledger:
- Fund accounts with a running balance
- Append-only movement log (INGRESO / EGRESO)
- Atomic transfers between accounts
"""

from django.apps import AppConfig


class FundsConfig(AppConfig):
    """Configuration for the funds application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "funds"
    verbose_name = "Funds"
