"""
Create the fund account and fund movement tables.
"""

from decimal import Decimal

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="FundAccount",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="Timestamp when this record was created",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        help_text="Timestamp when this record was last modified",
                    ),
                ),
                (
                    "name",
                    models.CharField(
                        help_text="Display name of the account",
                        max_length=100,
                    ),
                ),
                (
                    "opening_balance",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0"),
                        editable=False,
                        help_text="Balance the account was created with",
                        max_digits=14,
                    ),
                ),
                (
                    "balance",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0"),
                        help_text="Opening balance plus the signed sum of movements",
                        max_digits=14,
                    ),
                ),
            ],
            options={
                "ordering": ["id"],
                "abstract": False,
            },
        ),
        migrations.CreateModel(
            name="FundMovement",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                (
                    "movement_type",
                    models.CharField(
                        choices=[("INGRESO", "Ingreso"), ("EGRESO", "Egreso")],
                        help_text="Direction of the movement",
                        max_length=10,
                    ),
                ),
                (
                    "origin",
                    models.CharField(
                        help_text="Free-text classification of the movement",
                        max_length=100,
                    ),
                ),
                (
                    "amount",
                    models.DecimalField(
                        decimal_places=2,
                        help_text="Amount (always positive)",
                        max_digits=14,
                    ),
                ),
                (
                    "reference_id",
                    models.PositiveBigIntegerField(
                        blank=True,
                        help_text="Identifier of a related record (sale, movement, ...)",
                        null=True,
                    ),
                ),
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="Timestamp when this movement was recorded",
                    ),
                ),
                (
                    "account",
                    models.ForeignKey(
                        help_text="Account this movement belongs to",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="movements",
                        to="funds.fundaccount",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at", "-id"],
                "indexes": [
                    models.Index(
                        fields=["account", "created_at"],
                        name="funds_fundm_account_2b7c1e_idx",
                    ),
                    models.Index(
                        fields=["movement_type"],
                        name="funds_fundm_movemen_8d41a3_idx",
                    ),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("amount__gt", 0)),
                        name="fund_movement_amount_positive",
                    )
                ],
            },
        ),
    ]
