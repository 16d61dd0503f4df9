"""
DRF serializers for the funds API.

Field names on the wire are the ones the back-office front end uses
(nombre, saldo, cuenta_id, tipo, origen, monto, referencia_id, fecha).

Request serializers only check shapes and types; business rules
(positive amounts, distinct transfer accounts, existing accounts) are
enforced by funds.services so that every caller gets the same errors.

Related files:
    - services.py: AccountLedger, MovementRecorder
    - views.py: Funds API views
"""

from __future__ import annotations

from decimal import Decimal

from rest_framework import serializers

from .models import (
    AMOUNT_DECIMAL_PLACES,
    AMOUNT_MAX_DIGITS,
    FundAccount,
    FundMovement,
    MovementType,
)
from .types import MovementFilters

# Values sent by the front end's filter dropdowns meaning "no filter"
ALL_ACCOUNTS = "todas"
ALL_TYPES = "todos"

MAX_MOVEMENT_LIMIT = 1000


def _amount_field(**kwargs) -> serializers.DecimalField:
    return serializers.DecimalField(
        max_digits=AMOUNT_MAX_DIGITS,
        decimal_places=AMOUNT_DECIMAL_PLACES,
        **kwargs,
    )


class AccountSerializer(serializers.ModelSerializer):
    """
    Account serializer for API responses.

    Fields:
        id: Account ID
        nombre: Display name
        saldo: Current balance
        created_at: Creation timestamp
    """

    nombre = serializers.CharField(source="name", read_only=True)
    saldo = _amount_field(source="balance", read_only=True)

    class Meta:
        model = FundAccount
        fields = ["id", "nombre", "saldo", "created_at"]
        read_only_fields = fields


class AccountCreateSerializer(serializers.Serializer):
    """
    Serializer for account creation.

    Usage:
        serializer = AccountCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        account = accounts.create_account(
            serializer.validated_data["nombre"],
            serializer.validated_data["saldo"],
        )
    """

    nombre = serializers.CharField(
        max_length=100,
        help_text="Display name of the account",
    )
    saldo = _amount_field(
        required=False,
        default=Decimal("0"),
        help_text="Opening balance (default: 0)",
    )


class CreatedSerializer(serializers.Serializer):
    """Id of a newly created record."""

    id = serializers.IntegerField(read_only=True)


class MovementSerializer(serializers.ModelSerializer):
    """
    Movement serializer for API responses.

    Fields:
        id: Movement ID
        cuenta_id: Account ID
        cuenta_nombre: Account name
        tipo: INGRESO or EGRESO
        origen: Free-text classification
        monto: Positive amount
        referencia_id: Related record id, or null
        fecha: Timestamp of the movement

    Usage:
        recent = movements.list_movements(filters, limit=20)
        serializer = MovementSerializer(recent, many=True)
    """

    cuenta_id = serializers.IntegerField(source="account_id", read_only=True)
    cuenta_nombre = serializers.CharField(source="account.name", read_only=True)
    tipo = serializers.CharField(source="movement_type", read_only=True)
    origen = serializers.CharField(source="origin", read_only=True)
    monto = _amount_field(source="amount", read_only=True)
    referencia_id = serializers.IntegerField(
        source="reference_id", read_only=True, allow_null=True
    )
    fecha = serializers.DateTimeField(source="created_at", read_only=True)

    class Meta:
        model = FundMovement
        fields = [
            "id",
            "cuenta_id",
            "cuenta_nombre",
            "tipo",
            "origen",
            "monto",
            "referencia_id",
            "fecha",
        ]
        read_only_fields = fields


class MovementCreateSerializer(serializers.Serializer):
    """Serializer for registering a movement of either type."""

    cuenta_id = serializers.IntegerField(help_text="Account ID")
    tipo = serializers.ChoiceField(
        choices=MovementType.choices,
        help_text="INGRESO or EGRESO",
    )
    origen = serializers.CharField(
        max_length=100,
        help_text="Free-text classification, e.g. cobro",
    )
    monto = _amount_field(help_text="Positive amount")
    referencia_id = serializers.IntegerField(
        required=False,
        allow_null=True,
        default=None,
        help_text="Id of a related record",
    )


class ManualMovementSerializer(serializers.Serializer):
    """
    Serializer for manual incomes and expenses.

    The origin is optional; the view fills in "ingreso manual" or
    "egreso manual" when it is missing.
    """

    cuenta_id = serializers.IntegerField(help_text="Account ID")
    monto = _amount_field(help_text="Positive amount")
    origen = serializers.CharField(
        max_length=100,
        required=False,
        help_text="Free-text classification",
    )
    referencia_id = serializers.IntegerField(
        required=False,
        allow_null=True,
        default=None,
        help_text="Id of a related record",
    )


class MovementQuerySerializer(serializers.Serializer):
    """
    Query parameters for listing movements.

    cuenta_id=todas and tipo=todos are accepted and mean no filter.
    """

    cuenta_id = serializers.CharField(
        required=False,
        allow_blank=True,
        help_text='Account ID or "todas"',
    )
    tipo = serializers.CharField(
        required=False,
        allow_blank=True,
        help_text='INGRESO, EGRESO or "todos"',
    )
    desde = serializers.DateField(required=False, help_text="First day, inclusive")
    hasta = serializers.DateField(required=False, help_text="Last day, inclusive")
    busqueda = serializers.CharField(
        required=False,
        allow_blank=True,
        trim_whitespace=True,
        help_text="Text matched against origin and reference id",
    )
    limit = serializers.IntegerField(
        required=False,
        default=100,
        min_value=1,
        max_value=MAX_MOVEMENT_LIMIT,
    )

    def validate_cuenta_id(self, value: str) -> int | None:
        if value in ("", ALL_ACCOUNTS):
            return None
        if not (value.isascii() and value.isdigit()) or int(value) < 1:
            raise serializers.ValidationError("Must be an account id or 'todas'.")
        return int(value)

    def validate_tipo(self, value: str) -> str | None:
        if value in ("", ALL_TYPES):
            return None
        if value not in MovementType.values:
            raise serializers.ValidationError("Must be INGRESO, EGRESO or 'todos'.")
        return value

    def to_filters(self) -> MovementFilters:
        """Build MovementFilters from validated data."""
        data = self.validated_data
        return MovementFilters(
            account_id=data.get("cuenta_id"),
            movement_type=data.get("tipo"),
            date_from=data.get("desde"),
            date_to=data.get("hasta"),
            search=data.get("busqueda") or None,
        )


class TransferSerializer(serializers.Serializer):
    """Serializer for transfer requests."""

    cuenta_origen = serializers.IntegerField(help_text="Account to debit")
    cuenta_destino = serializers.IntegerField(help_text="Account to credit")
    monto = _amount_field(help_text="Positive amount")


class TransferResponseSerializer(serializers.Serializer):
    """Serializer for a completed transfer."""

    success = serializers.SerializerMethodField()
    egreso_id = serializers.IntegerField(
        source="outflow_movement_id", read_only=True
    )
    ingreso_id = serializers.IntegerField(
        source="inflow_movement_id", read_only=True
    )
    monto = _amount_field(source="amount", read_only=True)

    def get_success(self, obj) -> bool:
        return True


class BalanceCheckSerializer(serializers.Serializer):
    """Stored balance next to the balance recomputed from movements."""

    cuenta_id = serializers.IntegerField(source="account_id", read_only=True)
    saldo = _amount_field(source="stored", read_only=True)
    saldo_calculado = _amount_field(source="computed", read_only=True)
    consistente = serializers.BooleanField(source="is_consistent", read_only=True)


class ErrorSerializer(serializers.Serializer):
    """Error body rendered from BaseApplicationError.to_dict()."""

    error = serializers.CharField()
    error_code = serializers.CharField()
    details = serializers.DictField()
