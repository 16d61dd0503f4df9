"""
ViewSets for the funds API.

URL Structure:
    /api/v1/funds/accounts/                  GET, POST
    /api/v1/funds/accounts/names/            GET
    /api/v1/funds/accounts/{id}/             GET
    /api/v1/funds/accounts/{id}/reconcile/   GET
    /api/v1/funds/movements/                 GET, POST
    /api/v1/funds/movements/{id}/            GET
    /api/v1/funds/incomes/                   POST
    /api/v1/funds/incomes/{id}/              GET
    /api/v1/funds/expenses/                  POST
    /api/v1/funds/expenses/{id}/             GET
    /api/v1/funds/transfers/                 POST

Design Decisions:
    - Views only parse requests and render responses; every rule lives in
      funds.services
    - Domain errors are rendered with BaseApplicationError.to_dict()
"""

from __future__ import annotations

import logging

from drf_spectacular.utils import (
    OpenApiResponse,
    extend_schema,
    extend_schema_view,
)
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from core.exceptions import (
    BaseApplicationError,
    NotFoundError,
    StoreError,
    ValidationError,
)
from funds.exceptions import FundsError
from funds.models import MovementOrigin, MovementType
from funds.serializers import (
    AccountCreateSerializer,
    AccountSerializer,
    BalanceCheckSerializer,
    CreatedSerializer,
    ErrorSerializer,
    ManualMovementSerializer,
    MovementCreateSerializer,
    MovementQuerySerializer,
    MovementSerializer,
    TransferResponseSerializer,
    TransferSerializer,
)
from funds.services import accounts, movements

logger = logging.getLogger(__name__)

ID_PATTERN = r"[0-9]+"


def error_response(exc: BaseApplicationError) -> Response:
    """Render a domain error with the matching HTTP status."""
    if isinstance(exc, NotFoundError):
        status_code = status.HTTP_404_NOT_FOUND
    elif isinstance(exc, (ValidationError, FundsError)):
        status_code = status.HTTP_400_BAD_REQUEST
    elif isinstance(exc, StoreError):
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    else:
        status_code = status.HTTP_400_BAD_REQUEST

    if status_code >= 500:
        logger.error(f"Funds request failed: {exc}")
    return Response(exc.to_dict(), status=status_code)


ERROR_RESPONSES = {
    400: OpenApiResponse(ErrorSerializer, description="Invalid request"),
    404: OpenApiResponse(ErrorSerializer, description="Record not found"),
}


@extend_schema_view(
    list=extend_schema(
        operation_id="list_fund_accounts",
        summary="List accounts",
        tags=["Funds - Accounts"],
        responses={200: AccountSerializer(many=True)},
    ),
    create=extend_schema(
        operation_id="create_fund_account",
        summary="Create account",
        tags=["Funds - Accounts"],
        request=AccountCreateSerializer,
        responses={201: CreatedSerializer, **ERROR_RESPONSES},
    ),
    retrieve=extend_schema(
        operation_id="get_fund_account",
        summary="Get account",
        tags=["Funds - Accounts"],
        responses={200: AccountSerializer, **ERROR_RESPONSES},
    ),
)
class AccountViewSet(viewsets.ViewSet):
    """
    ViewSet for fund accounts.

    list:
        All accounts ordered by id.

    create:
        Create an account with an optional opening balance.
        Returns only the new id.

    retrieve:
        One account with its current balance.

    names:
        Distinct account names, alphabetical, for filter dropdowns.

    reconcile:
        Stored balance next to the balance recomputed from movements.
    """

    permission_classes = [IsAuthenticated]
    lookup_value_regex = ID_PATTERN

    def list(self, request):
        try:
            result = accounts.list_accounts()
        except BaseApplicationError as e:
            return error_response(e)
        return Response(AccountSerializer(result, many=True).data)

    def create(self, request):
        serializer = AccountCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            account = accounts.create_account(
                serializer.validated_data["nombre"],
                serializer.validated_data["saldo"],
            )
        except BaseApplicationError as e:
            return error_response(e)
        return Response({"id": account.id}, status=status.HTTP_201_CREATED)

    def retrieve(self, request, pk=None):
        try:
            account = accounts.get_account(pk)
        except BaseApplicationError as e:
            return error_response(e)
        return Response(AccountSerializer(account).data)

    @extend_schema(
        operation_id="list_fund_account_names",
        summary="List account names",
        tags=["Funds - Accounts"],
        responses={200: {"type": "array", "items": {"type": "string"}}},
    )
    @action(detail=False, methods=["get"])
    def names(self, request):
        try:
            return Response(accounts.list_account_names())
        except BaseApplicationError as e:
            return error_response(e)

    @extend_schema(
        operation_id="reconcile_fund_account",
        summary="Compare stored and recomputed balance",
        tags=["Funds - Accounts"],
        responses={200: BalanceCheckSerializer, **ERROR_RESPONSES},
    )
    @action(detail=True, methods=["get"])
    def reconcile(self, request, pk=None):
        try:
            check = movements.verify_balance(pk)
        except BaseApplicationError as e:
            return error_response(e)
        return Response(BalanceCheckSerializer(check).data)


@extend_schema_view(
    list=extend_schema(
        operation_id="list_fund_movements",
        summary="List movements",
        description=(
            "Movements matching every given filter, newest first. "
            "cuenta_id=todas and tipo=todos mean no filter."
        ),
        tags=["Funds - Movements"],
        parameters=[MovementQuerySerializer],
        responses={200: MovementSerializer(many=True), **ERROR_RESPONSES},
    ),
    create=extend_schema(
        operation_id="register_fund_movement",
        summary="Register movement",
        tags=["Funds - Movements"],
        request=MovementCreateSerializer,
        responses={201: CreatedSerializer, **ERROR_RESPONSES},
    ),
    retrieve=extend_schema(
        operation_id="get_fund_movement",
        summary="Get movement",
        tags=["Funds - Movements"],
        responses={200: MovementSerializer, **ERROR_RESPONSES},
    ),
)
class MovementViewSet(viewsets.ViewSet):
    """
    ViewSet for movements of either type.

    Movements are append-only: there is no update or delete.
    """

    permission_classes = [IsAuthenticated]
    lookup_value_regex = ID_PATTERN

    def list(self, request):
        query = MovementQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)

        try:
            result = movements.list_movements(
                query.to_filters(),
                limit=query.validated_data["limit"],
            )
        except BaseApplicationError as e:
            return error_response(e)
        return Response(MovementSerializer(result, many=True).data)

    def create(self, request):
        serializer = MovementCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            movement = movements.register_movement(
                account_id=data["cuenta_id"],
                movement_type=data["tipo"],
                origin=data["origen"],
                amount=data["monto"],
                reference_id=data["referencia_id"],
            )
        except BaseApplicationError as e:
            return error_response(e)
        return Response({"id": movement.id}, status=status.HTTP_201_CREATED)

    def retrieve(self, request, pk=None):
        try:
            movement = movements.get_movement(pk)
        except BaseApplicationError as e:
            return error_response(e)
        return Response(MovementSerializer(movement).data)


class ManualMovementViewSet(viewsets.ViewSet):
    """
    Base ViewSet for manual incomes and expenses.

    Subclasses set movement_type and default_origin. Retrieving an id
    that belongs to a movement of the other type answers 404.
    """

    permission_classes = [IsAuthenticated]
    lookup_value_regex = ID_PATTERN
    movement_type: str
    default_origin: str

    def create(self, request):
        serializer = ManualMovementSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            movement = movements.register_movement(
                account_id=data["cuenta_id"],
                movement_type=self.movement_type,
                origin=data.get("origen") or self.default_origin,
                amount=data["monto"],
                reference_id=data["referencia_id"],
            )
        except BaseApplicationError as e:
            return error_response(e)
        return Response({"id": movement.id}, status=status.HTTP_201_CREATED)

    def retrieve(self, request, pk=None):
        try:
            movement = movements.get_movement(pk, movement_type=self.movement_type)
        except BaseApplicationError as e:
            return error_response(e)
        return Response(MovementSerializer(movement).data)


@extend_schema_view(
    create=extend_schema(
        operation_id="register_fund_income",
        summary="Register manual income",
        tags=["Funds - Movements"],
        request=ManualMovementSerializer,
        responses={201: CreatedSerializer, **ERROR_RESPONSES},
    ),
    retrieve=extend_schema(
        operation_id="get_fund_income",
        summary="Get income",
        tags=["Funds - Movements"],
        responses={200: MovementSerializer, **ERROR_RESPONSES},
    ),
)
class IncomeViewSet(ManualMovementViewSet):
    """Manual incomes (INGRESO)."""

    movement_type = MovementType.INGRESO
    default_origin = MovementOrigin.MANUAL_INCOME


@extend_schema_view(
    create=extend_schema(
        operation_id="register_fund_expense",
        summary="Register manual expense",
        tags=["Funds - Movements"],
        request=ManualMovementSerializer,
        responses={201: CreatedSerializer, **ERROR_RESPONSES},
    ),
    retrieve=extend_schema(
        operation_id="get_fund_expense",
        summary="Get expense",
        tags=["Funds - Movements"],
        responses={200: MovementSerializer, **ERROR_RESPONSES},
    ),
)
class ExpenseViewSet(ManualMovementViewSet):
    """Manual expenses (EGRESO)."""

    movement_type = MovementType.EGRESO
    default_origin = MovementOrigin.MANUAL_EXPENSE


@extend_schema_view(
    create=extend_schema(
        operation_id="create_fund_transfer",
        summary="Transfer between accounts",
        description=(
            "Debits the source and credits the destination in one "
            "transaction. Fails with INSUFFICIENT_FUNDS when the source "
            "balance is below the amount."
        ),
        tags=["Funds - Transfers"],
        request=TransferSerializer,
        responses={201: TransferResponseSerializer, **ERROR_RESPONSES},
    ),
)
class TransferViewSet(viewsets.ViewSet):
    """ViewSet for transfers between two accounts."""

    permission_classes = [IsAuthenticated]

    def create(self, request):
        serializer = TransferSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            result = movements.transfer(
                source_account_id=data["cuenta_origen"],
                dest_account_id=data["cuenta_destino"],
                amount=data["monto"],
            )
        except BaseApplicationError as e:
            return error_response(e)
        return Response(
            TransferResponseSerializer(result).data,
            status=status.HTTP_201_CREATED,
        )
