"""
URL configuration for the funds API.

All URLs are prefixed with /api/v1/funds/ in the main URL configuration.
See funds.views for the full route table.
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from funds.views import (
    AccountViewSet,
    ExpenseViewSet,
    IncomeViewSet,
    MovementViewSet,
    TransferViewSet,
)

router = DefaultRouter()
router.register(r"accounts", AccountViewSet, basename="account")
router.register(r"movements", MovementViewSet, basename="movement")
router.register(r"incomes", IncomeViewSet, basename="income")
router.register(r"expenses", ExpenseViewSet, basename="expense")
router.register(r"transfers", TransferViewSet, basename="transfer")

app_name = "funds"

urlpatterns = [
    path("", include(router.urls)),
]
