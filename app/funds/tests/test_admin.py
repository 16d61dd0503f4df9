"""
Tests for the funds admin.

Accounts can be renamed in the admin; their balance only changes
through movements.
"""

from decimal import Decimal

from django.contrib.admin.sites import AdminSite
from django.test import RequestFactory

from funds.admin import FundAccountAdmin, FundMovementAdmin
from funds.models import FundAccount, FundMovement


class TestFundAccountAdmin:
    def test_rename_does_not_overwrite_balance(self, db, user, recorder, cash_account):
        model_admin = FundAccountAdmin(FundAccount, AdminSite())
        request = RequestFactory().post("/admin/funds/fundaccount/")
        request.user = user
        stale = FundAccount.objects.get(id=cash_account.id)

        recorder.register_income(cash_account.id, Decimal("150"))
        stale.name = "Caja principal"
        model_admin.save_model(request, stale, form=None, change=True)

        cash_account.refresh_from_db()
        assert cash_account.name == "Caja principal"
        assert cash_account.balance == Decimal("1150.00")
        assert cash_account.balance == cash_account.computed_balance()

    def test_accounts_cannot_be_deleted(self, db, user):
        model_admin = FundAccountAdmin(FundAccount, AdminSite())
        request = RequestFactory().get("/admin/funds/fundaccount/")
        request.user = user

        assert model_admin.has_delete_permission(request) is False


class TestFundMovementAdmin:
    def test_movements_are_read_only(self, db, user):
        model_admin = FundMovementAdmin(FundMovement, AdminSite())
        request = RequestFactory().get("/admin/funds/fundmovement/")
        request.user = user

        assert model_admin.has_add_permission(request) is False
        assert model_admin.has_change_permission(request) is False
        assert model_admin.has_delete_permission(request) is False
