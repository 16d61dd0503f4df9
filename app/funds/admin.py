"""
Django admin configuration for fund ledger models.

Key features:
- FundMovement is read-only (no add/edit/delete permissions)
- Stored balance shown next to the balance recomputed from movements
- Accounts can be renamed but their balance is never edited by hand
"""

from django.contrib import admin

from .models import FundAccount, FundMovement


class FundMovementInline(admin.TabularInline):
    """Most recent movements of an account, read-only."""

    model = FundMovement
    fields = ["id", "created_at", "movement_type", "origin", "amount", "reference_id"]
    readonly_fields = fields
    ordering = ["-created_at", "-id"]
    extra = 0
    max_num = 0
    show_change_link = True
    can_delete = False


@admin.register(FundAccount)
class FundAccountAdmin(admin.ModelAdmin):
    """
    Admin configuration for FundAccount.

    Balance changes only through movements, so the balance fields are
    read-only here. The recomputed balance performs one aggregate query
    per row.
    """

    list_display = [
        "id",
        "name",
        "balance",
        "computed_balance_display",
        "is_consistent",
        "created_at",
    ]
    search_fields = ["name"]
    readonly_fields = [
        "id",
        "opening_balance",
        "balance",
        "computed_balance_display",
        "created_at",
        "updated_at",
    ]
    ordering = ["id"]
    inlines = [FundMovementInline]

    fieldsets = (
        (
            None,
            {
                "fields": ("id", "name"),
            },
        ),
        (
            "Balance",
            {
                "fields": ("opening_balance", "balance", "computed_balance_display"),
            },
        ),
        (
            "Timestamps",
            {
                "fields": ("created_at", "updated_at"),
            },
        ),
    )

    @admin.display(description="Balance from movements")
    def computed_balance_display(self, obj: FundAccount) -> str:
        if obj.pk is None:
            return "-"
        return str(obj.computed_balance())

    @admin.display(description="Consistent", boolean=True)
    def is_consistent(self, obj: FundAccount) -> bool:
        return obj.balance == obj.computed_balance()

    def has_delete_permission(self, request, obj=None) -> bool:
        """Accounts are referenced by movements and never deleted."""
        return False


@admin.register(FundMovement)
class FundMovementAdmin(admin.ModelAdmin):
    """
    Admin configuration for FundMovement.

    Movements are immutable. Corrections are made by registering a new
    movement through the API.
    """

    list_display = [
        "id",
        "created_at",
        "account",
        "movement_type",
        "origin",
        "amount",
        "reference_id",
    ]
    list_filter = ["movement_type", "created_at"]
    search_fields = ["origin", "reference_id", "account__name"]
    list_select_related = ["account"]
    readonly_fields = [
        "id",
        "account",
        "movement_type",
        "origin",
        "amount",
        "reference_id",
        "created_at",
    ]
    ordering = ["-created_at", "-id"]
    date_hierarchy = "created_at"

    def has_add_permission(self, request) -> bool:
        return False

    def has_change_permission(self, request, obj=None) -> bool:
        return False

    def has_delete_permission(self, request, obj=None) -> bool:
        return False
