"""
Recipient account admin.

Money fields are read-only: balances only change through distributions and
webhook reconciliation. Encrypted bank fields are hidden; the masked account
number is shown instead.
"""

from django.contrib import admin

from recipients.models import DeliveryRider, PlatformAccount, Restaurant


class RecipientAccountAdmin(admin.ModelAdmin):
    list_display = [
        "name",
        "balance",
        "total_earnings",
        "pending_amount",
        "bank_details_verified",
        "created_at",
    ]
    list_filter = ["bank_details_verified"]
    search_fields = ["id", "name", "user__username", "user__email"]
    readonly_fields = [
        "id",
        "balance",
        "total_earnings",
        "pending_amount",
        "masked_account_number",
        "created_at",
        "updated_at",
    ]
    exclude = ["bank_account_number", "bank_ifsc_code"]

    fieldsets = (
        (None, {"fields": ("id", "name", "user")}),
        ("Earnings", {"fields": ("balance", "total_earnings", "pending_amount")}),
        (
            "Bank Details",
            {
                "fields": (
                    "masked_account_number",
                    "bank_account_holder_name",
                    "bank_name",
                    "bank_details_verified",
                ),
            },
        ),
        (
            "Timestamps",
            {"fields": ("created_at", "updated_at"), "classes": ("collapse",)},
        ),
    )

    @admin.display(description="Account number")
    def masked_account_number(self, obj) -> str:
        details = obj.masked_bank_details()
        return details["account_number"] if details else "-"


admin.site.register(Restaurant, RecipientAccountAdmin)
admin.site.register(DeliveryRider, RecipientAccountAdmin)
admin.site.register(PlatformAccount, RecipientAccountAdmin)
