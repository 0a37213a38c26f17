"""
URL configuration for the recipients app.

All routes are prefixed with /api/v1/recipients/ when included in the main
URLconf.
"""

from django.urls import path

from recipients.views import (
    AllBalancesView,
    BalanceView,
    BankAccountValidationView,
    BankDetailsView,
)

app_name = "recipients"

urlpatterns = [
    path("me/balance/", BalanceView.as_view(), name="balance"),
    path("me/bank-details/", BankDetailsView.as_view(), name="bank_details"),
    path(
        "bank-details/validate/",
        BankAccountValidationView.as_view(),
        name="validate_bank_account",
    ),
    path("balances/", AllBalancesView.as_view(), name="all_balances"),
]
