"""
URL configuration for the payouts app.

All routes are prefixed with /api/v1/payouts/ when included in the main URLconf.
"""

from django.urls import path

from payouts.views import CommissionRatesView, PayoutListView, PayoutStatusView
from payouts.webhooks.views import razorpay_webhook

app_name = "payouts"

urlpatterns = [
    path("", PayoutListView.as_view(), name="payout_list"),
    path("commission-rates/", CommissionRatesView.as_view(), name="commission_rates"),
    path("webhooks/razorpay/", razorpay_webhook, name="razorpay_webhook"),
    path(
        "<str:external_payout_id>/",
        PayoutStatusView.as_view(),
        name="payout_status",
    ),
]
