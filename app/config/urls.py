"""
URL configuration for the payout distribution service.

URL Structure:
    /                              - ReDoc API documentation
    /admin/                        - Django admin interface
    /health/                       - Health check endpoint (load balancers, Docker)
    /schema/                       - OpenAPI schema (YAML)
    /api/v1/auth/token/            - Obtain JWT pair
    /api/v1/auth/token/refresh/    - Refresh access token
    /api/v1/recipients/            - Recipient endpoints
        me/balance/                - Balance and earnings of the caller's account
        me/bank-details/           - Update (PUT) or remove (DELETE) bank details
    /api/v1/payouts/               - Payout endpoints
        (root)                     - Caller's recent payouts
        commission-rates/          - Commission split rates
        <external_payout_id>/      - Payout status
        webhooks/razorpay/         - RazorpayX webhook endpoint (POST)
"""

from django.contrib import admin
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView, SpectacularRedocView
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from core.views import health_check

# =============================================================================
# API v1 Routes
# =============================================================================
api_v1_patterns = [
    path("auth/token/", TokenObtainPairView.as_view(), name="token_obtain_pair"),
    path("auth/token/refresh/", TokenRefreshView.as_view(), name="token_refresh"),
    path("recipients/", include("recipients.urls")),
    path("payouts/", include("payouts.urls")),
]

urlpatterns = [
    # Documentation
    path("", SpectacularRedocView.as_view(url_name="schema"), name="redoc"),
    path("schema/", SpectacularAPIView.as_view(), name="schema"),
    path("admin/", admin.site.urls),
    path("health/", health_check, name="health_check"),
    path("api/v1/", include(api_v1_patterns)),
]

admin.site.site_header = "Payout Distribution Admin"
admin.site.site_title = "Payouts Admin"
admin.site.index_title = "Distributions, payouts and recipient accounts"
