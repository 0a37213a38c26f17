"""
DRF views for the payouts API.

Endpoints:
    GET /api/v1/payouts/                        - Caller's recent payouts
    GET /api/v1/payouts/commission-rates/       - Split rates
    GET /api/v1/payouts/<external_payout_id>/   - Status of one payout
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from payouts.commission import COMMISSION_RATES
from payouts.serializers import CommissionRatesSerializer, PayoutRecordSerializer
from payouts.services import PayoutQueryService
from recipients.services import RecipientAccountService


class PayoutListView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="list_recipient_payouts",
        summary="List my payouts",
        description="The 50 most recent payout attempts for the caller's account.",
        responses={
            200: OpenApiResponse(response=PayoutRecordSerializer(many=True)),
            404: OpenApiResponse(description="No earnings account for this user"),
        },
        tags=["Payouts"],
    )
    def get(self, request):
        result = RecipientAccountService.get_account_for_user(request.user)
        if not result:
            return Response(result.to_response(), status=status.HTTP_404_NOT_FOUND)

        account = result.data
        records = PayoutQueryService.get_recipient_payouts(
            account.recipient_type, account.pk
        )
        return Response(PayoutRecordSerializer(records, many=True).data)


class PayoutStatusView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="get_payout_status",
        summary="Get payout status",
        responses={
            200: OpenApiResponse(response=PayoutRecordSerializer),
            404: OpenApiResponse(description="Payout not found"),
        },
        tags=["Payouts"],
    )
    def get(self, request, external_payout_id: str):
        account_result = RecipientAccountService.get_account_for_user(request.user)
        if not account_result:
            return Response(
                account_result.to_response(), status=status.HTTP_404_NOT_FOUND
            )

        account = account_result.data
        result = PayoutQueryService.get_payout_status(
            external_payout_id,
            recipient_type=account.recipient_type,
            recipient_id=account.pk,
        )
        if not result:
            return Response(result.to_response(), status=status.HTTP_404_NOT_FOUND)
        return Response(PayoutRecordSerializer(result.data).data)


class CommissionRatesView(APIView):
    permission_classes = [AllowAny]

    @extend_schema(
        operation_id="get_commission_rates",
        summary="Get commission rates",
        responses={200: OpenApiResponse(response=CommissionRatesSerializer)},
        tags=["Payouts"],
    )
    def get(self, request):
        rates = {name: int(rate * 100) for name, rate in COMMISSION_RATES.items()}
        return Response(CommissionRatesSerializer(rates).data)
