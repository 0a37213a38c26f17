"""
DRF views for the recipients API.

Endpoints:
    GET    /api/v1/recipients/me/balance/               - Earnings summary
    PUT    /api/v1/recipients/me/bank-details/          - Replace bank details
    DELETE /api/v1/recipients/me/bank-details/          - Remove bank details
    POST   /api/v1/recipients/bank-details/validate/    - Check bank details
    GET    /api/v1/recipients/balances/                 - All balances (staff)

The caller's account is resolved from request.user; a user without a linked
restaurant, rider or platform account gets 404 from the /me/ endpoints.
"""

from __future__ import annotations

import logging

from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.permissions import IsAdminUser, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from payouts.exceptions import PayoutGatewayError
from recipients.exceptions import BankDetailsDecryptionError
from recipients.serializers import (
    AllBalancesSerializer,
    BalanceSerializer,
    BankAccountValidationRequestSerializer,
    BankAccountValidationSerializer,
    BankDetailsUpdateSerializer,
)
from recipients.services import RecipientAccountService

logger = logging.getLogger(__name__)


def _account_not_found(result) -> Response:
    return Response(result.to_response(), status=status.HTTP_404_NOT_FOUND)


class BalanceView(APIView):
    """
    GET /api/v1/recipients/me/balance/
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="get_recipient_balance",
        summary="Get earnings balance",
        description=(
            "Balance, lifetime earnings, pending settlement and commission rate "
            "for the caller's earnings account. Bank account number is masked."
        ),
        responses={
            200: OpenApiResponse(response=BalanceSerializer),
            404: OpenApiResponse(description="No earnings account for this user"),
        },
        tags=["Recipients"],
    )
    def get(self, request):
        result = RecipientAccountService.get_account_for_user(request.user)
        if not result:
            return _account_not_found(result)

        try:
            summary = RecipientAccountService.get_balance_summary(result.data)
        except BankDetailsDecryptionError as exc:
            logger.error(
                "Bank details unreadable for recipient",
                extra={"recipient_id": str(result.data.pk)},
            )
            return Response(exc.to_dict(), status=status.HTTP_500_INTERNAL_SERVER_ERROR)

        return Response(BalanceSerializer(summary).data)


class BankDetailsView(APIView):
    """
    PUT/DELETE /api/v1/recipients/me/bank-details/
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="update_recipient_bank_details",
        summary="Update bank details",
        description=(
            "Replace the payout bank account. Values are encrypted at rest and "
            "verification is reset until operations re-verify the account."
        ),
        request=BankDetailsUpdateSerializer,
        responses={
            200: OpenApiResponse(response=BalanceSerializer),
            400: OpenApiResponse(description="Invalid account number or IFSC"),
            404: OpenApiResponse(description="No earnings account for this user"),
        },
        tags=["Recipients"],
    )
    def put(self, request):
        result = RecipientAccountService.get_account_for_user(request.user)
        if not result:
            return _account_not_found(result)

        serializer = BankDetailsUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        account = RecipientAccountService.update_bank_details(
            result.data, **serializer.validated_data
        )
        summary = RecipientAccountService.get_balance_summary(account)
        return Response(BalanceSerializer(summary).data)

    @extend_schema(
        operation_id="delete_recipient_bank_details",
        summary="Remove bank details",
        responses={
            204: OpenApiResponse(description="Bank details removed"),
            404: OpenApiResponse(description="No earnings account for this user"),
        },
        tags=["Recipients"],
    )
    def delete(self, request):
        result = RecipientAccountService.get_account_for_user(request.user)
        if not result:
            return _account_not_found(result)

        RecipientAccountService.clear_bank_details(result.data)
        return Response(status=status.HTTP_204_NO_CONTENT)


class BankAccountValidationView(APIView):
    """
    POST /api/v1/recipients/bank-details/validate/
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="validate_bank_account",
        summary="Validate bank account",
        description=(
            "Check an account number and IFSC code with the payout gateway "
            "before saving them. Falls back to an IFSC lookup when the gateway "
            "cannot validate the account."
        ),
        request=BankAccountValidationRequestSerializer,
        responses={
            200: OpenApiResponse(response=BankAccountValidationSerializer),
            400: OpenApiResponse(description="Invalid account number or IFSC"),
            503: OpenApiResponse(description="Payout gateway unreachable"),
        },
        tags=["Recipients"],
    )
    def post(self, request):
        serializer = BankAccountValidationRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            validation = RecipientAccountService.validate_bank_account(
                **serializer.validated_data
            )
        except PayoutGatewayError as exc:
            return Response(exc.to_dict(), status=status.HTTP_503_SERVICE_UNAVAILABLE)

        return Response(BankAccountValidationSerializer(validation.to_dict()).data)


class AllBalancesView(APIView):
    """
    GET /api/v1/recipients/balances/
    """

    permission_classes = [IsAdminUser]

    @extend_schema(
        operation_id="list_all_balances",
        summary="List all earnings balances",
        description=(
            "Balance, lifetime earnings and pending settlement for every "
            "restaurant, delivery rider and the platform. Staff only."
        ),
        responses={200: OpenApiResponse(response=AllBalancesSerializer)},
        tags=["Recipients"],
    )
    def get(self, request):
        overview = RecipientAccountService.get_all_balances()
        return Response(AllBalancesSerializer(overview).data)
