"""
DRF serializers for the payouts API.

Related files:
    - views.py: Payout list, status and commission-rate endpoints
    - services/payout_query_service.py: PayoutQueryService
"""

from __future__ import annotations

from rest_framework import serializers

from payouts.models import PayoutRecord


class PayoutRecordSerializer(serializers.ModelSerializer):
    """
    Payout attempt as shown to its recipient.

    Bank details, order snapshot and raw gateway response are internal and
    not exposed.
    """

    class Meta:
        model = PayoutRecord
        fields = [
            "id",
            "external_payout_id",
            "reference_id",
            "order_id",
            "amount",
            "currency",
            "mode",
            "method",
            "status",
            "failure_reason",
            "created_at",
            "processed_at",
            "failed_at",
            "cancelled_at",
        ]
        read_only_fields = fields


class CommissionRatesSerializer(serializers.Serializer):
    """Commission rates as percentages."""

    restaurant = serializers.IntegerField(read_only=True)
    delivery = serializers.IntegerField(read_only=True)
    platform = serializers.IntegerField(read_only=True)
