"""
End-to-end payout journeys: distribution, gateway webhooks and rider assignment.

The gateway and Redis are mocked; everything else (services, tasks, webhook
view, handlers, ledger) runs for real.
"""

import hashlib
import hmac
import json

import pytest
from django.urls import reverse

from payouts.models import OrderDistribution, PayoutRecord, WebhookEvent
from payouts.state_machines import DistributionStatus, PayoutStatus, WebhookEventStatus
from payouts.tasks import assign_delivery_rider, distribute_order_payment, process_webhook_event
from payouts.tests.factories import payout_webhook_payload
from recipients.models import RecipientType

WEBHOOK_SECRET = "whsec_journey"

pytestmark = pytest.mark.django_db


@pytest.fixture(autouse=True)
def _infrastructure(settings, mock_redis_lock, payout_gateway, platform_account):
    settings.RAZORPAY_WEBHOOK_SECRET = WEBHOOK_SECRET


@pytest.fixture
def deliver_webhooks(client, mocker):
    """Post a signed webhook and run the queued task inline."""
    mocker.patch(
        "payouts.tasks.process_webhook_event.delay",
        side_effect=lambda event_id: process_webhook_event(event_id),
    )

    def deliver(event_type, payout_id, status, event_id, failure_reason=None):
        body = json.dumps(
            payout_webhook_payload(event_type, payout_id, status, failure_reason)
        ).encode()
        signature = hmac.new(WEBHOOK_SECRET.encode(), body, hashlib.sha256).hexdigest()
        return client.post(
            reverse("payouts:razorpay_webhook"),
            data=body,
            content_type="application/json",
            HTTP_X_RAZORPAY_SIGNATURE=signature,
            HTTP_X_RAZORPAY_EVENT_ID=event_id,
        )

    return deliver


def run_distribution(restaurant, rider=None, order_id="ORD-5001", total=100000):
    return distribute_order_payment.apply(
        args=[
            {"order_id": order_id},
            total,
            str(restaurant.pk),
            str(rider.pk) if rider else None,
        ]
    ).get()


class TestPayoutJourneys:
    def test_distribution_then_processed_webhooks(
        self, restaurant, rider, platform_account, deliver_webhooks
    ):
        result = run_distribution(restaurant, rider)
        assert result["status"] == DistributionStatus.FULLY_DISTRIBUTED

        for i, record in enumerate(PayoutRecord.objects.all()):
            response = deliver_webhooks(
                "payout.processed", record.external_payout_id, "processed", f"evt_{i}"
            )
            assert response.status_code == 200

        assert set(PayoutRecord.objects.values_list("status", flat=True)) == {
            PayoutStatus.PROCESSED
        }
        assert set(WebhookEvent.objects.values_list("status", flat=True)) == {
            WebhookEventStatus.PROCESSED
        }
        restaurant.refresh_from_db()
        rider.refresh_from_db()
        platform_account.refresh_from_db()
        assert (
            restaurant.total_earnings + rider.total_earnings + platform_account.total_earnings
            == 100000
        )

    def test_failed_payout_moves_credit_to_pending(
        self, restaurant, rider, deliver_webhooks
    ):
        run_distribution(restaurant, rider)
        record = PayoutRecord.objects.get(recipient_type=RecipientType.RESTAURANT)

        deliver_webhooks(
            "payout.failed",
            record.external_payout_id,
            "failed",
            "evt_fail",
            failure_reason="Beneficiary account frozen",
        )
        # Gateway redelivers the same event
        deliver_webhooks(
            "payout.failed", record.external_payout_id, "failed", "evt_fail"
        )
        # Out-of-order processed event
        deliver_webhooks(
            "payout.processed", record.external_payout_id, "processed", "evt_late"
        )

        record = PayoutRecord.objects.get(pk=record.pk)
        assert record.status == PayoutStatus.FAILED
        assert record.failure_reason == "Beneficiary account frozen"
        restaurant.refresh_from_db()
        assert restaurant.balance == 0
        assert restaurant.pending_amount == 80000
        assert restaurant.total_earnings == 80000

    def test_rider_assigned_after_distribution(self, restaurant, rider, platform_account):
        first = run_distribution(restaurant)
        assert first["status"] == DistributionStatus.PARTIALLY_DISTRIBUTED
        platform_account.refresh_from_db()
        assert platform_account.balance == 20000

        second = assign_delivery_rider.apply(args=["ORD-5001", str(rider.pk)]).get()

        assert second["status"] == DistributionStatus.FULLY_DISTRIBUTED
        platform_account.refresh_from_db()
        rider.refresh_from_db()
        assert platform_account.balance == 5000
        assert rider.balance == 15000
        distribution = OrderDistribution.objects.get(order_id="ORD-5001")
        assert distribution.delivery_rider_id == rider.pk

    def test_retried_task_does_not_pay_twice(self, restaurant, rider, payout_gateway):
        run_distribution(restaurant, rider)
        run_distribution(restaurant, rider)

        assert payout_gateway.create_payout.call_count == 2
        assert PayoutRecord.objects.count() == 2
        restaurant.refresh_from_db()
        assert restaurant.total_earnings == 80000
