"""
Tests for payout webhook handlers.
"""

import pytest

from core.services import ServiceResult
from payouts.models import PayoutRecord
from payouts.state_machines import PayoutStatus
from payouts.tests.factories import (
    PayoutRecordFactory,
    WebhookEventFactory,
    payout_webhook_payload,
)
from payouts.webhooks.handlers import (
    WEBHOOK_HANDLERS,
    dispatch_webhook,
    register_handler,
)
from recipients.models import Restaurant

pytestmark = pytest.mark.django_db


def payout_event(event_type, payout_id, status, failure_reason=None):
    return WebhookEventFactory(
        event_type=event_type,
        payload=payout_webhook_payload(event_type, payout_id, status, failure_reason),
    )


@pytest.fixture
def payout(restaurant):
    Restaurant.objects.filter(pk=restaurant.pk).update(
        balance=80000, total_earnings=80000
    )
    return PayoutRecordFactory(
        recipient=restaurant,
        status=PayoutStatus.PROCESSING,
        gateway_status="processing",
    )


class TestDispatchWebhook:
    def test_unregistered_event_is_acknowledged(self):
        event = WebhookEventFactory(event_type="payout.queued")

        result = dispatch_webhook(event)

        assert result.success
        assert result.data == {"message": "No action taken"}

    def test_registered_handler_is_called(self, mocker):
        handler = mocker.Mock(return_value=ServiceResult.success({"ok": True}))
        mocker.patch.dict(WEBHOOK_HANDLERS, {"payout.custom": handler})
        event = WebhookEventFactory(event_type="payout.custom")

        result = dispatch_webhook(event)

        handler.assert_called_once_with(event)
        assert result.data == {"ok": True}

    def test_register_handler_decorator(self, mocker):
        mocker.patch.dict(WEBHOOK_HANDLERS, {})

        @register_handler("payout.reversed")
        def handle(event):
            return ServiceResult.success(None)

        assert WEBHOOK_HANDLERS["payout.reversed"] is handle

    def test_payout_handlers_are_registered(self):
        assert "payout.processed" in WEBHOOK_HANDLERS
        assert "payout.failed" in WEBHOOK_HANDLERS


class TestPayoutHandlers:
    def test_processed(self, payout):
        event = payout_event("payout.processed", payout.external_payout_id, "processed")

        result = dispatch_webhook(event)

        assert result.success
        assert result.data["action"] == "updated"
        assert PayoutRecord.objects.get(pk=payout.pk).status == PayoutStatus.PROCESSED

    def test_failed_compensates(self, payout, restaurant):
        event = payout_event(
            "payout.failed",
            payout.external_payout_id,
            "failed",
            failure_reason="Beneficiary account closed",
        )

        result = dispatch_webhook(event)

        assert result.data["compensated"] is True
        record = PayoutRecord.objects.get(pk=payout.pk)
        assert record.status == PayoutStatus.FAILED
        assert record.failure_reason == "Beneficiary account closed"
        restaurant.refresh_from_db()
        assert restaurant.balance == 0
        assert restaurant.pending_amount == 80000

    def test_failure_reason_from_status_details(self, payout):
        event = WebhookEventFactory(
            event_type="payout.failed",
            payload={
                "event": "payout.failed",
                "payload": {
                    "payout": {
                        "entity": {
                            "id": payout.external_payout_id,
                            "status": "failed",
                            "status_details": {"description": "IFSC invalid"},
                        }
                    }
                },
            },
        )

        dispatch_webhook(event)

        assert PayoutRecord.objects.get(pk=payout.pk).failure_reason == "IFSC invalid"

    def test_unknown_payout_is_ignored(self):
        event = payout_event("payout.processed", "pout_missing", "processed")

        result = dispatch_webhook(event)

        assert result.success
        assert result.data["reason"] == "unknown_payout"

    def test_missing_payout_id(self):
        event = WebhookEventFactory(
            event_type="payout.processed",
            payload={"event": "payout.processed", "payload": {}},
        )

        result = dispatch_webhook(event)

        assert not result.success
        assert result.error_code == "INVALID_WEBHOOK_PAYLOAD"
