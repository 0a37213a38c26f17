"""
Tests for the RazorpayX webhook endpoint.
"""

import hashlib
import hmac
import json

import pytest
from django.urls import reverse

from payouts.models import WebhookEvent
from payouts.state_machines import WebhookEventStatus
from payouts.tasks import retry_failed_webhooks
from payouts.tests.factories import WebhookEventFactory, payout_webhook_payload

WEBHOOK_SECRET = "whsec_test_secret"


def sign(body: bytes, secret: str = WEBHOOK_SECRET) -> str:
    return hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()


@pytest.fixture(autouse=True)
def webhook_secret(settings):
    settings.RAZORPAY_WEBHOOK_SECRET = WEBHOOK_SECRET


@pytest.fixture
def mock_delay(mocker):
    return mocker.patch("payouts.tasks.process_webhook_event.delay")


@pytest.fixture
def body():
    return json.dumps(
        payout_webhook_payload("payout.processed", "pout_00000000000001", "processed")
    ).encode()


def post(client, body, signature=None, event_id="evt_00000000000001"):
    headers = {}
    if signature is not None:
        headers["HTTP_X_RAZORPAY_SIGNATURE"] = signature
    if event_id is not None:
        headers["HTTP_X_RAZORPAY_EVENT_ID"] = event_id
    return client.post(
        reverse("payouts:razorpay_webhook"),
        data=body,
        content_type="application/json",
        **headers,
    )


@pytest.mark.django_db
class TestRazorpayWebhookView:
    def test_valid_event_is_stored_and_queued(self, client, body, mock_delay):
        response = post(client, body, sign(body))

        assert response.status_code == 200
        event = WebhookEvent.objects.get(gateway_event_id="evt_00000000000001")
        assert event.event_type == "payout.processed"
        assert event.status == WebhookEventStatus.PENDING
        assert event.get_payout_entity()["id"] == "pout_00000000000001"
        mock_delay.assert_called_once_with(str(event.id))

    def test_missing_signature(self, client, body, mock_delay):
        response = post(client, body)

        assert response.status_code == 400
        assert not WebhookEvent.objects.exists()
        mock_delay.assert_not_called()

    def test_wrong_signature(self, client, body, mock_delay):
        response = post(client, body, sign(body, "other_secret"))

        assert response.status_code == 400
        assert not WebhookEvent.objects.exists()

    def test_tampered_body(self, client, body, mock_delay):
        signature = sign(body)

        response = post(client, body.replace(b"processed", b"failed"), signature)

        assert response.status_code == 400

    def test_invalid_json(self, client, mock_delay):
        body = b"not json"

        response = post(client, body, sign(body))

        assert response.status_code == 400
        assert response.content == b"Invalid payload"

    def test_missing_event_type(self, client, mock_delay):
        body = json.dumps({"payload": {}}).encode()

        response = post(client, body, sign(body))

        assert response.status_code == 400
        assert response.content == b"Invalid event"

    def test_duplicate_event_is_stored_once(self, client, body, mock_delay):
        post(client, body, sign(body))
        response = post(client, body, sign(body))

        assert response.status_code == 200
        assert WebhookEvent.objects.count() == 1

    def test_already_processed_event(self, client, body, mock_delay):
        WebhookEventFactory(
            gateway_event_id="evt_00000000000001",
            status=WebhookEventStatus.PROCESSED,
        )

        response = post(client, body, sign(body))

        assert response.status_code == 200
        assert response.content == b"Already processed"
        mock_delay.assert_not_called()

    def test_body_digest_without_event_id(self, client, body, mock_delay):
        """Byte-identical redeliveries collapse into one event."""
        post(client, body, sign(body), event_id=None)
        post(client, body, sign(body), event_id=None)

        event = WebhookEvent.objects.get()
        assert event.gateway_event_id == f"body_{hashlib.sha256(body).hexdigest()}"

    def test_queue_failure_still_returns_200(self, client, body, mock_delay):
        mock_delay.side_effect = ConnectionError("broker down")

        response = post(client, body, sign(body))

        assert response.status_code == 200
        assert WebhookEvent.objects.count() == 1

    def test_queue_failure_leaves_event_for_retry_sweep(self, client, body, mock_delay):
        """Should mark the stored event failed so retry_failed_webhooks picks it up."""
        mock_delay.side_effect = ConnectionError("broker down")

        post(client, body, sign(body))

        event = WebhookEvent.objects.get(gateway_event_id="evt_00000000000001")
        assert event.status == WebhookEventStatus.FAILED
        assert event.retry_count == 0
        assert "broker down" in event.error_message

        mock_delay.side_effect = None
        mock_delay.reset_mock()
        assert retry_failed_webhooks() == {"queued": 1}
        mock_delay.assert_called_once_with(str(event.id))

    def test_get_not_allowed(self, client):
        response = client.get(reverse("payouts:razorpay_webhook"))

        assert response.status_code == 405
