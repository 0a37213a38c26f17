"""
Tests for PayoutReconciler.

Tests cover:
- Status transitions driven by gateway updates
- Moving failed payout credits to pending settlement, exactly once
- Replays, out-of-order updates and unknown payouts
- The stale payout sweep
"""

from datetime import timedelta

import pytest
from freezegun import freeze_time

from payouts.adapters import PayoutResult
from payouts.exceptions import PayoutGatewayTimeoutError
from payouts.models import PayoutRecord
from payouts.services import PayoutReconciler
from payouts.state_machines import PayoutMethod, PayoutStatus
from payouts.tests.factories import PayoutRecordFactory
from recipients.models import Restaurant

pytestmark = pytest.mark.django_db


@pytest.fixture
def credited_restaurant(restaurant):
    """Restaurant already credited for an accepted 80000 payout."""
    Restaurant.objects.filter(pk=restaurant.pk).update(
        balance=80000, total_earnings=80000
    )
    restaurant.refresh_from_db()
    return restaurant


@pytest.fixture
def payout(credited_restaurant):
    return PayoutRecordFactory(
        recipient=credited_restaurant,
        external_payout_id="pout_00000000000001",
        status=PayoutStatus.PROCESSING,
        gateway_status="processing",
    )


def reload(record):
    return PayoutRecord.objects.get(pk=record.pk)


class TestApplyGatewayStatus:
    def test_processed(self, payout, credited_restaurant):
        """Should mark processed and leave the balance alone."""
        result = PayoutReconciler.apply_gateway_status(payout.external_payout_id, "processed")

        assert result.success
        assert result.data.action == "updated"
        record = reload(payout)
        assert record.status == PayoutStatus.PROCESSED
        assert record.processed_at is not None
        assert record.gateway_status == "processed"
        credited_restaurant.refresh_from_db()
        assert credited_restaurant.balance == 80000

    def test_failed_moves_credit_to_pending(self, payout, credited_restaurant):
        result = PayoutReconciler.apply_gateway_status(
            payout.external_payout_id, "failed", failure_reason="Beneficiary bank offline"
        )

        assert result.data.compensated is True
        record = reload(payout)
        assert record.status == PayoutStatus.FAILED
        assert record.failure_reason == "Beneficiary bank offline"
        assert record.compensated_at is not None
        credited_restaurant.refresh_from_db()
        assert credited_restaurant.balance == 0
        assert credited_restaurant.pending_amount == 80000
        assert credited_restaurant.total_earnings == 80000

    def test_failed_replay_compensates_once(self, payout, credited_restaurant):
        with freeze_time("2026-01-01 10:00:00") as frozen:
            PayoutReconciler.apply_gateway_status(payout.external_payout_id, "failed")
            failed_at = reload(payout).failed_at

            frozen.tick(delta=timedelta(minutes=10))
            result = PayoutReconciler.apply_gateway_status(
                payout.external_payout_id, "failed"
            )

        assert result.data.action == "duplicate"
        assert result.data.compensated is False
        assert reload(payout).failed_at == failed_at
        credited_restaurant.refresh_from_db()
        assert credited_restaurant.pending_amount == 80000
        assert credited_restaurant.balance == 0

    def test_processed_replay_keeps_timestamp(self, payout):
        with freeze_time("2026-01-01 10:00:00") as frozen:
            PayoutReconciler.apply_gateway_status(payout.external_payout_id, "processed")
            processed_at = reload(payout).processed_at

            frozen.tick(delta=timedelta(minutes=10))
            result = PayoutReconciler.apply_gateway_status(
                payout.external_payout_id, "processed"
            )

        assert result.data.action == "duplicate"
        assert reload(payout).processed_at == processed_at

    def test_reversed_is_treated_as_failed(self, payout, credited_restaurant):
        PayoutReconciler.apply_gateway_status(payout.external_payout_id, "reversed")

        assert reload(payout).status == PayoutStatus.FAILED
        credited_restaurant.refresh_from_db()
        assert credited_restaurant.pending_amount == 80000

    def test_cancelled_compensates(self, payout, credited_restaurant):
        PayoutReconciler.apply_gateway_status(payout.external_payout_id, "cancelled")

        record = reload(payout)
        assert record.status == PayoutStatus.CANCELLED
        assert record.cancelled_at is not None
        credited_restaurant.refresh_from_db()
        assert credited_restaurant.pending_amount == 80000

    def test_short_balance_is_left_for_review(self, payout, credited_restaurant):
        """Should fail the record without compensating when the balance is gone."""
        Restaurant.objects.filter(pk=credited_restaurant.pk).update(balance=1000)

        result = PayoutReconciler.apply_gateway_status(payout.external_payout_id, "failed")

        assert result.data.compensated is False
        record = reload(payout)
        assert record.status == PayoutStatus.FAILED
        assert record.compensated_at is None
        credited_restaurant.refresh_from_db()
        assert credited_restaurant.balance == 1000
        assert credited_restaurant.pending_amount == 0

    def test_out_of_order_update_is_ignored(self, payout, credited_restaurant):
        """A late 'processed' must not overwrite a failure."""
        PayoutReconciler.apply_gateway_status(payout.external_payout_id, "failed")

        result = PayoutReconciler.apply_gateway_status(payout.external_payout_id, "processed")

        assert result.data.action == "ignored"
        assert result.data.reason == "terminal"
        assert reload(payout).status == PayoutStatus.FAILED

    def test_processing_from_queued(self, credited_restaurant):
        record = PayoutRecordFactory(recipient=credited_restaurant)

        PayoutReconciler.apply_gateway_status(record.external_payout_id, "processing")

        assert reload(record).status == PayoutStatus.PROCESSING

    def test_stores_gateway_payload(self, payout):
        PayoutReconciler.apply_gateway_status(
            payout.external_payout_id,
            "processed",
            gateway_payload={"id": payout.external_payout_id, "utr": "UTR123"},
        )

        assert reload(payout).gateway_response["last_update"]["utr"] == "UTR123"

    def test_unknown_payout(self, db):
        result = PayoutReconciler.apply_gateway_status("pout_unknown", "processed")

        assert result.success
        assert result.data.action == "ignored"
        assert result.data.reason == "unknown_payout"

    def test_missing_payout_id(self, db):
        result = PayoutReconciler.apply_gateway_status(None, "processed")

        assert result.data.reason == "missing_payout_id"

    def test_fallback_record_is_not_compensated(self, credited_restaurant):
        """Fallback records are already FAILED; the credit stays in balance."""
        record = PayoutRecordFactory(
            recipient=credited_restaurant,
            method=PayoutMethod.BALANCE_UPDATE_FALLBACK,
            status=PayoutStatus.FAILED,
            gateway_status="rejected",
        )

        result = PayoutReconciler.apply_gateway_status(record.external_payout_id, "failed")

        assert result.data.action == "duplicate"
        credited_restaurant.refresh_from_db()
        assert credited_restaurant.balance == 80000
        assert credited_restaurant.pending_amount == 0


class TestReconcileStalePayouts:
    @pytest.fixture
    def stale_payout(self, credited_restaurant):
        with freeze_time("2026-03-01 09:00:00"):
            return PayoutRecordFactory(
                recipient=credited_restaurant,
                status=PayoutStatus.PROCESSING,
                gateway_status="processing",
            )

    def _fetched(self, record, status, failure_reason=None):
        return PayoutResult(
            id=record.external_payout_id,
            status=status,
            amount=record.amount,
            failure_reason=failure_reason,
            raw_response={"id": record.external_payout_id, "status": status},
        )

    @freeze_time("2026-03-02 12:00:00")
    def test_applies_gateway_status(self, stale_payout, payout_gateway):
        payout_gateway.fetch_payout.return_value = self._fetched(stale_payout, "processed")

        counts = PayoutReconciler.reconcile_stale_payouts(stale_hours=24)

        assert counts == {"checked": 1, "updated": 1, "errors": 0}
        payout_gateway.fetch_payout.assert_called_once_with(stale_payout.external_payout_id)
        assert reload(stale_payout).status == PayoutStatus.PROCESSED

    @freeze_time("2026-03-02 12:00:00")
    def test_failed_payout_is_compensated(
        self, stale_payout, payout_gateway, credited_restaurant
    ):
        payout_gateway.fetch_payout.return_value = self._fetched(
            stale_payout, "failed", failure_reason="Account closed"
        )

        PayoutReconciler.reconcile_stale_payouts(stale_hours=24)

        record = reload(stale_payout)
        assert record.failure_reason == "Account closed"
        credited_restaurant.refresh_from_db()
        assert credited_restaurant.pending_amount == 80000

    @freeze_time("2026-03-02 12:00:00")
    def test_unchanged_status_is_skipped(self, stale_payout, payout_gateway):
        payout_gateway.fetch_payout.return_value = self._fetched(stale_payout, "processing")

        counts = PayoutReconciler.reconcile_stale_payouts(stale_hours=24)

        assert counts == {"checked": 1, "updated": 0, "errors": 0}

    @freeze_time("2026-03-02 12:00:00")
    def test_gateway_error_is_counted(self, stale_payout, payout_gateway):
        payout_gateway.fetch_payout.side_effect = PayoutGatewayTimeoutError("timed out")

        counts = PayoutReconciler.reconcile_stale_payouts(stale_hours=24)

        assert counts == {"checked": 1, "updated": 0, "errors": 1}
        assert reload(stale_payout).status == PayoutStatus.PROCESSING

    @freeze_time("2026-03-01 12:00:00")
    def test_recent_payouts_are_left_alone(self, stale_payout, payout_gateway):
        counts = PayoutReconciler.reconcile_stale_payouts(stale_hours=24)

        assert counts["checked"] == 0
        payout_gateway.fetch_payout.assert_not_called()

    @freeze_time("2026-03-02 12:00:00")
    def test_fallback_records_are_not_polled(self, credited_restaurant, payout_gateway):
        with freeze_time("2026-03-01 09:00:00"):
            PayoutRecordFactory(
                recipient=credited_restaurant,
                method=PayoutMethod.BALANCE_UPDATE_FALLBACK,
                status=PayoutStatus.FAILED,
                external_payout_id=None,
            )

        counts = PayoutReconciler.reconcile_stale_payouts(stale_hours=24)

        assert counts["checked"] == 0
