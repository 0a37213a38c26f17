"""
Payout admin configuration.

Payout records and distributions are read-only: their state only changes
through the distribution service and gateway reconciliation.
"""

from django.contrib import admin

from payouts.models import OrderDistribution, PayoutRecord, WebhookEvent


class ReadOnlyAdmin(admin.ModelAdmin):
    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(PayoutRecord)
class PayoutRecordAdmin(ReadOnlyAdmin):
    list_display = [
        "reference_id",
        "recipient_type",
        "recipient_name",
        "order_id",
        "amount",
        "method",
        "status",
        "created_at",
    ]
    list_filter = ["status", "method", "recipient_type", "created_at"]
    search_fields = ["reference_id", "external_payout_id", "order_id", "recipient_name"]
    readonly_fields = [
        "id",
        "external_payout_id",
        "reference_id",
        "recipient_type",
        "recipient_id",
        "recipient_name",
        "order_id",
        "order_data",
        "amount",
        "currency",
        "mode",
        "purpose",
        "narration",
        "method",
        "status",
        "gateway_status",
        "gateway_response",
        "processed_at",
        "failed_at",
        "cancelled_at",
        "failure_reason",
        "compensated_at",
        "created_at",
        "updated_at",
    ]
    exclude = ["bank_details"]
    date_hierarchy = "created_at"
    ordering = ["-created_at"]


@admin.register(OrderDistribution)
class OrderDistributionAdmin(ReadOnlyAdmin):
    list_display = [
        "order_id",
        "total_amount",
        "status",
        "absorbed_delivery_amount",
        "platform_reclaim_shortfall",
        "created_at",
    ]
    list_filter = ["status", "created_at"]
    search_fields = ["order_id", "restaurant_id", "delivery_rider_id"]
    readonly_fields = [
        "id",
        "order_id",
        "order_data",
        "restaurant_id",
        "delivery_rider_id",
        "total_amount",
        "restaurant_amount",
        "delivery_amount",
        "platform_amount",
        "status",
        "platform_credited_amount",
        "absorbed_delivery_amount",
        "platform_reclaim_shortfall",
        "metadata",
        "created_at",
        "updated_at",
    ]
    ordering = ["-created_at"]


@admin.register(WebhookEvent)
class WebhookEventAdmin(admin.ModelAdmin):
    """Webhook events are immutable once received."""

    list_display = [
        "id",
        "gateway_event_id",
        "event_type",
        "status",
        "retry_count",
        "processed_at",
        "created_at",
    ]
    list_filter = ["status", "event_type", "created_at"]
    search_fields = ["id", "gateway_event_id", "event_type"]
    readonly_fields = [
        "id",
        "created_at",
        "updated_at",
        "gateway_event_id",
        "event_type",
        "payload",
        "processed_at",
    ]
    date_hierarchy = "created_at"
    ordering = ["-created_at"]
    actions = ["requeue_events"]

    @admin.action(description="Re-queue selected events for processing")
    def requeue_events(self, request, queryset):
        from payouts.tasks import process_webhook_event

        count = 0
        for event in queryset:
            if event.is_processed:
                continue
            process_webhook_event.delay(str(event.id))
            count += 1
        self.message_user(request, f"Queued {count} webhook events")
