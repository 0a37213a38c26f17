import uuid

import django_fsm
from django.db import migrations, models


def _id_field():
    return models.UUIDField(
        default=uuid.uuid4,
        editable=False,
        help_text="Unique identifier (UUID v4)",
        primary_key=True,
        serialize=False,
    )


def _created_at_field():
    return models.DateTimeField(
        auto_now_add=True,
        db_index=True,
        help_text="Timestamp when this record was created",
    )


def _updated_at_field():
    return models.DateTimeField(
        auto_now=True,
        help_text="Timestamp when this record was last modified",
    )


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="OrderDistribution",
            fields=[
                ("id", _id_field()),
                ("created_at", _created_at_field()),
                ("updated_at", _updated_at_field()),
                (
                    "metadata",
                    models.JSONField(
                        blank=True,
                        default=dict,
                        help_text="Flexible key-value metadata storage",
                    ),
                ),
                (
                    "order_id",
                    models.CharField(
                        help_text="Order being distributed", max_length=64, unique=True
                    ),
                ),
                ("order_data", models.JSONField(blank=True, default=dict)),
                ("restaurant_id", models.UUIDField()),
                (
                    "delivery_rider_id",
                    models.UUIDField(
                        blank=True,
                        help_text="Rider paid for this order, once known",
                        null=True,
                    ),
                ),
                ("total_amount", models.PositiveBigIntegerField()),
                ("restaurant_amount", models.PositiveBigIntegerField()),
                ("delivery_amount", models.PositiveBigIntegerField()),
                (
                    "platform_amount",
                    models.PositiveBigIntegerField(
                        help_text="Platform commission before any delivery reallocation"
                    ),
                ),
                (
                    "status",
                    django_fsm.FSMField(
                        choices=[
                            ("distributing", "Distributing"),
                            ("partially_distributed", "Partially Distributed"),
                            ("fully_distributed", "Fully Distributed"),
                        ],
                        db_index=True,
                        default="distributing",
                        max_length=50,
                        protected=True,
                    ),
                ),
                (
                    "platform_credited_amount",
                    models.PositiveBigIntegerField(
                        blank=True,
                        help_text="Net amount credited to the platform for this order",
                        null=True,
                    ),
                ),
                (
                    "absorbed_delivery_amount",
                    models.PositiveBigIntegerField(
                        default=0,
                        help_text="Delivery share currently held by the platform",
                    ),
                ),
                ("platform_reclaim_shortfall", models.PositiveBigIntegerField(default=0)),
            ],
            options={
                "verbose_name": "Order Distribution",
                "verbose_name_plural": "Order Distributions",
                "ordering": ["-created_at"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(
                            total_amount=models.F("restaurant_amount")
                            + models.F("delivery_amount")
                            + models.F("platform_amount")
                        ),
                        name="distribution_split_sums_to_total",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="PayoutRecord",
            fields=[
                ("id", _id_field()),
                ("created_at", _created_at_field()),
                ("updated_at", _updated_at_field()),
                (
                    "external_payout_id",
                    models.CharField(
                        blank=True,
                        help_text="Gateway payout ID (pout_xxx)",
                        max_length=64,
                        null=True,
                        unique=True,
                    ),
                ),
                (
                    "reference_id",
                    models.CharField(
                        help_text="{recipient_type}_{recipient_id}_{order_id}_{timestamp}",
                        max_length=255,
                        unique=True,
                    ),
                ),
                (
                    "recipient_type",
                    models.CharField(
                        choices=[
                            ("restaurant", "Restaurant"),
                            ("delivery_boy", "Delivery Rider"),
                            ("admin", "Platform"),
                        ],
                        max_length=20,
                    ),
                ),
                ("recipient_id", models.UUIDField()),
                (
                    "recipient_name",
                    models.CharField(blank=True, default="", max_length=255),
                ),
                (
                    "order_id",
                    models.CharField(
                        db_index=True,
                        help_text="Order this payout distributes",
                        max_length=64,
                    ),
                ),
                (
                    "order_data",
                    models.JSONField(
                        blank=True, default=dict, help_text="Order snapshot for audit"
                    ),
                ),
                (
                    "amount",
                    models.PositiveBigIntegerField(
                        help_text="Payout amount in smallest currency unit"
                    ),
                ),
                ("currency", models.CharField(default="INR", max_length=3)),
                (
                    "mode",
                    models.CharField(
                        default="IMPS",
                        help_text="Bank transfer rail (IMPS, NEFT, RTGS, UPI)",
                        max_length=10,
                    ),
                ),
                ("purpose", models.CharField(default="payout", max_length=30)),
                ("narration", models.CharField(blank=True, default="", max_length=30)),
                (
                    "bank_details",
                    models.JSONField(
                        blank=True,
                        help_text="Bank details at attempt time (account number and IFSC encrypted)",
                        null=True,
                    ),
                ),
                (
                    "method",
                    models.CharField(
                        choices=[
                            ("razorpay_payout", "RazorpayX Payout"),
                            ("balance_update_fallback", "Balance Update (Fallback)"),
                        ],
                        default="razorpay_payout",
                        max_length=30,
                    ),
                ),
                (
                    "status",
                    django_fsm.FSMField(
                        choices=[
                            ("queued", "Queued"),
                            ("processing", "Processing"),
                            ("processed", "Processed"),
                            ("failed", "Failed"),
                            ("cancelled", "Cancelled"),
                        ],
                        db_index=True,
                        default="queued",
                        help_text="Current payout status (managed by FSM)",
                        max_length=50,
                        protected=True,
                    ),
                ),
                (
                    "gateway_status",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="Status string last reported by the gateway",
                        max_length=30,
                    ),
                ),
                (
                    "gateway_response",
                    models.JSONField(
                        blank=True,
                        default=dict,
                        help_text="Raw gateway response, or the error for failed attempts",
                    ),
                ),
                ("processed_at", models.DateTimeField(blank=True, null=True)),
                ("failed_at", models.DateTimeField(blank=True, null=True)),
                ("cancelled_at", models.DateTimeField(blank=True, null=True)),
                ("failure_reason", models.TextField(blank=True, null=True)),
                (
                    "compensated_at",
                    models.DateTimeField(
                        blank=True,
                        help_text="When the optimistic credit of a failed payout was moved to pending",
                        null=True,
                    ),
                ),
            ],
            options={
                "verbose_name": "Payout Record",
                "verbose_name_plural": "Payout Records",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(
                        fields=["recipient_type", "recipient_id"],
                        name="payout_recipient_idx",
                    ),
                    models.Index(
                        fields=["status", "created_at"],
                        name="payout_status_created_idx",
                    ),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(("status", "cancelled"), _negated=True),
                        fields=("recipient_type", "recipient_id", "order_id"),
                        name="payout_one_active_per_recipient_order",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="WebhookEvent",
            fields=[
                ("id", _id_field()),
                ("created_at", _created_at_field()),
                ("updated_at", _updated_at_field()),
                (
                    "gateway_event_id",
                    models.CharField(
                        help_text="X-Razorpay-Event-Id, or a digest of the body if absent",
                        max_length=255,
                        unique=True,
                    ),
                ),
                (
                    "event_type",
                    models.CharField(
                        db_index=True,
                        help_text="Gateway event type (e.g. 'payout.processed')",
                        max_length=100,
                    ),
                ),
                ("payload", models.JSONField(help_text="Full webhook body")),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("processing", "Processing"),
                            ("processed", "Processed"),
                            ("failed", "Failed"),
                        ],
                        db_index=True,
                        default="pending",
                        max_length=20,
                    ),
                ),
                ("processed_at", models.DateTimeField(blank=True, null=True)),
                ("error_message", models.TextField(blank=True, null=True)),
                (
                    "retry_count",
                    models.PositiveSmallIntegerField(
                        default=0, help_text="Number of processing attempts"
                    ),
                ),
            ],
            options={
                "verbose_name": "Webhook Event",
                "verbose_name_plural": "Webhook Events",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(
                        fields=["status", "created_at"],
                        name="webhook_status_created_idx",
                    ),
                ],
            },
        ),
    ]
