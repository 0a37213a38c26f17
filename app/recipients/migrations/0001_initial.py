import uuid

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="DeliveryRider",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        help_text="Unique identifier (UUID v4)",
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="Timestamp when this record was created",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        help_text="Timestamp when this record was last modified",
                    ),
                ),
                (
                    "name",
                    models.CharField(
                        help_text="Display name, also used as the payout contact name",
                        max_length=255,
                    ),
                ),
                (
                    "balance",
                    models.PositiveBigIntegerField(
                        default=0,
                        help_text="Internal ledger balance in smallest currency unit",
                    ),
                ),
                (
                    "total_earnings",
                    models.PositiveBigIntegerField(
                        default=0,
                        help_text="Lifetime credited earnings in smallest currency unit",
                    ),
                ),
                (
                    "pending_amount",
                    models.PositiveBigIntegerField(
                        default=0,
                        help_text="Amount awaiting manual settlement in smallest currency unit",
                    ),
                ),
                (
                    "bank_account_number",
                    models.TextField(
                        blank=True, default="", help_text="Encrypted bank account number"
                    ),
                ),
                (
                    "bank_ifsc_code",
                    models.TextField(
                        blank=True, default="", help_text="Encrypted IFSC code"
                    ),
                ),
                (
                    "bank_account_holder_name",
                    models.CharField(blank=True, default="", max_length=255),
                ),
                ("bank_name", models.CharField(blank=True, default="", max_length=255)),
                (
                    "bank_details_verified",
                    models.BooleanField(
                        default=False,
                        help_text="Set by operations after a penny-drop check",
                    ),
                ),
                (
                    "user",
                    models.OneToOneField(
                        blank=True,
                        help_text="Login that owns this account",
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="deliveryrider_account",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Delivery Rider",
                "verbose_name_plural": "Delivery Riders",
                "ordering": ["name"],
                "abstract": False,
            },
        ),
        migrations.CreateModel(
            name="PlatformAccount",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        help_text="Unique identifier (UUID v4)",
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="Timestamp when this record was created",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        help_text="Timestamp when this record was last modified",
                    ),
                ),
                (
                    "name",
                    models.CharField(
                        help_text="Display name, also used as the payout contact name",
                        max_length=255,
                    ),
                ),
                (
                    "balance",
                    models.PositiveBigIntegerField(
                        default=0,
                        help_text="Internal ledger balance in smallest currency unit",
                    ),
                ),
                (
                    "total_earnings",
                    models.PositiveBigIntegerField(
                        default=0,
                        help_text="Lifetime credited earnings in smallest currency unit",
                    ),
                ),
                (
                    "pending_amount",
                    models.PositiveBigIntegerField(
                        default=0,
                        help_text="Amount awaiting manual settlement in smallest currency unit",
                    ),
                ),
                (
                    "bank_account_number",
                    models.TextField(
                        blank=True, default="", help_text="Encrypted bank account number"
                    ),
                ),
                (
                    "bank_ifsc_code",
                    models.TextField(
                        blank=True, default="", help_text="Encrypted IFSC code"
                    ),
                ),
                (
                    "bank_account_holder_name",
                    models.CharField(blank=True, default="", max_length=255),
                ),
                ("bank_name", models.CharField(blank=True, default="", max_length=255)),
                (
                    "bank_details_verified",
                    models.BooleanField(
                        default=False,
                        help_text="Set by operations after a penny-drop check",
                    ),
                ),
                (
                    "user",
                    models.OneToOneField(
                        blank=True,
                        help_text="Login that owns this account",
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="platformaccount_account",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Platform Account",
                "verbose_name_plural": "Platform Accounts",
                "ordering": ["name"],
                "abstract": False,
            },
        ),
        migrations.CreateModel(
            name="Restaurant",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        help_text="Unique identifier (UUID v4)",
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="Timestamp when this record was created",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        help_text="Timestamp when this record was last modified",
                    ),
                ),
                (
                    "name",
                    models.CharField(
                        help_text="Display name, also used as the payout contact name",
                        max_length=255,
                    ),
                ),
                (
                    "balance",
                    models.PositiveBigIntegerField(
                        default=0,
                        help_text="Internal ledger balance in smallest currency unit",
                    ),
                ),
                (
                    "total_earnings",
                    models.PositiveBigIntegerField(
                        default=0,
                        help_text="Lifetime credited earnings in smallest currency unit",
                    ),
                ),
                (
                    "pending_amount",
                    models.PositiveBigIntegerField(
                        default=0,
                        help_text="Amount awaiting manual settlement in smallest currency unit",
                    ),
                ),
                (
                    "bank_account_number",
                    models.TextField(
                        blank=True, default="", help_text="Encrypted bank account number"
                    ),
                ),
                (
                    "bank_ifsc_code",
                    models.TextField(
                        blank=True, default="", help_text="Encrypted IFSC code"
                    ),
                ),
                (
                    "bank_account_holder_name",
                    models.CharField(blank=True, default="", max_length=255),
                ),
                ("bank_name", models.CharField(blank=True, default="", max_length=255)),
                (
                    "bank_details_verified",
                    models.BooleanField(
                        default=False,
                        help_text="Set by operations after a penny-drop check",
                    ),
                ),
                (
                    "user",
                    models.OneToOneField(
                        blank=True,
                        help_text="Login that owns this account",
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="restaurant_account",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Restaurant",
                "verbose_name_plural": "Restaurants",
                "ordering": ["name"],
                "abstract": False,
            },
        ),
    ]
