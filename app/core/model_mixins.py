"""
Model mixins combined with BaseModel.

Available Mixins:
    UUIDPrimaryKeyMixin: Use UUID as primary key
    MetadataMixin: JSON metadata column with small helpers

Usage:
    class OrderDistribution(UUIDPrimaryKeyMixin, MetadataMixin, BaseModel):
        order_id = models.CharField(max_length=64, unique=True)
"""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

from django.db import models

if TYPE_CHECKING:
    from typing import Any


class UUIDPrimaryKeyMixin(models.Model):
    """
    UUID primary key instead of an auto-increment integer.

    Recipient ids end up inside payout reference ids and API URLs, so they
    must not leak record counts.
    """

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
        help_text="Unique identifier (UUID v4)",
    )

    class Meta:
        abstract = True


class MetadataMixin(models.Model):
    """
    Flexible JSON metadata storage.

    Fields:
        metadata: JSONField for arbitrary key-value data
    """

    metadata = models.JSONField(
        default=dict,
        blank=True,
        help_text="Flexible key-value metadata storage",
    )

    class Meta:
        abstract = True

    def get_meta(self, key: str, default: Any = None) -> Any:
        return self.metadata.get(key, default)

    def set_meta(self, key: str, value: Any, save: bool = True) -> None:
        """
        Set a metadata value and optionally persist it.

        Args:
            key: Metadata key
            value: JSON-serializable value
            save: Whether to save the model (default True)
        """
        self.metadata[key] = value
        if save:
            self.save(update_fields=["metadata", "updated_at"])
