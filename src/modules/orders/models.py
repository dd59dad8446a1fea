"""Order model.

Business rules implemented:
- Buyer fields are a snapshot: copied from the linked customer or typed in.
- Bouquet name/price are a snapshot of the catalog at write time, so old
  orders stay readable after the bouquet is renamed, repriced or deleted.
- ``total_amount`` and ``payment_status`` are derived (see ``payments.py``).
- ``activity`` is an append-only JSON log capped at the 50 newest entries.
- ``version`` increases on every update; callers may send it back to get
  a conditional (optimistic) update.
- Hard delete; no tombstone.
"""

from __future__ import annotations

from django.db import models

from modules.core.models import BaseModel
from modules.orders.constants import (
    ADDRESS_MAX_LENGTH,
    BOUQUET_NAME_MAX_LENGTH,
    BUYER_NAME_MAX_LENGTH,
    CHOICE_MAX_LENGTH,
    ID_MAX_LENGTH,
    PHONE_NUMBER_MAX_LENGTH,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
)


class Order(BaseModel):
    """Order document.

    ``customer_id`` and ``bouquet_id`` are plain strings rather than
    foreign keys: the order must survive the referenced record.
    """

    customer_id: models.CharField = models.CharField(
        max_length=ID_MAX_LENGTH,
        null=True,
        blank=True,
        default=None,
        db_index=True,
    )
    buyer_name: models.CharField = models.CharField(max_length=BUYER_NAME_MAX_LENGTH)
    phone_number: models.CharField = models.CharField(
        max_length=PHONE_NUMBER_MAX_LENGTH
    )
    address: models.CharField = models.CharField(max_length=ADDRESS_MAX_LENGTH)

    bouquet_id: models.CharField = models.CharField(
        max_length=ID_MAX_LENGTH, db_index=True
    )
    bouquet_name: models.CharField = models.CharField(
        max_length=BOUQUET_NAME_MAX_LENGTH
    )
    bouquet_price: models.PositiveBigIntegerField = models.PositiveBigIntegerField(
        default=0
    )

    order_status: models.CharField = models.CharField(
        max_length=CHOICE_MAX_LENGTH,
        choices=OrderStatus.choices,
        default=OrderStatus.BERTANYA,
    )
    payment_status: models.CharField = models.CharField(
        max_length=CHOICE_MAX_LENGTH,
        choices=PaymentStatus.choices,
        default=PaymentStatus.BELUM_BAYAR,
    )
    payment_method: models.CharField = models.CharField(
        max_length=CHOICE_MAX_LENGTH,
        choices=PaymentMethod.choices,
        default=PaymentMethod.NONE,
        blank=True,
    )

    down_payment_amount: models.PositiveBigIntegerField = models.PositiveBigIntegerField(
        default=0
    )
    additional_payment: models.PositiveBigIntegerField = models.PositiveBigIntegerField(
        default=0
    )
    delivery_price: models.PositiveBigIntegerField = models.PositiveBigIntegerField(
        default=0
    )
    total_amount: models.PositiveBigIntegerField = models.PositiveBigIntegerField(
        default=0
    )

    delivery_at: models.DateTimeField = models.DateTimeField(null=True, blank=True)

    activity: models.JSONField = models.JSONField(default=list, blank=True)
    version: models.PositiveIntegerField = models.PositiveIntegerField(default=1)

    class Meta:
        db_table = "orders"
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["-created_at"], name="orders_created_idx"),
            models.Index(fields=["delivery_at"], name="orders_delivery_idx"),
            models.Index(
                fields=["order_status", "-created_at"],
                name="orders_status_created_idx",
            ),
            models.Index(
                fields=["payment_status", "-created_at"],
                name="orders_payment_created_idx",
            ),
        ]

    @property
    def is_linked(self) -> bool:
        """``True`` when buyer fields follow a customer record."""
        return bool(self.customer_id)

    def __str__(self) -> str:
        return f"{self.buyer_name} - {self.bouquet_name} ({self.order_status})"
