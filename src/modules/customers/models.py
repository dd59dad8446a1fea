"""Customer model: the buyer record orders can link to.

An order linked to a customer copies ``buyer_name``, ``phone_number``
and ``address`` from here at write time.  ``user_id`` ties the record to
a storefront login so a customer principal only sees their own orders.
"""

from __future__ import annotations

from django.db import models

from modules.core.models import BaseModel


class Customer(BaseModel):
    """Customer aggregate root.

    ``phone_number`` is unique: the storefront upserts customers by phone.
    """

    user_id = models.CharField(
        max_length=64,
        null=True,
        blank=True,
        unique=True,
        default=None,
    )
    buyer_name = models.CharField(max_length=120)
    phone_number = models.CharField(max_length=40, unique=True)
    address = models.CharField(max_length=500)

    class Meta:
        db_table = "customers"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["-created_at"], name="customers_created_idx"),
        ]

    def __str__(self) -> str:
        suffix = self.phone_number[-4:] if self.phone_number else "????"
        return f"{self.buyer_name} (***{suffix})"
