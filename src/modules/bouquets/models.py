"""Bouquet model: the catalog entry an order snapshots.

Only the fields the order subsystem reads are modelled here: ``name``
and ``price`` (whole rupiah).  Catalog management lives elsewhere.
"""

from __future__ import annotations

from django.db import models

from modules.core.models import BaseModel


class Bouquet(BaseModel):
    """Catalog item aggregate root."""

    name = models.CharField(max_length=100)
    price = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = "bouquets"
        ordering = ["name"]
        indexes = [
            models.Index(fields=["name"], name="bouquets_name_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.name} (Rp {self.price})"
