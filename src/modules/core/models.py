"""Base abstract model shared by the storefront modules."""

from __future__ import annotations

import uuid6
from django.db import models


class BaseModel(models.Model):
    """UUIDv7 primary key plus creation/modification timestamps.

    UUIDv7 ids sort by creation time, so ``-id`` breaks ``created_at``
    ties in newest-first listings.  Records are hard-deleted.
    """

    id = models.UUIDField(
        primary_key=True,
        default=uuid6.uuid7,
        editable=False,
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True
