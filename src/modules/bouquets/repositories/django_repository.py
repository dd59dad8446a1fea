"""Django ORM implementation of the Bouquet repository."""

from __future__ import annotations

from typing import Optional

from django.core.exceptions import ValidationError

from modules.bouquets.models import Bouquet
from modules.bouquets.repositories.interfaces import IBouquetRepository


class BouquetDjangoRepository(IBouquetRepository):
    """Concrete Bouquet repository backed by Django ORM."""

    def get_by_id(self, id: str) -> Optional[Bouquet]:
        """Retrieve a bouquet projecting only ``name`` and ``price``.

        Returns ``None`` for non-existent or invalid IDs.  Database errors
        propagate; the caller decides whether they are fatal.
        """
        if not id:
            return None
        try:
            return Bouquet.objects.only("id", "name", "price").filter(id=id).first()
        except (ValueError, ValidationError):
            return None
