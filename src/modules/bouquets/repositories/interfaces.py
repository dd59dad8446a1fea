"""Bouquet repository interface.

Read-only catalog look-up used to snapshot a bouquet onto an order.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.bouquets.models import Bouquet


class IBouquetRepository(IRepository["Bouquet"]):
    """Repository contract for the Bouquet catalog."""
