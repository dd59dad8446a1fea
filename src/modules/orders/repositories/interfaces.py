"""Order repository interface.

Extends ``IRepository[Order]`` with the writes the order lifecycle
needs: plain creation, a conditional field-level update and hard
deletion, plus the read helpers used by the query paths.

The Service Layer depends exclusively on this contract (DIP).
"""

from __future__ import annotations

from abc import abstractmethod
from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from django.db.models import QuerySet

    from modules.orders.models import Order


class IOrderRepository(IRepository["Order"]):
    """Repository contract for the Order document."""

    @abstractmethod
    def create(self, data: Dict[str, Any]) -> Order:
        """Insert an order built from already-normalized field values."""

    @abstractmethod
    def update(
        self,
        id: str,
        patch: Dict[str, Any],
        expected_version: Optional[int] = None,
    ) -> Optional[Order]:
        """Write *patch* in one conditional statement.

        The write only applies when the row still exists and, if
        *expected_version* is given, still carries that version.
        Returns the refreshed order, or ``None`` when nothing matched.
        """

    @abstractmethod
    def exists(self, id: str) -> bool:
        """``True`` when an order with *id* is stored."""

    @abstractmethod
    def delete(self, id: str) -> bool:
        """Hard-delete an order; ``False`` when it did not exist."""

    @abstractmethod
    def list(
        self,
        customer_id: Optional[str] = None,
        search_pattern: Optional[str] = None,
    ) -> QuerySet[Order]:
        """Orders newest first, optionally narrowed to one customer or
        to buyer name / phone number matching *search_pattern*."""

    @abstractmethod
    def stats(self, since: datetime, bouquet_id: Optional[str] = None) -> Dict[str, Any]:
        """``count`` of orders created since *since* and ``last_order_time``."""
