"""Customer repository interface.

The order subsystem only reads customers: by primary key when an order
is linked, and by ``user_id`` when a customer principal lists orders.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.customers.models import Customer


class ICustomerRepository(IRepository["Customer"]):
    """Repository contract for the Customer aggregate."""

    @abstractmethod
    def get_by_user_id(self, user_id: str) -> Optional[Customer]:
        """Retrieve the customer record owned by a storefront login."""
