"""Resolvers that copy trusted data from other records onto an order.

``BouquetSnapshotResolver`` favours availability: if the catalog cannot
answer, the order is still written with the caller's name and price.
``CustomerLinkResolver`` is strict: a linked order must point at a real
customer.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

import structlog
from django.db import DatabaseError, transaction

from modules.core.validation import normalize_string, parse_non_negative_int
from modules.orders.constants import (
    ADDRESS_MAX_LENGTH,
    BOUQUET_NAME_MAX_LENGTH,
    BUYER_NAME_MAX_LENGTH,
    PHONE_NUMBER_MAX_LENGTH,
)
from modules.orders.exceptions import CustomerNotFound

if TYPE_CHECKING:
    from modules.bouquets.repositories.interfaces import IBouquetRepository
    from modules.customers.repositories.interfaces import ICustomerRepository

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class BouquetSnapshot:
    name: str
    price: int


@dataclass(frozen=True)
class SnapshotLookup:
    """Outcome of a catalog look-up: either a snapshot or the reason it failed."""

    snapshot: Optional[BouquetSnapshot] = None
    error: str = ""

    @property
    def found(self) -> bool:
        return self.snapshot is not None

    def or_fallback(self, name: str, price: int) -> BouquetSnapshot:
        if self.snapshot is not None:
            return self.snapshot
        return BouquetSnapshot(name=name, price=price)


@dataclass(frozen=True)
class BuyerSnapshot:
    buyer_name: str
    phone_number: str
    address: str


class BouquetSnapshotResolver:
    """Produce the bouquet name/price an order should store."""

    def __init__(self, bouquet_repository: IBouquetRepository) -> None:
        self._bouquet_repo = bouquet_repository

    def lookup(self, bouquet_id: str) -> SnapshotLookup:
        """Query the catalog; never raises."""
        try:
            # savepoint: a failed read must not poison the caller's transaction
            with transaction.atomic():
                bouquet = self._bouquet_repo.get_by_id(bouquet_id)
        except DatabaseError as exc:
            return SnapshotLookup(error=f"catalog unavailable: {exc}")
        if bouquet is None or not isinstance(bouquet.name, str):
            return SnapshotLookup(error="bouquet not found")
        return SnapshotLookup(
            snapshot=BouquetSnapshot(
                name=bouquet.name.strip()[:BOUQUET_NAME_MAX_LENGTH],
                price=parse_non_negative_int(bouquet.price),
            )
        )

    def resolve(
        self, bouquet_id: str, fallback_name: str, fallback_price: int
    ) -> BouquetSnapshot:
        """Catalog values when available, otherwise the caller's values."""
        result = self.lookup(bouquet_id)
        if not result.found:
            logger.warning(
                "order.snapshot_fallback",
                bouquet_id=bouquet_id,
                reason=result.error,
            )
        return result.or_fallback(fallback_name, fallback_price)


class CustomerLinkResolver:
    """Produce the buyer fields of an order linked to a customer."""

    def __init__(self, customer_repository: ICustomerRepository) -> None:
        self._customer_repo = customer_repository

    def resolve(self, customer_id: str) -> BuyerSnapshot:
        """Copy buyer fields from the customer record.

        Raises:
            CustomerNotFound: *customer_id* does not resolve to a customer.
        """
        customer = self._customer_repo.get_by_id(customer_id)
        if customer is None:
            logger.warning("order.customer_link_invalid", customer_id=customer_id)
            raise CustomerNotFound(f"Customer {customer_id} not found.")
        return BuyerSnapshot(
            buyer_name=normalize_string(customer.buyer_name, BUYER_NAME_MAX_LENGTH),
            phone_number=normalize_string(
                customer.phone_number, PHONE_NUMBER_MAX_LENGTH
            ),
            address=normalize_string(customer.address, ADDRESS_MAX_LENGTH),
        )
