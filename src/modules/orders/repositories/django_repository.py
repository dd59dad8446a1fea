"""Django ORM implementation of the Order repository.

Satisfies ``IOrderRepository`` using Django's QuerySet API.

Updates are a single ``UPDATE ... WHERE id = %s [AND version = %s]``
statement: the row is never locked between the service's read and its
write, so a stale ``version`` (or a row deleted meanwhile) simply
matches nothing.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db.models import F, Max, Q, QuerySet
from django.utils import timezone

from modules.orders.models import Order
from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)


class OrderDjangoRepository(IOrderRepository):
    """Concrete Order repository backed by Django ORM."""

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create(self, data: Dict[str, Any]) -> Order:
        order = Order(**data)
        order.save()
        logger.info(
            "order.inserted",
            order_id=str(order.id),
            bouquet_id=order.bouquet_id,
        )
        return order

    # ------------------------------------------------------------------
    # Update
    # ------------------------------------------------------------------

    def update(
        self,
        id: str,
        patch: Dict[str, Any],
        expected_version: Optional[int] = None,
    ) -> Optional[Order]:
        """Conditional update; ``None`` when the row is gone or stale."""
        try:
            queryset = Order.objects.filter(id=id)
            if expected_version is not None:
                queryset = queryset.filter(version=expected_version)
            matched = queryset.update(
                **patch,
                version=F("version") + 1,
                updated_at=timezone.now(),
            )
        except (ValueError, ValidationError):
            return None

        if not matched:
            logger.info(
                "order.update_unmatched",
                order_id=str(id),
                expected_version=expected_version,
            )
            return None
        return self.get_by_id(id)

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get_by_id(self, id: str) -> Optional[Order]:
        """Retrieve an order by primary key.

        Returns ``None`` for non-existent or invalid IDs (e.g. malformed UUID).
        """
        if not id:
            return None
        try:
            return Order.objects.filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def exists(self, id: str) -> bool:
        if not id:
            return False
        try:
            return Order.objects.filter(id=id).exists()
        except (ValueError, ValidationError):
            return False

    def list(
        self,
        customer_id: Optional[str] = None,
        search_pattern: Optional[str] = None,
    ) -> QuerySet[Order]:
        queryset = Order.objects.order_by("-created_at", "-id")
        if customer_id is not None:
            queryset = queryset.filter(customer_id=customer_id)
        if search_pattern:
            queryset = queryset.filter(
                Q(buyer_name__iregex=search_pattern)
                | Q(phone_number__iregex=search_pattern)
            )
        return queryset

    def stats(self, since: datetime, bouquet_id: Optional[str] = None) -> Dict[str, Any]:
        queryset = Order.objects.filter(created_at__gte=since)
        if bouquet_id:
            queryset = queryset.filter(bouquet_id=bouquet_id)
        aggregate = queryset.aggregate(last_order_time=Max("created_at"))
        return {
            "count": queryset.count(),
            "last_order_time": aggregate["last_order_time"],
        }

    # ------------------------------------------------------------------
    # Delete
    # ------------------------------------------------------------------

    def delete(self, id: str) -> bool:
        """Hard-delete an order by ID."""
        if not id:
            return False
        try:
            deleted, _ = Order.objects.filter(id=id).delete()
        except (ValueError, ValidationError):
            return False
        if deleted:
            logger.info("order.removed", order_id=str(id))
        return bool(deleted)
