"""Order service layer (Use Cases).

Orchestrates order creation, partial updates, role-scoped reads and
deletion.  Views hand in normalized DTOs and get back ``Order``
instances or domain exceptions.

Business rules enforced:
- ``total_amount`` = bouquet price + delivery price, recomputed on every write.
- ``payment_status`` is derived from the total and the amounts paid.
- Bouquet name/price are snapshotted from the catalog; the caller's
  values are used only when the catalog cannot answer.
- A linked order copies its buyer fields from the customer record and
  ignores direct edits to them until it is unlinked.
- Every write appends to the activity log (see ``activity.py``).
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any, Dict, Optional

import structlog
from django.db import transaction
from django.utils import timezone

from modules.core.permissions import ROLE_ADMIN, ROLE_CUSTOMER
from modules.core.validation import escape_regex, normalize_string, parse_timestamp
from modules.orders.activity import (
    OrderState,
    append_entries,
    created_entry,
    record_changes,
)
from modules.orders.constants import (
    CHOICE_MAX_LENGTH,
    DEFAULT_LIST_LIMIT,
    DELIVERY_AT_MAX_LENGTH,
    ID_MAX_LENGTH,
    MAX_AMOUNT,
    MAX_LIST_LIMIT,
    ORDER_STATUS_VALUES,
    PAYMENT_METHOD_VALUES,
    SEARCH_MAX_LENGTH,
    STATS_WINDOW_HOURS,
)
from modules.orders.events import OrderCreated, OrderDeleted, OrderUpdated
from modules.orders.exceptions import (
    ConcurrentModification,
    InvalidAmount,
    InvalidDeliveryAt,
    InvalidPaymentMethod,
    MissingRequiredFields,
    OrderNotFound,
)
from modules.orders.payments import compute_total_amount, derive_payment_status
from modules.orders.snapshots import BouquetSnapshotResolver, CustomerLinkResolver
from shared.infrastructure.bus import event_bus

if TYPE_CHECKING:
    from django.db.models import QuerySet

    from modules.bouquets.repositories.interfaces import IBouquetRepository
    from modules.customers.repositories.interfaces import ICustomerRepository
    from modules.orders.dtos import CreateOrderDTO, UpdateOrderDTO
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)

BUYER_FIELDS = ("buyer_name", "phone_number", "address")
AMOUNT_FIELDS = ("down_payment_amount", "additional_payment", "delivery_price")

LEADING_INTEGER = re.compile(r"\s*([+-]?\d+)")


class OrderService:
    """Application service for Order use-cases.

    Receives repositories via constructor injection (DIP).
    """

    def __init__(
        self,
        order_repository: IOrderRepository,
        customer_repository: ICustomerRepository,
        bouquet_repository: IBouquetRepository,
    ) -> None:
        self._order_repo = order_repository
        self._customer_repo = customer_repository
        self._snapshots = BouquetSnapshotResolver(bouquet_repository)
        self._customer_link = CustomerLinkResolver(customer_repository)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def create_order(self, dto: CreateOrderDTO) -> Order:
        """Create an order from a normalized request body.

        Steps:
        1. Copy buyer fields from the linked customer, if any.
        2. Snapshot the bouquet name/price (caller values as fallback).
        3. Check required fields, ``deliveryAt`` and the amounts.
        4. Derive total and payment status; seed the activity log.

        Raises:
            CustomerNotFound: ``customer_id`` does not resolve.
            MissingRequiredFields: a buyer or bouquet field is empty.
            InvalidDeliveryAt: ``delivery_at`` is not a timestamp.
            InvalidAmount: an amount or the total exceeds ``MAX_AMOUNT``.
        """
        log = logger.bind(bouquet_id=dto.bouquet_id, customer_id=dto.customer_id or None)
        log.info("order.creation_started")

        buyer_name, phone_number, address = dto.buyer_name, dto.phone_number, dto.address
        if dto.customer_id:
            buyer = self._customer_link.resolve(dto.customer_id)
            buyer_name, phone_number, address = (
                buyer.buyer_name,
                buyer.phone_number,
                buyer.address,
            )

        bouquet_name, bouquet_price = dto.bouquet_name, dto.bouquet_price
        if dto.bouquet_id:
            # an unresolvable bouquet sent without a name is labelled by its id
            snapshot = self._snapshots.resolve(
                dto.bouquet_id, bouquet_name or dto.bouquet_id, bouquet_price
            )
            bouquet_name, bouquet_price = snapshot.name, snapshot.price

        if not all((buyer_name, phone_number, address, dto.bouquet_id, bouquet_name)):
            log.info("order.creation_rejected", reason="missing_fields")
            raise MissingRequiredFields("Missing required fields")

        delivery_at = None
        if dto.delivery_at:
            delivery_at = parse_timestamp(dto.delivery_at)
            if delivery_at is None:
                log.info("order.creation_rejected", reason="invalid_delivery_at")
                raise InvalidDeliveryAt("Invalid deliveryAt")

        try:
            self._check_amounts(
                bouquet_price,
                dto.delivery_price,
                dto.down_payment_amount,
                dto.additional_payment,
            )
        except InvalidAmount:
            log.info("order.creation_rejected", reason="invalid_amount")
            raise

        total_amount = compute_total_amount(bouquet_price, dto.delivery_price)
        payment_status = derive_payment_status(
            total_amount, dto.down_payment_amount, dto.additional_payment
        )

        data: Dict[str, Any] = {
            "customer_id": dto.customer_id or None,
            "buyer_name": buyer_name,
            "phone_number": phone_number,
            "address": address,
            "bouquet_id": dto.bouquet_id,
            "bouquet_name": bouquet_name,
            "bouquet_price": bouquet_price,
            "order_status": str(dto.order_status),
            "payment_status": str(payment_status),
            "payment_method": str(dto.payment_method),
            "down_payment_amount": dto.down_payment_amount,
            "additional_payment": dto.additional_payment,
            "delivery_price": dto.delivery_price,
            "total_amount": total_amount,
            "delivery_at": delivery_at,
        }
        state = OrderState(
            order_status=data["order_status"],
            payment_status=data["payment_status"],
            payment_method=data["payment_method"],
            delivery_at=delivery_at,
            bouquet_id=dto.bouquet_id,
            down_payment_amount=dto.down_payment_amount,
            additional_payment=dto.additional_payment,
            delivery_price=dto.delivery_price,
        )
        data["activity"] = [created_entry(state)]

        order = self._order_repo.create(data)

        log.info(
            "order.created",
            order_id=str(order.id),
            total_amount=total_amount,
            payment_status=data["payment_status"],
        )
        event_bus.publish(
            OrderCreated(
                aggregate_id=order.id,
                bouquet_id=order.bouquet_id,
                total_amount=total_amount,
            )
        )
        return order

    @transaction.atomic
    def update_order(self, order_id: str, dto: UpdateOrderDTO) -> Order:
        """Apply a partial update.

        Only keys the body carried are considered.  The merged order is
        re-derived and the activity log extended before a single
        conditional write.

        Raises:
            OrderNotFound: the order does not exist or vanished before the write.
            CustomerNotFound: a non-empty ``customer_id`` does not resolve.
            InvalidPaymentMethod: ``payment_method`` is not a known method.
            InvalidDeliveryAt: ``delivery_at`` is not a string or timestamp.
            InvalidAmount: an amount or the total exceeds ``MAX_AMOUNT``.
            ConcurrentModification: ``version`` no longer matches.
        """
        existing = self._order_repo.get_by_id(order_id)
        if existing is None:
            raise OrderNotFound(f"Order {order_id} not found.")

        log = logger.bind(order_id=str(order_id), fields=sorted(dto.model_fields_set))
        patch: Dict[str, Any] = {}

        will_be_linked = existing.is_linked
        if dto.supplied("customer_id"):
            will_be_linked = bool(dto.customer_id)
            if not dto.customer_id:
                patch["customer_id"] = None
            else:
                buyer = self._customer_link.resolve(dto.customer_id)
                patch.update(
                    customer_id=dto.customer_id,
                    buyer_name=buyer.buyer_name,
                    phone_number=buyer.phone_number,
                    address=buyer.address,
                )

        if will_be_linked:
            locked = [name for name in BUYER_FIELDS if getattr(dto, name)]
            if locked:
                log.info("order.buyer_fields_locked", ignored=locked)
        else:
            for name in BUYER_FIELDS:
                value = getattr(dto, name)
                if value:
                    patch[name] = value

        if dto.bouquet_id:
            patch["bouquet_id"] = dto.bouquet_id
        if dto.bouquet_name:
            patch["bouquet_name"] = dto.bouquet_name

        if dto.order_status in ORDER_STATUS_VALUES:
            patch["order_status"] = dto.order_status

        if dto.supplied("payment_method"):
            patch["payment_method"] = self._payment_method(dto.payment_method)

        for name in AMOUNT_FIELDS:
            if dto.supplied(name):
                patch[name] = getattr(dto, name)
        if dto.supplied("bouquet_price"):
            patch["bouquet_price"] = dto.bouquet_price

        if dto.supplied("delivery_at"):
            patch["delivery_at"] = self._delivery_at(dto.delivery_at)

        def merged(name: str) -> Any:
            return patch[name] if name in patch else getattr(existing, name)

        if dto.bouquet_id:
            snapshot = self._snapshots.resolve(
                dto.bouquet_id, merged("bouquet_name"), merged("bouquet_price")
            )
            patch["bouquet_name"] = snapshot.name
            patch["bouquet_price"] = snapshot.price

        self._check_amounts(
            merged("bouquet_price"),
            merged("delivery_price"),
            merged("down_payment_amount"),
            merged("additional_payment"),
        )
        total_amount = compute_total_amount(
            merged("bouquet_price"), merged("delivery_price")
        )
        patch["total_amount"] = total_amount
        patch["payment_status"] = str(
            derive_payment_status(
                total_amount,
                merged("down_payment_amount"),
                merged("additional_payment"),
            )
        )

        before = OrderState.from_order(existing)
        after = before.merged(
            order_status=merged("order_status"),
            payment_status=patch["payment_status"],
            payment_method=merged("payment_method") or "",
            delivery_at=merged("delivery_at"),
            bouquet_id=merged("bouquet_id"),
            down_payment_amount=merged("down_payment_amount"),
            additional_payment=merged("additional_payment"),
            delivery_price=merged("delivery_price"),
        )
        entries = record_changes(before, after, dto.model_fields_set)
        patch["activity"] = append_entries(existing.activity, entries)

        updated = self._order_repo.update(order_id, patch, expected_version=dto.version)
        if updated is None:
            if dto.version is not None and self._order_repo.exists(order_id):
                log.warning("order.version_conflict", expected_version=dto.version)
                raise ConcurrentModification("Order was modified concurrently")
            raise OrderNotFound(f"Order {order_id} not found.")

        kinds = tuple(entry["kind"] for entry in entries)
        log.info("order.updated", version=updated.version, kinds=list(kinds))
        event_bus.publish(
            OrderUpdated(aggregate_id=updated.id, version=updated.version, kinds=kinds)
        )
        return updated

    @transaction.atomic
    def delete_order(self, order_id: str) -> None:
        """Hard-delete an order.

        Raises:
            OrderNotFound: if the order does not exist.
        """
        order = self._order_repo.get_by_id(order_id)
        if order is None or not self._order_repo.delete(order_id):
            raise OrderNotFound(f"Order {order_id} not found.")
        logger.info("order.deleted", order_id=str(order_id))
        event_bus.publish(OrderDeleted(aggregate_id=order.id))

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_orders(self, principal: Any, search: Any = "") -> QuerySet[Order]:
        """Orders visible to *principal*, newest first.

        Customers see the orders linked to their own customer record;
        admins see everything and may search buyer name or phone number.
        Anyone else sees nothing.
        """
        role = getattr(principal, "role", "")
        if role == ROLE_CUSTOMER:
            customer = self._customer_repo.get_by_user_id(getattr(principal, "id", ""))
            if customer is None:
                return self._order_repo.list().none()
            return self._order_repo.list(customer_id=str(customer.id))

        if role == ROLE_ADMIN:
            query = normalize_string(search, SEARCH_MAX_LENGTH)
            return self._order_repo.list(
                search_pattern=escape_regex(query) if query else None
            )

        return self._order_repo.list().none()

    def get_order(self, principal: Any, order_id: str) -> Order:
        """Retrieve a single order the principal is allowed to see.

        Raises:
            OrderNotFound: missing, or owned by someone else.
        """
        order = self._order_repo.get_by_id(order_id)
        if order is None:
            raise OrderNotFound(f"Order {order_id} not found.")

        role = getattr(principal, "role", "")
        if role == ROLE_ADMIN:
            return order
        if role == ROLE_CUSTOMER and order.customer_id:
            customer = self._customer_repo.get_by_user_id(getattr(principal, "id", ""))
            if customer is not None and str(customer.id) == order.customer_id:
                return order
        raise OrderNotFound(f"Order {order_id} not found.")

    def order_stats(
        self,
        bouquet_id: Any = None,
        now: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        """Orders created in the last 24 hours, optionally for one bouquet."""
        since = (now or timezone.now()) - timedelta(hours=STATS_WINDOW_HOURS)
        bouquet = normalize_string(bouquet_id, ID_MAX_LENGTH) or None
        return self._order_repo.stats(since, bouquet_id=bouquet)

    @staticmethod
    def clamp_limit(raw: Any) -> int:
        """Parse a ``limit`` query value; default 100, clamped to 1..1000.

        Only the leading integer counts, so ``"2abc"`` and ``"2.9"`` mean 2.
        """
        match = LEADING_INTEGER.match(str(raw))
        if match is None:
            return DEFAULT_LIST_LIMIT
        return min(max(int(match.group(1)), 1), MAX_LIST_LIMIT)

    # ------------------------------------------------------------------
    # Field rules
    # ------------------------------------------------------------------

    @staticmethod
    def _payment_method(raw: Any) -> str:
        if not isinstance(raw, str):
            raise InvalidPaymentMethod("Invalid paymentMethod")
        value = normalize_string(raw, CHOICE_MAX_LENGTH)
        if value not in PAYMENT_METHOD_VALUES:
            raise InvalidPaymentMethod("Invalid paymentMethod")
        return value

    @staticmethod
    def _check_amounts(bouquet_price: int, delivery_price: int, *paid: int) -> None:
        """Every amount, and the total they derive, must not exceed ``MAX_AMOUNT``."""
        amounts = (bouquet_price, delivery_price, *paid)
        if max(amounts) > MAX_AMOUNT or bouquet_price + delivery_price > MAX_AMOUNT:
            raise InvalidAmount("Invalid amount")

    @staticmethod
    def _delivery_at(raw: Any) -> Optional[datetime]:
        """``None`` clears the delivery time."""
        if not isinstance(raw, str):
            raise InvalidDeliveryAt("Invalid deliveryAt")
        text = normalize_string(raw, DELIVERY_AT_MAX_LENGTH)
        if not text:
            return None
        parsed = parse_timestamp(text)
        if parsed is None:
            raise InvalidDeliveryAt("Invalid deliveryAt")
        return parsed
