"""Order API views.

Exposes the ``OrderService`` via HTTP using a DRF ViewSet.
Domain exceptions are caught and translated into HTTP status codes;
database failures are logged and surface as a 500 with a generic
message.  Every error body is ``{"message": "..."}``.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import structlog
from django.db import DatabaseError
from django_filters.rest_framework import DjangoFilterBackend
from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.parsers import JSONParser
from rest_framework.permissions import AllowAny, BasePermission
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import BaseThrottle
from rest_framework.viewsets import GenericViewSet

from modules.bouquets.repositories import BouquetDjangoRepository
from modules.core.permissions import OrderWritePermission
from modules.core.validation import normalize_string
from modules.customers.repositories.django_repository import CustomerDjangoRepository
from modules.orders.constants import DEFAULT_LIST_LIMIT, ID_MAX_LENGTH
from modules.orders.dtos import CreateOrderDTO, UpdateOrderDTO
from modules.orders.exceptions import (
    ConcurrentModification,
    CustomerNotFound,
    InvalidAmount,
    InvalidDeliveryAt,
    InvalidPaymentMethod,
    MissingRequiredFields,
    OrderError,
    OrderNotFound,
)
from modules.orders.filters import OrderFilter
from modules.orders.models import Order
from modules.orders.repositories import OrderDjangoRepository
from modules.orders.serializers import OrderSerializer, OrderStatsSerializer
from modules.orders.services import OrderService

logger = structlog.get_logger(__name__)

ERROR_RESPONSES = {
    OrderNotFound: (status.HTTP_404_NOT_FOUND, "Order not found"),
    CustomerNotFound: (status.HTTP_400_BAD_REQUEST, "Invalid customerId"),
    MissingRequiredFields: (status.HTTP_400_BAD_REQUEST, "Missing required fields"),
    InvalidDeliveryAt: (status.HTTP_400_BAD_REQUEST, "Invalid deliveryAt"),
    InvalidPaymentMethod: (status.HTTP_400_BAD_REQUEST, "Invalid paymentMethod"),
    InvalidAmount: (status.HTTP_400_BAD_REQUEST, "Invalid amount"),
    ConcurrentModification: (status.HTTP_409_CONFLICT, "Order was modified concurrently"),
}


def _message(text: str, code: int) -> Response:
    return Response({"message": text}, status=code)


class OrderViewSet(GenericViewSet):
    """ViewSet for Order operations.

    Uses ``OrderService`` with injected repositories (DIP).
    Does **not** extend ``ModelViewSet``: all ORM access goes through
    the service/repository layer.
    """

    queryset = Order.objects.all()
    serializer_class = OrderSerializer
    filterset_class = OrderFilter
    filter_backends = [DjangoFilterBackend]
    parser_classes = [JSONParser]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = OrderService(
            order_repository=OrderDjangoRepository(),
            customer_repository=CustomerDjangoRepository(),
            bouquet_repository=BouquetDjangoRepository(),
        )

    def get_permissions(self) -> list[BasePermission]:
        """Reads and creation are open; mutations may be admin-only."""
        if self.action in {"partial_update", "destroy"}:
            return [OrderWritePermission()]
        return [AllowAny()]

    def get_throttles(self) -> list[BaseThrottle]:
        """Throttle scope per action."""
        throttle_scope: str | None
        if self.action == "create":
            throttle_scope = "order_creation"
        elif self.action in {"list", "retrieve", "stats", "recent_stats"}:
            throttle_scope = "order_listing"
        else:
            throttle_scope = None
        self.throttle_scope = throttle_scope
        return super().get_throttles()

    # ------------------------------------------------------------------
    # List / Retrieve
    # ------------------------------------------------------------------

    def list(self, request: Request) -> Response:
        """GET /api/orders

        Role-scoped (see ``OrderService.list_orders``).  ``q`` searches
        buyer name / phone for admins; ``orderStatus`` / ``paymentStatus``
        narrow further; ``limit`` defaults to 100.
        """
        params = request.query_params
        limit = self._service.clamp_limit(params.get("limit", DEFAULT_LIST_LIMIT))
        try:
            queryset = self._service.list_orders(request.user, params.get("q", ""))
            queryset = self.filter_queryset(queryset)
            data = OrderSerializer(queryset[:limit], many=True).data
        except DatabaseError:
            logger.exception("order.list_failed")
            return _message("Failed to get orders", status.HTTP_500_INTERNAL_SERVER_ERROR)
        return Response(data)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/orders/{pk}"""
        try:
            order = self._service.get_order(request.user, pk or "")
        except OrderError as exc:
            return self._domain_error(exc)
        except DatabaseError:
            logger.exception("order.retrieve_failed", order_id=pk)
            return _message("Failed to get orders", status.HTTP_500_INTERNAL_SERVER_ERROR)
        return Response(OrderSerializer(order).data)

    # ------------------------------------------------------------------
    # Create / Update / Destroy
    # ------------------------------------------------------------------

    def create(self, request: Request) -> Response:
        """POST /api/orders"""
        body = request.data
        if not isinstance(body, Mapping):
            return _message("Invalid request body", status.HTTP_400_BAD_REQUEST)
        try:
            dto = CreateOrderDTO.model_validate(dict(body))
        except PydanticValidationError as exc:
            return _message(_first_error(exc), status.HTTP_400_BAD_REQUEST)

        try:
            order = self._service.create_order(dto)
        except OrderError as exc:
            return self._domain_error(exc)
        except DatabaseError:
            logger.exception("order.create_failed")
            return _message(
                "Failed to create order", status.HTTP_500_INTERNAL_SERVER_ERROR
            )

        return Response(OrderSerializer(order).data, status=status.HTTP_201_CREATED)

    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/orders/{pk}

        Only keys present in the body are applied.  Send ``version`` to
        make the write conditional on it.
        """
        order_id = normalize_string(pk, ID_MAX_LENGTH)
        if not order_id:
            return _message("Missing id", status.HTTP_400_BAD_REQUEST)

        body = request.data
        if not isinstance(body, Mapping):
            return _message("Invalid request body", status.HTTP_400_BAD_REQUEST)
        try:
            dto = UpdateOrderDTO.model_validate(dict(body))
        except PydanticValidationError as exc:
            return _message(_first_error(exc), status.HTTP_400_BAD_REQUEST)

        try:
            order = self._service.update_order(order_id, dto)
        except OrderError as exc:
            return self._domain_error(exc)
        except DatabaseError:
            logger.exception("order.update_failed", order_id=order_id)
            return _message(
                "Failed to update order", status.HTTP_500_INTERNAL_SERVER_ERROR
            )

        return Response(OrderSerializer(order).data)

    def destroy(self, request: Request, pk: str | None = None) -> Response:
        """DELETE /api/orders/{pk}"""
        order_id = normalize_string(pk, ID_MAX_LENGTH)
        if not order_id:
            return _message("Missing id", status.HTTP_400_BAD_REQUEST)
        try:
            self._service.delete_order(order_id)
        except OrderError as exc:
            return self._domain_error(exc)
        except DatabaseError:
            logger.exception("order.delete_failed", order_id=order_id)
            return _message(
                "Failed to delete order", status.HTTP_500_INTERNAL_SERVER_ERROR
            )
        return Response({"ok": True})

    # ------------------------------------------------------------------
    # Stats (public)
    # ------------------------------------------------------------------

    @action(detail=False, methods=["get"], url_path="stats")
    def stats(self, request: Request) -> Response:
        """GET /api/orders/stats?bouquetId=...

        Orders in the last 24 hours, optionally for one bouquet.
        """
        return self._stats_response(request.query_params.get("bouquetId"))

    @action(
        detail=False,
        methods=["get"],
        url_path="stats/recent",
        url_name="stats-recent",
    )
    def recent_stats(self, request: Request) -> Response:
        """GET /api/orders/stats/recent"""
        return self._stats_response(None)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _stats_response(self, bouquet_id: Any) -> Response:
        try:
            data = self._service.order_stats(bouquet_id=bouquet_id)
        except DatabaseError:
            logger.exception("order.stats_failed", bouquet_id=bouquet_id)
            return _message(
                "Failed to fetch order stats", status.HTTP_500_INTERNAL_SERVER_ERROR
            )
        return Response(OrderStatsSerializer(data).data)

    @staticmethod
    def _domain_error(exc: OrderError) -> Response:
        code, text = ERROR_RESPONSES.get(
            type(exc), (status.HTTP_400_BAD_REQUEST, str(exc))
        )
        return _message(text, code)


def _first_error(exc: PydanticValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request body"
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    return f"{location}: {first.get('msg', 'invalid value')}" if location else first["msg"]
