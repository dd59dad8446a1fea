"""Reactions to Orders domain events.

Today they only write an audit line per event; notification or
analytics hooks subscribe alongside them in ``OrdersConfig.ready``.
"""

from __future__ import annotations

import structlog

from modules.orders.events import OrderCreated, OrderDeleted, OrderUpdated
from shared.domain.bus import IEventHandler

logger = structlog.get_logger(__name__)


class OrderCreatedHandler(IEventHandler[OrderCreated]):
    def handle(self, event: OrderCreated) -> None:
        logger.info(
            "order.event.created",
            bouquet_id=event.bouquet_id,
            total_amount=event.total_amount,
            **event.log_context(),
        )


class OrderUpdatedHandler(IEventHandler[OrderUpdated]):
    def handle(self, event: OrderUpdated) -> None:
        logger.info(
            "order.event.updated",
            version=event.version,
            kinds=list(event.kinds),
            **event.log_context(),
        )


class OrderDeletedHandler(IEventHandler[OrderDeleted]):
    def handle(self, event: OrderDeleted) -> None:
        logger.info("order.event.deleted", **event.log_context())


order_created_handler = OrderCreatedHandler()
order_updated_handler = OrderUpdatedHandler()
order_deleted_handler = OrderDeletedHandler()

SUBSCRIPTIONS = (
    (OrderCreated, order_created_handler),
    (OrderUpdated, order_updated_handler),
    (OrderDeleted, order_deleted_handler),
)
