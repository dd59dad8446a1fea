"""Synchronous in-process event bus.

Handlers run inline, inside the publisher's transaction, in
subscription order.  A handler error propagates to the publisher.
"""

from __future__ import annotations

from collections import defaultdict
from typing import DefaultDict, List, Type

import structlog

from shared.domain.bus import IEventBus, IEventHandler
from shared.domain.events import DomainEvent

logger = structlog.get_logger(__name__)


class InMemoryEventBus(IEventBus):
    def __init__(self) -> None:
        self._handlers: DefaultDict[Type[DomainEvent], List[IEventHandler]] = defaultdict(
            list
        )

    def subscribe(self, event_class: Type[DomainEvent], handler: IEventHandler) -> None:
        handlers = self._handlers[event_class]
        if handler not in handlers:
            handlers.append(handler)

    def unsubscribe(self, event_class: Type[DomainEvent], handler: IEventHandler) -> None:
        handlers = self._handlers.get(event_class, [])
        if handler in handlers:
            handlers.remove(handler)

    def handlers_for(self, event_class: Type[DomainEvent]) -> List[IEventHandler]:
        """Handlers for *event_class*, most specific subscription first."""
        found: List[IEventHandler] = []
        for klass in event_class.__mro__:
            for handler in self._handlers.get(klass, []):
                if handler not in found:
                    found.append(handler)
        return found

    def publish(self, event: DomainEvent) -> None:
        handlers = self.handlers_for(type(event))
        logger.debug("event.published", handlers=len(handlers), **event.log_context())
        for handler in handlers:
            handler.handle(event)


event_bus = InMemoryEventBus()
