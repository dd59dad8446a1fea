"""Domain events for the Orders module.

Published on ``shared.infrastructure.bus.event_bus`` right after the
write they describe, inside the same transaction.  Handlers run before
that transaction commits and a handler error rolls the write back.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Tuple

from shared.domain.events import DomainEvent


@dataclass(frozen=True)
class OrderCreated(DomainEvent):
    """Raised when an order is created."""

    bouquet_id: str = ""
    total_amount: int = 0


@dataclass(frozen=True)
class OrderUpdated(DomainEvent):
    """Raised after a partial update; ``kinds`` lists the activity kinds written."""

    version: int = 0
    kinds: Tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class OrderDeleted(DomainEvent):
    """Raised when an order is hard-deleted."""
