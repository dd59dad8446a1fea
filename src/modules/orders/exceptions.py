"""Order domain exceptions.

Raised by the Service Layer when a request cannot be honoured.
The API layer (Views) catches these and translates them into
appropriate HTTP responses.
"""

from __future__ import annotations


class OrderError(Exception):
    """Base class for order failures the caller can act on."""


class OrderNotFound(OrderError):
    """The requested order does not exist (or vanished before the write)."""


class CustomerNotFound(OrderError):
    """The ``customerId`` supplied on the order does not resolve to a customer."""


class MissingRequiredFields(OrderError):
    """Buyer or bouquet fields are empty after normalization and resolution."""


class InvalidDeliveryAt(OrderError):
    """``deliveryAt`` is not a string or does not parse to a real timestamp."""


class InvalidPaymentMethod(OrderError):
    """``paymentMethod`` was supplied but is not a known method."""


class ConcurrentModification(OrderError):
    """The order changed since the ``version`` the caller read."""


class InvalidAmount(OrderError):
    """A monetary field or the derived total exceeds ``MAX_AMOUNT``."""
