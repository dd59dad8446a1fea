"""Order DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.
These are the contracts between the API layer (Views) and the Service
layer.  DTOs are immutable (``frozen=True``) and accept the storefront's
camelCase keys.

Normalization is lenient, like the storefront forms expect: strings are
trimmed and capped, numbers accept numeric strings and are floored at
zero.  Rules that must reject input (unknown payment method, bad
``deliveryAt``) are left to the service so they surface as domain errors.

- ``CreateOrderDTO``: input for order creation (all fields defaulted).
- ``UpdateOrderDTO``: input for partial updates; ``model_fields_set``
  tells which keys the body actually carried.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

from modules.core.validation import normalize_string, parse_non_negative_int
from modules.orders.constants import (
    ADDRESS_MAX_LENGTH,
    BOUQUET_NAME_MAX_LENGTH,
    BUYER_NAME_MAX_LENGTH,
    CHOICE_MAX_LENGTH,
    DELIVERY_AT_MAX_LENGTH,
    ID_MAX_LENGTH,
    ORDER_STATUS_VALUES,
    PAYMENT_METHOD_VALUES,
    PHONE_NUMBER_MAX_LENGTH,
    OrderStatus,
    PaymentMethod,
)

_STRING_CAPS = {
    "customer_id": ID_MAX_LENGTH,
    "bouquet_id": ID_MAX_LENGTH,
    "buyer_name": BUYER_NAME_MAX_LENGTH,
    "phone_number": PHONE_NUMBER_MAX_LENGTH,
    "address": ADDRESS_MAX_LENGTH,
    "bouquet_name": BOUQUET_NAME_MAX_LENGTH,
}


class OrderPayloadDTO(BaseModel):
    """Shared configuration and normalizers for order request bodies."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    @field_validator(*_STRING_CAPS, mode="before", check_fields=False)
    @classmethod
    def normalize_text(cls, v: Any, info) -> str:
        return normalize_string(v, _STRING_CAPS[info.field_name])

    @field_validator(
        "bouquet_price",
        "delivery_price",
        "down_payment_amount",
        "additional_payment",
        mode="before",
        check_fields=False,
    )
    @classmethod
    def normalize_amount(cls, v: Any) -> int:
        return parse_non_negative_int(v)


# ---------------------------------------------------------------------------
# Input DTOs
# ---------------------------------------------------------------------------


class CreateOrderDTO(OrderPayloadDTO):
    """Immutable DTO for order creation requests.

    Unknown ``orderStatus`` falls back to ``bertanya`` and unknown
    ``paymentMethod`` to empty.  ``delivery_at`` keeps the raw (trimmed)
    text; the service parses it.
    """

    customer_id: str = ""
    buyer_name: str = ""
    phone_number: str = ""
    address: str = ""

    bouquet_id: str = ""
    bouquet_name: str = ""
    bouquet_price: int = 0

    order_status: str = OrderStatus.BERTANYA
    payment_method: str = PaymentMethod.NONE

    down_payment_amount: int = 0
    additional_payment: int = 0
    delivery_price: int = 0

    delivery_at: str = ""

    @field_validator("order_status", mode="before")
    @classmethod
    def known_order_status(cls, v: Any) -> str:
        value = normalize_string(v, CHOICE_MAX_LENGTH)
        return value if value in ORDER_STATUS_VALUES else OrderStatus.BERTANYA

    @field_validator("payment_method", mode="before")
    @classmethod
    def known_payment_method(cls, v: Any) -> str:
        value = normalize_string(v, CHOICE_MAX_LENGTH)
        return value if value in PAYMENT_METHOD_VALUES else PaymentMethod.NONE

    @field_validator("delivery_at", mode="before")
    @classmethod
    def delivery_text(cls, v: Any) -> str:
        return normalize_string(v, DELIVERY_AT_MAX_LENGTH)


class UpdateOrderDTO(OrderPayloadDTO):
    """Immutable DTO for partial order updates.

    Every field is optional; only keys present in the body end up in
    ``model_fields_set``.  ``payment_method`` and ``delivery_at`` keep the
    raw value so the service can reject non-strings.
    """

    customer_id: Optional[str] = None
    buyer_name: Optional[str] = None
    phone_number: Optional[str] = None
    address: Optional[str] = None

    bouquet_id: Optional[str] = None
    bouquet_name: Optional[str] = None
    bouquet_price: Optional[int] = None

    order_status: Optional[str] = None
    payment_method: Any = None

    down_payment_amount: Optional[int] = None
    additional_payment: Optional[int] = None
    delivery_price: Optional[int] = None

    delivery_at: Any = None

    version: Optional[int] = None

    @field_validator("order_status", mode="before")
    @classmethod
    def status_text(cls, v: Any) -> str:
        return normalize_string(v, CHOICE_MAX_LENGTH)

    def supplied(self, field_name: str) -> bool:
        """``True`` when the request body carried *field_name*."""
        return field_name in self.model_fields_set
