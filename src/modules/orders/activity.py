"""Order activity log.

Each write appends entries describing *categories* of change (status,
payment, delivery, bouquet), not individual fields.  An entry keeps the
structured change set it was rendered from::

    {
        "at": "2026-10-17T09:30:00+07:00",
        "kind": "status",
        "message": "Status order: bertanya → memesan",
        "changes": [{"field": "orderStatus", "from": "bertanya", "to": "memesan"}],
    }

Messages are Indonesian, as shown to the shop admin.  The log keeps the
50 newest entries and is informational only.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from django.utils import timezone

from modules.orders.constants import (
    ACTIVITY_LOG_LIMIT,
    ACTIVITY_MESSAGE_MAX_LENGTH,
    ActivityKind,
)

Entry = Dict[str, Any]

EMPTY_METHOD_LABEL = "—"

AMOUNT_FIELDS = ("down_payment_amount", "additional_payment", "delivery_price")

_CAMEL = {
    "order_status": "orderStatus",
    "payment_status": "paymentStatus",
    "payment_method": "paymentMethod",
    "delivery_at": "deliveryAt",
    "bouquet_id": "bouquetId",
    "down_payment_amount": "downPaymentAmount",
    "additional_payment": "additionalPayment",
    "delivery_price": "deliveryPrice",
}


@dataclass(frozen=True)
class OrderState:
    """The slice of an order the activity log compares."""

    order_status: str
    payment_status: str
    payment_method: str
    delivery_at: Optional[datetime]
    bouquet_id: str
    down_payment_amount: int = 0
    additional_payment: int = 0
    delivery_price: int = 0

    @classmethod
    def from_order(cls, order) -> OrderState:
        return cls(
            order_status=order.order_status,
            payment_status=order.payment_status,
            payment_method=order.payment_method or "",
            delivery_at=order.delivery_at,
            bouquet_id=order.bouquet_id,
            down_payment_amount=order.down_payment_amount,
            additional_payment=order.additional_payment,
            delivery_price=order.delivery_price,
        )

    def merged(self, **changes: Any) -> OrderState:
        return replace(self, **changes)


def humanize(value: str) -> str:
    return value.replace("_", " ")


def _json_value(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    return value


def change(field: str, before: Any, after: Any) -> Dict[str, Any]:
    return {
        "field": _CAMEL.get(field, field),
        "from": _json_value(before),
        "to": _json_value(after),
    }


def make_entry(
    kind: str,
    message: str,
    changes: Optional[List[Dict[str, Any]]] = None,
    at: Optional[datetime] = None,
) -> Entry:
    return {
        "at": (at or timezone.now()).isoformat(),
        "kind": str(kind),
        "message": message[:ACTIVITY_MESSAGE_MAX_LENGTH],
        "changes": list(changes or []),
    }


def created_entry(state: OrderState, at: Optional[datetime] = None) -> Entry:
    """Seed entry written once when an order is created."""
    return make_entry(
        ActivityKind.CREATED,
        f"Order dibuat • status: {humanize(state.order_status)}"
        f" • bayar: {humanize(state.payment_status)}",
        [
            change("order_status", None, state.order_status),
            change("payment_status", None, state.payment_status),
        ],
        at,
    )


def record_changes(
    before: OrderState,
    after: OrderState,
    supplied: Iterable[str],
    at: Optional[datetime] = None,
) -> List[Entry]:
    """Describe what an update changed, one entry per category.

    *supplied* names the fields the request body carried; delivery time
    and amount changes are only reported when the caller sent them.  An
    update that changes nothing still yields a single ``edit`` entry.
    """
    supplied = set(supplied)
    at = at or timezone.now()
    entries: List[Entry] = []

    if before.order_status != after.order_status:
        entries.append(
            make_entry(
                ActivityKind.STATUS,
                f"Status order: {humanize(before.order_status)}"
                f" → {humanize(after.order_status)}",
                [change("order_status", before.order_status, after.order_status)],
                at,
            )
        )

    amounts_supplied = [name for name in AMOUNT_FIELDS if name in supplied]
    amount_changes = [
        change(name, getattr(before, name), getattr(after, name))
        for name in amounts_supplied
        if getattr(before, name) != getattr(after, name)
    ]

    if before.payment_status != after.payment_status:
        message = (
            f"Status bayar: {humanize(before.payment_status)}"
            f" → {humanize(after.payment_status)}"
        )
        changes = [change("payment_status", before.payment_status, after.payment_status)]
        if amounts_supplied:
            # amount edit that moved the payment status: one combined entry
            message += " • Nominal pembayaran/ongkir diperbarui"
            changes += amount_changes
            amounts_supplied = []
        entries.append(make_entry(ActivityKind.PAYMENT, message, changes, at))

    if before.payment_method != after.payment_method:
        old_label = humanize(before.payment_method or EMPTY_METHOD_LABEL)
        new_label = humanize(after.payment_method or EMPTY_METHOD_LABEL)
        entries.append(
            make_entry(
                ActivityKind.PAYMENT,
                f"Metode bayar: {old_label} → {new_label}",
                [change("payment_method", before.payment_method, after.payment_method)],
                at,
            )
        )

    if "delivery_at" in supplied and before.delivery_at != after.delivery_at:
        entries.append(
            make_entry(
                ActivityKind.DELIVERY,
                (
                    "Waktu deliver diperbarui"
                    if after.delivery_at
                    else "Waktu deliver dihapus"
                ),
                [change("delivery_at", before.delivery_at, after.delivery_at)],
                at,
            )
        )

    if before.bouquet_id != after.bouquet_id:
        entries.append(
            make_entry(
                ActivityKind.BOUQUET,
                "Bouquet diperbarui",
                [change("bouquet_id", before.bouquet_id, after.bouquet_id)],
                at,
            )
        )

    if amounts_supplied:
        entries.append(
            make_entry(
                ActivityKind.PAYMENT,
                "Nominal pembayaran/ongkir diperbarui",
                amount_changes,
                at,
            )
        )

    if not entries:
        entries.append(make_entry(ActivityKind.EDIT, "Order diperbarui", [], at))

    return entries


def append_entries(activity: Optional[List[Entry]], entries: List[Entry]) -> List[Entry]:
    """Return a new log with *entries* appended, keeping the newest 50."""
    log = list(activity or []) + list(entries)
    return log[-ACTIVITY_LOG_LIMIT:]
