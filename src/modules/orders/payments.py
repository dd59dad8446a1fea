"""Monetary derivations for orders.

Both functions are pure: the order never stores a caller-supplied total
or payment status, only what these return.
"""

from __future__ import annotations

from modules.core.validation import parse_non_negative_int
from modules.orders.constants import PaymentStatus


def compute_total_amount(bouquet_price: int, delivery_price: int) -> int:
    """Order total: one bouquet plus delivery."""
    return parse_non_negative_int(
        parse_non_negative_int(bouquet_price) + parse_non_negative_int(delivery_price)
    )


def derive_payment_status(
    total_amount: float,
    down_payment_amount: float,
    additional_payment: float,
) -> PaymentStatus:
    """Derive the payment status from the total and the amounts paid so far.

    Inputs are rounded and floored at zero first.  A zero total counts
    as settled since nothing is owed.
    """
    total = parse_non_negative_int(total_amount)
    paid = parse_non_negative_int(down_payment_amount) + parse_non_negative_int(
        additional_payment
    )
    if total <= 0:
        return PaymentStatus.SUDAH_BAYAR
    if paid <= 0:
        return PaymentStatus.BELUM_BAYAR
    if paid >= total:
        return PaymentStatus.SUDAH_BAYAR
    return PaymentStatus.DP
