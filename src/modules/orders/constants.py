"""Order domain constants.

Defines the order progress stages, payment states and methods, the
activity-log kinds, and the field length caps applied to request input.
"""

from django.db import models


class OrderStatus(models.TextChoices):
    """Order progress stages, in their intended forward order.

    The order is not enforced: any stage may follow any other.  The admin
    UI is trusted to only offer sensible next steps.
    """

    BERTANYA = "bertanya", "Bertanya"
    MEMESAN = "memesan", "Memesan"
    SEDANG_DIPROSES = "sedang_diproses", "Sedang diproses"
    MENUNGGU_DRIVER = "menunggu_driver", "Menunggu driver"
    PENGANTARAN = "pengantaran", "Pengantaran"
    TERKIRIM = "terkirim", "Terkirim"


class PaymentStatus(models.TextChoices):
    """Always derived from the monetary fields, never set by a caller."""

    BELUM_BAYAR = "belum_bayar", "Belum bayar"
    DP = "dp", "DP"
    SUDAH_BAYAR = "sudah_bayar", "Sudah bayar"


class PaymentMethod(models.TextChoices):
    NONE = "", "—"
    CASH = "cash", "Cash"
    TRANSFER_BANK = "transfer_bank", "Transfer bank"
    EWALLET = "ewallet", "E-wallet"
    QRIS = "qris", "QRIS"
    LAINNYA = "lainnya", "Lainnya"


class ActivityKind(models.TextChoices):
    CREATED = "created", "Created"
    STATUS = "status", "Status"
    PAYMENT = "payment", "Payment"
    DELIVERY = "delivery", "Delivery"
    BOUQUET = "bouquet", "Bouquet"
    EDIT = "edit", "Edit"


ORDER_STATUS_VALUES: frozenset[str] = frozenset(OrderStatus.values)
PAYMENT_METHOD_VALUES: frozenset[str] = frozenset(PaymentMethod.values)

ACTIVITY_LOG_LIMIT = 50
ACTIVITY_MESSAGE_MAX_LENGTH = 240

# Field caps (characters) applied after trimming
ID_MAX_LENGTH = 64
BUYER_NAME_MAX_LENGTH = 120
PHONE_NUMBER_MAX_LENGTH = 40
ADDRESS_MAX_LENGTH = 500
BOUQUET_NAME_MAX_LENGTH = 200
CHOICE_MAX_LENGTH = 32
DELIVERY_AT_MAX_LENGTH = 40
SEARCH_MAX_LENGTH = 120

# Listing
DEFAULT_LIST_LIMIT = 100
MAX_LIST_LIMIT = 1000

# Social-proof stats window
STATS_WINDOW_HOURS = 24

# Monetary fields, in rupiah; each amount and the derived total must fit
MAX_AMOUNT = 1_000_000_000_000
