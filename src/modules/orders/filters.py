import django_filters

from modules.orders.constants import OrderStatus, PaymentStatus
from modules.orders.models import Order


class OrderFilter(django_filters.FilterSet):
    orderStatus = django_filters.ChoiceFilter(
        field_name="order_status", choices=OrderStatus.choices
    )
    paymentStatus = django_filters.ChoiceFilter(
        field_name="payment_status", choices=PaymentStatus.choices
    )
    bouquetId = django_filters.CharFilter(field_name="bouquet_id")

    class Meta:
        model = Order
        fields = [
            "orderStatus",
            "paymentStatus",
            "bouquetId",
        ]
