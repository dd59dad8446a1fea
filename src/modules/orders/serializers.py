"""Order DRF serializers for API output.

Serializers operate at the Interface layer (API Views) and only render:
request bodies are normalized by the Pydantic DTOs in ``dtos.py``.
Keys follow the storefront's camelCase JSON.
"""

from __future__ import annotations

from rest_framework import serializers

from modules.orders.models import Order


class ActivityEntrySerializer(serializers.Serializer):
    at = serializers.CharField()
    kind = serializers.CharField()
    message = serializers.CharField()
    # [{"field", "from", "to"}]
    changes = serializers.ListField(
        child=serializers.DictField(), required=False, default=list
    )


class OrderSerializer(serializers.ModelSerializer):
    """Read serializer for an order document."""

    customerId = serializers.CharField(source="customer_id", allow_null=True)
    buyerName = serializers.CharField(source="buyer_name")
    phoneNumber = serializers.CharField(source="phone_number")
    bouquetId = serializers.CharField(source="bouquet_id")
    bouquetName = serializers.CharField(source="bouquet_name")
    bouquetPrice = serializers.IntegerField(source="bouquet_price")
    orderStatus = serializers.CharField(source="order_status")
    paymentStatus = serializers.CharField(source="payment_status")
    paymentMethod = serializers.CharField(source="payment_method", allow_blank=True)
    downPaymentAmount = serializers.IntegerField(source="down_payment_amount")
    additionalPayment = serializers.IntegerField(source="additional_payment")
    deliveryPrice = serializers.IntegerField(source="delivery_price")
    totalAmount = serializers.IntegerField(source="total_amount")
    deliveryAt = serializers.DateTimeField(source="delivery_at", allow_null=True)
    activity = ActivityEntrySerializer(many=True)
    createdAt = serializers.DateTimeField(source="created_at")
    updatedAt = serializers.DateTimeField(source="updated_at")

    class Meta:
        model = Order
        fields = [
            "id",
            "customerId",
            "buyerName",
            "phoneNumber",
            "address",
            "bouquetId",
            "bouquetName",
            "bouquetPrice",
            "orderStatus",
            "paymentStatus",
            "paymentMethod",
            "downPaymentAmount",
            "additionalPayment",
            "deliveryPrice",
            "totalAmount",
            "deliveryAt",
            "activity",
            "version",
            "createdAt",
            "updatedAt",
        ]
        read_only_fields = fields


class OrderStatsSerializer(serializers.Serializer):
    """``{count, lastOrderTime}`` for the social-proof widgets."""

    count = serializers.IntegerField()
    lastOrderTime = serializers.DateTimeField(source="last_order_time", allow_null=True)
