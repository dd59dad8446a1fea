"""Unit tests for OrderService.

Covers:
- Creation: buyer link, bouquet snapshot with fallback, required fields,
  deliveryAt parsing, derived total/payment status, seed activity entry.
- Update: partial semantics, buyer-field lock while linked, unlinking,
  bouquet re-snapshot, payment method / deliveryAt validation,
  activity batching, optimistic version check.
- Queries: role-scoped listing, search, single read, stats, delete.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from datetime import timezone as dt_timezone
from types import SimpleNamespace
from unittest import mock

import pytest
from django.utils import timezone

from modules.bouquets.repositories import BouquetDjangoRepository, IBouquetRepository
from modules.customers.repositories.django_repository import CustomerDjangoRepository
from modules.orders.constants import MAX_AMOUNT
from modules.orders.dtos import CreateOrderDTO, UpdateOrderDTO
from modules.orders.events import OrderCreated, OrderDeleted, OrderUpdated
from modules.orders.exceptions import (
    ConcurrentModification,
    CustomerNotFound,
    InvalidAmount,
    InvalidDeliveryAt,
    InvalidPaymentMethod,
    MissingRequiredFields,
    OrderNotFound,
)
from modules.orders.models import Order
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.services import OrderService

pytestmark = pytest.mark.unit

MISSING_ID = "0190a1b2-0000-7000-8000-000000000000"

ADMIN = SimpleNamespace(id="admin-1", role="admin")
ANONYMOUS = SimpleNamespace()


class UnreachableCatalog(IBouquetRepository):
    def get_by_id(self, id):
        from django.db import DatabaseError

        raise DatabaseError("catalog down")


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def service():
    return OrderService(
        order_repository=OrderDjangoRepository(),
        customer_repository=CustomerDjangoRepository(),
        bouquet_repository=BouquetDjangoRepository(),
    )


@pytest.fixture()
def create_dto(order_payload):
    return CreateOrderDTO.model_validate(order_payload)


@pytest.fixture()
def order(service, create_dto):
    return service.create_order(create_dto)


def patch(**body):
    return UpdateOrderDTO.model_validate(body)


def kinds(order):
    return [entry["kind"] for entry in order.activity]


# ---------------------------------------------------------------------------
# Create
# ---------------------------------------------------------------------------


class TestCreateOrder:
    def test_derives_total_and_payment_status(self, service, create_dto):
        order = service.create_order(create_dto)
        assert order.total_amount == 170000
        assert order.payment_status == "belum_bayar"
        assert order.order_status == "bertanya"
        assert order.version == 1

    def test_seeds_one_created_entry(self, service, create_dto):
        order = service.create_order(create_dto)
        assert kinds(order) == ["created"]
        assert order.activity[0]["message"] == (
            "Order dibuat • status: bertanya • bayar: belum bayar"
        )

    def test_catalog_price_wins_over_body(self, service, order_payload):
        order_payload.update(bouquetName="Murah", bouquetPrice=1000)
        order = service.create_order(CreateOrderDTO.model_validate(order_payload))
        assert order.bouquet_name == "Mawar Merah Premium"
        assert order.bouquet_price == 150000

    def test_falls_back_when_catalog_unreachable(self, order_payload):
        service = OrderService(
            order_repository=OrderDjangoRepository(),
            customer_repository=CustomerDjangoRepository(),
            bouquet_repository=UnreachableCatalog(),
        )
        order_payload.update(bouquetName="Custom", bouquetPrice=100000)
        order = service.create_order(CreateOrderDTO.model_validate(order_payload))
        assert order.bouquet_name == "Custom"
        assert order.total_amount == 120000

    def test_partial_payment(self, service, order_payload):
        order_payload.update(downPaymentAmount=50000)
        order = service.create_order(CreateOrderDTO.model_validate(order_payload))
        assert order.payment_status == "dp"
        assert "bayar: dp" in order.activity[0]["message"]

    def test_linked_customer_overrides_buyer_fields(self, service, order_payload, customer):
        order_payload.update(customerId=str(customer.id), buyerName="Orang Lain")
        order = service.create_order(CreateOrderDTO.model_validate(order_payload))
        assert order.customer_id == str(customer.id)
        assert order.buyer_name == "Siti Aminah"
        assert order.phone_number == "081234567890"

    def test_linked_customer_fills_missing_buyer_fields(self, service, bouquet, customer):
        dto = CreateOrderDTO(customer_id=str(customer.id), bouquet_id=str(bouquet.id))
        order = service.create_order(dto)
        assert order.address == "Jl. Melati No. 5, Bandung"

    def test_unknown_customer(self, service, order_payload):
        order_payload.update(customerId=MISSING_ID)
        with pytest.raises(CustomerNotFound):
            service.create_order(CreateOrderDTO.model_validate(order_payload))
        assert Order.objects.count() == 0

    @pytest.mark.parametrize("field", ["buyerName", "phoneNumber", "address", "bouquetId"])
    def test_missing_required_field(self, service, order_payload, field):
        order_payload[field] = "   "
        with pytest.raises(MissingRequiredFields):
            service.create_order(CreateOrderDTO.model_validate(order_payload))

    def test_unnamed_unknown_bouquet_is_labelled_by_id(self, service, order_payload):
        order_payload.update(bouquetId="b1", bouquetName="", bouquetPrice=100000)
        order = service.create_order(CreateOrderDTO.model_validate(order_payload))
        assert order.bouquet_name == "b1"
        assert order.bouquet_price == 100000

    def test_invalid_delivery_at(self, service, order_payload):
        order_payload.update(deliveryAt="besok sore")
        with pytest.raises(InvalidDeliveryAt):
            service.create_order(CreateOrderDTO.model_validate(order_payload))

    def test_delivery_at_parsed(self, service, order_payload):
        order_payload.update(deliveryAt="2026-02-14T10:00:00+07:00")
        order = service.create_order(CreateOrderDTO.model_validate(order_payload))
        assert order.delivery_at == datetime(2026, 2, 14, 3, 0, tzinfo=dt_timezone.utc)

    def test_invalid_choices_fall_back(self, service, order_payload):
        order_payload.update(orderStatus="selesai", paymentMethod="kartu_kredit")
        order = service.create_order(CreateOrderDTO.model_validate(order_payload))
        assert order.order_status == "bertanya"
        assert order.payment_method == ""

    def test_publishes_created_event(self, service, create_dto):
        with mock.patch("modules.orders.services.event_bus") as bus:
            order = service.create_order(create_dto)
        event = bus.publish.call_args.args[0]
        assert isinstance(event, OrderCreated)
        assert event.aggregate_id == order.id
        assert event.total_amount == 170000

    @pytest.mark.parametrize(
        "field", ["deliveryPrice", "downPaymentAmount", "additionalPayment"]
    )
    def test_oversized_amount(self, service, order_payload, field):
        order_payload[field] = MAX_AMOUNT + 1
        with pytest.raises(InvalidAmount):
            service.create_order(CreateOrderDTO.model_validate(order_payload))
        assert Order.objects.count() == 0

    def test_total_over_limit(self, service, order_payload):
        order_payload.update(deliveryPrice=MAX_AMOUNT - 150000 + 1)
        with pytest.raises(InvalidAmount):
            service.create_order(CreateOrderDTO.model_validate(order_payload))


# ---------------------------------------------------------------------------
# Update
# ---------------------------------------------------------------------------


class TestUpdateOrder:
    def test_missing_order(self, service):
        with pytest.raises(OrderNotFound):
            service.update_order(MISSING_ID, patch(orderStatus="memesan"))

    def test_status_only(self, service, order):
        updated = service.update_order(str(order.id), patch(orderStatus="sedang_diproses"))
        assert updated.order_status == "sedang_diproses"
        assert kinds(updated) == ["created", "status"]
        assert updated.activity[-1]["message"] == "Status order: bertanya → sedang diproses"

    def test_any_status_transition_accepted(self, service, order):
        updated = service.update_order(str(order.id), patch(orderStatus="terkirim"))
        updated = service.update_order(str(updated.id), patch(orderStatus="bertanya"))
        assert updated.order_status == "bertanya"

    def test_invalid_status_ignored(self, service, order):
        updated = service.update_order(str(order.id), patch(orderStatus="dibatalkan"))
        assert updated.order_status == "bertanya"
        assert kinds(updated) == ["created", "edit"]

    def test_status_and_method_two_entries(self, service, order):
        updated = service.update_order(
            str(order.id), patch(orderStatus="memesan", paymentMethod="qris")
        )
        assert kinds(updated)[1:] == ["status", "payment"]

    def test_empty_patch_yields_edit(self, service, order):
        updated = service.update_order(str(order.id), patch())
        assert kinds(updated) == ["created", "edit"]
        assert updated.version == 2

    def test_down_payment_settles_order(self, service, order):
        updated = service.update_order(str(order.id), patch(downPaymentAmount=170000))
        assert updated.payment_status == "sudah_bayar"
        assert kinds(updated) == ["created", "payment"]

    def test_delivery_price_recomputes_total(self, service, order):
        updated = service.update_order(
            str(order.id), patch(downPaymentAmount=150000, deliveryPrice=0)
        )
        assert updated.total_amount == 150000
        assert updated.payment_status == "sudah_bayar"

    def test_invalid_payment_method(self, service, order):
        with pytest.raises(InvalidPaymentMethod):
            service.update_order(str(order.id), patch(paymentMethod="bitcoin"))

    @pytest.mark.parametrize("value", [None, 1, ["cash"]])
    def test_non_string_payment_method(self, service, order, value):
        with pytest.raises(InvalidPaymentMethod):
            service.update_order(str(order.id), patch(paymentMethod=value))

    def test_empty_payment_method_allowed(self, service, order):
        updated = service.update_order(str(order.id), patch(paymentMethod="cash"))
        updated = service.update_order(str(order.id), patch(paymentMethod=""))
        assert updated.payment_method == ""
        assert updated.activity[-1]["message"] == "Metode bayar: cash → —"

    def test_invalid_delivery_at_leaves_order_unchanged(self, service, order):
        with pytest.raises(InvalidDeliveryAt):
            service.update_order(str(order.id), patch(deliveryAt="not-a-date"))
        stored = Order.objects.get(id=order.id)
        assert stored.version == 1
        assert kinds(stored) == ["created"]

    def test_non_string_delivery_at(self, service, order):
        with pytest.raises(InvalidDeliveryAt):
            service.update_order(str(order.id), patch(deliveryAt=1700000000))

    def test_delivery_at_set_and_cleared(self, service, order):
        updated = service.update_order(str(order.id), patch(deliveryAt="2026-02-14T10:00:00Z"))
        assert updated.delivery_at is not None
        assert updated.activity[-1]["message"] == "Waktu deliver diperbarui"

        cleared = service.update_order(str(order.id), patch(deliveryAt="  "))
        assert cleared.delivery_at is None
        assert cleared.activity[-1]["message"] == "Waktu deliver dihapus"

    def test_bouquet_change_resnapshots(self, service, order, other_bouquet):
        updated = service.update_order(
            str(order.id),
            patch(bouquetId=str(other_bouquet.id), bouquetName="Abaikan", bouquetPrice=1),
        )
        assert updated.bouquet_name == "Lily Putih"
        assert updated.bouquet_price == 90000
        assert updated.total_amount == 110000
        assert "bouquet" in kinds(updated)

    def test_same_bouquet_refreshes_snapshot_without_entry(self, service, order, bouquet):
        bouquet.price = 175000
        bouquet.save()
        updated = service.update_order(str(order.id), patch(bouquetId=str(bouquet.id)))
        assert updated.bouquet_price == 175000
        assert "bouquet" not in kinds(updated)

    def test_bouquet_name_only(self, service, order):
        updated = service.update_order(str(order.id), patch(bouquetName="Mawar Edisi Valentine"))
        assert updated.bouquet_name == "Mawar Edisi Valentine"

    def test_direct_buyer_edit_when_unlinked(self, service, order):
        updated = service.update_order(str(order.id), patch(buyerName="Dewi L.", address=""))
        assert updated.buyer_name == "Dewi L."
        assert updated.address == "Jl. Anggrek No. 3, Surabaya"

    def test_linking_overwrites_supplied_buyer_fields(self, service, order, customer):
        updated = service.update_order(
            str(order.id),
            patch(customerId=str(customer.id), buyerName="Nama Palsu"),
        )
        assert updated.customer_id == str(customer.id)
        assert updated.buyer_name == "Siti Aminah"

    def test_linked_order_ignores_buyer_edits(self, service, order, customer):
        service.update_order(str(order.id), patch(customerId=str(customer.id)))
        updated = service.update_order(str(order.id), patch(phoneNumber="089999999999"))
        assert updated.phone_number == "081234567890"

    def test_unlink_then_edit(self, service, order, customer):
        service.update_order(str(order.id), patch(customerId=str(customer.id)))
        unlinked = service.update_order(str(order.id), patch(customerId=""))
        assert unlinked.customer_id is None
        assert unlinked.buyer_name == "Siti Aminah"

        edited = service.update_order(str(order.id), patch(buyerName="Siti A."))
        assert edited.buyer_name == "Siti A."

    def test_unlink_and_edit_in_one_request(self, service, order, customer):
        service.update_order(str(order.id), patch(customerId=str(customer.id)))
        updated = service.update_order(str(order.id), patch(customerId="", buyerName="Baru"))
        assert updated.buyer_name == "Baru"

    def test_link_unknown_customer(self, service, order):
        with pytest.raises(CustomerNotFound):
            service.update_order(str(order.id), patch(customerId=MISSING_ID))

    def test_activity_capped_at_fifty(self, service, order):
        for _ in range(55):
            updated = service.update_order(str(order.id), patch())
        assert len(updated.activity) == 50
        assert "created" not in kinds(updated)

    def test_matching_version(self, service, order):
        updated = service.update_order(str(order.id), patch(orderStatus="memesan", version=1))
        assert updated.version == 2

    def test_stale_version(self, service, order):
        service.update_order(str(order.id), patch(orderStatus="memesan"))
        with pytest.raises(ConcurrentModification):
            service.update_order(str(order.id), patch(orderStatus="terkirim", version=1))
        assert Order.objects.get(id=order.id).order_status == "memesan"

    def test_row_deleted_before_write(self, service, order):
        with mock.patch.object(OrderDjangoRepository, "update", return_value=None):
            with pytest.raises(OrderNotFound):
                service.update_order(str(order.id), patch(orderStatus="memesan"))

    def test_publishes_updated_event(self, service, order):
        with mock.patch("modules.orders.services.event_bus") as bus:
            service.update_order(str(order.id), patch(orderStatus="memesan"))
        event = bus.publish.call_args.args[0]
        assert isinstance(event, OrderUpdated)
        assert event.kinds == ("status",)
        assert event.version == 2

    def test_oversized_amount_leaves_order_unchanged(self, service, order):
        with pytest.raises(InvalidAmount):
            service.update_order(str(order.id), patch(additionalPayment=1e19))
        stored = Order.objects.get(id=order.id)
        assert stored.additional_payment == 0
        assert stored.version == 1

    def test_total_checked_after_bouquet_snapshot(self, service, order, other_bouquet):
        updated = service.update_order(
            str(order.id),
            patch(bouquetId=str(other_bouquet.id), deliveryPrice=MAX_AMOUNT - 90000),
        )
        assert updated.total_amount == MAX_AMOUNT

    def test_payment_at_limit_does_not_count_toward_total(self, service, order):
        updated = service.update_order(str(order.id), patch(downPaymentAmount=MAX_AMOUNT))
        assert updated.total_amount == 170000
        assert updated.payment_status == "sudah_bayar"


# ---------------------------------------------------------------------------
# Queries / delete
# ---------------------------------------------------------------------------


class TestListOrders:
    def test_admin_sees_all(self, service, order, create_dto):
        service.create_order(create_dto)
        assert service.list_orders(ADMIN).count() == 2

    def test_admin_search(self, service, order):
        assert service.list_orders(ADMIN, "dewi").count() == 1
        assert service.list_orders(ADMIN, "0857").count() == 1
        assert service.list_orders(ADMIN, "budi").count() == 0

    def test_search_is_literal(self, service, order):
        assert service.list_orders(ADMIN, ".*").count() == 0

    def test_customer_sees_own_orders(self, service, order, customer, bouquet):
        own = service.create_order(
            CreateOrderDTO(customer_id=str(customer.id), bouquet_id=str(bouquet.id))
        )
        principal = SimpleNamespace(id=customer.user_id, role="customer")
        assert [o.id for o in service.list_orders(principal)] == [own.id]

    def test_customer_without_record_sees_nothing(self, service, order):
        principal = SimpleNamespace(id="ghost", role="customer")
        assert list(service.list_orders(principal)) == []

    @pytest.mark.parametrize("principal", [ANONYMOUS, SimpleNamespace(id="x", role="kurir")])
    def test_other_principals_see_nothing(self, service, order, principal):
        assert list(service.list_orders(principal)) == []

    @pytest.mark.parametrize(
        "raw, expected",
        [
            (None, 100),
            ("abc", 100),
            ("", 100),
            ("0", 1),
            ("-5", 1),
            ("25", 25),
            (" 7 ", 7),
            ("2abc", 2),
            ("2.9", 2),
            ("5000", 1000),
        ],
    )
    def test_clamp_limit(self, raw, expected):
        assert OrderService.clamp_limit(raw) == expected


class TestGetOrder:
    def test_admin(self, service, order):
        assert service.get_order(ADMIN, str(order.id)).id == order.id

    def test_customer_own(self, service, customer, bouquet):
        own = service.create_order(
            CreateOrderDTO(customer_id=str(customer.id), bouquet_id=str(bouquet.id))
        )
        principal = SimpleNamespace(id=customer.user_id, role="customer")
        assert service.get_order(principal, str(own.id)).id == own.id

    def test_customer_other(self, service, order, customer):
        principal = SimpleNamespace(id=customer.user_id, role="customer")
        with pytest.raises(OrderNotFound):
            service.get_order(principal, str(order.id))

    def test_anonymous(self, service, order):
        with pytest.raises(OrderNotFound):
            service.get_order(ANONYMOUS, str(order.id))


class TestDeleteAndStats:
    def test_delete(self, service, order):
        with mock.patch("modules.orders.services.event_bus") as bus:
            service.delete_order(str(order.id))
        assert not Order.objects.filter(id=order.id).exists()
        assert isinstance(bus.publish.call_args.args[0], OrderDeleted)

    def test_delete_missing(self, service):
        with pytest.raises(OrderNotFound):
            service.delete_order(MISSING_ID)

    def test_delete_rolled_back_when_handler_fails(self, service, order):
        with mock.patch("modules.orders.services.event_bus") as bus:
            bus.publish.side_effect = RuntimeError("handler failed")
            with pytest.raises(RuntimeError):
                service.delete_order(str(order.id))
        assert Order.objects.filter(id=order.id).exists()

    def test_stats(self, service, order, bouquet):
        stats = service.order_stats(bouquet_id=str(bouquet.id))
        assert stats["count"] == 1
        assert stats["last_order_time"] is not None
        assert service.order_stats(bouquet_id="lain")["count"] == 0

    def test_stats_window(self, service, order):
        later = timezone.now() + timedelta(days=2)
        assert service.order_stats(now=later)["count"] == 0
