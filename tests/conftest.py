import jwt as pyjwt
import pytest
from django.conf import settings

from rest_framework.test import APIClient

from modules.bouquets.models import Bouquet
from modules.customers.models import Customer


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


@pytest.fixture()
def api_client():
    """DRF APIClient for testing API endpoints."""
    return APIClient()


@pytest.fixture()
def api_client_with_correlation(api_client):
    """APIClient pre-configured with a known correlation ID header."""
    cid = "test-correlation-id-fixture"
    api_client.defaults["HTTP_X_REQUEST_ID"] = cid
    return api_client, cid


@pytest.fixture()
def make_token():
    """Sign a storefront JWT the way the auth service does."""

    def _make(user_id="admin-1", role="admin", username="admin", **claims):
        payload = {"id": user_id, "username": username, "role": role, **claims}
        return pyjwt.encode(
            payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM
        )

    return _make


@pytest.fixture()
def admin_client(make_token):
    client = APIClient()
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {make_token()}")
    return client


@pytest.fixture()
def customer():
    return Customer.objects.create(
        user_id="user-siti",
        buyer_name="Siti Aminah",
        phone_number="081234567890",
        address="Jl. Melati No. 5, Bandung",
    )


@pytest.fixture()
def other_customer():
    return Customer.objects.create(
        user_id="user-budi",
        buyer_name="Budi Santoso",
        phone_number="082198765432",
        address="Jl. Kenanga No. 12, Jakarta",
    )


@pytest.fixture()
def customer_client(make_token, customer):
    client = APIClient()
    token = make_token(user_id=customer.user_id, role="customer", username="siti")
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")
    return client


@pytest.fixture()
def bouquet():
    return Bouquet.objects.create(name="Mawar Merah Premium", price=150000)


@pytest.fixture()
def other_bouquet():
    return Bouquet.objects.create(name="Lily Putih", price=90000)


@pytest.fixture()
def order_payload(bouquet):
    """A complete inline-buyer order body, as the checkout form sends it."""
    return {
        "buyerName": "Dewi Lestari",
        "phoneNumber": "085711223344",
        "address": "Jl. Anggrek No. 3, Surabaya",
        "bouquetId": str(bouquet.id),
        "bouquetName": "Mawar Merah Premium",
        "bouquetPrice": 150000,
        "deliveryPrice": 20000,
    }
