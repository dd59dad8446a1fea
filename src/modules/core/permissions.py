"""Role-based permissions for storefront principals."""

from __future__ import annotations

from django.conf import settings
from rest_framework.permissions import BasePermission

ROLE_ADMIN = "admin"
ROLE_CUSTOMER = "customer"


class IsStorefrontAdmin(BasePermission):
    """Allow only principals carrying the ``admin`` role."""

    message = "Insufficient permissions"

    def has_permission(self, request, view) -> bool:
        user = request.user
        return bool(
            getattr(user, "is_authenticated", False)
            and getattr(user, "role", "") == ROLE_ADMIN
        )


class OrderWritePermission(IsStorefrontAdmin):
    """Admin gate for order mutations, enabled by ``ORDERS_REQUIRE_ADMIN_FOR_WRITES``."""

    def has_permission(self, request, view) -> bool:
        if not settings.ORDERS_REQUIRE_ADMIN_FOR_WRITES:
            return True
        return super().has_permission(request, view)
