"""Storefront JWT Authentication backend for Django REST Framework.

Tokens are issued by the storefront auth service and signed with the
shared ``JWT_SECRET`` (HS256 by default).  The payload carries the
principal: ``id``, ``username`` and ``role`` (``admin`` or ``customer``).

Security decisions
------------------
* **Fail Closed**: a token that is present but fails to decode returns 401.
* No ``Authorization`` header means an anonymous request; the view
  decides what an anonymous caller may see.
* ``algorithms`` is hard-coded to the configured value, never derived
  from the incoming token header.
"""

import jwt as pyjwt
import structlog
from django.conf import settings
from jwt.exceptions import ExpiredSignatureError, PyJWTError

from rest_framework.authentication import BaseAuthentication
from rest_framework.exceptions import AuthenticationFailed

logger = structlog.get_logger(__name__)


class StorefrontUser:
    """Lightweight user object for requests authenticated via a storefront JWT.

    The auth service is the source of truth; there is no local Django
    ``User`` row.  Views read ``request.user.id`` / ``.role`` to scope
    what the caller can see.
    """

    def __init__(self, payload: dict):
        self.payload = payload
        self.id: str = str(payload.get("id", "") or "")
        self.username: str = str(payload.get("username", "") or "")
        self.role: str = str(payload.get("role", "") or "")

    # DRF checks
    is_authenticated = True
    is_active = True

    @property
    def pk(self) -> str:
        # throttles key authenticated callers by ``user.pk``
        return self.id

    def __str__(self) -> str:  # pragma: no cover
        return self.username or self.id


class StorefrontJWTAuthentication(BaseAuthentication):
    """DRF authentication class that validates storefront Bearer tokens."""

    keyword = "Bearer"

    # ------------------------------------------------------------------
    # Public API (DRF contract)
    # ------------------------------------------------------------------

    def authenticate(self, request):
        """Return ``(StorefrontUser, token)`` or ``None`` (no credentials)."""
        header = request.META.get("HTTP_AUTHORIZATION", "")
        if not header:
            return None

        token = self._extract_token(header)
        payload = self._decode_token(token)
        user = StorefrontUser(payload)
        logger.info("jwt_authenticated", user_id=user.id, role=user.role)
        return (user, token)

    def authenticate_header(self, request):
        """Value for the ``WWW-Authenticate`` response header on 401."""
        return f'{self.keyword} realm="api"'

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _extract_token(header: str) -> str:
        parts = header.split()
        if len(parts) != 2 or parts[0].lower() != "bearer":
            raise AuthenticationFailed("Invalid Authorization header format.")
        return parts[1]

    @staticmethod
    def _decode_token(token: str) -> dict:
        try:
            payload = pyjwt.decode(
                token,
                settings.JWT_SECRET,
                algorithms=[settings.JWT_ALGORITHM],
            )
        except ExpiredSignatureError as exc:
            logger.warning("jwt_expired")
            raise AuthenticationFailed("Token expired") from exc
        except PyJWTError as exc:
            logger.warning("jwt_validation_failed", error=str(exc))
            raise AuthenticationFailed("Invalid token") from exc
        return payload
