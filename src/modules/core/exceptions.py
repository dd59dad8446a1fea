"""DRF exception handler.

Every error leaving the API carries the same shape the storefront UI
reads: ``{"message": "..."}``.
"""

from __future__ import annotations

from typing import Any

import structlog
from rest_framework.views import exception_handler

logger = structlog.get_logger(__name__)


def api_exception_handler(exc: Exception, context: dict[str, Any]):
    """Render DRF exceptions (auth, parse, throttle, 404) as ``{"message": ...}``."""
    response = exception_handler(exc, context)
    if response is None:
        return None

    data = response.data
    if isinstance(data, dict) and "detail" in data:
        message = str(data["detail"])
    elif isinstance(data, list) and data:
        message = str(data[0])
    else:
        message = str(data)

    logger.info(
        "api.error",
        status_code=response.status_code,
        error_type=type(exc).__name__,
    )
    response.data = {"message": message}
    return response
