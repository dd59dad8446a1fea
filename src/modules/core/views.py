"""Liveness/readiness probe for the orders service."""

import time
from typing import Any, Callable, Dict

import structlog
from django.core.cache import cache
from django.db import DatabaseError, connections
from django.http import HttpRequest, JsonResponse
from django.utils import timezone

logger = structlog.get_logger()

CACHE_PROBE_KEY = "orders:health"


def _ping_database() -> None:
    conn = connections["default"]
    conn.ensure_connection()
    with conn.cursor() as cursor:
        cursor.execute("SELECT 1")
        cursor.fetchone()


def _ping_cache() -> None:
    cache.set(CACHE_PROBE_KEY, "ok", 10)
    if cache.get(CACHE_PROBE_KEY) != "ok":
        raise ConnectionError("Cache read failed")


# Redis client errors do not share a base class with Django's, hence the
# broad catch for the cache probe.
PROBES: Dict[str, tuple[Callable[[], None], tuple[type[BaseException], ...]]] = {
    "database": (_ping_database, (DatabaseError,)),
    "cache": (_ping_cache, (Exception,)),
}


def _run_probe(name: str) -> Dict[str, Any]:
    ping, failures = PROBES[name]
    started = time.monotonic()
    try:
        ping()
    except failures:
        logger.error("health.probe_failed", service=name, exc_info=True)
        return {"status": "down"}
    return {
        "status": "up",
        "response_time_ms": round((time.monotonic() - started) * 1000, 2),
    }


def health_check(request: HttpRequest) -> JsonResponse:
    """GET /health: 200 when every backing service answers, else 503."""
    services = {name: _run_probe(name) for name in PROBES}
    healthy = all(result["status"] == "up" for result in services.values())
    state = "healthy" if healthy else "unhealthy"

    logger.info("health.checked", status=state)
    return JsonResponse(
        {
            "status": state,
            "timestamp": timezone.now().isoformat(),
            "services": services,
        },
        status=200 if healthy else 503,
    )
