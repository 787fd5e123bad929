"""
Prosthesis Orders Backend — Health Check Route
================================================

What:  Health check endpoint for monitoring and container probes.
How:   Pings the document store and reports the configured mail provider.
       The mail provider is not probed: notifications are best-effort and
       a provider outage does not make the service unhealthy.

Status levels:
    - healthy:   store reachable (HTTP 200)
    - unhealthy: store unreachable or not initialized (HTTP 503)
"""

import logging
import time

from fastapi import APIRouter, Request, Response

from prosthesis_orders import __version__
from prosthesis_orders.schemas.record import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={503: {"description": "Store unreachable", "model": HealthResponse}},
    summary="Service health check",
)
async def health_check(request: Request, response: Response) -> HealthResponse:
    store_status = "connected"
    overall = "healthy"

    store = getattr(request.app.state, "record_store", None)
    try:
        if store is None:
            raise RuntimeError("store not initialized")
        await store.ping()
    except Exception as e:
        store_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: store unreachable: %s", str(e))

    notifier = getattr(request.app.state, "notifier", None)
    mail_provider = notifier.provider if notifier is not None else "none"

    if overall != "healthy":
        response.status_code = 503

    return HealthResponse(
        status=overall,
        version=__version__,
        store=store_status,
        mail_provider=mail_provider,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
