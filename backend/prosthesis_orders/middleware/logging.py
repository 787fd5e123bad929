"""
Prosthesis Orders Backend — Request Logging Middleware
========================================================

What:  One access log line per HTTP request: method, path, status, duration,
       request ID and client IP.
Why:   The only observability this service has. Notification outcomes and
       store failures are logged by their own modules; this line ties them
       to the request that caused them.

Privacy:
    ✅ Log: method, path, status, duration, IP, request ID
    ❌ Don't log: request bodies (patient names, DNI) or the delete PIN
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from prosthesis_orders.middleware.request_id import request_id_var

logger = logging.getLogger("prosthesis_orders.access")

# Probes hit these every few seconds
SILENT_PATHS = {"/health"}


def level_for_status(status: int) -> int:
    """5xx → ERROR, 4xx → WARNING, everything else → INFO."""
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs each request after the response has been produced."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if path in SILENT_PATHS:
            return await call_next(request)

        start_time = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start_time) * 1000

        client_ip = request.client.host if request.client else "unknown"
        rid = request_id_var.get("")
        status = response.status_code

        logger.log(
            level_for_status(status),
            "%s %s %d %.1fms [%s] from %s",
            request.method,
            path,
            status,
            duration_ms,
            rid,
            client_ip,
            extra={
                "request_id": rid,
                "method": request.method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
            },
        )
        return response
