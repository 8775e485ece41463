"""
ExtraBeam Backend - Request Logging Middleware
==============================================

What:  One access-log line per request on the "extrabeam.access" logger.
How:   Measures the time spent below this middleware and logs method, path,
       status, duration, request ID and client IP, both in the message and
       as `extra` fields for structured handlers.

Levels:
    5xx → ERROR, 4xx → WARNING, anything else → INFO

Request bodies and Authorization headers are never logged: they carry
passwords, bearer tokens and invoice data.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from extrabeam.middleware.request_id import request_id_var

logger = logging.getLogger("extrabeam.access")

# Probed every few seconds by load balancers
SILENT_PATHS = {"/health"}


def client_ip_of(request: Request) -> str:
    return request.client.host if request.client else "unknown"


class RequestLoggingMiddleware(BaseHTTPMiddleware):

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if path in SILENT_PATHS:
            return await call_next(request)

        start_time = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start_time) * 1000

        status = response.status_code
        if status >= 500:
            log_level = logging.ERROR
        elif status >= 400:
            log_level = logging.WARNING
        else:
            log_level = logging.INFO

        rid = request_id_var.get("")
        client_ip = client_ip_of(request)
        logger.log(
            log_level,
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
