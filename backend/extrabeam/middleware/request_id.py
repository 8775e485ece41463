"""
ExtraBeam Backend - Request ID Middleware
=========================================

What:  Tags every request with a short correlation ID.
How:   Reuses the caller's X-Request-ID header when present, otherwise
       generates an 8-character UUID prefix. The ID is stored in a ContextVar
       (read by the exception handlers and the access log) and in
       request.state, and echoed back in the X-Request-ID response header.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# Coroutine-local: concurrent requests share the thread but not the value
request_id_var: ContextVar[str] = ContextVar("request_id", default="")


class RequestIDMiddleware(BaseHTTPMiddleware):

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = request.headers.get("X-Request-ID") or str(uuid.uuid4())[:8]
        request_id_var.set(rid)
        request.state.request_id = rid

        response = await call_next(request)
        response.headers["X-Request-ID"] = rid
        return response
