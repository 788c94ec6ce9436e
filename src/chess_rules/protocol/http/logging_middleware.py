from __future__ import annotations

import logging
import re
import time
import uuid
from typing import Awaitable, Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response


logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "x-request-id"
# Caller IDs end up in log records, so only short token-like values are kept.
_REQUEST_ID_RE = re.compile(r"^[A-Za-z0-9._:-]{1,64}$")


def resolve_request_id(request: Request) -> str:
    """Reuse the caller's request ID when it is well formed, else mint one."""
    incoming = request.headers.get(REQUEST_ID_HEADER, "")
    if _REQUEST_ID_RE.match(incoming):
        return incoming
    return uuid.uuid4().hex


class RequestIDLoggingMiddleware(BaseHTTPMiddleware):
    """Tag every request with an ID and log one line when it completes.

    The ID is stored on ``request.state`` for the error envelope and echoed in
    the ``x-request-id`` response header.
    """

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        request_id = resolve_request_id(request)
        request.state.request_id = request_id
        fields = {
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
        }
        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            logger.warning("%s %s failed", request.method, request.url.path, extra=fields)
            raise
        elapsed_ms = round((time.perf_counter() - started) * 1000, 1)
        response.headers[REQUEST_ID_HEADER] = request_id
        logger.info(
            "%s %s -> %d",
            request.method,
            request.url.path,
            response.status_code,
            extra={**fields, "status_code": response.status_code, "elapsed_ms": elapsed_ms},
        )
        return response
