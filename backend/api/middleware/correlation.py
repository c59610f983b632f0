"""
Correlation ID middleware for request tracing.

Every request gets an id (taken from X-Correlation-ID or generated) that is
echoed in the response and attached to each log record written meanwhile.
"""

import time
import uuid
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from ..utils.logging import set_correlation_id, log_request

CORRELATION_HEADER = "X-Correlation-ID"


class CorrelationMiddleware(BaseHTTPMiddleware):

    async def dispatch(self, request: Request, call_next) -> Response:
        correlation_id = request.headers.get(CORRELATION_HEADER) or str(uuid.uuid4())[:8]
        set_correlation_id(correlation_id)

        start_time = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start_time) * 1000

        response.headers[CORRELATION_HEADER] = correlation_id

        if not request.url.path.startswith("/health"):
            log_request(
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
                duration_ms=duration_ms
            )

        return response
