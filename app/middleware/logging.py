import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

logger = logging.getLogger("app.requests")

CORRELATION_HEADER = "X-Correlation-ID"


class LoggingMiddleware(BaseHTTPMiddleware):
    """Tags each request with a correlation id and logs one line per response."""

    async def dispatch(self, request: Request, call_next):
        correlation_id = request.headers.get(CORRELATION_HEADER) or uuid.uuid4().hex[:12]
        request.state.correlation_id = correlation_id
        start = time.perf_counter()

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start) * 1000
        response.headers[CORRELATION_HEADER] = correlation_id
        logger.info(
            f"[{correlation_id}] {request.method} {request.url.path} "
            f"-> {response.status_code} ({duration_ms:.1f} ms)"
        )
        return response
