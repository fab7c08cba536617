import logging
import threading
import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

logger = logging.getLogger("app.rate_limit")

EXEMPT_PATHS = {"/health", "/health/detailed", "/ready", "/live"}
WINDOW_SECONDS = 60


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Fixed one-minute window per client address, kept in process memory.

    ``X-Forwarded-For`` is only honoured with ``trust_forwarded_for=True``,
    i.e. when the app sits behind a proxy that overwrites the header.
    """

    def __init__(self, app, calls_per_minute: int = 60, trust_forwarded_for: bool = False):
        super().__init__(app)
        self.calls_per_minute = calls_per_minute
        self.trust_forwarded_for = trust_forwarded_for
        self._windows = {}  # client -> [window_start, count]
        self._lock = threading.Lock()
        self._last_sweep = time.monotonic()

    def _client_key(self, request: Request) -> str:
        if self.trust_forwarded_for:
            forwarded = request.headers.get("X-Forwarded-For")
            if forwarded:
                return forwarded.split(",")[0].strip()
        return request.client.host if request.client else "unknown"

    def _sweep(self, now: float) -> None:
        # caller holds the lock
        if now - self._last_sweep < WINDOW_SECONDS:
            return
        stale = [k for k, (start, _) in self._windows.items() if now - start >= WINDOW_SECONDS]
        for key in stale:
            del self._windows[key]
        self._last_sweep = now

    def _hit(self, key: str) -> bool:
        now = time.monotonic()
        with self._lock:
            self._sweep(now)
            window = self._windows.get(key)
            if window is None or now - window[0] >= WINDOW_SECONDS:
                window = self._windows[key] = [now, 0]
            window[1] += 1
            return window[1] <= self.calls_per_minute

    async def dispatch(self, request: Request, call_next):
        if request.url.path in EXEMPT_PATHS:
            return await call_next(request)
        key = self._client_key(request)
        if not self._hit(key):
            logger.warning(f"Rate limit exceeded for {key} on {request.url.path}")
            return JSONResponse(
                status_code=429,
                content={"detail": "Too many requests"},
                headers={"Retry-After": str(WINDOW_SECONDS)},
            )
        return await call_next(request)
