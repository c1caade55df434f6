"""CORS, response headers and write throttling middleware."""

import time
from collections import deque
from typing import Any

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.types import ASGIApp

from toilet_spotter.core.config import Settings

_READ_METHODS = frozenset({"GET", "HEAD", "OPTIONS"})
_PROXY_HEADERS = ("CF-Connecting-IP", "X-Forwarded-For", "X-Real-IP")
_WINDOW_SECONDS = 60.0


def get_client_ip(request: Request) -> str:
    """Client address, preferring proxy headers over the socket peer.

    For ``X-Forwarded-For`` the leftmost entry is the original client.
    """
    for header in _PROXY_HEADERS:
        value = request.headers.get(header, "").strip()
        if value:
            return value.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def setup_cors(app: FastAPI, settings: Settings) -> None:
    """Allow the configured browser origins to call the API.

    No origins are allowed unless ``CORS_ORIGINS`` lists them.  The
    ``X-Device-Id`` header must be allowed for writes to work cross-origin.
    """
    kwargs: dict[str, Any] = {
        "allow_methods": ["GET", "POST"],
        "allow_headers": ["Content-Type", "X-Device-Id"],
    }
    if settings.cors_origin_list:
        kwargs["allow_origins"] = settings.cors_origin_list
    app.add_middleware(CORSMiddleware, **kwargs)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Stamp a fixed set of headers on every response.

    Access codes are location-sensitive, so responses are never cached by
    intermediaries and never leak a referrer.
    """

    headers = {
        "X-Content-Type-Options": "nosniff",
        "Referrer-Policy": "no-referrer",
        "Cache-Control": "no-store",
        "Strict-Transport-Security": "max-age=31536000; includeSubDomains",
    }

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        response = await call_next(request)
        for name, value in self.headers.items():
            response.headers.setdefault(name, value)
        return response


class SlidingWindowCounter:
    """Per-key event timestamps over a sliding window.

    Keys whose window has emptied are dropped, so memory is bounded by the
    callers active within the last window.
    """

    def __init__(self, window_seconds: float = _WINDOW_SECONDS) -> None:
        self.window_seconds = window_seconds
        self._events: dict[str, deque[float]] = {}
        self._last_sweep = 0.0

    def __len__(self) -> int:
        return len(self._events)

    def _expire(self, key: str, now: float) -> int:
        events = self._events.get(key)
        if events is None:
            return 0
        while events and events[0] <= now - self.window_seconds:
            events.popleft()
        if not events:
            del self._events[key]
            return 0
        return len(events)

    def _sweep(self, now: float) -> None:
        for key in list(self._events):
            self._expire(key, now)
        self._last_sweep = now

    def try_acquire(self, limits: dict[str, int], now: float) -> bool:
        """Record one event under every key unless any key is at its limit."""
        if now - self._last_sweep >= self.window_seconds:
            self._sweep(now)
        if any(self._expire(key, now) >= limit for key, limit in limits.items()):
            return False
        for key in limits:
            self._events.setdefault(key, deque()).append(now)
        return True


class WriteRateLimitMiddleware(BaseHTTPMiddleware):
    """Throttle code submissions and votes per device and per client address.

    Each write counts against its ``X-Device-Id`` and against the client
    address; the address allowance is ``address_multiplier`` times the
    device one so several devices behind one NAT still work, while
    rotating the device header does not escape the address limit.  Reads
    are never throttled.
    """

    def __init__(self, app: ASGIApp, writes_per_minute: int = 30, address_multiplier: int = 4) -> None:
        super().__init__(app)
        self.writes_per_minute = writes_per_minute
        self.writes_per_address = writes_per_minute * address_multiplier
        self.counter = SlidingWindowCounter()

    def _limits(self, request: Request) -> dict[str, int]:
        limits = {f"ip:{get_client_ip(request)}": self.writes_per_address}
        device_id = request.headers.get("X-Device-Id", "").strip()
        if device_id:
            limits[f"device:{device_id}"] = self.writes_per_minute
        return limits

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.method in _READ_METHODS:
            return await call_next(request)

        limits = self._limits(request)
        if not self.counter.try_acquire(limits, time.monotonic()):
            logger.warning(f"Write rate limit hit for {', '.join(limits)}")
            return Response(
                content='{"detail":"Too many submissions, try again in a minute"}',
                status_code=429,
                media_type="application/json",
            )
        return await call_next(request)
