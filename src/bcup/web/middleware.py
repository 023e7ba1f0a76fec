"""ASGI middleware for the bcup server.

Provides request logging, security response headers, a per-client rate
limit and a catch-all OPTIONS responder.
"""

import json
import threading
import time
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

SECURITY_HEADERS: List[Tuple[str, str]] = [
    (
        "Content-Security-Policy",
        "default-src 'none'; connect-src 'self'; frame-ancestors 'none'; "
        "base-uri 'none'; form-action 'none';",
    ),
    ("X-Frame-Options", "DENY"),
    ("X-XSS-Protection", "1; mode=block"),
    ("X-Content-Type-Options", "nosniff"),
    ("Strict-Transport-Security", "max-age=31536000; includeSubDomains; preload"),
]


def client_address(scope: dict) -> str:
    """Client host from an ASGI scope ("unknown" when the server gives none)"""
    client = scope.get("client")
    return client[0] if client else "unknown"


async def send_json(send: Any, status: int, payload: Dict[str, Any]) -> None:
    body = json.dumps(payload).encode("utf-8")
    await send(
        {
            "type": "http.response.start",
            "status": status,
            "headers": [
                (b"content-type", b"application/json"),
                (b"content-length", str(len(body)).encode("latin-1")),
            ],
        }
    )
    await send({"type": "http.response.body", "body": body})


class RequestLoggingMiddleware:
    """Middleware to log incoming requests.

    Logs request method, path, status and timing information.

    Example:
        from bcup.logger import get_logger
        from bcup.web.middleware import RequestLoggingMiddleware

        app.add_middleware(RequestLoggingMiddleware, logger=get_logger("bcup-web"))
    """

    def __init__(self, app: Any, logger: Optional[Any] = None) -> None:
        self.app = app
        self.logger = logger

    async def __call__(self, scope: dict, receive: Any, send: Any) -> None:
        if scope["type"] != "http" or not self.logger:
            await self.app(scope, receive, send)
            return

        method = scope.get("method", "UNKNOWN")
        path = scope.get("path", "/")
        start_time = time.time()
        response_status = 0

        async def send_wrapper(message: dict) -> None:
            nonlocal response_status
            if message["type"] == "http.response.start":
                response_status = message.get("status", 0)
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        finally:
            duration_ms = (time.time() - start_time) * 1000
            self.logger.info(
                f"{method} {path}",
                status=response_status,
                duration_ms=round(duration_ms, 2),
                client=client_address(scope),
            )


class SecurityHeadersMiddleware:
    """Adds hardening headers (CSP, frame denial, nosniff, HSTS) to every response.

    Headers already set by the application are left alone.
    """

    def __init__(self, app: Any, headers: Optional[Iterable[Tuple[str, str]]] = None) -> None:
        self.app = app
        pairs = SECURITY_HEADERS if headers is None else list(headers)
        self.headers = [(k.lower().encode("latin-1"), v.encode("latin-1")) for k, v in pairs]

    async def __call__(self, scope: dict, receive: Any, send: Any) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        async def send_wrapper(message: dict) -> None:
            if message["type"] == "http.response.start":
                existing = {k.lower() for k, _ in message.get("headers", [])}
                extra = [(k, v) for k, v in self.headers if k not in existing]
                message["headers"] = list(message.get("headers", [])) + extra
            await send(message)

        await self.app(scope, receive, send_wrapper)


class RateLimiter:
    """Fixed-window request counter keyed by client address.

    Each key's window starts at its first request; once the window has
    elapsed the count resets. Expired windows are swept at most once per
    window length, so idle clients do not accumulate. State is in-process only.
    """

    def __init__(
        self,
        limit: int = 100,
        window_seconds: int = 3600,
        clock: Callable[[], float] = time.time,
    ):
        self.limit = limit
        self.window_seconds = window_seconds
        self.clock = clock
        self._windows: Dict[str, Tuple[int, float]] = {}
        self._swept_at: Optional[float] = None
        self._lock = threading.Lock()

    def tracked_keys(self) -> int:
        """Number of client keys currently holding a window"""
        with self._lock:
            return len(self._windows)

    def hit(self, key: str) -> bool:
        """Record a request; returns False once the key is over its limit"""
        now = self.clock()
        with self._lock:
            self._sweep(now)
            count, started = self._windows.get(key, (0, now))
            if now - started < self.window_seconds:
                count += 1
            else:
                count, started = 1, now
            self._windows[key] = (count, started)
        return count <= self.limit

    def _sweep(self, now: float) -> None:
        # Caller holds the lock
        if self._swept_at is None:
            self._swept_at = now
            return
        if now - self._swept_at < self.window_seconds:
            return
        self._windows = {
            key: window
            for key, window in self._windows.items()
            if now - window[1] < self.window_seconds
        }
        self._swept_at = now

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()
            self._swept_at = None


class RateLimitMiddleware:
    """Rejects clients over their request budget with HTTP 429."""

    def __init__(
        self,
        app: Any,
        limiter: Optional[RateLimiter] = None,
        exempt_paths: Iterable[str] = ("/ping", "/health"),
    ) -> None:
        self.app = app
        self.limiter = limiter or RateLimiter()
        self.exempt_paths = frozenset(exempt_paths)

    async def __call__(self, scope: dict, receive: Any, send: Any) -> None:
        if scope["type"] != "http" or scope.get("path") in self.exempt_paths:
            await self.app(scope, receive, send)
            return

        if not self.limiter.hit(client_address(scope)):
            await send_json(
                send,
                429,
                {
                    "success": False,
                    "error": "Too many requests. Try again later.",
                    "code": "RATE_LIMITED",
                },
            )
            return

        await self.app(scope, receive, send)


class OptionsMiddleware:
    """Answers any OPTIONS request that reaches it with 204 No Content.

    CORS preflights are answered by CORSMiddleware before this point.
    """

    def __init__(self, app: Any) -> None:
        self.app = app

    async def __call__(self, scope: dict, receive: Any, send: Any) -> None:
        if scope["type"] == "http" and scope.get("method") == "OPTIONS":
            await send({"type": "http.response.start", "status": 204, "headers": []})
            await send({"type": "http.response.body", "body": b""})
            return
        await self.app(scope, receive, send)
