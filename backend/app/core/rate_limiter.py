"""
Rate limiting middleware against brute force and request floods.

Uses in-memory storage. With several worker processes each keeps its own
counts, so the effective limit is per worker.
"""
import time
import logging
from collections import defaultdict
from typing import Dict, List, Tuple

from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.config import settings
from app.core.security import decode_access_token

logger = logging.getLogger(__name__)

EXEMPT_PATHS = {"/health", "/docs", "/redoc", "/openapi.json"}


class RateLimiter:
    """In-memory rate limiter with sliding window."""

    def __init__(self, requests: int = 100, window: int = 60):
        """
        Args:
            requests: Maximum requests allowed in window
            window: Time window in seconds
        """
        self.requests = requests
        self.window = window
        self.clients: Dict[str, List[float]] = defaultdict(list)
        self.last_cleanup = time.time()

    def is_allowed(self, client_id: str) -> Tuple[bool, int]:
        """
        Returns:
            (allowed, remaining requests in the current window)
        """
        now = time.time()
        if now - self.last_cleanup > 300:
            self._cleanup(now)
            self.last_cleanup = now

        cutoff = now - self.window
        timestamps = [ts for ts in self.clients[client_id] if ts > cutoff]
        self.clients[client_id] = timestamps

        if len(timestamps) >= self.requests:
            return False, 0
        timestamps.append(now)
        return True, self.requests - len(timestamps)

    def _cleanup(self, now: float):
        cutoff = now - self.window
        for client_id in list(self.clients.keys()):
            timestamps = [ts for ts in self.clients[client_id] if ts > cutoff]
            if timestamps:
                self.clients[client_id] = timestamps
            else:
                del self.clients[client_id]
        logger.info(f"Rate limiter cleanup: {len(self.clients)} active clients")


rate_limiter = RateLimiter(
    requests=settings.RATE_LIMIT_REQUESTS,
    window=settings.RATE_LIMIT_WINDOW_SECONDS
)


def client_key(request: Request) -> str:
    """Signed-in callers are counted per user, everyone else per IP.

    Tokens that do not verify fall back to the IP, so a forged header
    cannot spend a real user's allowance.
    """
    token = None
    auth_header = request.headers.get("authorization", "")
    if auth_header.startswith("Bearer "):
        token = auth_header[7:]
    elif settings.SESSION_COOKIE_NAME in request.cookies:
        token = request.cookies[settings.SESSION_COOKIE_NAME]

    if token:
        subject = decode_access_token(token)
        if subject:
            return f"user:{subject}"
    return f"ip:{request.client.host if request.client else 'unknown'}"


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Middleware to apply rate limiting to all requests."""

    def __init__(self, app, limiter: RateLimiter = rate_limiter):
        super().__init__(app)
        self.limiter = limiter

    async def dispatch(self, request: Request, call_next):
        if request.url.path in EXEMPT_PATHS:
            return await call_next(request)

        key = client_key(request)
        allowed, remaining = self.limiter.is_allowed(key)
        limit_headers = {
            "X-RateLimit-Limit": str(self.limiter.requests),
            "X-RateLimit-Window": str(self.limiter.window),
        }

        if not allowed:
            logger.warning(f"Rate limit exceeded for {key} on {request.method} {request.url.path}")
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content={"message": f"Rate limit exceeded. Try again in {self.limiter.window} seconds."},
                headers={**limit_headers, "Retry-After": str(self.limiter.window), "X-RateLimit-Remaining": "0"},
            )

        response = await call_next(request)
        response.headers.update({**limit_headers, "X-RateLimit-Remaining": str(remaining)})
        return response
