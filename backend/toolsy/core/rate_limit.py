"""
Rate limiting for Toolsy Store Backend
Uses in-memory storage with sliding window algorithm
"""
import time
from typing import Dict, Tuple
from collections import defaultdict
from fastapi import Request, HTTPException, status
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse


class RateLimiter:
    """
    In-memory rate limiter using sliding window algorithm.

    State is per process; every worker keeps its own counters.
    """

    def __init__(self):
        # {identifier: [(timestamp, count), ...]}
        self._requests: Dict[str, list] = defaultdict(list)
        self._last_cleanup = time.time()
        self._cleanup_interval = 60  # seconds
        self._max_window = 60

    def _cleanup_old_entries(self):
        """Remove entries older than the largest window seen so far"""
        now = time.time()

        if now - self._last_cleanup < self._cleanup_interval:
            return

        cutoff = now - self._max_window * 2

        for identifier in list(self._requests.keys()):
            self._requests[identifier] = [
                (ts, count) for ts, count in self._requests[identifier]
                if ts > cutoff
            ]
            if not self._requests[identifier]:
                del self._requests[identifier]

        self._last_cleanup = now

    def is_allowed(
        self,
        identifier: str,
        max_requests: int,
        window_seconds: int = 60
    ) -> Tuple[bool, int, int]:
        """
        Check if a request is allowed under the rate limit.

        Returns:
            Tuple of (is_allowed, remaining_requests, retry_after_seconds)
        """
        self._max_window = max(self._max_window, window_seconds)
        self._cleanup_old_entries()

        now = time.time()
        window_start = now - window_seconds

        requests_in_window = [
            (ts, count) for ts, count in self._requests[identifier]
            if ts > window_start
        ]

        total_requests = sum(count for _, count in requests_in_window)

        if total_requests >= max_requests:
            if requests_in_window:
                oldest_timestamp = min(ts for ts, _ in requests_in_window)
                retry_after = int(oldest_timestamp + window_seconds - now) + 1
            else:
                retry_after = 1

            return False, 0, retry_after

        self._requests[identifier].append((now, 1))

        remaining = max_requests - total_requests - 1
        return True, remaining, 0

    def reset(self):
        """Forget every counter (used by tests and on redeploys)"""
        self._requests.clear()
        self._last_cleanup = time.time()


# Global rate limiter instance
rate_limiter = RateLimiter()


# Requests per minute for the global middleware
RATE_LIMITS = {
    "admin": 1000,           # Supabase-authenticated admin dashboard
    "maintenance": 60,       # cron jobs with X-Maintenance-Key
    "auth_code": 120,        # subscription portal
    "unauthenticated": 200,  # storefront browsing makes many calls
}

# Per-endpoint limits: (max_requests, window_seconds)
LOGIN_RATE_LIMIT = (5, 15 * 60)
CHECKOUT_RATE_LIMIT = (10, 60)
REFUND_FORM_RATE_LIMIT = (5, 60 * 60)

# Paths that are exempt from rate limiting
EXEMPT_PATHS = {
    "/",
    "/health",
    "/docs",
    "/openapi.json",
    "/redoc",
    "/sitemap.xml",
}


def get_client_ip(request: Request) -> str:
    """Get the client IP, considering proxies"""
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        # Take the first IP in the chain (original client)
        return forwarded_for.split(",")[0].strip()

    if request.client:
        return request.client.host

    return "unknown"


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Middleware that applies rate limiting based on who is calling.

    Headers returned:
    - X-RateLimit-Limit: Maximum requests per window
    - X-RateLimit-Remaining: Remaining requests in current window
    - X-RateLimit-Reset: Seconds until the window resets (when limited)
    """

    async def dispatch(self, request: Request, call_next):
        if request.url.path in EXEMPT_PATHS:
            return await call_next(request)

        # Skip CORS preflight
        if request.method == "OPTIONS":
            return await call_next(request)

        identifier, limit = self._get_identifier_and_limit(request)

        is_allowed, remaining, retry_after = rate_limiter.is_allowed(
            identifier=identifier,
            max_requests=limit,
            window_seconds=60
        )

        if not is_allowed:
            # JSONResponse instead of HTTPException so CORS headers still apply
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content={"detail": "Rate limit exceeded. Please slow down."},
                headers={
                    "X-RateLimit-Limit": str(limit),
                    "X-RateLimit-Remaining": "0",
                    "X-RateLimit-Reset": str(retry_after),
                    "Retry-After": str(retry_after),
                }
            )

        response = await call_next(request)

        response.headers["X-RateLimit-Limit"] = str(limit)
        response.headers["X-RateLimit-Remaining"] = str(remaining)

        return response

    def _get_identifier_and_limit(self, request: Request) -> Tuple[str, int]:
        """
        Determine the rate limit identifier and limit.

        Priority:
        1. Maintenance key (X-Maintenance-Key header)
        2. JWT token (Authorization: Bearer header)
        3. Portal auth code (X-Auth-Code header)
        4. IP address
        """
        maintenance_key = request.headers.get("X-Maintenance-Key")
        if maintenance_key:
            return f"maintenance:{hash(maintenance_key)}", RATE_LIMITS["maintenance"]

        auth_header = request.headers.get("Authorization")
        if auth_header and auth_header.startswith("Bearer "):
            return f"jwt:{hash(auth_header)}", RATE_LIMITS["admin"]

        auth_code = request.headers.get("X-Auth-Code")
        if auth_code:
            return f"auth_code:{auth_code.strip().upper()}", RATE_LIMITS["auth_code"]

        return f"ip:{get_client_ip(request)}", RATE_LIMITS["unauthenticated"]


def rate_limit(max_requests: int, window_seconds: int):
    """
    Dependency factory for per-endpoint rate limits keyed by client IP.

    Usage:
        @router.post("/login")
        async def login(_: None = Depends(rate_limit(*LOGIN_RATE_LIMIT))):
            pass
    """
    async def rate_limit_check(request: Request):
        identifier = f"endpoint:{request.url.path}:ip:{get_client_ip(request)}"

        is_allowed, remaining, retry_after = rate_limiter.is_allowed(
            identifier=identifier,
            max_requests=max_requests,
            window_seconds=window_seconds
        )

        if not is_allowed:
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail=f"Too many attempts. Try again in {retry_after} seconds.",
                headers={
                    "X-RateLimit-Limit": str(max_requests),
                    "X-RateLimit-Remaining": "0",
                    "Retry-After": str(retry_after),
                }
            )

    return rate_limit_check
