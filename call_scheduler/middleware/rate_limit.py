# call_scheduler/middleware/rate_limit.py
"""
Rate limiting for the public endpoints.

Limits (per client IP and endpoint, sliding window):
- Read  (GET /availability, GET /consultants): CS_RATE_LIMIT_READ
- Write (POST /bookings)                     : CS_RATE_LIMIT_WRITE

Each key is a Redis sorted set of request timestamps. Trim, add, count and
expire run in one MULTI/EXEC so two racing requests never read the same
stale count. Redis being unreachable lets the request through.
"""

import logging
import math
import secrets
import time
from dataclasses import dataclass

from fastapi import Request
from redis import Redis
from redis.exceptions import RedisError
from starlette.responses import JSONResponse

from ..exceptions import RateLimitError
from ..utils.client_ip import detect_client_ip
from ..utils.hashing import hash_value

logger = logging.getLogger(__name__)


# ============================================================
# RATE LIMIT CONFIGURATION
# ============================================================

# (method, path) → (endpoint name, limit kind)
RATE_LIMITED_ENDPOINTS = {
    ("GET", "/availability"): ("availability", "read"),
    ("GET", "/consultants"): ("consultants", "read"),
    ("POST", "/bookings"): ("bookings", "write"),
}


@dataclass(frozen=True)
class RateLimitResult:
    allowed: bool
    limit: int
    remaining: int
    reset: int  # unix timestamp when the oldest counted request leaves the window
    retry_after: int = 0

    def headers(self) -> dict[str, str]:
        return {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": str(self.reset),
        }


# ============================================================
# CORE
# ============================================================

class SlidingWindowRateLimiter:

    def __init__(self, redis: Redis, window: int = 60, prefix: str = "rl"):
        self.redis = redis
        self.window = window
        self.prefix = prefix

    def key_for(self, client_id: str, endpoint: str) -> str:
        return f"{self.prefix}:{hash_value(f'{client_id}|{endpoint}')[:32]}"

    def hit(self, client_id: str, endpoint: str, limit: int) -> RateLimitResult:
        """
        Count one request and decide. limit <= 0 disables the check.
        """
        now = time.time()
        if limit <= 0:
            return RateLimitResult(True, limit, 0, int(now) + self.window)

        key = self.key_for(client_id, endpoint)
        member = f"{now:.6f}:{secrets.token_hex(4)}"

        try:
            pipe = self.redis.pipeline(transaction=True)
            pipe.zremrangebyscore(key, 0, now - self.window)
            pipe.zadd(key, {member: now})
            pipe.zcard(key)
            pipe.zrange(key, 0, 0, withscores=True)
            pipe.expire(key, self.window)
            _, _, count, oldest, _ = pipe.execute()
        except RedisError as e:
            logger.error(f"Rate limit check failed: {e}")
            return RateLimitResult(True, limit, limit, int(now) + self.window)  # fail open

        oldest_ts = oldest[0][1] if oldest else now
        reset = int(math.ceil(oldest_ts + self.window))

        if count > limit:
            # Rejected requests do not occupy the window
            try:
                self.redis.zrem(key, member)
            except RedisError as e:
                logger.error(f"Rate limit cleanup failed: {e}")
            return RateLimitResult(
                allowed=False,
                limit=limit,
                remaining=0,
                reset=reset,
                retry_after=max(1, int(math.ceil(oldest_ts + self.window - now))),
            )

        return RateLimitResult(True, limit, max(0, limit - count), reset)


# ============================================================
# MIDDLEWARE
# ============================================================

async def rate_limit_middleware(request: Request, call_next):
    """
    HTTP middleware for rate limiting.

    Only the public endpoints in RATE_LIMITED_ENDPOINTS are counted and carry
    X-RateLimit-* headers, including on 429 and 500 responses. Admin and
    health routes pass straight through without them.
    """
    target = RATE_LIMITED_ENDPOINTS.get((request.method, request.url.path))
    if target is None:
        return await call_next(request)

    state = request.app.state
    settings = state.settings
    endpoint, kind = target
    limit = settings.rate_limit_read if kind == "read" else settings.rate_limit_write

    client_ip = detect_client_ip(request, settings.trust_proxy)
    request.state.client_ip = client_ip

    result = state.rate_limiter.hit(client_ip, endpoint, limit)
    if not result.allowed:
        state.audit.rate_limit_hit(endpoint, limit, client_ip)
        error = RateLimitError(result.retry_after)
        return JSONResponse(
            status_code=error.status_code,
            content={"code": error.code, "message": error.message},
            headers={**result.headers(), "Retry-After": str(error.retry_after)},
        )

    try:
        response = await call_next(request)
    except Exception:
        # Counted requests keep their quota headers even when the handler fails
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        response = JSONResponse(
            status_code=500,
            content={"code": "server_error", "message": "An unexpected error occurred."},
        )
    response.headers.update(result.headers())
    return response
