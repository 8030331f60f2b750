# pranveda/core/rate_limit.py
"""
Rate limiting.

Algorithm: fixed window. Each (policy, client) pair owns a Redis counter
keyed by the start of the aligned window it falls in; the counter expires
with its window, so every worker process shares the same count.

Client identity:
  - the general limit (middleware) and the `per_ip` policies key on the
    client IP, because the token has not been verified at that point
  - the other named policies key on the uid of the verified token

Graceful degradation: without Redis (REDIS_URL unset or unreachable)
requests are allowed and the skip is logged.
"""
import logging
import math
import time
from typing import Callable, NamedTuple

from fastapi import Depends, Request, status
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError
from starlette.middleware.base import BaseHTTPMiddleware

from pranveda.core.auth import require_auth
from pranveda.core.cache import get_redis_client
from pranveda.core.config import get_settings
from pranveda.core.errors import RateLimitError, error_body
from pranveda.core.identity import IdentityUser

logger = logging.getLogger(__name__)


class RatePolicy(NamedTuple):
    limit: int
    window: int  # seconds
    per_ip: bool = False


POLICIES: dict[str, RatePolicy] = {
    # Sign-up / registration: 10 per 15 minutes per IP
    "auth": RatePolicy(limit=10, window=900, per_ip=True),
    # Sensitive operations (account deletion): 5 per 15 minutes per user
    "strict": RatePolicy(limit=5, window=900),
    # LLM calls: 50 per hour per user
    "ai": RatePolicy(limit=50, window=3600),
    # Forgot/reset password: 3 per hour per IP
    "password_reset": RatePolicy(limit=3, window=3600, per_ip=True),
}

# Paths never counted by the general limiter
EXEMPT_PREFIXES = ("/docs", "/redoc", "/openapi.json")


class FixedWindowRateLimiter:
    """Fixed-window counters stored in Redis (INCR + EXPIRE in one transaction)."""

    def __init__(self, prefix: str = "rate_limit"):
        self.prefix = prefix

    def hit(
        self,
        key: str,
        limit: int,
        window: int,
        now: float | None = None,
    ) -> tuple[bool, int, float]:
        """
        Count one request.

        Returns:
            (allowed, remaining, reset_at) where reset_at is an epoch timestamp.
        """
        now = time.time() if now is None else now
        window_start = now - (now % window)
        reset_at = window_start + window

        client = get_redis_client()
        if client is None:
            logger.debug("Redis unavailable, skipping rate limit check for %s", key)
            return True, limit, reset_at

        redis_key = f"{self.prefix}:{key}:{int(window_start)}"
        try:
            pipe = client.pipeline()
            pipe.incr(redis_key)
            pipe.expire(redis_key, window)
            count, _ = pipe.execute()
        except RedisError as exc:
            logger.warning("Rate limit check failed for %s: %s", key, exc)
            return True, limit, reset_at

        if count > limit:
            return False, 0, reset_at
        return True, limit - count, reset_at


limiter = FixedWindowRateLimiter()


def client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"


def _retry_after(reset_at: float) -> int:
    return max(1, math.ceil(reset_at - time.time()))


def _enforce(policy_name: str, policy: RatePolicy, key: str) -> None:
    if not get_settings().RATE_LIMIT_ENABLED:
        return
    allowed, _, reset_at = limiter.hit(f"{policy_name}:{key}", policy.limit, policy.window)
    if not allowed:
        logger.warning("Rate limit %s exceeded for %s", policy_name, key)
        raise RateLimitError(retry_after=_retry_after(reset_at), limit=policy.limit)


def rate_limit(policy_name: str) -> Callable[..., None]:
    """
    Build a route dependency enforcing a named policy.

    Per-user policies resolve the verified identity first, so routes using
    them answer 401 before any counting when the token is missing or bad.

    Usage:

        @router.post("/signup", dependencies=[Depends(rate_limit("auth"))])
    """
    policy = POLICIES[policy_name]

    if policy.per_ip:

        def by_ip(request: Request) -> None:
            _enforce(policy_name, policy, f"ip:{client_ip(request)}")

        return by_ip

    def by_user(identity_user: IdentityUser = Depends(require_auth)) -> None:
        _enforce(policy_name, policy, f"user:{identity_user.uid}")

    return by_user


class RateLimitMiddleware(BaseHTTPMiddleware):
    """General limit applied to every API request, keyed by client IP."""

    def __init__(self, app, api_prefix: str):
        super().__init__(app)
        self.api_prefix = api_prefix

    async def dispatch(self, request: Request, call_next):
        settings = get_settings()
        path = request.url.path
        if (
            not settings.RATE_LIMIT_ENABLED
            or not path.startswith(self.api_prefix)
            or path.startswith(f"{self.api_prefix}/health")
            or path.startswith(EXEMPT_PREFIXES)
        ):
            return await call_next(request)

        limit = settings.RATE_LIMIT_MAX_REQUESTS
        key = f"general:ip:{client_ip(request)}"
        allowed, remaining, reset_at = limiter.hit(key, limit, settings.RATE_LIMIT_WINDOW_SECONDS)

        if not allowed:
            retry_after = _retry_after(reset_at)
            logger.warning("General rate limit exceeded for %s", key)
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content=error_body(
                    "RateLimitError",
                    "Too many requests, please try again later",
                    {"limit": limit, "retry_after": retry_after},
                ),
                headers={
                    "Retry-After": str(retry_after),
                    "X-RateLimit-Limit": str(limit),
                    "X-RateLimit-Remaining": "0",
                    "X-RateLimit-Reset": str(int(reset_at)),
                },
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(limit)
        response.headers["X-RateLimit-Remaining"] = str(remaining)
        response.headers["X-RateLimit-Reset"] = str(int(reset_at))
        return response
