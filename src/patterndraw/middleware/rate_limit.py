"""Redis-backed sliding-window rate limiting.

Each rule owns a sorted set per client IP (``ratelimit:<path>:<ip>``) scored
by request time.  When Redis is unreachable requests pass through unlimited
rather than failing.
"""

import time
from dataclasses import dataclass
from typing import Optional

import structlog
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse, Response

log = structlog.get_logger()


@dataclass(frozen=True)
class RateLimitRule:
    path: str
    limit: int
    window: int  # seconds
    method: Optional[str] = None

    def matches(self, path: str, method: str) -> bool:
        if not path.startswith(self.path):
            return False
        return self.method is None or self.method.upper() == method.upper()


# Matched top-to-bottom; the first matching rule wins.
RATE_LIMIT_RULES: list[RateLimitRule] = [
    RateLimitRule(path="/api/v1/auth/register", limit=3, window=3600),
    RateLimitRule(path="/api/v1/auth/login", limit=5, window=900),
    RateLimitRule(path="/api/v1/share/decode", limit=120, window=60),
    RateLimitRule(path="/api/v1/share/encode", limit=30, window=60),
    RateLimitRule(path="/api/v1/drawings", limit=60, window=60, method="POST"),
]

SKIP_PATHS = {"/health", "/docs", "/openapi.json", "/redoc"}


@dataclass
class RateLimitResult:
    """Outcome of one sliding-window check."""

    current_count: int
    limit: int
    window: int
    reset_at: int

    @property
    def remaining(self) -> int:
        return max(0, self.limit - self.current_count)

    @property
    def exceeded(self) -> bool:
        return self.current_count > self.limit


def find_matching_rule(path: str, method: str) -> Optional[RateLimitRule]:
    return next((rule for rule in RATE_LIMIT_RULES if rule.matches(path, method)), None)


def _get_client_ip(request: Request) -> str:
    """Client IP, preferring the first X-Forwarded-For hop."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


async def _check_rate_limit(redis, redis_key: str, rule: RateLimitRule, member: str) -> RateLimitResult:
    now = int(time.time())

    pipe = redis.pipeline()
    pipe.zremrangebyscore(redis_key, 0, now - rule.window)
    pipe.zadd(redis_key, {f"{now}:{member}": now})
    pipe.zcard(redis_key)
    pipe.expire(redis_key, rule.window)
    results = await pipe.execute()

    return RateLimitResult(
        current_count=results[2],
        limit=rule.limit,
        window=rule.window,
        reset_at=now + rule.window,
    )


def _add_rate_limit_headers(response: Response, result: RateLimitResult) -> None:
    response.headers["X-RateLimit-Limit"] = str(result.limit)
    response.headers["X-RateLimit-Remaining"] = str(result.remaining)
    response.headers["X-RateLimit-Reset"] = str(result.reset_at)


def _build_429_response(result: RateLimitResult) -> JSONResponse:
    response = JSONResponse(
        status_code=429,
        content={"detail": "Too many requests. Please try again later."},
    )
    _add_rate_limit_headers(response, result)
    response.headers["Retry-After"] = str(result.window)
    return response


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Applies the first matching :data:`RATE_LIMIT_RULES` entry to each request."""

    async def dispatch(self, request: Request, call_next):
        if request.url.path in SKIP_PATHS:
            return await call_next(request)

        rule = find_matching_rule(request.url.path, request.method)
        if rule is None:
            return await call_next(request)

        identifier = _get_client_ip(request)
        redis_key = f"ratelimit:{rule.path}:{identifier}"

        try:
            redis = request.app.state.redis
            result = await _check_rate_limit(redis, redis_key, rule, str(id(request)))
        except Exception as exc:
            log.warning("rate_limit_redis_error", error=str(exc), path=request.url.path)
            return await call_next(request)

        if result.exceeded:
            log.warning(
                "rate_limit_exceeded",
                path=request.url.path,
                identifier=identifier,
                limit=result.limit,
                count=result.current_count,
            )
            return _build_429_response(result)

        response = await call_next(request)
        _add_rate_limit_headers(response, result)
        return response
