"""Fixed-window rate limiting for bet placement.

Redis INCR + EXPIRE per window:
    count = await redis.incr(key)
    if count == 1:
        await redis.expire(key, window)
    if count > limit: reject

Key pattern: "ratelimit:{user_id_or_ip}:bets". The user id is read from the
Bearer token when it decodes; otherwise the client IP is used (X-Forwarded-For
aware). Rejections are returned directly as a 429 ApiResponse with a
Retry-After header, because exceptions raised in middleware bypass the app's
AppError handler.
"""

import logging
import re
from collections.abc import Awaitable, Callable

import redis.asyncio as aioredis
from redis.exceptions import RedisError
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

from config.settings import settings
from src.tk_common.errors import AppError, RateLimitError
from src.tk_common.redis_client import get_redis
from src.tk_common.response import error_response
from src.tk_gateway.auth.jwt_handler import decode_token

logger = logging.getLogger(__name__)

_BET_PATH = re.compile(r"^/api/v1/rounds/\d+/bets$")
_WINDOW_SECONDS = 60

RedisFactory = Callable[[], Awaitable[aioredis.Redis]]


class FixedWindowLimiter:
    def __init__(self, redis_factory: RedisFactory = get_redis) -> None:
        self._redis_factory = redis_factory

    async def hit(self, key: str, limit: int, window_seconds: int) -> bool:
        """Count one request; return False once the window exceeds `limit`."""
        redis = await self._redis_factory()
        count = await redis.incr(key)
        if count == 1:
            await redis.expire(key, window_seconds)
        return count <= limit


def client_key(request: Request) -> str:
    auth = request.headers.get("authorization", "")
    if auth.lower().startswith("bearer "):
        try:
            return str(decode_token(auth[7:], expected_type="access")["sub"])
        except AppError:
            pass  # fall back to IP; the endpoint itself will reject the token
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


class RateLimitMiddleware(BaseHTTPMiddleware):
    def __init__(
        self,
        app: ASGIApp,
        limiter: FixedWindowLimiter | None = None,
        limit: int | None = None,
    ) -> None:
        super().__init__(app)
        self._limiter = limiter or FixedWindowLimiter()
        self._limit = limit if limit is not None else settings.BET_RATE_LIMIT_PER_MINUTE

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.method != "POST" or not _BET_PATH.match(request.url.path):
            return await call_next(request)

        key = f"ratelimit:{client_key(request)}:bets"
        try:
            allowed = await self._limiter.hit(key, self._limit, _WINDOW_SECONDS)
        except RedisError:
            # Redis outage must not halt betting; the ledger is in PostgreSQL
            logger.warning("Rate limiter unavailable, allowing request: key=%s", key)
            allowed = True

        if not allowed:
            exc = RateLimitError()
            logger.info("Rate limit exceeded: key=%s", key)
            return JSONResponse(
                status_code=exc.http_status,
                content=error_response(exc.code, exc.message).model_dump(),
                headers={"Retry-After": str(_WINDOW_SECONDS)},
            )
        return await call_next(request)
