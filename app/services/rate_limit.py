"""
Fixed-window rate limits in Redis, shared by every API replica.

One limiter per action: sign-in (keyed by client IP) and payment claim
submission (keyed by user email). A Redis outage never blocks the action.
"""
import logging

import redis
from starlette.requests import Request

from app.core.config import settings
from app.core.errors import RateLimited

logger = logging.getLogger(__name__)


class RedisRateLimiter:
    def __init__(self, action: str, limit: int, window_seconds: int, message: str | None = None) -> None:
        self.action = action
        self.limit = limit
        self.window_seconds = window_seconds
        self.message = message
        self._redis = redis.Redis.from_url(settings.redis_url, decode_responses=True)

    def _key(self, subject: str) -> str:
        return f"rate:{self.action}:{subject}"

    def hit(self, subject: str) -> None:
        """Count one attempt; raises RateLimited once the window is full."""
        key = self._key(subject)
        try:
            current = self._redis.incr(key)
            if current == 1:
                self._redis.expire(key, self.window_seconds)
        except redis.RedisError as e:
            logger.warning("rate_limit_redis_error", extra={"source": self.action, "error": str(e)})
            return
        if current > self.limit:
            logger.warning(
                "rate_limited",
                extra={"source": self.action, "user": subject, "attempts": current},
            )
            raise RateLimited(self.message)

    def reset(self, subject: str) -> None:
        try:
            self._redis.delete(self._key(subject))
        except redis.RedisError as e:
            logger.warning("rate_limit_reset_error", extra={"source": self.action, "error": str(e)})


def sign_in_limiter() -> RedisRateLimiter:
    return RedisRateLimiter(
        "sign_in",
        settings.login_rate_limit_attempts,
        settings.login_rate_limit_window_seconds,
        "Too many sign-in attempts. Try again later.",
    )


def claim_limiter() -> RedisRateLimiter:
    return RedisRateLimiter(
        "claim",
        settings.claim_rate_limit,
        settings.claim_rate_window_seconds,
        "Too many payment submissions. Try again later.",
    )


def get_client_ip(request: Request) -> str:
    """X-Forwarded-For is honoured only in production and only from a trusted proxy."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded and settings.app_env == "production":
        if request.client and request.client.host in settings.trusted_proxy_ips_set:
            return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "127.0.0.1"
