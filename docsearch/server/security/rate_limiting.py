"""Rate limiting for the docsearch API using slowapi."""

import logging

from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from docsearch.config.settings import SearchSettings

logger = logging.getLogger(__name__)

DEFAULT_RETRY_AFTER = 60


async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    """Custom handler for rate limit exceeded responses."""
    retry_after = getattr(exc, 'retry_after', None) or DEFAULT_RETRY_AFTER
    response = JSONResponse(
        status_code=429,
        content={
            "error": "Rate limit exceeded",
            "detail": f"Rate limit exceeded: {exc.detail}",
            "retry_after": retry_after
        }
    )
    response.headers["Retry-After"] = str(retry_after)
    return response


def get_client_ip(request: Request) -> str:
    """Extract client IP considering proxy headers."""
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip.strip()

    return get_remote_address(request)


def setup_rate_limiting(app: FastAPI, settings: SearchSettings) -> Limiter:
    """Attach an in-memory limiter to ``app``.

    Each app gets its own limiter so route limits registered by one app
    instance never count against another.
    """
    limiter = Limiter(key_func=get_client_ip, enabled=settings.rate_limit_enabled)
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_handler)

    logger.info(
        f"Rate limiting {'enabled' if settings.rate_limit_enabled else 'disabled'} "
        f"(search: {settings.search_rate_limit})"
    )
    return limiter
