"""
Rate Limiting Service

Request budgets for the catalog API, enforced with slowapi.

Budgets are counted per caller: a request carrying a valid access token is
charged to its user ("user:<id>"), so one account shares a single budget
across devices and a shared NAT address does not throttle unrelated readers.
Anonymous requests are charged to the client address ("ip:<addr>").

Tiers (strings in limits notation, e.g. "100/minute"):
- settings.rate_limit_default: catalog reads
- settings.rate_limit_write: reviews, favorites, book creation
- settings.rate_limit_auth: register and login

Counters live in Redis when REDIS_URL is set, otherwise in process memory.
"""

import logging

from fastapi import Request
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.responses import JSONResponse

from bookcatalog.config import get_settings
from bookcatalog.services.security import verify_token_type

logger = logging.getLogger(__name__)
settings = get_settings()

BEARER_PREFIX = "bearer "


def get_client_ip(request: Request) -> str:
    """First hop of X-Forwarded-For, then X-Real-IP, then the socket peer."""
    forwarded_for = request.headers.get("X-Forwarded-For", "")
    client = forwarded_for.split(",")[0].strip()
    if client:
        return client

    real_ip = request.headers.get("X-Real-IP", "").strip()
    return real_ip or get_remote_address(request)


def get_rate_limit_key(request: Request) -> str:
    """
    Budget key for a request.

    Only a token that decodes as a valid access token selects the user
    budget; a missing, expired or malformed token falls back to the address.
    """
    authorization = request.headers.get("Authorization", "")
    if authorization.lower().startswith(BEARER_PREFIX):
        payload = verify_token_type(authorization[len(BEARER_PREFIX):].strip(), "access")
        if payload and payload.get("sub"):
            return f"user:{payload['sub']}"

    return f"ip:{get_client_ip(request)}"


limiter = Limiter(
    key_func=get_rate_limit_key,
    default_limits=[settings.rate_limit_default],
    storage_uri=settings.redis_url or "memory://",
    strategy="fixed-window",
    enabled=settings.rate_limit_enabled,
)

logger.info(
    "Rate limiter ready (enabled=%s, storage=%s)",
    settings.rate_limit_enabled,
    "redis" if settings.redis_url else "memory",
)


def retry_after_seconds(exc: RateLimitExceeded) -> int:
    """Length of the exhausted window, at least one second."""
    return max(1, int(exc.limit.limit.get_expiry()))


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """429 in the API's usual error shape, with Retry-After from the window."""
    retry_after = retry_after_seconds(exc)

    logger.warning(
        "Rate limit %s exceeded by %s on %s %s",
        exc.detail,
        get_rate_limit_key(request),
        request.method,
        request.url.path,
    )

    return JSONResponse(
        status_code=429,
        content={"detail": f"Too many requests, limit is {exc.detail}. Retry in {retry_after}s."},
        headers={"Retry-After": str(retry_after)},
    )
