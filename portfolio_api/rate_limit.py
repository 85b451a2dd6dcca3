"""
Per-client rate limiting.

Two limits apply, both keyed by client IP:
- a global limit on every route (RATE_LIMIT_MAX_REQUESTS per
  RATE_LIMIT_WINDOW_MINUTES)
- a stricter limit on contact form submissions (CONTACT_RATE_LIMIT)
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from .config import config
from .exceptions import error_response

UNLIMITED = "1000000/minute"


def client_ip(request: Request) -> str:
    """
    Address of the caller.

    Behind a single reverse proxy (TRUST_PROXY) the last X-Forwarded-For
    hop is the client as seen by that proxy.
    """
    forwarded = request.headers.get("x-forwarded-for")
    if config.TRUST_PROXY and forwarded:
        hop = forwarded.split(",")[-1].strip()
        if hop:
            return hop
    if request.client and request.client.host:
        return request.client.host
    return "127.0.0.1"


def get_rate_limit() -> str:
    """Global limit string; a non-positive maximum disables limiting."""
    if config.RATE_LIMIT_MAX_REQUESTS <= 0:
        return UNLIMITED
    return f"{config.RATE_LIMIT_MAX_REQUESTS}/{config.RATE_LIMIT_WINDOW_MINUTES}minutes"


def get_contact_rate_limit() -> str:
    return config.CONTACT_RATE_LIMIT


limiter = Limiter(
    key_func=client_ip,
    default_limits=[get_rate_limit()],
    storage_uri="memory://",  # per process, cleared on restart
)


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """429 in the standard error envelope."""
    retry_after = getattr(exc, "retry_after", 60)
    return error_response(
        429,
        "Too many requests from this IP, please try again later.",
        headers={"Retry-After": str(retry_after)},
    )


def setup_rate_limiting(app: FastAPI):
    """Attach the limiter, its middleware and the 429 handler to an app."""
    app.state.limiter = limiter
    app.add_middleware(SlowAPIMiddleware)
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
