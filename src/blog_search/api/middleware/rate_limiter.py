# Rate Limiter Middleware for FastAPI
# Uses slowapi for fixed-window, per-client rate limiting

from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from fastapi import Request
from fastapi.responses import JSONResponse

from blog_search.core.config import settings

UNKNOWN_CLIENT = "unknown"


def get_client_ip(request: Request) -> str:
    """Client identifier from reverse-proxy headers, else the shared "unknown" bucket."""
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip.strip()

    return UNKNOWN_CLIENT


# Create limiter instance keyed on the forwarded client IP
limiter = Limiter(
    key_func=get_client_ip,
    strategy="fixed-window",
    enabled=settings.RATE_LIMIT_ENABLED,
)


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    """Custom handler for rate limit exceeded errors."""
    return JSONResponse(
        status_code=429,
        content={
            "error": "rate_limit_exceeded",
            "message": f"Too many requests. {exc.detail}",
        },
    )
