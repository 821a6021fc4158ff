import asyncio
import logging
import uvicorn
from contextlib import asynccontextmanager, suppress
from fastapi import FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from slowapi.errors import RateLimitExceeded

from blog_search.core.config import settings
from blog_search.api.routers import search_api, system
from blog_search.api.middleware.rate_limiter import limiter, rate_limit_exceeded_handler
from blog_search.api.middleware.request_logging import RequestLoggingMiddleware
from blog_search.api.metrics import router as metrics_router, MetricsMiddleware
from blog_search.search.errors import SearchError
from blog_search.services.search import SearchService, create_search_service

logger = logging.getLogger(__name__)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses."""

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        # JSON only: nothing to load
        response.headers["Content-Security-Policy"] = "default-src 'none'"
        return response


async def _sweep_cache(service: SearchService, interval: float) -> None:
    """Purge expired query cache entries every `interval` seconds."""
    while True:
        await asyncio.sleep(interval)
        removed = service.cache.cleanup()
        if removed:
            logger.debug(f"Swept {removed} expired search cache entries")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # --- Search service (tests may install their own) ---
    service = getattr(app.state, "search_service", None)
    if service is None:
        service = create_search_service(settings)
        app.state.search_service = service
    if not await run_in_threadpool(service.init):
        logger.error("Search index unavailable at startup; will retry on demand")

    sweeper = None
    if settings.CACHE_SWEEP_INTERVAL_SEC > 0:
        sweeper = asyncio.create_task(
            _sweep_cache(service, settings.CACHE_SWEEP_INTERVAL_SEC)
        )
    try:
        yield
    finally:
        if sweeper is not None:
            sweeper.cancel()
            with suppress(asyncio.CancelledError):
                await sweeper
        service.shutdown()


# --- OpenAPI Metadata ---
app = FastAPI(
    lifespan=lifespan,
    title="Blog Search API",
    version=settings.APP_VERSION,
    description="Fuzzy full-text search over blog posts, with autocomplete and tag views.",
    openapi_tags=[
        {"name": "search", "description": "Search and discovery endpoints"},
        {"name": "system", "description": "Health checks"},
        {"name": "metrics", "description": "Prometheus metrics"},
    ],
)

# --- Rate Limiter ---
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

# --- Middleware (order matters: last added = first executed) ---
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(MetricsMiddleware)

# Trusted Hosts (prevent Host header attacks)
app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.ALLOWED_HOSTS)

# --- CORS ---
if settings.CORS_ORIGINS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )


# --- Error Handlers ---
@app.exception_handler(SearchError)
async def search_error_handler(request: Request, exc: SearchError):
    """Validation (400) and availability (503) failures as structured JSON."""
    if exc.status_code >= 500:
        logger.warning(f"Search unavailable: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_response())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Malformed bodies and parameters are client errors, not 422s."""
    errors = exc.errors()
    message = errors[0]["msg"] if errors else "Invalid request"
    return JSONResponse(
        status_code=400, content={"error": "invalid_request", "message": message}
    )


# Include Routers
app.include_router(system.router, tags=["system"])
app.include_router(search_api.router, prefix="/api", tags=["search"])
app.include_router(metrics_router, prefix="/api", tags=["metrics"])


if __name__ == "__main__":
    logging.basicConfig(level=logging.DEBUG if settings.DEBUG else logging.INFO)
    uvicorn.run(
        "blog_search.api.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
    )
