# Request Logging Middleware with Correlation IDs
# Tags every request with an X-Request-ID and logs its outcome and timing

import uuid
import time
import logging
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from blog_search.api.middleware.rate_limiter import get_client_ip

logger = logging.getLogger("blog_search.api")

REQUEST_ID_HEADER = "X-Request-ID"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware that:
    1. Reuses the caller's X-Request-ID or assigns a new one
    2. Logs start, completion (status, duration) and failure
    3. Echoes the request ID on the response
    """

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        request.state.request_id = request_id
        context = {
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
        }

        start_time = time.perf_counter()
        logger.info(
            "Request started",
            extra={**context, "user_ip": get_client_ip(request)},
        )

        try:
            response = await call_next(request)
        except Exception as e:
            logger.exception(
                "Request failed",
                extra={
                    **context,
                    "duration_ms": _elapsed_ms(start_time),
                    "error": str(e),
                },
            )
            raise

        logger.info(
            "Request completed",
            extra={
                **context,
                "status_code": response.status_code,
                "duration_ms": _elapsed_ms(start_time),
            },
        )
        response.headers[REQUEST_ID_HEADER] = request_id
        return response


def _elapsed_ms(start_time: float) -> float:
    return round((time.perf_counter() - start_time) * 1000, 2)
