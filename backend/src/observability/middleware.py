"""FastAPI middleware for observability.

Provides request ID correlation and access logging for all HTTP requests.
"""

import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from .request_id import bound_request_id
from .logging_config import get_logger

logger = get_logger(__name__)


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Middleware to generate and inject request IDs."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Process request with request ID.

        Returns:
            Response: HTTP response with X-Request-ID header
        """
        with bound_request_id(request.headers.get("X-Request-ID")) as request_id:
            start_time = time.time()
            logger.info(f"{request.method} {request.url.path}")

            try:
                response = await call_next(request)
            except Exception as e:
                duration_ms = (time.time() - start_time) * 1000
                logger.error(
                    f"Request failed after {duration_ms:.2f}ms: {type(e).__name__}: {e}",
                    exc_info=True
                )
                raise

            duration_ms = (time.time() - start_time) * 1000
            logger.info(f"Request completed: {response.status_code} in {duration_ms:.2f}ms")

            response.headers["X-Request-ID"] = request_id
            return response
