import time

from starlette.middleware.base import BaseHTTPMiddleware

from movie_ratings.core.logger import logger
from movie_ratings.utils.correlation_id import (
    CORRELATION_ID_HEADER,
    create_correlation_id,
    extract_correlation_id_from_headers,
    set_correlation_id,
)


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """
    Binds one correlation ID to each request (taken from the caller's header
    or freshly generated), echoes it back, and logs the request outcome.
    """

    async def dispatch(self, request, call_next):
        correlation_id = extract_correlation_id_from_headers(request.headers) or create_correlation_id()
        set_correlation_id(correlation_id)

        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = int((time.perf_counter() - started) * 1000)

        logger.debug(
            f"{request.method} {request.url.path} -> {response.status_code}",
            correlation_id=correlation_id,
            metadata={
                "event": "request_completed",
                "method": request.method,
                "path": request.url.path,
                "statusCode": response.status_code,
                "durationMs": elapsed_ms,
            }
        )

        response.headers[CORRELATION_ID_HEADER] = correlation_id
        return response
