import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

logger = logging.getLogger(__name__)


class LoggingMiddleware(BaseHTTPMiddleware):
    """One line per request: method, path, status and wall time."""

    async def dispatch(self, request: Request, call_next):
        start = time.monotonic()

        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                "%s %s -> unhandled error (%.2fs)",
                request.method,
                request.url.path,
                time.monotonic() - start,
            )
            raise

        duration = time.monotonic() - start
        client = request.client.host if request.client else "-"
        logger.info(
            "%s %s -> %s (%.2fs) [%s]",
            request.method,
            request.url.path,
            response.status_code,
            duration,
            client,
        )

        return response
