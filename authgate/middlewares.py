# authgate/middlewares.py

"""
Access logging.

Sits outside the auth middleware, so the line it writes for a request
already reflects who (if anyone) the request authenticated as.
"""

import logging
import time
import uuid

from asgi_correlation_id import correlation_id
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from authgate.authenticator import is_authenticated


logger = logging.getLogger("authgate.access")


def _access_fields(request: Request, status: int, started: float, request_id: str) -> dict:
    return {
        "method": request.method,
        "path": request.url.path,
        "status": status,
        "duration_ms": round((time.perf_counter() - started) * 1000, 2),
        "request_id": request_id,
        "authenticated": is_authenticated(request),
    }


class LoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        request_id = correlation_id.get() or str(uuid.uuid4())

        try:
            response = await call_next(request)
        except Exception:
            logger.exception("request crashed", extra=_access_fields(request, 500, started, request_id))
            raise

        logger.info("request", extra=_access_fields(request, response.status_code, started, request_id))
        return response
