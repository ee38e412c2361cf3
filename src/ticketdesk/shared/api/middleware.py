"""
Shared API Middleware
======================

Request tracing for the FastAPI application:
- CorrelationIDMiddleware: X-Correlation-ID propagation
- LoggingMiddleware: structured request logs with route and ticket context
- global_exception_handler: JSON 500 for unhandled errors
"""

import logging
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Dict

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from ticketdesk.config import settings
from ticketdesk.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"


def _request_context(request: Request) -> Dict[str, Any]:
    """
    Log fields shared by every request record.

    Routing fills `route` and `path_params` in the scope, so the route
    template and ticket id are only known once the request has been
    dispatched.
    """
    context: Dict[str, Any] = {
        "correlation_id": getattr(request.state, "correlation_id", "unknown"),
        "method": request.method,
        "path": request.url.path,
    }

    route = request.scope.get("route")
    if route is not None:
        context["route"] = getattr(route, "path", None)

    ticket_id = request.scope.get("path_params", {}).get("ticket_id")
    if ticket_id is not None:
        context["ticket_id"] = ticket_id

    return context


class CorrelationIDMiddleware(BaseHTTPMiddleware):
    """
    Tags each request with a correlation ID.

    An incoming non-blank X-Correlation-ID header is reused; otherwise a new
    UUID is generated. The ID is echoed back on the response.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        correlation_id = request.headers.get(CORRELATION_HEADER, "").strip() or str(uuid.uuid4())
        request.state.correlation_id = correlation_id

        response = await call_next(request)
        response.headers[CORRELATION_HEADER] = correlation_id
        return response


class LoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs one record when a request arrives and one when it finishes.

    Client errors are logged at warning level; rate-limited classify calls
    carry the Retry-After value.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.perf_counter()

        logger.info("Request received", extra={
            **_request_context(request),
            "client": request.client.host if request.client else None
        })

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error("Request failed", extra={
                **_request_context(request),
                "error": str(e),
                "duration_ms": int((time.perf_counter() - start_time) * 1000)
            })
            raise

        extra = {
            **_request_context(request),
            "status_code": response.status_code,
            "duration_ms": int((time.perf_counter() - start_time) * 1000)
        }
        if response.status_code == 429:
            extra["retry_after"] = response.headers.get("Retry-After")

        level = logging.WARNING if 400 <= response.status_code < 500 else logging.INFO
        logger.log(level, "Request finished", extra=extra)
        return response


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Turn anything a route did not handle into a JSON 500.

    The exception text is only returned in development.
    """
    context = _request_context(request)
    logger.error("Unhandled exception", extra={
        **context,
        "error_type": type(exc).__name__,
        "error_message": str(exc)
    })

    return JSONResponse(
        status_code=500,
        content={
            "detail": "Internal server error",
            "correlation_id": context["correlation_id"],
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "debug_info": str(exc) if settings.environment == "development" else None
        }
    )
