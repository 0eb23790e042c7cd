"""
Request correlation middleware.

Each request gets a request id (the caller's X-Request-ID when it sends a
usable one) bound into structlog's contextvars, so every booking, conflict
and transition log line written while serving it carries the same id.
"""

import time
import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from hotel_booking.core.logging import get_logger
from hotel_booking.core.metrics import record_http_request

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
MAX_REQUEST_ID_LENGTH = 64


def resolve_request_id(request: Request) -> str:
    incoming = request.headers.get(REQUEST_ID_HEADER, "").strip()
    if incoming and len(incoming) <= MAX_REQUEST_ID_LENGTH and incoming.isprintable():
        return incoming
    return uuid.uuid4().hex[:12]


def route_template(request: Request) -> str:
    """
    "/api/v1/reservations/{reservation_id}" rather than one label per id.

    Routes of an included router may carry only their own path, with the
    router prefix recorded in the scope's root_path by the time they match.
    """
    scope = request.scope
    route = scope.get("route")
    if route is None:
        return "unmatched"

    app_root = scope.get("app_root_path", "")
    mounted = scope.get("root_path", "")
    if app_root and mounted.startswith(app_root):
        mounted = mounted[len(app_root):]
    template = mounted.rstrip("/") + route.path

    path = request.url.path
    if app_root and path.startswith(app_root):
        path = path[len(app_root):]
    if template.count("/") == path.count("/"):
        return template

    # fall back to the concrete path with parameter values swapped for their names
    names = {str(value): name for name, value in scope.get("path_params", {}).items()}
    return "/".join(f"{{{names[part]}}}" if part in names else part for part in path.split("/"))


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = resolve_request_id(request)
        started = time.perf_counter()

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                "request_failed",
                error=str(e),
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
            )
            record_http_request(request.method, route_template(request), 500)
            raise

        duration_ms = round((time.perf_counter() - started) * 1000, 2)
        record_http_request(request.method, route_template(request), response.status_code)
        logger.info("request_completed", status_code=response.status_code, duration_ms=duration_ms)

        response.headers[REQUEST_ID_HEADER] = request_id
        response.headers["X-Response-Time"] = f"{duration_ms}ms"
        return response
