"""FastAPI middleware for metrics, tracing and request logging.

Every request gets a correlation ID that is echoed back in the
``X-Correlation-ID`` response header.
"""

import logging
import re
import time
import uuid
from typing import Callable

from fastapi import Request, Response
from opentelemetry import trace
from starlette.middleware.base import BaseHTTPMiddleware

from vodpack.core.logging import clear_correlation_id, get_correlation_id, set_correlation_id
from vodpack.core.metrics import (
    HTTP_REQUEST_DURATION_SECONDS,
    HTTP_REQUESTS_IN_PROGRESS,
    HTTP_REQUESTS_TOTAL,
)
from vodpack.core.tracing import add_span_attributes, create_span, record_exception

_UUID_RE = re.compile(
    r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}",
    re.IGNORECASE,
)
# Segment and playlist names under /hls/<id>/ and /dash/<id>/
_STATIC_FILE_RE = re.compile(r"^/(hls|dash)/\{id\}/.+$")


def normalize_path(path: str) -> str:
    """Normalize a request path to keep metric label cardinality low."""
    path = _UUID_RE.sub("{id}", path)
    path = re.sub(r"/\d+(?=/|$)", "/{id}", path)
    return _STATIC_FILE_RE.sub(r"/\1/{id}/{file}", path)


class MetricsMiddleware(BaseHTTPMiddleware):
    """Middleware for collecting HTTP request metrics."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        method = request.method
        path = normalize_path(request.url.path)

        HTTP_REQUESTS_IN_PROGRESS.labels(method=method, endpoint=path).inc()

        start_time = time.perf_counter()
        status_code = 500

        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            duration = time.perf_counter() - start_time
            HTTP_REQUEST_DURATION_SECONDS.labels(method=method, endpoint=path).observe(duration)
            HTTP_REQUESTS_TOTAL.labels(
                method=method, endpoint=path, status_code=str(status_code)
            ).inc()
            HTTP_REQUESTS_IN_PROGRESS.labels(method=method, endpoint=path).dec()


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Middleware for managing correlation IDs."""

    CORRELATION_ID_HEADER = "X-Correlation-ID"

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        correlation_id = request.headers.get(
            self.CORRELATION_ID_HEADER,
            str(uuid.uuid4()),
        )

        set_correlation_id(correlation_id)

        try:
            response = await call_next(request)
            response.headers[self.CORRELATION_ID_HEADER] = correlation_id
            return response
        finally:
            clear_correlation_id()


class TracingMiddleware(BaseHTTPMiddleware):
    """Middleware opening a server span per request."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        method = request.method
        path = request.url.path

        with create_span(
            f"{method} {normalize_path(path)}",
            attributes={
                "http.method": method,
                "http.url": str(request.url),
                "http.route": path,
                "http.scheme": request.url.scheme,
                "correlation_id": get_correlation_id(),
            },
            kind=trace.SpanKind.SERVER,
        ):
            try:
                response = await call_next(request)
            except Exception as e:
                record_exception(e)
                raise
            add_span_attributes({"http.status_code": response.status_code})
            return response


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware for request/response logging.

    Static segment requests are logged at DEBUG, players fetch one every
    few seconds.
    """

    logger = logging.getLogger("vodpack.requests")

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.perf_counter()
        level = logging.DEBUG if request.url.path.startswith(("/hls/", "/dash/")) else logging.INFO

        self.logger.log(
            level,
            "Request started",
            extra={
                "method": request.method,
                "path": request.url.path,
                "query": str(request.query_params),
                "client_ip": request.client.host if request.client else None,
            },
        )

        try:
            response = await call_next(request)
        except Exception as e:
            self.logger.error(
                "Request failed",
                extra={
                    "method": request.method,
                    "path": request.url.path,
                    "duration_ms": round((time.perf_counter() - start_time) * 1000, 2),
                    "error": str(e),
                },
                exc_info=True,
            )
            raise

        self.logger.log(
            level,
            "Request completed",
            extra={
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": round((time.perf_counter() - start_time) * 1000, 2),
            },
        )
        return response


__all__ = [
    "CorrelationIdMiddleware",
    "MetricsMiddleware",
    "RequestLoggingMiddleware",
    "TracingMiddleware",
    "normalize_path",
]
