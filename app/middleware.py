"""
FastAPI Middleware

This module contains custom middleware for security, rate limiting, and monitoring.
"""

import time
from typing import Callable

from fastapi import Request, Response
from fastapi.responses import RedirectResponse
from slowapi import Limiter
from slowapi.util import get_remote_address
from starlette.middleware.base import BaseHTTPMiddleware

from .config import get_settings
from .monitoring import http_request_duration_seconds, http_requests_total

settings = get_settings()


# Rate Limiter
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[settings.rate_limit_default] if settings.rate_limit_enabled else [],
    storage_uri=settings.rate_limit_storage_uri,
    enabled=settings.rate_limit_enabled,
)


class HTTPSRedirectMiddleware(BaseHTTPMiddleware):
    """
    Middleware to enforce HTTPS in production.

    Redirects all HTTP requests to HTTPS when force_https is enabled.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if settings.force_https and request.url.scheme == "http":
            https_url = request.url.replace(scheme="https")
            return RedirectResponse(url=str(https_url), status_code=301)

        return await call_next(request)


class RequestTimingMiddleware(BaseHTTPMiddleware):
    """
    Middleware to track request timing and add metrics.

    Adds X-Process-Time header to responses and feeds the HTTP Prometheus
    series, labelled by route template so path parameters do not explode
    cardinality.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.time()

        response = await call_next(request)

        process_time = time.time() - start_time
        route = request.scope.get("route")
        endpoint = getattr(route, "path", "unmatched")
        http_requests_total.labels(method=request.method, endpoint=endpoint, status=response.status_code).inc()
        http_request_duration_seconds.labels(method=request.method, endpoint=endpoint).observe(process_time)
        response.headers["X-Process-Time"] = str(process_time)

        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Middleware to add security headers to all responses.

    Headers added:
    - X-Content-Type-Options: nosniff
    - X-Frame-Options: DENY
    - X-XSS-Protection: 1; mode=block
    - Strict-Transport-Security: max-age=31536000; includeSubDomains (HTTPS only)
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-XSS-Protection"] = "1; mode=block"

        if request.url.scheme == "https" or settings.force_https:
            response.headers["Strict-Transport-Security"] = (
                "max-age=31536000; includeSubDomains"
            )

        return response
