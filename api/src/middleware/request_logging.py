"""
Request logging and metrics middleware.

Logs one entry when a request starts and one when it completes, with the
JSON request/response bodies masked according to the configured rules,
and records Prometheus request metrics.
"""

import json
import time
from typing import Any, Optional

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.routing import Match

from api.src.config import Settings
from shared.logging import mask_fields
from shared.metrics import HTTPMetrics

BODY_METHODS = {"POST", "PUT", "PATCH"}

# Metrics label for requests that match no route.
UNMATCHED_ENDPOINT = "unmatched"


def route_template(request: Request) -> str:
    """Path template of the route serving a request, e.g. ``/users/{user_id}``."""
    partial = None
    for route in request.app.router.routes:
        match, _ = route.matches(request.scope)
        if match == Match.FULL:
            return getattr(route, "path", UNMATCHED_ENDPOINT)
        if match == Match.PARTIAL and partial is None:
            partial = getattr(route, "path", None)
    return partial or UNMATCHED_ENDPOINT


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware for request logging with masking, and request metrics."""

    def __init__(self, app, logger, settings: Settings, metrics: Optional[HTTPMetrics] = None):
        """
        Initialize request logging middleware.

        Args:
            app: ASGI application
            logger: Structured logger
            settings: Application settings (body logging, skips, masks)
            metrics: HTTP metrics to record, if enabled
        """
        super().__init__(app)
        self.logger = logger
        self.settings = settings
        self.metrics = metrics

    async def dispatch(self, request: Request, call_next) -> Response:
        method = request.method
        path = request.url.path
        log_enabled = not self._is_skipped(path)

        fields = {
            "method": method,
            "path": path,
            "client_ip": request.client.host if request.client else "unknown",
        }
        if log_enabled and self.settings.log_request_body and method in BODY_METHODS:
            body = self._decode(await request.body())
            if body is not None:
                fields["request"] = mask_fields(body, self.settings.log_mask_rules)

        if log_enabled:
            self.logger.info("request_started", **fields)

        endpoint = route_template(request) if self.metrics else None
        if self.metrics:
            self.metrics.requests_in_progress.labels(method=method, endpoint=endpoint).inc()

        start_time = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as e:
            self.logger.error(
                "request_failed",
                method=method,
                path=path,
                error=str(e),
                duration=f"{time.perf_counter() - start_time:.3f}s",
                exc_info=True
            )
            raise
        finally:
            if self.metrics:
                self.metrics.requests_in_progress.labels(method=method, endpoint=endpoint).dec()

        duration = time.perf_counter() - start_time

        if self.metrics:
            self.metrics.requests_total.labels(
                method=method,
                endpoint=endpoint,
                status=response.status_code
            ).inc()
            self.metrics.request_duration.labels(method=method, endpoint=endpoint).observe(duration)

        if not log_enabled:
            return response

        completed = {
            "method": method,
            "path": path,
            "status_code": response.status_code,
            "duration": f"{duration:.3f}s",
        }
        if self.settings.log_response_body:
            response, body = await self._capture(response)
            if body is not None:
                completed["response"] = mask_fields(body, self.settings.log_mask_rules)

        self.logger.info("request_completed", **completed)
        return response

    def _is_skipped(self, path: str) -> bool:
        return any(
            path == skip or path.startswith(skip.rstrip("/") + "/")
            for skip in self.settings.log_skip_paths
        )

    def _decode(self, raw: bytes) -> Optional[Any]:
        """Parse a body for logging; oversized or non-JSON bodies are skipped."""
        if not raw or len(raw) > self.settings.log_max_body_size:
            return None
        try:
            return json.loads(raw)
        except (UnicodeDecodeError, json.JSONDecodeError):
            return None

    async def _capture(self, response: Response):
        """Read a streamed response body and rebuild an equivalent response."""
        if "application/json" not in response.headers.get("content-type", ""):
            return response, None

        raw = b"".join([chunk async for chunk in response.body_iterator])
        rebuilt = Response(
            content=raw,
            status_code=response.status_code,
            headers=dict(response.headers),
            media_type=response.media_type,
            background=response.background,
        )
        return rebuilt, self._decode(raw)
