"""Middleware for request/response metrics."""
import time
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.routing import Match
from prometheus_client import Counter, Histogram, Gauge


# HTTP metrics
http_requests_total = Counter(
    'storyreel_http_requests_total',
    'Total HTTP requests',
    ['method', 'endpoint', 'status']
)

http_request_duration_seconds = Histogram(
    'storyreel_http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'endpoint'],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0]
)

http_requests_in_progress = Gauge(
    'storyreel_http_requests_in_progress',
    'HTTP requests currently in progress',
    ['method', 'endpoint']
)


def _route_template(request: Request) -> str:
    """Return the matched route path so job ids do not explode label cardinality."""
    for route in request.app.routes:
        match, _ = route.matches(request.scope)
        if match == Match.FULL:
            return getattr(route, "path", request.url.path)
    return request.url.path


class MetricsMiddleware(BaseHTTPMiddleware):
    """Middleware to track HTTP request metrics."""

    def __init__(self, app, metrics_path: str = "/api/v1/metrics"):
        super().__init__(app)
        self.metrics_path = metrics_path

    async def dispatch(self, request: Request, call_next):
        """
        Process request and track metrics.

        Args:
            request: FastAPI request
            call_next: Next middleware/handler

        Returns:
            Response
        """
        # Skip metrics endpoint to avoid recursion
        if request.url.path == self.metrics_path:
            return await call_next(request)

        method = request.method
        endpoint = _route_template(request)

        start_time = time.perf_counter()
        http_requests_in_progress.labels(method=method, endpoint=endpoint).inc()

        try:
            response = await call_next(request)
        except Exception:
            http_requests_total.labels(
                method=method,
                endpoint=endpoint,
                status=500
            ).inc()
            http_request_duration_seconds.labels(
                method=method,
                endpoint=endpoint
            ).observe(time.perf_counter() - start_time)
            raise
        finally:
            http_requests_in_progress.labels(method=method, endpoint=endpoint).dec()

        http_requests_total.labels(
            method=method,
            endpoint=endpoint,
            status=response.status_code
        ).inc()
        http_request_duration_seconds.labels(
            method=method,
            endpoint=endpoint
        ).observe(time.perf_counter() - start_time)

        return response
