"""Prometheus metrics integration for the docsearch API."""

import re
import time
import logging
from typing import Optional

from prometheus_client import Counter, Histogram, Info, generate_latest, CONTENT_TYPE_LATEST
from prometheus_client.core import CollectorRegistry
from fastapi import FastAPI, Request, Response

from docsearch import __version__

logger = logging.getLogger(__name__)

# Dedicated registry so repeated app construction in tests does not collide
docsearch_registry = CollectorRegistry()

# Request metrics
request_count = Counter(
    'docsearch_http_requests_total',
    'Total number of HTTP requests',
    ['method', 'endpoint', 'status_code'],
    registry=docsearch_registry
)

request_duration = Histogram(
    'docsearch_http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'endpoint'],
    buckets=[0.005, 0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5],
    registry=docsearch_registry
)

# Search metrics
search_requests = Counter(
    'docsearch_search_requests_total',
    'Total number of search queries',
    ['filter', 'status'],
    registry=docsearch_registry
)

search_duration = Histogram(
    'docsearch_search_duration_seconds',
    'Query engine duration in seconds',
    ['filter'],
    buckets=[0.0005, 0.001, 0.005, 0.01, 0.05, 0.1, 0.5],
    registry=docsearch_registry
)

search_results_count = Histogram(
    'docsearch_search_results_count',
    'Number of search results returned',
    ['filter'],
    buckets=[0, 1, 5, 10, 20, 50, 100],
    registry=docsearch_registry
)

# Index metrics
index_builds = Counter(
    'docsearch_index_builds_total',
    'Total number of index builds',
    ['status'],
    registry=docsearch_registry
)

index_build_duration = Histogram(
    'docsearch_index_build_duration_seconds',
    'Index build duration in seconds',
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 5.0],
    registry=docsearch_registry
)

index_items = Histogram(
    'docsearch_index_items_count',
    'Number of items in a built index',
    buckets=[0, 10, 25, 50, 100, 250, 500, 1000],
    registry=docsearch_registry
)

skipped_sources = Counter(
    'docsearch_collection_failures_total',
    'Content sources skipped because they could not be read',
    ['source_type'],
    registry=docsearch_registry
)

skipped_units = Counter(
    'docsearch_index_skipped_units_total',
    'Raw content units skipped as malformed',
    registry=docsearch_registry
)

app_info = Info(
    'docsearch_app_info',
    'docsearch application information',
    registry=docsearch_registry
)

error_count = Counter(
    'docsearch_errors_total',
    'Total number of errors',
    ['error_type', 'component'],
    registry=docsearch_registry
)


class PrometheusMiddleware:
    """ASGI middleware collecting request count and latency."""

    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request = Request(scope, receive)
        method = request.method
        endpoint = self._normalize_endpoint(request.url.path)

        start_time = time.perf_counter()
        status_code = 500  # Default to error

        async def send_wrapper(message):
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message["status"]
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        except Exception as e:
            logger.error(f"Request processing error: {e}")
            error_count.labels(error_type=type(e).__name__, component="http").inc()
            raise
        finally:
            request_count.labels(
                method=method,
                endpoint=endpoint,
                status_code=str(status_code)
            ).inc()
            request_duration.labels(
                method=method,
                endpoint=endpoint
            ).observe(time.perf_counter() - start_time)

    def _normalize_endpoint(self, path: str) -> str:
        """Normalize endpoint path to reduce cardinality."""
        path = re.sub(r'/\d+', '/{id}', path)
        path = re.sub(r'/[a-f0-9]{32,}', '/{hash}', path)
        return path


def setup_prometheus_metrics(app: FastAPI) -> None:
    """Setup Prometheus metrics collection for a FastAPI app."""
    app.add_middleware(PrometheusMiddleware)

    @app.get("/metrics")
    async def metrics_endpoint():
        """Prometheus metrics endpoint."""
        return Response(generate_latest(docsearch_registry), media_type=CONTENT_TYPE_LATEST)

    app_info.info({'version': __version__})
    logger.info("Prometheus metrics configured")


def record_search_metrics(filter_name: str, duration: float, result_count: int,
                          error: Optional[str] = None) -> None:
    """Record query-related metrics."""
    status = "error" if error else "success"

    search_requests.labels(filter=filter_name, status=status).inc()
    search_duration.labels(filter=filter_name).observe(duration)

    if error:
        error_count.labels(error_type="search_error", component="search").inc()
    else:
        search_results_count.labels(filter=filter_name).observe(result_count)


def record_index_build_metrics(duration: float, item_count: int, skipped: int = 0,
                               error: Optional[str] = None) -> None:
    """Record index build metrics."""
    status = "error" if error else "success"

    index_builds.labels(status=status).inc()

    if error:
        error_count.labels(error_type="index_build_error", component="indexer").inc()
        return

    index_build_duration.observe(duration)
    index_items.observe(item_count)
    if skipped:
        skipped_units.inc(skipped)


def record_collection_failure(source_type: str) -> None:
    """Count a content source the collector had to skip."""
    skipped_sources.labels(source_type=source_type).inc()
