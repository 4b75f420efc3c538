"""Observability package for docsearch."""

from .logging import setup_logging, log_performance, JSONFormatter, ColoredFormatter
from .prometheus_metrics import (
    setup_prometheus_metrics,
    record_search_metrics,
    record_index_build_metrics,
    record_collection_failure,
    PrometheusMiddleware,
    docsearch_registry
)

__all__ = [
    'setup_logging',
    'JSONFormatter',
    'ColoredFormatter',
    'log_performance',
    'setup_prometheus_metrics',
    'record_search_metrics',
    'record_index_build_metrics',
    'record_collection_failure',
    'PrometheusMiddleware',
    'docsearch_registry'
]
