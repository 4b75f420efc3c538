"""HTTP surface for docsearch.

Endpoints:

* ``GET /api/search`` - ranked results as ``{query, filter, results, total}``
* ``GET /search-index.json`` - full index snapshot for client-side search
* ``POST /docs/search`` - form action variant of the query endpoint
* ``GET /health`` and ``GET /metrics``

The index cache lives on ``app.state`` so each app instance (and each test)
owns its own cache.
"""

import time
import logging
from typing import List, Optional

from fastapi import FastAPI, Form, Request
from fastapi.responses import JSONResponse

from docsearch import __version__
from docsearch.config.settings import SearchSettings
from docsearch.errors import IndexBuildError
from docsearch.indexer.builder import build_search_index
from docsearch.indexer.cache import IndexCache
from docsearch.indexer.models import ScoredResult, SearchFilter, SearchIndex, isoformat_z, utc_now
from docsearch.indexer.search import search, tokenize
from docsearch.observability.prometheus_metrics import record_search_metrics, setup_prometheus_metrics
from docsearch.server.security.rate_limiting import setup_rate_limiting
from docsearch.sources.collector import CatalogCollector, ContentCollector

logger = logging.getLogger(__name__)

JSON_UTF8 = "application/json; charset=utf-8"


def make_index_cache(settings: SearchSettings, collector: Optional[ContentCollector] = None) -> IndexCache:
    """Index cache backed by ``collector`` (the catalog collector by default)."""
    if collector is None:
        collector = CatalogCollector(settings.catalog_path, settings.content_dir)

    async def build() -> SearchIndex:
        return await build_search_index(collector)

    return IndexCache(build, policy=settings.refresh_policy())


def run_search(query: str, index: SearchIndex, search_filter: SearchFilter,
               settings: SearchSettings, limit: Optional[int] = None) -> List[ScoredResult]:
    """Query the index and record search metrics."""
    start_time = time.perf_counter()
    results = search(
        query,
        index,
        search_filter,
        limit=limit,
        weights=settings.weights,
        excerpt_radius=settings.excerpt_radius
    )
    duration = time.perf_counter() - start_time
    record_search_metrics(search_filter.value, duration, len(results))
    logger.info(
        "Search served",
        extra={"query": query, "filter": search_filter.value, "results": len(results),
               "duration_ms": duration * 1000}
    )
    return results


def create_app(settings: Optional[SearchSettings] = None,
               collector: Optional[ContentCollector] = None,
               cache: Optional[IndexCache] = None) -> FastAPI:
    """Create the docsearch FastAPI application.

    Args:
        settings: Configuration, read from the environment when omitted
        collector: Content collector used when no cache is supplied
        cache: Pre-built index cache, e.g. shared between apps
    """
    settings = settings or SearchSettings.from_env()
    cache = cache or make_index_cache(settings, collector)

    app = FastAPI(title="docsearch API", version=__version__)
    app.state.settings = settings
    app.state.index_cache = cache

    limiter = setup_rate_limiting(app, settings)
    setup_prometheus_metrics(app)

    @app.get("/")
    async def root():
        """Root endpoint with API information."""
        return {
            "message": "docsearch API",
            "version": __version__,
            "search": "/api/search",
            "index": "/search-index.json",
            "health": "/health",
            "metrics": "/metrics"
        }

    @app.get("/health")
    async def health():
        """Liveness plus the state of the cached index; never triggers a build."""
        index = cache.current
        return {
            "status": "ok",
            "time": isoformat_z(utc_now()),
            "index": {
                "built": index is not None,
                "total_items": index.total_items if index else 0,
                "generated_at": isoformat_z(index.generated_at) if index else None
            }
        }

    @app.get("/api/search")
    @limiter.limit(settings.search_rate_limit)
    async def api_search(request: Request, q: str = "", filter: str = "all"):
        """Full-text search over documentation topics and examples."""
        search_filter = SearchFilter.parse(filter)
        envelope = {"query": q, "filter": search_filter.value, "results": [], "total": 0}

        if not tokenize(q):
            return envelope

        try:
            index = await cache.get_or_build()
        except IndexBuildError as e:
            logger.error(f"Search index unavailable: {e}")
            record_search_metrics(search_filter.value, 0.0, 0, error=type(e).__name__)
            return JSONResponse(
                status_code=503,
                content={**envelope, "error": "Search index unavailable"}
            )

        results = run_search(q, index, search_filter, settings, limit=settings.max_results)
        envelope["results"] = [result.to_dict() for result in results]
        envelope["total"] = len(results)
        return envelope

    @app.get("/search-index.json")
    async def search_index_json():
        """Whole index for client-side or LLM consumption."""
        try:
            index = await cache.get_or_build()
        except IndexBuildError as e:
            logger.error(f"Failed to generate search index: {e}")
            degraded = SearchIndex.degraded("Failed to generate search index")
            return JSONResponse(degraded.to_dict(), status_code=500, media_type=JSON_UTF8)

        return JSONResponse(
            index.to_dict(),
            media_type=JSON_UTF8,
            headers={
                "Cache-Control": f"public, max-age={settings.index_cache_max_age}",
                "X-Robots-Tag": "noindex"
            }
        )

    @app.post("/docs/search")
    async def docs_search_action(q: str = Form(""), filter: str = Form("all")):
        """Form action: search without client-side JavaScript."""
        search_filter = SearchFilter.parse(filter)

        if not q.strip():
            return JSONResponse(
                status_code=400,
                content={"error": "Search query is required", "query": q, "filter": search_filter.value}
            )

        try:
            index = await cache.get_or_build()
        except IndexBuildError as e:
            logger.error(f"Search error: {e}")
            return JSONResponse(
                status_code=500,
                content={"error": "Search failed. Please try again.", "query": q, "filter": search_filter.value}
            )

        results = run_search(q, index, search_filter, settings)
        return {
            "success": True,
            "query": q,
            "filter": search_filter.value,
            "results": [result.to_dict() for result in results[:settings.form_result_limit]],
            "total": len(results),
            "search_type": "server_action"
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    from docsearch.observability.logging import setup_logging

    settings = app.state.settings
    setup_logging(level=settings.log_level, use_json=settings.log_json)
    uvicorn.run(app, host="0.0.0.0", port=8001)
