"""HTTP server package for docsearch."""

from .search_api import create_app, make_index_cache, run_search

__all__ = [
    'create_app',
    'make_index_cache',
    'run_search'
]
