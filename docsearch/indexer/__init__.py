"""Indexer package for docsearch.

Provides the index data model, the index builder, the query engine and the
process-wide index cache.
"""

from .models import (
    ItemType,
    SearchFilter,
    RawContentUnit,
    SearchIndexItem,
    SearchIndex,
    ScoredResult
)
from .builder import build_index, build_search_index, slugify
from .search import search, tokenize, make_excerpt, DEFAULT_WEIGHTS
from .cache import IndexCache, RefreshPolicy, NeverExpire, MaxAgePolicy

__all__ = [
    # Model
    'ItemType',
    'SearchFilter',
    'RawContentUnit',
    'SearchIndexItem',
    'SearchIndex',
    'ScoredResult',

    # Builder
    'build_index',
    'build_search_index',
    'slugify',

    # Query engine
    'search',
    'tokenize',
    'make_excerpt',
    'DEFAULT_WEIGHTS',

    # Cache
    'IndexCache',
    'RefreshPolicy',
    'NeverExpire',
    'MaxAgePolicy'
]
