"""Configuration module for docsearch.

Provides settings for content locations, scoring, caching and the API.
"""

from .settings import (
    SearchSettings,
    ScoringWeights,
    DEFAULT_CATALOG_PATH,
    DEFAULT_CONTENT_DIR
)

__all__ = [
    'SearchSettings',
    'ScoringWeights',
    'DEFAULT_CATALOG_PATH',
    'DEFAULT_CONTENT_DIR'
]
