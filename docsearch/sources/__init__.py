"""Sources package for docsearch.

Provides catalog loading, keyword extraction and content collectors.
"""

from .loader import (
    Catalog,
    CatalogLoader,
    TopicSource,
    ExampleGroup,
    ScenarioSource
)
from .keywords import DEFAULT_VOCABULARY, compile_vocabulary, extract_keywords
from .collector import (
    ContentCollector,
    CatalogCollector,
    StaticCollector,
    key_to_title,
    split_front_matter
)

__all__ = [
    'Catalog',
    'CatalogLoader',
    'TopicSource',
    'ExampleGroup',
    'ScenarioSource',
    'DEFAULT_VOCABULARY',
    'compile_vocabulary',
    'extract_keywords',
    'ContentCollector',
    'CatalogCollector',
    'StaticCollector',
    'key_to_title',
    'split_front_matter'
]
