"""Content catalog loader for docsearch.

Loads the YAML catalog describing documentation topics, code example
groups and API testing scenarios.
"""

import yaml
from pathlib import Path
from typing import Dict, List, Any, Optional, Tuple
from dataclasses import dataclass, field
import logging

from docsearch.errors import CatalogError
from docsearch.sources.keywords import DEFAULT_VOCABULARY

logger = logging.getLogger(__name__)

HTTP_METHODS = {"GET", "POST", "PUT", "PATCH", "DELETE"}


@dataclass
class TopicSource:
    """A documentation topic whose body lives in ``<content_dir>/<slug>.md``."""
    slug: str
    title: str
    description: str
    group: Optional[str] = None
    category: str = "Documentation"

    def __post_init__(self):
        if not self.slug:
            raise ValueError("Topic slug cannot be empty")
        if not self.title:
            raise ValueError(f"Topic {self.slug} has no title")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TopicSource':
        return cls(
            slug=str(data['slug']).strip(),
            title=str(data['title']).strip(),
            description=str(data.get('description', '')).strip(),
            group=data.get('group'),
            category=data.get('category', 'Documentation')
        )


@dataclass
class ExampleGroup:
    """Code examples sharing a category and landing page."""
    category: str
    base_url: str
    examples: Dict[str, str]
    id_prefix: Optional[str] = None
    urls: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        if not self.category:
            raise ValueError("Example group category cannot be empty")
        if not self.base_url:
            raise ValueError(f"Example group {self.category} has no base_url")
        if not isinstance(self.examples, dict):
            raise ValueError(f"Example group {self.category} examples must be a mapping")
        if not isinstance(self.urls, dict):
            raise ValueError(f"Example group {self.category} urls must be a mapping")
        for key, url in self.urls.items():
            if not isinstance(url, str) or not url.strip():
                raise ValueError(f"Example group {self.category} has an invalid url for {key}")

    def url_for(self, key: str) -> str:
        """Section-specific url when one is configured, else the base url."""
        return self.urls.get(key, self.base_url)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ExampleGroup':
        return cls(
            category=str(data['category']).strip(),
            base_url=str(data['base_url']).strip(),
            examples=data.get('examples') or {},
            id_prefix=data.get('id_prefix'),
            urls=data.get('urls') or {}
        )


@dataclass
class ScenarioSource:
    """Metadata for an API testing-scenario endpoint."""
    endpoint: str
    method: str
    category: str
    description: str
    patterns: List[str] = field(default_factory=list)
    example_test_file: Optional[str] = None
    title: Optional[str] = None

    def __post_init__(self):
        if not self.endpoint.startswith("/"):
            raise ValueError(f"Scenario endpoint must be a path: {self.endpoint}")
        self.method = self.method.upper()
        if self.method not in HTTP_METHODS:
            raise ValueError(f"Invalid method for {self.endpoint}: {self.method}")

    @property
    def name(self) -> str:
        """Last path segment, e.g. ``button-variants``."""
        return self.endpoint.rstrip("/").rsplit("/", 1)[-1]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ScenarioSource':
        return cls(
            endpoint=str(data['endpoint']).strip(),
            method=str(data.get('method', 'GET')),
            category=str(data['category']).strip(),
            description=str(data.get('description', '')).strip(),
            patterns=[str(p) for p in data.get('patterns') or []],
            example_test_file=data.get('example_test_file'),
            title=data.get('title')
        )


@dataclass
class Catalog:
    """Everything the collector should index."""
    topics: List[TopicSource] = field(default_factory=list)
    example_groups: List[ExampleGroup] = field(default_factory=list)
    scenarios: List[ScenarioSource] = field(default_factory=list)
    keyword_vocabulary: List[str] = field(default_factory=lambda: list(DEFAULT_VOCABULARY))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Catalog':
        """Create a Catalog, skipping (and logging) malformed entries."""
        return cls(
            topics=_parse_entries(data.get('topics'), TopicSource, 'topic'),
            example_groups=_parse_entries(data.get('example_groups'), ExampleGroup, 'example group'),
            scenarios=_parse_entries(data.get('scenarios'), ScenarioSource, 'scenario'),
            keyword_vocabulary=list(data.get('keyword_vocabulary') or DEFAULT_VOCABULARY)
        )


def _parse_entries(entries: Optional[List[Any]], entry_cls, label: str) -> list:
    parsed = []
    for position, entry in enumerate(entries or []):
        try:
            if not isinstance(entry, dict):
                raise ValueError(f"expected a mapping, got {type(entry).__name__}")
            parsed.append(entry_cls.from_dict(entry))
        except (KeyError, ValueError, TypeError, AttributeError) as e:
            logger.warning(f"Skipping invalid {label} #{position} in catalog: {e}")
    return parsed


class CatalogLoader:
    """Loads catalogs from YAML files, reusing a parse while the file is unchanged."""

    def __init__(self):
        self._cache: Dict[str, Tuple[float, Catalog]] = {}

    def load(self, path: Path) -> Catalog:
        """Load a catalog.

        Args:
            path: YAML catalog file

        Returns:
            The parsed Catalog

        Raises:
            CatalogError: the file is missing, unreadable or not a YAML mapping
        """
        path = Path(path)
        key = str(path.resolve())

        try:
            current_mtime = path.stat().st_mtime
        except OSError as e:
            raise CatalogError(str(path), str(e)) from e

        cached = self._cache.get(key)
        if cached and cached[0] >= current_mtime:
            return cached[1]

        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise CatalogError(str(path), f"invalid YAML: {e}") from e
        except (OSError, UnicodeDecodeError) as e:
            raise CatalogError(str(path), str(e)) from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise CatalogError(str(path), "top level must be a mapping")

        catalog = Catalog.from_dict(data)
        self._cache[key] = (current_mtime, catalog)

        logger.info(
            f"Loaded catalog {path}: {len(catalog.topics)} topics, "
            f"{len(catalog.example_groups)} example groups, {len(catalog.scenarios)} scenarios"
        )
        return catalog

    def reload_cache(self):
        """Clear cache to force reload of all catalogs."""
        self._cache.clear()
        logger.info("Catalog cache cleared")
