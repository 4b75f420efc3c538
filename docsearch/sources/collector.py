"""Content collectors for docsearch.

A collector gathers raw searchable units from its sources. Sources are
independent: one that cannot be read is logged, recorded on
``collector.failures`` and skipped, so a partial index can still be built.
"""

import re
import asyncio
import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Pattern, Protocol, Sequence, Tuple

from docsearch.errors import CollectionError
from docsearch.indexer.builder import slugify
from docsearch.indexer.models import ItemType, RawContentUnit
from docsearch.observability.prometheus_metrics import record_collection_failure
from docsearch.sources.keywords import compile_vocabulary, extract_keywords
from docsearch.sources.loader import Catalog, CatalogLoader, ExampleGroup, ScenarioSource, TopicSource

logger = logging.getLogger(__name__)


class ContentCollector(Protocol):
    """Anything that can supply raw content units to the index builder."""

    failures: List[CollectionError]

    async def collect(self) -> List[RawContentUnit]:
        ...


def key_to_title(key: str) -> str:
    """``form_testing`` -> ``Form Testing``."""
    return re.sub(r"\b\w", lambda m: m.group(0).upper(), key.replace("_", " "))


def split_front_matter(text: str) -> Tuple[Dict[str, str], str]:
    """Split ``---`` delimited ``key: value`` front matter from a markdown body."""
    front_matter: Dict[str, str] = {}
    if text.startswith('---'):
        end = text.find('\n---', 3)
        if end != -1:
            head = text[3:end].strip()
            for line in head.splitlines():
                if ':' in line:
                    k, v = line.split(':', 1)
                    front_matter[k.strip()] = v.strip().strip("'\"")
            text = text[end + 4:]
    return front_matter, text


def deduplicate(units: Iterable[RawContentUnit]) -> List[RawContentUnit]:
    """Drop later units that repeat an earlier unit's type and key."""
    seen = set()
    unique = []
    for unit in units:
        if not isinstance(unit, RawContentUnit):
            # Left for the builder to reject with a diagnostic
            unique.append(unit)
            continue
        key = (unit.type, unit.slug or unit.title or unit.url)
        if key in seen:
            logger.debug(f"Dropping duplicate content unit {key}")
            continue
        seen.add(key)
        unique.append(unit)
    return unique


class StaticCollector:
    """Serves a fixed list of units."""

    def __init__(self, units: Iterable[RawContentUnit]):
        self.units = list(units)
        self.failures: List[CollectionError] = []
        self.calls = 0

    async def collect(self) -> List[RawContentUnit]:
        self.calls += 1
        return deduplicate(self.units)


class CatalogCollector:
    """Collects topics, code examples and API scenarios described by a catalog.

    Args:
        catalog_path: YAML catalog file
        content_dir: Directory holding ``<topic-slug>.md`` files
        loader: Catalog loader, shared to reuse its parse cache
    """

    def __init__(self, catalog_path: Path, content_dir: Path, loader: Optional[CatalogLoader] = None):
        self.catalog_path = Path(catalog_path)
        self.content_dir = Path(content_dir)
        self.loader = loader or CatalogLoader()
        self.failures: List[CollectionError] = []
        self.calls = 0

    async def collect(self) -> List[RawContentUnit]:
        """Gather every unit the catalog describes.

        Raises:
            CatalogError: the catalog itself cannot be loaded
        """
        self.calls += 1
        self.failures = []

        catalog: Catalog = await asyncio.to_thread(self.loader.load, self.catalog_path)
        patterns = compile_vocabulary(catalog.keyword_vocabulary)

        # Topic files are read concurrently and reassembled in catalog order
        topic_units = await asyncio.gather(
            *(self._collect_topic(topic, patterns) for topic in catalog.topics)
        )

        units = [unit for unit in topic_units if unit is not None]
        for group in catalog.example_groups:
            units.extend(self._collect_examples(group, patterns))
        for scenario in catalog.scenarios:
            units.append(self._collect_scenario(scenario, patterns))

        units = deduplicate(units)
        logger.info(f"Collected {len(units)} content units ({len(self.failures)} sources skipped)")
        return units

    async def _collect_topic(self, topic: TopicSource, patterns: Sequence[Pattern[str]]) -> Optional[RawContentUnit]:
        path = self.content_dir / f"{topic.slug}.md"
        try:
            text = await asyncio.to_thread(self._read_markdown, path)
        except CollectionError as e:
            logger.warning(f"Skipping topic {topic.slug}: {e}")
            self.failures.append(e)
            record_collection_failure(ItemType.TOPIC.value)
            return None

        front_matter, body = split_front_matter(text)
        if front_matter.get('keywords'):
            keywords = [k.strip().lower() for k in front_matter['keywords'].split(',') if k.strip()]
        else:
            keywords = extract_keywords(body, patterns)

        return RawContentUnit(
            title=topic.title,
            description=topic.description or front_matter.get('description', ''),
            url=f"/docs/{topic.slug}",
            type=ItemType.TOPIC.value,
            raw_text=body,
            category=topic.category,
            keywords=keywords,
            slug=topic.slug
        )

    @staticmethod
    def _read_markdown(path: Path) -> str:
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise CollectionError(str(path), str(e)) from e

    def _collect_examples(self, group: ExampleGroup, patterns: Sequence[Pattern[str]]) -> List[RawContentUnit]:
        prefix = group.id_prefix or slugify(group.category)
        units = []
        for key, code in group.examples.items():
            key = str(key)
            code = code if isinstance(code, str) else ""
            title = key_to_title(key)
            units.append(RawContentUnit(
                title=title,
                description=f"{group.category} example: {title}",
                url=group.url_for(key),
                type=ItemType.EXAMPLE.value,
                raw_text=code,
                category=group.category,
                keywords=extract_keywords(code, patterns),
                slug=f"{prefix}-{key}"
            ))
        return units

    def _collect_scenario(self, scenario: ScenarioSource, patterns: Sequence[Pattern[str]]) -> RawContentUnit:
        lines = [f"{scenario.method} {scenario.endpoint}", scenario.description]
        lines.extend(scenario.patterns)
        if scenario.example_test_file:
            lines.append(f"Example test file: {scenario.example_test_file}")
        text = "\n".join(lines)

        return RawContentUnit(
            title=scenario.title or key_to_title(scenario.name.replace("-", "_")),
            description=scenario.description,
            url=scenario.endpoint,
            type=ItemType.CODE.value,
            raw_text=text,
            category=scenario.category,
            keywords=extract_keywords(text, patterns),
            slug=scenario.name
        )
