"""Index builder for docsearch.

Turns raw content units into an immutable ``SearchIndex``. Malformed units
are skipped with a diagnostic note; only a collector that yields nothing
usable fails the build.
"""

import re
import time
import hashlib
import logging
from datetime import datetime
from typing import Callable, Iterable, List, Optional, Set, Tuple

from docsearch.errors import IndexBuildError
from docsearch.indexer.models import (
    ItemType,
    RawContentUnit,
    SearchIndex,
    SearchIndexItem,
    utc_now
)
from docsearch.observability.logging import log_performance
from docsearch.observability.prometheus_metrics import record_index_build_metrics

logger = logging.getLogger(__name__)

SUMMARY_MAX_CHARS = 200


def slugify(s: str) -> str:
    """Stable id fragment; underscores survive so example keys stay readable."""
    slug = re.sub(r"[^a-z0-9_]+", "-", s.lower()).strip("-")
    if slug:
        return slug[:80]
    # Titles without any ASCII letters still need a deterministic key
    return hashlib.md5(s.encode("utf-8")).hexdigest()[:12] if s else ""


def normalize_text(text: str) -> str:
    """Trim and collapse all whitespace runs to single spaces."""
    return " ".join(text.split())


def summarize(markdown: str) -> str:
    """First meaningful line of a markdown body, links flattened."""
    for line in markdown.splitlines():
        trimmed = line.strip()
        # Skip headers, empty lines, code fences and quotes
        if not trimmed or trimmed.startswith(("#", "```", ">")):
            continue
        summary = re.sub(r"\[([^\]]+)\]\([^)]+\)", r"\1", trimmed)
        if len(summary) > SUMMARY_MAX_CHARS:
            summary = summary[:SUMMARY_MAX_CHARS].rstrip() + "..."
        return summary
    return ""


def title_from_url(url: str) -> str:
    """``/docs/getting-started#intro`` -> ``Getting Started``."""
    path = url.split("#", 1)[0].split("?", 1)[0].rstrip("/")
    segment = path.rsplit("/", 1)[-1]
    words = re.sub(r"[-_]+", " ", segment).strip()
    return words.title() if words else url


def _text(value) -> str:
    return value if isinstance(value, str) else ("" if value is None else str(value))


def make_item_id(item_type: ItemType, unit: RawContentUnit, title: str, url: str) -> str:
    """``<type>-<slug>`` from the unit's slug, else its title, else its url."""
    for candidate in (_text(unit.slug), title, url):
        slug = slugify(candidate.strip())
        if slug:
            return f"{item_type.value}-{slug}"
    raise ValueError("cannot derive an id")


def _keywords(unit: RawContentUnit, title: str) -> Tuple[str, ...]:
    raw = unit.keywords
    if raw is None:
        return ()
    if not isinstance(raw, (list, tuple)):
        raise ValueError(f"unit '{title}' keywords must be a list, got {type(raw).__name__}")
    if not all(isinstance(k, str) for k in raw):
        raise ValueError(f"unit '{title}' keywords must be strings")
    return tuple(k for k in (normalize_text(k) for k in raw) if k)


def to_item(unit: RawContentUnit) -> SearchIndexItem:
    """Normalize one raw unit, raising ``ValueError`` if it is unusable."""
    if not isinstance(unit, RawContentUnit):
        raise ValueError(f"expected a RawContentUnit, got {type(unit).__name__}")

    title = normalize_text(_text(unit.title))
    url = _text(unit.url).strip()

    if not title and not url:
        raise ValueError("unit has neither title nor url")
    if not url:
        raise ValueError(f"unit '{title}' has no url")
    if not title:
        title = title_from_url(url)

    try:
        item_type = ItemType(_text(unit.type).strip().lower())
    except ValueError:
        raise ValueError(f"unit '{title}' has unknown type {unit.type!r}") from None

    raw_text = _text(unit.raw_text)
    content = normalize_text(raw_text)
    description = (
        normalize_text(_text(unit.description))
        or summarize(raw_text)
        or title
    )
    category = normalize_text(_text(unit.category)) or None
    keywords = _keywords(unit, title)

    return SearchIndexItem(
        id=make_item_id(item_type, unit, title, url),
        title=title,
        description=description,
        url=url,
        type=item_type,
        content=content,
        category=category,
        keywords=keywords
    )


@log_performance(threshold_ms=500.0)
def build_index(raw_units: Iterable[RawContentUnit],
                clock: Callable[[], datetime] = utc_now) -> SearchIndex:
    """Build a new index snapshot from raw units.

    Args:
        raw_units: Units in collection order; may be empty
        clock: Source of the ``generated_at`` timestamp

    Returns:
        A new ``SearchIndex``; previously built indexes are untouched
    """
    items: List[SearchIndexItem] = []
    seen_ids: Set[str] = set()
    diagnostics: List[str] = []

    for position, unit in enumerate(raw_units):
        try:
            item = to_item(unit)
        except ValueError as e:
            note = f"Skipped unit #{position}: {e}"
            logger.warning(note)
            diagnostics.append(note)
            continue

        if item.id in seen_ids:
            note = f"Skipped unit #{position}: duplicate id {item.id}"
            logger.warning(note)
            diagnostics.append(note)
            continue

        seen_ids.add(item.id)
        items.append(item)

    index = SearchIndex(
        items=tuple(items),
        generated_at=clock(),
        diagnostics=tuple(diagnostics)
    )
    logger.info(
        f"Built search index with {index.total_items} items",
        extra={"items": index.total_items, "skipped": len(diagnostics)}
    )
    return index


async def build_search_index(collector, clock: Callable[[], datetime] = utc_now) -> SearchIndex:
    """Collect content and build an index from it.

    Raises:
        IndexBuildError: the collector produced no units at all because it
            failed outright or every one of its sources failed
    """
    start_time = time.perf_counter()

    try:
        units = await collector.collect()
    except Exception as e:
        record_index_build_metrics(time.perf_counter() - start_time, 0, error=type(e).__name__)
        logger.error(f"Content collection failed: {e}")
        raise IndexBuildError(f"Could not collect content: {e}", cause=e) from e

    failures: Optional[list] = getattr(collector, "failures", None)
    if not units and failures:
        record_index_build_metrics(time.perf_counter() - start_time, 0, error="all_sources_failed")
        logger.error(f"All {len(failures)} content sources failed")
        raise IndexBuildError(f"All {len(failures)} content sources failed", cause=failures[0])

    index = build_index(units, clock=clock)
    record_index_build_metrics(
        time.perf_counter() - start_time,
        index.total_items,
        skipped=len(index.diagnostics)
    )
    return index
