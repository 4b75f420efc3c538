"""Data model for the search index.

Items and indexes are frozen: a built index is a snapshot that readers
can share without coordination.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from functools import cached_property
from typing import Any, Callable, Dict, List, NamedTuple, Optional, Tuple

logger = logging.getLogger(__name__)

# Categories the filter buckets key on
DOCUMENTATION_CATEGORY = "Documentation"
QUICK_START_CATEGORY = "Quick Start"
COMPONENTS_CATEGORY = "Components"

DOCS_CATEGORIES = frozenset({DOCUMENTATION_CATEGORY, QUICK_START_CATEGORY})
NON_EXAMPLE_CATEGORIES = frozenset({COMPONENTS_CATEGORY, DOCUMENTATION_CATEGORY, QUICK_START_CATEGORY})


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def isoformat_z(value: datetime) -> str:
    """ISO-8601 timestamp with a ``Z`` suffix for UTC values."""
    return value.isoformat().replace("+00:00", "Z")


def fold(text: str) -> str:
    """Caseless form used for matching.

    Upper-casing first maps letters such as dotless ``ı`` onto their ASCII
    capitals, so ``ınfo`` and ``INFO`` fold to the same string.
    """
    return text.upper().casefold()


class ItemType(str, Enum):
    """Kind of indexed unit."""
    TOPIC = "topic"
    EXAMPLE = "example"
    CODE = "code"


class SearchFilter(str, Enum):
    """Caller-selected constraint on which items may match."""
    ALL = "all"
    DOCS = "docs"
    EXAMPLES = "examples"
    COMPONENTS = "components"

    @classmethod
    def parse(cls, value: Any) -> "SearchFilter":
        """Lenient conversion; unknown or empty values mean ``all``."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            logger.debug(f"Unknown search filter {value!r}, using 'all'")
            return cls.ALL

    def accepts(self, item: "SearchIndexItem") -> bool:
        if self is SearchFilter.DOCS:
            return item.type is ItemType.TOPIC or item.category in DOCS_CATEGORIES
        if self is SearchFilter.EXAMPLES:
            return item.type is ItemType.EXAMPLE and item.category not in NON_EXAMPLE_CATEGORIES
        if self is SearchFilter.COMPONENTS:
            return item.category == COMPONENTS_CATEGORY
        return True


@dataclass
class RawContentUnit:
    """Searchable source material as gathered by a collector."""
    title: str
    description: str
    url: str
    type: str
    raw_text: str
    category: Optional[str] = None
    keywords: Optional[List[str]] = None
    slug: Optional[str] = None


class FoldedFields(NamedTuple):
    """Case-folded copies of the matchable fields."""
    title: str
    description: str
    content: str
    keywords: Tuple[str, ...]


@dataclass(frozen=True)
class SearchIndexItem:
    """One indexed unit of content."""
    id: str
    title: str
    description: str
    url: str
    type: ItemType
    content: str
    category: Optional[str] = None
    keywords: Tuple[str, ...] = ()

    @cached_property
    def folded(self) -> FoldedFields:
        # Computed once per item, on the first query that reaches it
        return FoldedFields(
            title=fold(self.title),
            description=fold(self.description),
            content=fold(self.content),
            keywords=tuple(fold(k) for k in self.keywords)
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "url": self.url,
            "type": self.type.value,
            "category": self.category,
            "content": self.content,
            "keywords": list(self.keywords)
        }


@dataclass(frozen=True)
class SearchIndex:
    """Immutable snapshot of every searchable item."""
    items: Tuple[SearchIndexItem, ...]
    generated_at: datetime
    diagnostics: Tuple[str, ...] = ()
    error: Optional[str] = None

    @property
    def total_items(self) -> int:
        return len(self.items)

    @classmethod
    def degraded(cls, error: str, clock: Callable[[], datetime] = utc_now) -> "SearchIndex":
        """Empty index flagged with the reason no real index is available."""
        return cls(items=(), generated_at=clock(), error=error)

    def get(self, item_id: str) -> Optional[SearchIndexItem]:
        for item in self.items:
            if item.id == item_id:
                return item
        return None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "items": [item.to_dict() for item in self.items],
            "generated_at": isoformat_z(self.generated_at),
            "total_items": self.total_items
        }
        if self.error:
            data["error"] = self.error
        return data


@dataclass
class ScoredResult:
    """A matching item with its internal score and per-query excerpt."""
    item: SearchIndexItem
    score: int
    excerpt: str = field(default="")

    def to_dict(self) -> Dict[str, Any]:
        """Public result shape; the score stays internal."""
        return {
            "id": self.item.id,
            "title": self.item.title,
            "description": self.item.description,
            "url": self.item.url,
            "type": self.item.type.value,
            "category": self.item.category,
            "excerpt": self.excerpt
        }
