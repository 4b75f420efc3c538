"""Search configuration for docsearch.

Settings are plain pydantic models so they can be built explicitly in
tests and from the environment in production.
"""

import os
import logging
from datetime import timedelta
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, model_validator

logger = logging.getLogger(__name__)

PACKAGE_DIR = Path(__file__).resolve().parents[1]
DEFAULT_CATALOG_PATH = PACKAGE_DIR / "sources" / "catalog.yaml"
DEFAULT_CONTENT_DIR = PACKAGE_DIR / "content"


class ScoringWeights(BaseModel):
    """Per-field weights used by the query engine."""
    title: int = Field(default=100, gt=0, description="Full query found in the title")
    keyword: int = Field(default=40, gt=0, description="Per token found in a keyword")
    description: int = Field(default=25, gt=0, description="Full query found in the description")
    content: int = Field(default=10, gt=0, description="Per distinct token found in the body")

    @model_validator(mode="after")
    def check_ordering(self) -> "ScoringWeights":
        if not (self.title > self.keyword > self.description > self.content):
            raise ValueError(
                "Weights must satisfy title > keyword > description > content, "
                f"got {self.title} > {self.keyword} > {self.description} > {self.content}"
            )
        return self


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class SearchSettings(BaseModel):
    """Runtime configuration for the collector, index cache and API."""
    catalog_path: Path = Field(default=DEFAULT_CATALOG_PATH, description="YAML content catalog")
    content_dir: Path = Field(default=DEFAULT_CONTENT_DIR, description="Directory of topic markdown files")

    max_results: int = Field(default=20, gt=0, description="Result cap for the query endpoint")
    form_result_limit: int = Field(default=10, gt=0, description="Result cap for form responses")
    excerpt_radius: int = Field(default=80, gt=0, description="Characters kept on each side of a match")
    weights: ScoringWeights = Field(default_factory=ScoringWeights)

    index_max_age: Optional[float] = Field(default=None, gt=0, description="Seconds before a cached index is rebuilt")
    index_cache_max_age: int = Field(default=3600, ge=0, description="Cache-Control max-age for the index dump")

    search_rate_limit: str = Field(default="300/minute", description="slowapi limit for the query endpoint")
    rate_limit_enabled: bool = True

    log_level: str = "INFO"
    log_json: bool = False

    @classmethod
    def from_env(cls) -> "SearchSettings":
        """Create settings from environment variables."""
        index_max_age = os.getenv("DOCSEARCH_INDEX_MAX_AGE")
        return cls(
            catalog_path=Path(os.getenv("DOCSEARCH_CATALOG_PATH", str(DEFAULT_CATALOG_PATH))),
            content_dir=Path(os.getenv("DOCSEARCH_CONTENT_DIR", str(DEFAULT_CONTENT_DIR))),
            max_results=int(os.getenv("DOCSEARCH_MAX_RESULTS", "20")),
            form_result_limit=int(os.getenv("DOCSEARCH_FORM_RESULT_LIMIT", "10")),
            excerpt_radius=int(os.getenv("DOCSEARCH_EXCERPT_RADIUS", "80")),
            index_max_age=float(index_max_age) if index_max_age else None,
            index_cache_max_age=int(os.getenv("DOCSEARCH_INDEX_CACHE_MAX_AGE", "3600")),
            search_rate_limit=os.getenv("DOCSEARCH_RATE_LIMIT", "300/minute"),
            rate_limit_enabled=_env_bool("DOCSEARCH_RATE_LIMIT_ENABLED", True),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_json=_env_bool("LOG_JSON", False),
        )

    def refresh_policy(self):
        """Cache refresh policy matching ``index_max_age``."""
        from docsearch.indexer.cache import MaxAgePolicy, NeverExpire

        if self.index_max_age is None:
            return NeverExpire()
        return MaxAgePolicy(timedelta(seconds=self.index_max_age))
