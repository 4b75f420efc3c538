"""Exception taxonomy for docsearch.

Collection problems are recovered inside the collector; only a total
failure to obtain content surfaces as an ``IndexBuildError``. The query
engine raises nothing.
"""

from typing import Optional


class DocSearchError(Exception):
    """Base class for all docsearch errors."""


class CatalogError(DocSearchError):
    """The content catalog could not be read or parsed."""

    def __init__(self, path: str, reason: str):
        super().__init__(f"Cannot load catalog {path}: {reason}")
        self.path = path
        self.reason = reason


class CollectionError(DocSearchError):
    """A single content source is unreadable.

    Raised and caught inside the collector; the unit is skipped and the
    error is kept on ``collector.failures`` for reporting.
    """

    def __init__(self, source: str, reason: str):
        super().__init__(f"Content source {source} unavailable: {reason}")
        self.source = source
        self.reason = reason


class IndexBuildError(DocSearchError):
    """No index items could be produced at all."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause
