"""docsearch - in-memory full-text search for documentation sites.

Collects documentation topics and code examples, builds an immutable
search index and answers ranked, filtered queries with excerpts.
"""

__version__ = "0.3.0"
