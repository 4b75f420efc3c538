"""Query engine: ranked, filtered, case-insensitive search over an index.

Scoring is field-weighted substring matching:

* the whole query found in the title or the description scores once,
* each query token found inside any keyword scores once,
* each distinct query token found in the body scores once, however often
  it occurs, so long pages do not crowd out focused ones.

Matching uses Unicode case folding on both sides, so any case variant of a
query yields the same results in the same order. The engine never raises
for a query string; unusable input simply matches nothing.
"""

import logging
from typing import List, Optional, Sequence, Tuple, Union

from docsearch.config.settings import ScoringWeights
from docsearch.indexer.models import ScoredResult, SearchFilter, SearchIndex, SearchIndexItem, fold
from docsearch.observability.logging import log_performance

logger = logging.getLogger(__name__)

DEFAULT_WEIGHTS = ScoringWeights()
DEFAULT_EXCERPT_RADIUS = 80
ELLIPSIS = "..."


def tokenize(query) -> List[str]:
    """Case-folded whitespace tokens of a query; empty for blank input."""
    if query is None:
        return []
    if not isinstance(query, str):
        query = str(query)
    return fold(query).split()


def score_item(item: SearchIndexItem, phrase: str, tokens: Sequence[str],
               weights: ScoringWeights) -> Tuple[int, List[str]]:
    """Score one item.

    Returns:
        The score and the tokens found in the item's content, in query order
    """
    folded = item.folded
    score = 0

    if phrase in folded.title:
        score += weights.title

    for token in tokens:
        if any(token in keyword for keyword in folded.keywords):
            score += weights.keyword

    if phrase in folded.description:
        score += weights.description

    content_tokens = [token for token in tokens if token in folded.content]
    score += weights.content * len(content_tokens)

    return score, content_tokens


def _fold_with_offsets(text: str) -> Tuple[str, List[int]]:
    """Folded ``text`` plus, for each folded character, its index in ``text``."""
    pieces: List[str] = []
    offsets: List[int] = []
    for position, char in enumerate(text):
        folded_char = fold(char)
        pieces.append(folded_char)
        offsets.extend([position] * len(folded_char))
    return "".join(pieces), offsets


def _first_match(content: str, tokens: Sequence[str]) -> Optional[Tuple[int, int]]:
    """Start and length, in ``content``, of the earliest occurrence of any token."""
    folded = fold(content)
    offsets: Optional[List[int]] = None
    # Every character folds to at least one character, so equal lengths line up
    if len(folded) != len(content):
        folded, offsets = _fold_with_offsets(content)

    best: Optional[Tuple[int, int]] = None
    for token in tokens:
        position = folded.find(token)
        if position != -1 and (best is None or position < best[0]):
            best = (position, position + len(token))

    if best is None:
        return None
    start, end = best
    if offsets is not None:
        start, end = offsets[start], offsets[end - 1] + 1
    return start, end - start


def _clip(text: str, start: int, end: int, keep_start: int, keep_end: int) -> str:
    """Cut ``text[start:end]`` back to word boundaries outside the kept span."""
    start = max(0, start)
    end = min(len(text), end)

    if start > 0 and not text[start - 1].isspace():
        space = text.find(" ", start, keep_start)
        if space != -1:
            start = space + 1

    if end < len(text) and not text[end].isspace():
        space = text.rfind(" ", keep_end, end)
        if space != -1:
            end = space

    snippet = text[start:end].strip()
    if start > 0:
        snippet = ELLIPSIS + snippet
    if end < len(text):
        snippet = snippet + ELLIPSIS
    return snippet


def make_excerpt(item: SearchIndexItem, tokens: Sequence[str],
                 radius: int = DEFAULT_EXCERPT_RADIUS) -> str:
    """Window of the content around the first match of any token.

    Falls back to the start of the content when no token occurs in it, and
    to the description when there is no content.
    """
    content = item.content
    if not content:
        return item.description

    radius = max(radius, 0)
    match = _first_match(content, tokens) if tokens else None
    if match is None:
        return _clip(content, 0, 2 * radius, 0, 0)

    position, length = match
    return _clip(content, position - radius, position + length + radius,
                 position, position + length)


@log_performance(threshold_ms=100.0)
def search(query: str,
           index: SearchIndex,
           filter: Union[SearchFilter, str] = SearchFilter.ALL,
           limit: Optional[int] = None,
           weights: Optional[ScoringWeights] = None,
           excerpt_radius: int = DEFAULT_EXCERPT_RADIUS) -> List[ScoredResult]:
    """Search an index.

    Args:
        query: Raw query string; blank queries return no results
        index: Snapshot to search; never modified
        filter: One of all/docs/examples/components; unknown values mean all
        limit: Maximum number of results, unlimited when None
        weights: Field weights, defaults to ``DEFAULT_WEIGHTS``
        excerpt_radius: Characters kept on each side of the excerpt match

    Returns:
        Results by descending score; equal scores keep index order
    """
    tokens = tokenize(query)
    if not tokens:
        return []

    search_filter = SearchFilter.parse(filter)
    weights = weights or DEFAULT_WEIGHTS
    phrase = " ".join(tokens)
    unique_tokens = list(dict.fromkeys(tokens))

    matches = []
    for item in index.items:
        if not search_filter.accepts(item):
            continue
        score, content_tokens = score_item(item, phrase, unique_tokens, weights)
        if score > 0:
            matches.append((score, item, content_tokens))

    # list.sort is stable, so ties stay in index order
    matches.sort(key=lambda match: match[0], reverse=True)

    if limit is not None:
        matches = matches[:max(limit, 0)]

    logger.debug(
        f"Query matched {len(matches)} items",
        extra={"query": phrase, "filter": search_filter.value, "results": len(matches)}
    )

    return [
        ScoredResult(item=item, score=score, excerpt=make_excerpt(item, content_tokens, excerpt_radius))
        for score, item, content_tokens in matches
    ]
