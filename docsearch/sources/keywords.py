"""Keyword extraction for indexed content.

A vocabulary is a list of regex alternations; every match in a document's
text becomes one lowercase keyword. Keywords weigh more than body matches
at query time.
"""

import re
from typing import Iterable, List, Pattern, Sequence

# Common testing and development terms
DEFAULT_VOCABULARY = [
    r"mock|mocking|mocked|vi\.fn|vi\.mock",
    r"test|testing|spec|describe|it|expect",
    r"component|render|page|locator",
    r"assertion|toBeInTheDocument|toHaveText|toBeVisible",
    r"click|fill|type|press|keyboard",
    r"svelte|sveltekit|vitest|playwright",
    r"browser|ssr|server|api|route",
    r"accessibility|a11y|aria|role",
    r"form|input|button|modal|card",
    r"state|reactive|derived|effect",
]


def compile_vocabulary(vocabulary: Iterable[str]) -> List[Pattern[str]]:
    """Compile alternations into whole-word, case-insensitive patterns."""
    return [re.compile(rf"\b(?:{entry})\b", re.IGNORECASE) for entry in vocabulary if entry]


def extract_keywords(text: str, patterns: Sequence[Pattern[str]]) -> List[str]:
    """Distinct lowercase vocabulary matches, in pattern then text order."""
    keywords = {}
    for pattern in patterns:
        for match in pattern.finditer(text):
            keywords.setdefault(match.group(0).lower(), None)
    return list(keywords)
