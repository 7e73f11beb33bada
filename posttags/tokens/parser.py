"""Mention and hashtag token extraction.

A token is the maximal run of non-whitespace characters that immediately
follows the prefix character. Trailing punctuation is kept as-is, so
``#hello-world,`` yields ``hello-world,``.
"""

import re
from functools import lru_cache

MENTION_PREFIX = "@"
TAG_PREFIX = "#"


@lru_cache(maxsize=8)
def _token_pattern(prefix: str) -> re.Pattern[str]:
    return re.compile(re.escape(prefix) + r"(\S+)")


def parse_tokens(text: str | None, prefix: str) -> list[str]:
    """Extract unique lowercase tokens following ``prefix`` from ``text``.

    Returns tokens in first-occurrence order; an empty list when nothing matches.
    """
    if len(prefix) != 1 or prefix.isspace():
        raise ValueError(f"Token prefix must be a single non-space character, got {prefix!r}")
    if not text:
        return []
    seen: set[str] = set()
    result: list[str] = []
    for match in _token_pattern(prefix).finditer(text.lower()):
        token = match.group(1)
        if token not in seen:
            seen.add(token)
            result.append(token)
    return result


def parse_mentions(text: str | None) -> list[str]:
    return parse_tokens(text, MENTION_PREFIX)


def parse_tags(text: str | None) -> list[str]:
    return parse_tokens(text, TAG_PREFIX)
