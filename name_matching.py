"""Name-based matching of shader properties.

Shader authors rarely agree on property names, but they tend to reuse the
same words: ``_Color`` and ``_BaseColor``, ``_BumpMap`` and ``_NormalMap``.
This module splits names into word tokens and scores how well a candidate
target name fits a source name.

Scoring
-------
A candidate must share at least one token with the source, otherwise it is
not a match at all. Among matching candidates the strongest rule wins:

    4 - Exact match (ignoring case and leading or trailing underscores)
    3 - Candidate name contains the source name
    2 - Source name contains the candidate name
    1 - At least one word in common

The number of shared words is never counted. ``_BaseColorMap`` against
``_BaseColor`` scores 2 even though a ``_BaseMapColor`` candidate shares
just as many words.

Example:
    >>> from name_matching import score, tokenize
    >>> tokenize("_BaseColorMap")
    ['base', 'color', 'map']
    >>> score("_Color", "_BaseColor")
    3
    >>> score("_MainTex", "_BaseMap") is None
    True
"""

from __future__ import annotations

import logging
import re

logger = logging.getLogger(__name__)

# =============================================================================
# MATCH PRIORITIES
# =============================================================================

PRIORITY_EXACT = 4
PRIORITY_CANDIDATE_CONTAINS = 3
PRIORITY_SOURCE_CONTAINS = 2
PRIORITY_TOKEN_OVERLAP = 1

# Returned by score() when the two names share no token
NO_MATCH = None

# An upper-case letter that is not the first character starts a new word
_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def tokenize(name: str) -> list[str]:
    """Split a property name into lower-case word tokens.

    Splits on underscores first, then splits each segment before every
    internal upper-case letter. Empty tokens are dropped.

    Args:
        name: Shader property name (e.g., "_BaseColorMap").

    Returns:
        List of lower-case tokens in name order.

    Example:
        >>> tokenize("_MainTex")
        ['main', 'tex']
        >>> tokenize("metallic_GlossMap")
        ['metallic', 'gloss', 'map']
    """
    tokens: list[str] = []
    for segment in name.split("_"):
        for word in _CAMEL_BOUNDARY.sub(" ", segment).split():
            tokens.append(word.lower())
    return tokens


def _comparison_key(name: str) -> str:
    # The leading underscore is Unity's property prefix, not part of the name
    return name.lower().strip("_")


def score(source_name: str, candidate_name: str) -> int | None:
    """Score a candidate target property name against a source name.

    Args:
        source_name: Property name on the source shader.
        candidate_name: Property name on the target shader.

    Returns:
        Priority from 1 (weakest) to 4 (exact match), or NO_MATCH (None)
        when the names share no token.

    Example:
        >>> score("_MainTex", "_MainTex")
        4
        >>> score("_BaseColor", "_Color")
        2
        >>> score("_Foo", "_Bar") is NO_MATCH
        True
    """
    source_tokens = set(tokenize(source_name))
    if source_tokens.isdisjoint(tokenize(candidate_name)):
        return NO_MATCH

    source_key = _comparison_key(source_name)
    candidate_key = _comparison_key(candidate_name)

    if candidate_key == source_key:
        return PRIORITY_EXACT
    if source_key in candidate_key:
        return PRIORITY_CANDIDATE_CONTAINS
    if candidate_key in source_key:
        return PRIORITY_SOURCE_CONTAINS
    return PRIORITY_TOKEN_OVERLAP
