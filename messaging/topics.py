# ============================================================================
# TOPIC PATTERNS
# ============================================================================
# EPOCH: 1 - MESSAGE ROUTING
# STATUS: Core - Topic-exchange binding pattern rules
# PURPOSE: Validate binding patterns and match routing keys against them
# CREATED: 18 OCT 2026
# ============================================================================
"""
Topic Patterns

Routing keys and binding patterns are dot-delimited words. In a binding
pattern `*` matches exactly one word and `#` matches zero or more words:

    auth.*     matches auth.INFO, not auth or auth.INFO.extra
    log.#      matches log, log.INFO, log.INFO.extra
    #          matches everything

The broker does the real matching. These helpers let the listener reject
bad patterns before binding and report which binding selected a delivery.
"""

from typing import Iterable, List, Optional

WORD_SEPARATOR = "."
SINGLE_WORD = "*"
ANY_WORDS = "#"

# AMQP short string limit
MAX_PATTERN_BYTES = 255


def validate_binding_pattern(pattern: str) -> str:
    """
    Check a binding pattern is usable on a topic exchange.

    Raises:
        ValueError: pattern is empty, too long, or has an empty word
    """
    if not pattern:
        raise ValueError("binding pattern must not be empty")
    if len(pattern.encode("utf-8")) > MAX_PATTERN_BYTES:
        raise ValueError(f"binding pattern longer than {MAX_PATTERN_BYTES} bytes: {pattern!r}")
    if any(word == "" for word in pattern.split(WORD_SEPARATOR)):
        raise ValueError(f"binding pattern has an empty word: {pattern!r}")
    return pattern


def matches_binding(pattern: str, routing_key: str) -> bool:
    """
    Return True if `routing_key` would be routed by `pattern`.

    Runs in O(pattern words x key words): `reachable[i]` records whether
    the pattern words seen so far can consume exactly the first i words.
    """
    words = routing_key.split(WORD_SEPARATOR)
    reachable = [True] + [False] * len(words)

    for token in pattern.split(WORD_SEPARATOR):
        if token == ANY_WORDS:
            seen = False
            for i, ok in enumerate(reachable):
                seen = seen or ok
                reachable[i] = seen
            continue

        step = [False] * len(reachable)
        for i, word in enumerate(words):
            if reachable[i] and (token == SINGLE_WORD or token == word):
                step[i + 1] = True
        reachable = step

    return reachable[-1]


def collapse_wildcards(pattern: str) -> str:
    """Merge runs of `#` words (`#.#` routes exactly like `#`)."""
    collapsed: List[str] = []
    for word in pattern.split(WORD_SEPARATOR):
        if word == ANY_WORDS and collapsed and collapsed[-1] == ANY_WORDS:
            continue
        collapsed.append(word)
    return WORD_SEPARATOR.join(collapsed)


def first_matching(patterns: Iterable[str], routing_key: str) -> Optional[str]:
    """First pattern in `patterns` that routes `routing_key`, if any."""
    for pattern in patterns:
        if matches_binding(pattern, routing_key):
            return pattern
    return None


def normalize_topics(topics: Iterable[str]) -> List[str]:
    """Validate patterns, collapse `#` runs and drop duplicates, keeping order."""
    seen: List[str] = []
    for topic in topics:
        topic = collapse_wildcards(validate_binding_pattern(topic.strip()))
        if topic not in seen:
            seen.append(topic)
    return seen


__all__ = [
    "validate_binding_pattern",
    "matches_binding",
    "collapse_wildcards",
    "first_matching",
    "normalize_topics",
]
