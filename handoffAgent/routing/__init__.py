"""Pattern based routing of user messages to agents."""

from .matcher import (
    NO_MATCH,
    PREDICATE_SCORE,
    REGEX_WEIGHT,
    MatchOn,
    MatchResult,
    find_best_match,
    match_agent,
    normalize_text,
)

__all__ = [
    "MatchOn",
    "MatchResult",
    "NO_MATCH",
    "PREDICATE_SCORE",
    "REGEX_WEIGHT",
    "find_best_match",
    "match_agent",
    "normalize_text",
]
