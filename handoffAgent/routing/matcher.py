"""Programmatic routing: match a user message against agents' ``match_on`` hints.

Patterns are either a predicate ``(message) -> bool`` or a sequence mixing
literal keywords and compiled regular expressions. Routing by pattern is the
fast path; when nothing matches the caller falls back to LLM triage.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Optional, Pattern, Sequence, Union

from handoffAgent.utils.logging_utils import log_routing_decision

if TYPE_CHECKING:
    from handoffAgent.agents.agent import Agent

LOGGER = logging.getLogger(__name__)

MatchOn = Union[Sequence[Union[str, Pattern[str]]], Callable[[str], bool]]

PREDICATE_SCORE = 10
REGEX_WEIGHT = 2

_DIGITS = re.compile(r"\d+")
_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True)
class MatchResult:
    matched: bool
    score: int


NO_MATCH = MatchResult(matched=False, score=0)


def normalize_text(text: str) -> str:
    """Lower-case, drop digits and collapse whitespace."""
    text = _DIGITS.sub("", text.lower().strip())
    return _WHITESPACE.sub(" ", text).strip()


def match_agent(agent: "Agent", message: str, match_on: Optional[MatchOn] = None) -> MatchResult:
    """Score ``message`` against one agent's patterns.

    Args:
        agent: Candidate agent (used for logging and as the pattern source)
        message: Raw user message
        match_on: Patterns to use instead of ``agent.match_on``

    Returns:
        MatchResult. Keywords score their word count, regexes score 2 each,
        a true predicate scores 10. A predicate that raises is a non-match.
    """
    patterns = match_on if match_on is not None else agent.match_on
    if not patterns:
        return NO_MATCH

    if callable(patterns):
        try:
            result = bool(patterns(message))
        except Exception as e:
            LOGGER.error(f"match_on predicate of {agent.name} raised: {type(e).__name__}: {e}")
            return NO_MATCH
        return MatchResult(matched=result, score=PREDICATE_SCORE if result else 0)

    normalized = normalize_text(message)
    score = 0
    for pattern in patterns:
        if isinstance(pattern, str):
            keyword = normalize_text(pattern)
            # A keyword made only of digits normalizes to "" and matches nothing
            if keyword and keyword in normalized:
                score += len(keyword.split(" "))
        elif isinstance(pattern, re.Pattern):
            if pattern.search(normalized):
                score += REGEX_WEIGHT
        else:
            LOGGER.warning(f"Ignoring unsupported match_on pattern on {agent.name}: {pattern!r}")

    return MatchResult(matched=score > 0, score=score)


def find_best_match(
    agents: Sequence["Agent"],
    message: str,
    get_match_on: Optional[Callable[["Agent"], Optional[MatchOn]]] = None,
) -> Optional["Agent"]:
    """Return the highest-scoring agent, or None when no agent scores above zero.

    Ties go to the agent declared first.

    Example:
        >>> billing = Agent(name="Billing", match_on=["invoice", "refund"])
        >>> support = Agent(name="Support", match_on=[re.compile(r"\\berror\\b")])
        >>> find_best_match([billing, support], "I need a refund").name
        'Billing'
    """
    best: Optional["Agent"] = None
    best_score = 0

    for agent in agents:
        patterns = get_match_on(agent) if get_match_on else agent.match_on
        result = match_agent(agent, message, patterns)
        LOGGER.debug(f"match {agent.name}: score={result.score}")
        if result.matched and result.score > best_score:
            best = agent
            best_score = result.score

    if best is None:
        log_routing_decision(LOGGER, "matcher", "none", "no agent pattern matched")
    else:
        log_routing_decision(LOGGER, "matcher", best.name, f"score={best_score}")
    return best


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
