"""Unit tests for pattern routing (match_agent / find_best_match)."""

import re

import pytest

from handoffAgent.agents import Agent
from handoffAgent.routing import NO_MATCH, PREDICATE_SCORE, REGEX_WEIGHT, find_best_match, match_agent, normalize_text


class TestNormalize:
    def test_lowercases_strips_digits_and_collapses_whitespace(self):
        assert normalize_text("  What   IS 2+2\n now ") == "what is + now"


class TestMatchAgent:
    def test_keyword_scores_word_count(self):
        agent = Agent(name="Billing", match_on=["refund", "credit card"])
        result = match_agent(agent, "My CREDIT   card refund please")
        assert result.matched is True
        assert result.score == 1 + 2

    def test_regex_scores_fixed_weight(self):
        agent = Agent(name="Support", match_on=[re.compile(r"\berror\b")])
        assert match_agent(agent, "I get an error").score == REGEX_WEIGHT

    def test_regex_runs_on_normalized_text(self):
        agent = Agent(name="Support", match_on=[re.compile(r"error code")])
        assert match_agent(agent, "ERROR 404 code").matched is True

    def test_true_predicate_scores_fixed(self):
        agent = Agent(name="Any", match_on=lambda message: "?" in message)
        assert match_agent(agent, "why?").score == PREDICATE_SCORE
        assert match_agent(agent, "hello") == NO_MATCH

    def test_raising_predicate_is_no_match(self):
        def boom(message):
            raise RuntimeError("bad predicate")

        agent = Agent(name="Broken", match_on=boom)
        assert match_agent(agent, "anything") == NO_MATCH

    def test_digit_only_keyword_matches_nothing(self):
        agent = Agent(name="Numbers", match_on=["42"])
        assert match_agent(agent, "the answer is 42") == NO_MATCH

    def test_no_patterns(self):
        assert match_agent(Agent(name="Plain"), "anything") == NO_MATCH


class TestFindBestMatch:
    def test_highest_score_wins(self):
        billing = Agent(name="Billing", match_on=["invoice"])
        payments = Agent(name="Payments", match_on=["invoice", "late payment"])
        assert find_best_match([billing, payments], "late payment on my invoice") is payments

    def test_ties_go_to_first_declared(self):
        first = Agent(name="First", match_on=["order"])
        second = Agent(name="Second", match_on=["order"])
        assert find_best_match([first, second], "where is my order") is first
        assert find_best_match([second, first], "where is my order") is second

    def test_none_when_nothing_scores(self):
        agents = [Agent(name="A", match_on=["alpha"]), Agent(name="B", match_on=["beta"])]
        assert find_best_match(agents, "gamma") is None

    def test_throwing_predicate_does_not_block_keyword_match(self):
        def boom(message):
            raise ValueError("cannot evaluate")

        flaky = Agent(name="Flaky", match_on=boom)
        history = Agent(name="History", match_on=["war", "wwii"])
        assert find_best_match([flaky, history], "When did WWII end?") is history

    @pytest.mark.parametrize("message", ["x", "refund", "credit card refund", "error"])
    def test_never_returns_non_positive_score(self, message):
        agents = [
            Agent(name="Zero", match_on=lambda m: False),
            Agent(name="Billing", match_on=["refund", "credit card"]),
        ]
        best = find_best_match(agents, message)
        if best is not None:
            assert match_agent(best, message).score > 0
