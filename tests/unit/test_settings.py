"""Unit tests for settings loading, logging setup and the default model resolver."""

import logging

import pytest
from langchain_openai import ChatOpenAI
from pydantic import ValidationError

from handoffAgent.config.settings import ModelSettings, ObservabilitySettings, OrchestrationSettings, StreamingSettings
from handoffAgent.runtime.model_resolver import build_model_resolver, resolve_model_configs
from handoffAgent.utils import logging_utils


class TestOrchestrationSettings:
    """Defaults and environment overrides of the orchestrator budgets."""

    def test_defaults(self, monkeypatch):
        for key in ("MAX_TOTAL_TURNS", "AGENT_MAX_TURNS", "ROUTING_STRATEGY", "TOOL_ERROR_POLICY"):
            monkeypatch.delenv(key, raising=False)

        settings = OrchestrationSettings(_env_file=None)

        assert settings.max_total_turns == 20
        assert settings.agent_max_turns == 10
        assert settings.routing_strategy == "auto"
        assert settings.tool_error_policy == "relay"
        assert settings.structural_handoffs is False

    def test_load_from_env(self, monkeypatch):
        monkeypatch.setenv("MAX_TOTAL_TURNS", "5")
        monkeypatch.setenv("PERMISSION_DENIED_POLICY", "raise")
        monkeypatch.setenv("STRUCTURAL_HANDOFFS", "true")

        settings = OrchestrationSettings(_env_file=None)

        assert settings.max_total_turns == 5
        assert settings.permission_denied_policy == "raise"
        assert settings.structural_handoffs is True

    def test_field_names_accepted_in_code(self):
        settings = OrchestrationSettings(_env_file=None, max_total_turns=3, run_timeout=1.5)
        assert settings.max_total_turns == 3
        assert settings.run_timeout == 1.5

    @pytest.mark.parametrize("overrides", [{"max_total_turns": 0}, {"tool_error_policy": "ignore"}, {"run_timeout": 0}])
    def test_invalid_values(self, overrides):
        with pytest.raises(ValidationError):
            OrchestrationSettings(_env_file=None, **overrides)

    def test_stream_buffer_unbounded_by_default(self, monkeypatch):
        monkeypatch.delenv("STREAM_BUFFER_SIZE", raising=False)
        assert StreamingSettings(_env_file=None).buffer_size == 0


class TestModelResolver:
    @staticmethod
    def _configs(monkeypatch, api_key="sk-test"):
        for key in ("MODEL_CHAT", "MODEL_CHAT_API_KEY", "MODEL_REASON", "MODEL_REASON_API_KEY"):
            monkeypatch.delenv(key, raising=False)
        monkeypatch.setenv("MODEL_CHAT", "gpt-4o-mini")
        if api_key:
            monkeypatch.setenv("MODEL_CHAT_API_KEY", api_key)

        class _Settings:
            models = ModelSettings(_env_file=None)

        return resolve_model_configs(_Settings())

    def test_resolves_slot_and_id_to_same_client(self, monkeypatch):
        resolver = build_model_resolver(self._configs(monkeypatch))

        by_slot = resolver("chat")
        assert isinstance(by_slot, ChatOpenAI)
        assert resolver("gpt-4o-mini") is by_slot

    def test_unknown_key(self, monkeypatch):
        resolver = build_model_resolver(self._configs(monkeypatch))
        with pytest.raises(KeyError):
            resolver("claude-unknown")

    def test_missing_api_key(self, monkeypatch):
        resolver = build_model_resolver(self._configs(monkeypatch, api_key=None))
        with pytest.raises(RuntimeError):
            resolver("chat")


class TestObservabilitySettings:
    @pytest.fixture
    def package_logger(self, monkeypatch):
        logger = logging.getLogger(logging_utils.ROOT_LOGGER_NAME)
        monkeypatch.setattr(logger, "handlers", list(logger.handlers))
        monkeypatch.setattr(logger, "propagate", logger.propagate)
        monkeypatch.setattr(logger, "level", logger.level)
        monkeypatch.setattr(logging_utils, "_preview_length", logging_utils._preview_length)
        yield logger
        for handler in logger.handlers:
            handler.close()

    def test_setup_from_settings(self, package_logger, tmp_path):
        settings = ObservabilitySettings(
            _env_file=None, log_level="debug", log_to_file=True, log_dir=str(tmp_path), log_prompt_max_length=10
        )

        logger = logging_utils.setup_logging_from_settings(settings)

        assert logger is package_logger
        assert logger.level == logging.DEBUG
        assert any(isinstance(handler, logging.FileHandler) for handler in logger.handlers)
        assert len(list(tmp_path.glob("handoffagent_*.log"))) == 1
        assert logging_utils._preview("x" * 25) == "x" * 10 + "... (truncated)"

    def test_unknown_level_falls_back_to_info(self, package_logger):
        settings = ObservabilitySettings(_env_file=None, log_level="chatty", log_to_file=False)

        logger = logging_utils.setup_logging_from_settings(settings)

        assert logger.level == logging.INFO
        assert not any(isinstance(handler, logging.FileHandler) for handler in logger.handlers)
