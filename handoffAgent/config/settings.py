"""Environment-bound configuration objects.

Settings are loaded from environment variables and the project ``.env`` file
through Pydantic ``BaseSettings``. Every group accepts its documented
environment names plus the plain field names when constructed in code.

Example:
    from handoffAgent.config.settings import get_settings

    settings = get_settings()  # Cached singleton
    max_total_turns = settings.orchestration.max_total_turns
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal, Optional

from dotenv import load_dotenv
from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


load_dotenv()


_GROUP_CONFIG = SettingsConfigDict(
    env_file=".env",
    env_file_encoding="utf-8",
    extra="ignore",
    populate_by_name=True,
)


class ModelSettings(BaseSettings):
    """Credentials and ids for the string-keyed model slots.

    Agents may reference ``"chat"`` or ``"reason"`` instead of passing a chat
    model instance; the model resolver turns those keys into clients.
    """

    chat: str = Field(default="gpt-4o-mini", validation_alias=AliasChoices("MODEL_CHAT", "MODEL_CHAT_ID"))
    chat_api_key: Optional[str] = Field(default=None, validation_alias=AliasChoices("MODEL_CHAT_API_KEY"))
    chat_base_url: Optional[str] = Field(default=None, validation_alias=AliasChoices("MODEL_CHAT_URL", "MODEL_CHAT_BASE_URL"))

    reason: str = Field(default="gpt-4o", validation_alias=AliasChoices("MODEL_REASON", "MODEL_REASON_ID"))
    reason_api_key: Optional[str] = Field(default=None, validation_alias=AliasChoices("MODEL_REASON_API_KEY"))
    reason_base_url: Optional[str] = Field(default=None, validation_alias=AliasChoices("MODEL_REASON_URL", "MODEL_REASON_BASE_URL"))

    model_config = _GROUP_CONFIG


class OrchestrationSettings(BaseSettings):
    """Turn budgets and failure policies of the orchestrator."""

    max_total_turns: int = Field(default=20, ge=1, le=500, validation_alias=AliasChoices("MAX_TOTAL_TURNS"))
    agent_max_turns: int = Field(default=10, ge=1, le=500, validation_alias=AliasChoices("AGENT_MAX_TURNS"))
    agent_max_steps: int = Field(default=10, ge=1, le=100, validation_alias=AliasChoices("AGENT_MAX_STEPS"))
    run_timeout: Optional[float] = Field(default=None, gt=0, validation_alias=AliasChoices("RUN_TIMEOUT", "RUN_TIMEOUT_SECONDS"))
    routing_strategy: Literal["auto", "llm"] = Field(default="auto", validation_alias=AliasChoices("ROUTING_STRATEGY"))
    parallel_tool_calls: bool = Field(default=True, validation_alias=AliasChoices("PARALLEL_TOOL_CALLS"))
    tool_error_policy: Literal["relay", "raise"] = Field(default="relay", validation_alias=AliasChoices("TOOL_ERROR_POLICY"))
    permission_denied_policy: Literal["relay", "raise"] = Field(
        default="relay", validation_alias=AliasChoices("PERMISSION_DENIED_POLICY")
    )
    structural_handoffs: bool = Field(default=False, validation_alias=AliasChoices("STRUCTURAL_HANDOFFS"))

    model_config = _GROUP_CONFIG


class ContextSettings(BaseSettings):
    """Bounds of the message window handed to each agent."""

    max_context_messages: int = Field(default=20, ge=0, validation_alias=AliasChoices("MAX_CONTEXT_MESSAGES"))
    recent_handoff_findings: int = Field(default=3, ge=0, validation_alias=AliasChoices("RECENT_HANDOFF_FINDINGS"))
    findings_max_length: int = Field(default=500, ge=0, validation_alias=AliasChoices("FINDINGS_MAX_LENGTH"))

    model_config = _GROUP_CONFIG


class StreamingSettings(BaseSettings):
    """Event channel sizing. ``buffer_size=0`` means unbounded."""

    buffer_size: int = Field(default=0, ge=0, validation_alias=AliasChoices("STREAM_BUFFER_SIZE"))

    model_config = _GROUP_CONFIG


class ObservabilitySettings(BaseSettings):
    """Logging configuration."""

    log_level: str = Field(default="INFO", validation_alias=AliasChoices("LOG_LEVEL"))
    log_dir: str = Field(default="logs", validation_alias=AliasChoices("LOG_DIR"))
    log_to_file: bool = Field(default=False, validation_alias=AliasChoices("LOG_TO_FILE"))
    log_prompt_max_length: int = Field(default=500, ge=0, validation_alias=AliasChoices("LOG_PROMPT_MAX_LENGTH"))

    model_config = _GROUP_CONFIG


class Settings(BaseSettings):
    """Root settings composed of the nested groups.

    Use get_settings() to obtain a cached singleton instance.
    """

    environment: str = Field(default="dev", validation_alias=AliasChoices("APP_ENV"))
    models: ModelSettings = Field(default_factory=ModelSettings)
    orchestration: OrchestrationSettings = Field(default_factory=OrchestrationSettings)
    context: ContextSettings = Field(default_factory=ContextSettings)
    streaming: StreamingSettings = Field(default_factory=StreamingSettings)
    observability: ObservabilitySettings = Field(default_factory=ObservabilitySettings)

    model_config = _GROUP_CONFIG


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached singleton Settings instance."""
    return Settings()
