"""Default model resolver wiring using environment-derived settings.

Agents may name their model by slot key (``"chat"``, ``"reason"``) or by the
configured model id. ``build_model_resolver`` turns those into
``ChatOpenAI`` clients (any OpenAI-compatible endpoint) on demand.

Example:
    >>> resolver = build_model_resolver(resolve_model_configs(get_settings()))
    >>> triage = Agent(name="Triage", model="chat", handoffs=[billing])
"""

from __future__ import annotations

from typing import Callable, Dict, Optional, TypedDict

from langchain_openai import ChatOpenAI

from handoffAgent.agents.interfaces import ModelResolver
from handoffAgent.config.settings import Settings


class ModelConfig(TypedDict):
    id: str
    api_key: Optional[str]
    base_url: Optional[str]


def resolve_model_configs(settings: Settings) -> Dict[str, ModelConfig]:
    """Normalized model configs (id + credentials) keyed by slot."""
    return {
        "chat": {
            "id": settings.models.chat,
            "api_key": settings.models.chat_api_key,
            "base_url": settings.models.chat_base_url,
        },
        "reason": {
            "id": settings.models.reason,
            "api_key": settings.models.reason_api_key,
            "base_url": settings.models.reason_base_url,
        },
    }


def _chat_kwargs(model: str, api_key: Optional[str], base_url: Optional[str]) -> Dict[str, object]:
    if not api_key:
        raise RuntimeError(f"Missing API key for model {model}; configure it in .env")
    kwargs: Dict[str, object] = {"model": model, "api_key": api_key, "temperature": 0.2, "streaming": True}
    if base_url:
        kwargs["base_url"] = base_url
    return kwargs


def build_model_resolver(model_configs: Dict[str, ModelConfig]) -> ModelResolver:
    """Construct a resolver returning ChatOpenAI-compatible clients.

    Clients are created lazily and cached per slot; a model id shares the
    client of the slot configuring it.

    Raises:
        KeyError: The key is neither a slot nor a configured model id
        RuntimeError: The API key for the requested model is missing
    """
    catalog: Dict[str, Callable[[], ChatOpenAI]] = {}
    aliases: Dict[str, str] = {}
    for slot, config in model_configs.items():
        catalog[slot] = lambda cfg=config: ChatOpenAI(**_chat_kwargs(cfg["id"], cfg["api_key"], cfg["base_url"]))
        aliases[slot] = slot
        aliases.setdefault(config["id"], slot)

    cache: Dict[str, ChatOpenAI] = {}

    def resolver(model_id: str):
        slot = aliases.get(model_id)
        if slot is None:
            raise KeyError(f"Model {model_id} is not configured")
        if slot not in cache:
            cache[slot] = catalog[slot]()
        return cache[slot]

    return resolver


__all__ = ["ModelConfig", "build_model_resolver", "resolve_model_configs"]
