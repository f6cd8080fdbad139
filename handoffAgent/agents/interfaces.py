"""Interfaces for agent model dependencies."""

from __future__ import annotations

from typing import Protocol


class ModelResolver(Protocol):
    """Callable that turns a model key (e.g. ``"chat"``) into a LangChain chat model."""

    def __call__(self, model_id: str):
        ...
