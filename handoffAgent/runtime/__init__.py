"""Runner, run records and model resolution."""

from .model_resolver import ModelConfig, build_model_resolver, resolve_model_configs
from .runner import Runner, StreamingRun
from .types import (
    HandoffRecord,
    RunOptions,
    RunResult,
    StepRecord,
    ToolCallRecord,
    Usage,
)

__all__ = [
    "HandoffRecord",
    "ModelConfig",
    "RunOptions",
    "RunResult",
    "Runner",
    "StepRecord",
    "StreamingRun",
    "ToolCallRecord",
    "Usage",
    "build_model_resolver",
    "resolve_model_configs",
]
