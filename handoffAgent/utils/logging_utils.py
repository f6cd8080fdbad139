"""Logging utilities for handoffAgent."""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

ROOT_LOGGER_NAME = "handoffAgent"

# Length of argument/result previews in debug logs, set from ObservabilitySettings
_preview_length = 500


def setup_logging(
    level: int = logging.INFO,
    log_dir: Optional[str] = None,
    console_level: int = logging.WARNING,
) -> logging.Logger:
    """Setup logging configuration for handoffAgent.

    Args:
        level: Level of the file handler (and of the package logger)
        log_dir: Directory for the session log file; no file handler when None
        console_level: Level of the console handler

    Returns:
        Configured package logger
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(min(level, console_level))
    logger.propagate = False

    # Clear existing handlers
    logger.handlers = []

    if log_dir:
        logs_path = Path(log_dir)
        logs_path.mkdir(parents=True, exist_ok=True)
        log_file = logs_path / f"handoffagent_{datetime.now().strftime('%Y%m%d_%H%M%S')}.log"

        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        logger.addHandler(file_handler)
        logger.info(f"Log file: {log_file}")

    console_handler = logging.StreamHandler()
    console_handler.setLevel(console_level)
    console_handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
    logger.addHandler(console_handler)

    return logger


def setup_logging_from_settings(settings) -> logging.Logger:
    """Configure logging from an ``ObservabilitySettings`` group.

    Also applies ``log_prompt_max_length`` to the tool argument/result previews.
    """
    global _preview_length
    _preview_length = settings.log_prompt_max_length

    level = logging.getLevelName(settings.log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO
    return setup_logging(level=level, log_dir=settings.log_dir if settings.log_to_file else None)


def _preview(value: Any, max_length: Optional[int] = None) -> str:
    if max_length is None:
        max_length = _preview_length
    text = value if isinstance(value, str) else str(value)
    if len(text) > max_length:
        return text[:max_length] + "... (truncated)"
    return text


def log_tool_call(logger: logging.Logger, agent_name: str, tool_name: str, args: Dict[str, Any]) -> None:
    """Log tool invocation."""
    logger.info(f"[{agent_name}] Tool call: {tool_name}")
    try:
        logger.debug(f"  Arguments: {_preview(json.dumps(args, ensure_ascii=False, default=str))}")
    except (TypeError, ValueError):
        logger.debug(f"  Arguments: {args!r}")


def log_tool_result(logger: logging.Logger, agent_name: str, tool_name: str, result: Any, success: bool = True) -> None:
    """Log tool execution result (preview truncated to 500 chars)."""
    status = "success" if success else "failed"
    logger.info(f"[{agent_name}] Tool result: {tool_name} - {status}")
    logger.debug(f"  Result: {_preview(result)}")


def log_routing_decision(logger: logging.Logger, from_node: str, decision: str, reason: str = "") -> None:
    """Log a routing decision between graph nodes or agents."""
    logger.info(f"Routing: {from_node} -> {decision}")
    if reason:
        logger.debug(f"  Reason: {reason}")


def log_handoff(
    logger: logging.Logger,
    from_agent: str,
    to_agent: str,
    reason: Optional[str] = None,
    context: Optional[str] = None,
) -> None:
    """Log a control transfer between agents."""
    logger.info(f"Handoff: {from_agent} -> {to_agent}")
    if reason:
        logger.debug(f"  Reason: {reason}")
    if context:
        logger.debug(f"  Context: {_preview(context, 200)}")


def log_turn_start(logger: logging.Logger, agent_name: str, turn: int, max_turns: int) -> None:
    """Log the start of one agent turn."""
    logger.info(f"Turn {turn}/{max_turns}: agent={agent_name}")


def log_error(logger: logging.Logger, error: BaseException, context: str = "") -> None:
    """Log error with context."""
    logger.error(f"Error occurred: {type(error).__name__}: {error}")
    if context:
        logger.error(f"  Context: {context}")
    logger.debug("Full traceback:", exc_info=error)
