"""Scripted chat model and message helpers for orchestration tests."""

import asyncio
import itertools
from typing import Any, Callable, Dict, List, Optional

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage
from langchain_core.outputs import ChatGeneration, ChatResult
from langchain_core.runnables import RunnableLambda
from pydantic import Field

_ids = itertools.count(1)


class ScriptedChatModel(BaseChatModel):
    """Chat model replaying scripted AIMessages.

    ``responses`` are consumed in order (each entry an AIMessage or a callable
    ``(messages) -> AIMessage``); once exhausted ``respond`` is used when set.
    Every call records the messages it received in ``calls``.
    """

    responses: List[Any] = Field(default_factory=list)
    respond: Optional[Callable[[List[BaseMessage]], AIMessage]] = None
    delay: float = 0.0
    calls: List[List[BaseMessage]] = Field(default_factory=list)
    bound_tools: List[List[str]] = Field(default_factory=list)

    @property
    def _llm_type(self) -> str:
        return "scripted"

    def bind_tools(self, tools, **kwargs):
        self.bound_tools.append([tool.name for tool in tools])
        return self

    def _next(self, messages: List[BaseMessage]) -> AIMessage:
        self.calls.append(list(messages))
        if self.responses:
            response = self.responses.pop(0)
        elif self.respond is not None:
            response = self.respond
        else:
            raise IndexError("no scripted response left")
        if callable(response):
            response = response(messages)
        return response.model_copy(deep=True)

    def _generate(self, messages, stop=None, run_manager=None, **kwargs) -> ChatResult:
        return ChatResult(generations=[ChatGeneration(message=self._next(messages))])

    async def _agenerate(self, messages, stop=None, run_manager=None, **kwargs) -> ChatResult:
        if self.delay:
            await asyncio.sleep(self.delay)
        return ChatResult(generations=[ChatGeneration(message=self._next(messages))])


class StructuredOutputModel:
    """Fact model answering ``with_structured_output`` calls from a schema -> result map.

    Every structured call records ``(schema, prompt)`` in ``requests``.
    """

    def __init__(self, outputs: Dict[type, Any]):
        self.outputs = outputs
        self.requests: List[tuple] = []

    def with_structured_output(self, schema):
        def _answer(prompt):
            self.requests.append((schema, prompt))
            return self.outputs[schema]

        return RunnableLambda(_answer)


def text(content: str, tokens: int = 0) -> AIMessage:
    usage = {"input_tokens": tokens, "output_tokens": 0, "total_tokens": tokens} if tokens else None
    return AIMessage(content=content, usage_metadata=usage)


def call(name: str, args: Optional[dict] = None, call_id: Optional[str] = None) -> dict:
    return {"name": name, "args": args or {}, "id": call_id or f"call_{next(_ids)}", "type": "tool_call"}


def tool_calls(*calls: dict, content: str = "") -> AIMessage:
    return AIMessage(content=content, tool_calls=list(calls))


def handoff_to(target: str, context: Optional[str] = None, reason: Optional[str] = None) -> AIMessage:
    args = {"target_agent": target}
    if context is not None:
        args["context"] = context
    if reason is not None:
        args["reason"] = reason
    return tool_calls(call("handoff_to_agent", args))
