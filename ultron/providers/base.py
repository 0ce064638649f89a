"""
LLM Provider base interface.

Providers normalize a chat-completion API into a single interface.
The agent only talks to providers via this interface.

Message dicts passed to ``complete`` use this shape:

    {"role": "system" | "user" | "assistant", "content": str}
    {"role": "assistant", "content": str | None,
     "tool_calls": [{"call_id": str, "name": str, "arguments": str}]}
    {"role": "tool", "call_id": str, "name": str, "content": str}
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from ultron.config import SamplingParams


@dataclass
class ToolCall:
    call_id: str
    name: str
    arguments: str                  # Raw JSON text, as the model produced it

    def to_dict(self) -> dict[str, Any]:
        return {"call_id": self.call_id, "name": self.name, "arguments": self.arguments}


@dataclass
class LLMResponse:
    content: str | None
    tool_calls: list[ToolCall] = field(default_factory=list)
    finish_reason: str = "stop"
    usage: dict[str, int] = field(default_factory=dict)
    model: str = ""

    @property
    def has_tool_calls(self) -> bool:
        return bool(self.tool_calls)


class LLMProvider(ABC):
    """Abstract LLM provider."""

    @abstractmethod
    async def complete(
        self,
        messages: list[dict[str, Any]],
        model: str,
        params: SamplingParams,
        tools: list[dict[str, Any]] | None = None,
    ) -> LLMResponse:
        """Send a chat completion request.

        Raises:
            AuthenticationError, RateLimited, NetworkError, ProviderError
        """
        ...
