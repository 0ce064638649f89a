"""
Agent core: one request/response turn against the completion endpoint.

Flow for each user message:
- append the user turn to the channel history
- request = [system prompt] + history, tools offered with tool_choice=auto
- if the model asks for a tool: run it, feed the result back as a tool
  turn, and ask again *without* tools so the second answer is prose
- append the final answer to the history and return it

At most one tool round-trip happens per message. The assistant tool-call
turn and the tool result only live in the outbound request; the channel
history keeps user/assistant text only.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

from loguru import logger

from ultron.config import SamplingParams
from ultron.history import ConversationStore, Role
from ultron.providers.base import LLMProvider, LLMResponse, ToolCall
from ultron.tools import ToolRegistry


# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

@dataclass
class AgentConfig:
    """Agent configuration."""

    system_prompt: str = "You are a helpful assistant."
    model: str = "gpt-4o-mini"
    sampling: SamplingParams = field(default_factory=SamplingParams)

    # Used when the final completion comes back without any text
    empty_reply: str = "I'm not sure how to respond to that."


# ---------------------------------------------------------------------------
# Agent
# ---------------------------------------------------------------------------

class Agent:
    """Builds completion requests from channel history and runs the tool round-trip.

    Usage::

        agent = Agent(provider=OpenAIProvider(api_key="..."), history=ConversationStore(10))
        reply = await agent.run("channel-1", "Hello!")
    """

    def __init__(
        self,
        provider: LLMProvider,
        history: ConversationStore,
        tools: ToolRegistry | None = None,
        config: AgentConfig | None = None,
    ) -> None:
        self.provider = provider
        self.history = history
        self.tools = tools or ToolRegistry()
        self.config = config or AgentConfig()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def run(self, channel_id: str, user_message: str) -> str:
        """Process a user message and return the final reply.

        The user turn is stored before the first completion call, so it stays
        in the history even if the call fails. The assistant turn is stored
        only on success.

        Raises:
            ProviderError: the completion endpoint failed.
            ToolError: the requested tool could not be dispatched or failed.
        """
        self.history.append(channel_id, Role.USER, user_message)
        messages = self.build_messages(channel_id)

        tool_schemas = self.tools.schemas()
        response = await self._complete(messages, tools=tool_schemas or None)

        if response.has_tool_calls:
            messages.extend(await self._run_tool_round(response))
            response = await self._complete(messages, tools=None)

        reply = (response.content or "").strip()
        if not reply:
            logger.warning(f"[agent] Empty completion for channel {channel_id!r}")
            reply = self.config.empty_reply

        self.history.append(channel_id, Role.ASSISTANT, reply)
        return reply

    def build_messages(self, channel_id: str) -> list[dict[str, Any]]:
        """Return ``[system prompt] + channel history`` as provider message dicts."""
        messages: list[dict[str, Any]] = [
            {"role": Role.SYSTEM.value, "content": self.config.system_prompt},
        ]
        messages.extend(entry.to_dict() for entry in self.history.get_history(channel_id))
        return messages

    # ------------------------------------------------------------------
    # Completion
    # ------------------------------------------------------------------

    async def _complete(
        self,
        messages: list[dict[str, Any]],
        tools: list[dict[str, Any]] | None,
    ) -> LLMResponse:
        logger.debug(
            f"[agent] Completion: {len(messages)} messages, "
            f"tools={'offered' if tools else 'none'}"
        )
        return await self.provider.complete(
            messages=messages,
            model=self.config.model,
            params=self.config.sampling,
            tools=tools,
        )

    # ------------------------------------------------------------------
    # Tool round-trip
    # ------------------------------------------------------------------

    async def _run_tool_round(self, response: LLMResponse) -> list[dict[str, Any]]:
        """Execute the first requested tool and return the turns to append.

        Every call in the assistant turn needs a matching tool turn, so any
        extra calls are answered with a "not executed" result.
        """
        first, *extra = response.tool_calls
        result = await self._execute_one(first)

        turns: list[dict[str, Any]] = [
            {
                "role": Role.ASSISTANT.value,
                "content": response.content,
                "tool_calls": [tc.to_dict() for tc in response.tool_calls],
            },
            {
                "role": Role.TOOL.value,
                "call_id": first.call_id,
                "name": first.name,
                "content": result,
            },
        ]
        for tc in extra:
            logger.warning(f"[agent] Ignoring extra tool call {tc.name!r}; one per message")
            turns.append({
                "role": Role.TOOL.value,
                "call_id": tc.call_id,
                "name": tc.name,
                "content": json.dumps({"error": "not executed: one tool call per message"}),
            })
        return turns

    async def _execute_one(self, tc: ToolCall) -> str:
        """Dispatch a single tool call and serialize its result as JSON."""
        result = await self.tools.dispatch(tc.name, tc.arguments)
        content = result if isinstance(result, str) else json.dumps(result, ensure_ascii=False)
        logger.debug(f"Tool result [{tc.call_id[:8]}]: {content[:200]}")
        return content
