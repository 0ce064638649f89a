"""
Per-channel conversation history with a fixed-size sliding window.

- One ordered list of entries per channel id, created on first use
- Appending past ``context_messages`` evicts exactly one entry from the head
- The system prompt is never stored; the agent prepends it per request
- In memory only, lives as long as the process
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from loguru import logger


class Role(str, Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


@dataclass(frozen=True)
class ConversationEntry:
    role: Role
    content: str
    tool_name: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Return the chat-completion message form of this entry."""
        return {"role": self.role.value, "content": self.content}


class ConversationStore:
    """Sliding-window histories keyed by channel id."""

    def __init__(self, context_messages: int = 10) -> None:
        if context_messages < 1:
            raise ValueError("context_messages must be >= 1")
        self.context_messages = context_messages
        self._channels: dict[str, list[ConversationEntry]] = {}

    def _window(self, channel_id: str) -> list[ConversationEntry]:
        if channel_id not in self._channels:
            self._channels[channel_id] = []
            logger.debug(f"[history] New channel history: {channel_id!r}")
        return self._channels[channel_id]

    def get_history(self, channel_id: str) -> list[ConversationEntry]:
        """Return the channel's entries, oldest first (a copy)."""
        return list(self._window(channel_id))

    def append(
        self,
        channel_id: str,
        role: Role | str,
        content: str,
        tool_name: str | None = None,
    ) -> ConversationEntry:
        role = Role(role)
        if role is Role.SYSTEM:
            raise ValueError("system prompt is not stored in channel history")

        entry = ConversationEntry(role=role, content=content, tool_name=tool_name)
        window = self._window(channel_id)
        window.append(entry)

        if len(window) > self.context_messages:
            window.pop(0)

        return entry

    def clear(self, channel_id: str) -> None:
        self._channels.pop(channel_id, None)

    def channel_ids(self) -> list[str]:
        return list(self._channels.keys())

    def __len__(self) -> int:
        return len(self._channels)

    def __repr__(self) -> str:
        return f"ConversationStore(channels={len(self._channels)}, window={self.context_messages})"
