"""
Abstract base classes for channels.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable


@dataclass
class IncomingMessage:
    """A message received from a channel."""

    channel: str                      # Channel name, e.g. "discord", "console"
    chat_id: str                      # Platform channel id; keys the history
    author_id: str                    # Sender user id; keys the cooldown
    content: str                      # Plain text content
    is_bot: bool = False              # Authored by a bot account
    message_id: str = ""              # Platform message id
    raw: Any = None                   # Raw platform message object
    metadata: dict[str, Any] = field(default_factory=dict)


# Handler type: async function that receives an IncomingMessage
MessageHandler = Callable[[IncomingMessage], Awaitable[Any]]


class Channel(ABC):
    """Abstract base class for message channels."""

    name: str = "base"

    @abstractmethod
    async def start(self, on_message: MessageHandler) -> None:
        """Connect and deliver every incoming message to ``on_message``."""
        ...

    @abstractmethod
    async def stop(self) -> None:
        """Stop the channel gracefully."""
        ...

    @abstractmethod
    async def reply(self, original: IncomingMessage, text: str) -> None:
        """Send ``text`` back to the chat ``original`` came from."""
        ...

    async def send_typing(self, original: IncomingMessage) -> None:
        """Show a typing indicator in the chat (optional, no-op by default)."""
        pass
