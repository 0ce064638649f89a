"""
Channel package.
"""

from ultron.channels.base import Channel, IncomingMessage, MessageHandler
from ultron.channels.console import ConsoleChannel

__all__ = [
    "Channel",
    "IncomingMessage",
    "MessageHandler",
    "ConsoleChannel",
]
