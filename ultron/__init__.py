"""ultron — a Discord chat bot backed by an OpenAI-compatible model."""

__version__ = "0.1.0"

from ultron.agent import Agent, AgentConfig
from ultron.channels.base import Channel, IncomingMessage
from ultron.config import BotConfig, SamplingParams
from ultron.cooldown import CooldownTracker
from ultron.gateway import Gateway, HandleResult
from ultron.history import ConversationEntry, ConversationStore, Role
from ultron.prices import PriceClient
from ultron.providers.base import LLMProvider, LLMResponse, ToolCall
from ultron.tools import Tool, ToolRegistry, default_registry, get_builtin_tools, tool

__all__ = [
    # Core
    "Agent", "AgentConfig",
    "Gateway", "HandleResult",
    "BotConfig", "SamplingParams",
    # State
    "ConversationStore", "ConversationEntry", "Role",
    "CooldownTracker",
    # Tools
    "Tool", "ToolRegistry", "tool", "get_builtin_tools", "default_registry",
    "PriceClient",
    # Channels
    "Channel", "IncomingMessage",
    # Providers
    "LLMProvider", "LLMResponse", "ToolCall",
]
