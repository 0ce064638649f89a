"""
LLM providers.
"""

from ultron.providers.base import LLMProvider, LLMResponse, ToolCall
from ultron.providers.openai import OpenAIProvider

__all__ = ["LLMProvider", "LLMResponse", "ToolCall", "OpenAIProvider"]
