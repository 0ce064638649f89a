"""
OpenAI-compatible LLM provider.

Supports OpenAI and any OpenAI-compatible chat completions endpoint.
SDK exceptions are translated into the bot's error classes; the SDK's
own retry loop is disabled so a throttled request fails straight away.
"""

from __future__ import annotations

import uuid
from typing import Any

import openai
from loguru import logger
from openai import AsyncOpenAI

from ultron.config import SamplingParams
from ultron.errors import AuthenticationError, NetworkError, ProviderError, RateLimited
from ultron.providers.base import LLMProvider, LLMResponse, ToolCall


class OpenAIProvider(LLMProvider):
    """
    LLM provider for OpenAI and compatible APIs.

    Args:
        api_key: API key.
        base_url: API base URL. Defaults to OpenAI's endpoint.
        client: Pre-built ``AsyncOpenAI`` client (overrides key/base_url).
    """

    def __init__(
        self,
        api_key: str = "",
        base_url: str | None = None,
        client: AsyncOpenAI | None = None,
    ) -> None:
        if client is None:
            kwargs: dict[str, Any] = {"api_key": api_key, "max_retries": 0}
            if base_url:
                kwargs["base_url"] = base_url
            client = AsyncOpenAI(**kwargs)

        self._client = client
        logger.debug(f"OpenAIProvider initialized: base_url={base_url or 'default'}")

    async def complete(
        self,
        messages: list[dict[str, Any]],
        model: str,
        params: SamplingParams,
        tools: list[dict[str, Any]] | None = None,
    ) -> LLMResponse:
        """Call the OpenAI chat completions API."""
        kwargs: dict[str, Any] = {
            "model": model,
            "messages": to_openai_messages(messages),
            "temperature": params.temperature,
            "top_p": params.top_p,
            "frequency_penalty": params.frequency_penalty,
            "presence_penalty": params.presence_penalty,
            "max_tokens": params.max_tokens,
        }
        if tools:
            kwargs["tools"] = tools
            kwargs["tool_choice"] = "auto"

        try:
            resp = await self._client.chat.completions.create(**kwargs)
        except openai.AuthenticationError as exc:
            logger.error(f"OpenAI API error: invalid API key ({exc})")
            raise AuthenticationError(str(exc)) from exc
        except openai.RateLimitError as exc:
            logger.warning(f"OpenAI API error: rate limited ({exc})")
            raise RateLimited(str(exc)) from exc
        except openai.APIConnectionError as exc:
            # APITimeoutError is a subclass
            logger.error(f"OpenAI API error: connection failed ({exc})")
            raise NetworkError(str(exc)) from exc
        except openai.OpenAIError as exc:
            logger.error(f"OpenAI API error: {exc}")
            raise ProviderError(str(exc)) from exc

        if not resp.choices:
            raise ProviderError("completion returned no choices")

        choice = resp.choices[0]
        message = choice.message
        finish_reason = choice.finish_reason or "stop"

        parsed_tool_calls: list[ToolCall] = []
        for tc in message.tool_calls or []:
            fn = getattr(tc, "function", None)
            if fn is None:
                continue
            parsed_tool_calls.append(
                ToolCall(
                    call_id=tc.id or str(uuid.uuid4()),
                    name=fn.name,
                    arguments=fn.arguments or "{}",
                )
            )

        usage: dict[str, int] = {}
        if resp.usage:
            usage = {
                "prompt_tokens": resp.usage.prompt_tokens or 0,
                "completion_tokens": resp.usage.completion_tokens or 0,
                "total_tokens": resp.usage.total_tokens or 0,
            }

        logger.debug(
            f"OpenAI response: model={resp.model}, finish={finish_reason}, "
            f"tool_calls={len(parsed_tool_calls)}, usage={usage}"
        )

        return LLMResponse(
            content=message.content,
            tool_calls=parsed_tool_calls,
            finish_reason=finish_reason,
            usage=usage,
            model=resp.model or model,
        )


def to_openai_messages(messages: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Convert provider-agnostic message dicts to the OpenAI wire format."""
    result: list[dict[str, Any]] = []
    for msg in messages:
        role = msg["role"]
        if role == "tool":
            result.append({
                "role": "tool",
                "tool_call_id": msg["call_id"],
                "content": msg.get("content", ""),
            })
        elif role == "assistant" and msg.get("tool_calls"):
            result.append({
                "role": "assistant",
                "content": msg.get("content"),
                "tool_calls": [
                    {
                        "id": tc["call_id"],
                        "type": "function",
                        "function": {"name": tc["name"], "arguments": tc["arguments"]},
                    }
                    for tc in msg["tool_calls"]
                ],
            })
        else:
            result.append({"role": role, "content": msg.get("content") or ""})
    return result
