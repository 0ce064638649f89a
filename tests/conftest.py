from __future__ import annotations

from typing import Any

import pytest

from ultron.agent import Agent, AgentConfig
from ultron.channels.base import Channel, IncomingMessage, MessageHandler
from ultron.config import SamplingParams
from ultron.cooldown import CooldownTracker
from ultron.gateway import Gateway
from ultron.history import ConversationStore
from ultron.providers.base import LLMProvider, LLMResponse
from ultron.tools import ToolRegistry, tool


class FakeProvider(LLMProvider):
    """Returns scripted responses (or raises scripted exceptions) in order."""

    def __init__(self, *responses: LLMResponse | Exception) -> None:
        self.responses = list(responses)
        self.calls: list[dict[str, Any]] = []

    async def complete(
        self,
        messages: list[dict[str, Any]],
        model: str,
        params: SamplingParams,
        tools: list[dict[str, Any]] | None = None,
    ) -> LLMResponse:
        self.calls.append({
            "messages": [dict(m) for m in messages],
            "model": model,
            "params": params,
            "tools": tools,
        })
        if not self.responses:
            raise AssertionError("unexpected completion call")
        result = self.responses.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


class FakeChannel(Channel):
    name = "fake"

    def __init__(self) -> None:
        self.replies: list[tuple[str, str]] = []
        self.typing: list[str] = []

    async def start(self, on_message: MessageHandler) -> None:
        pass

    async def stop(self) -> None:
        pass

    async def reply(self, original: IncomingMessage, text: str) -> None:
        self.replies.append((original.chat_id, text))

    async def send_typing(self, original: IncomingMessage) -> None:
        self.typing.append(original.chat_id)


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_message(
    content: str,
    author_id: str = "user-1",
    chat_id: str = "chan-1",
    is_bot: bool = False,
) -> IncomingMessage:
    return IncomingMessage(
        channel=FakeChannel.name,
        chat_id=chat_id,
        author_id=author_id,
        content=content,
        is_bot=is_bot,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def price_calls() -> list[list[str]]:
    return []


@pytest.fixture
def registry(price_calls: list[list[str]]) -> ToolRegistry:
    """Registry with a stub price tool that records the symbols it was asked for."""

    @tool(name="get_crypto_price")
    async def get_crypto_price(symbols: list[str]) -> dict[str, Any]:
        """Get crypto prices.

        symbols: Ticker symbols.
        """
        price_calls.append(symbols)
        return {s.upper(): {"price": 65000.0, "change_24h": 1.5, "market_cap": 1.2e12} for s in symbols}

    return ToolRegistry([get_crypto_price])


@pytest.fixture
def build(clock: FakeClock, registry: ToolRegistry):
    """Factory: build(provider, prefix=..., context=..., cooldown=...) -> (gateway, channel)."""

    def _build(
        provider: LLMProvider,
        prefix: str = "",
        context: int = 10,
        cooldown: float = 3,
        tools: ToolRegistry | None = None,
    ) -> tuple[Gateway, FakeChannel]:
        agent = Agent(
            provider=provider,
            history=ConversationStore(context),
            tools=tools if tools is not None else registry,
            config=AgentConfig(system_prompt="You are Ultron.", model="test-model"),
        )
        gateway = Gateway(
            agent=agent,
            cooldowns=CooldownTracker(cooldown, clock=clock),
            command_prefix=prefix,
        )
        channel = FakeChannel()
        gateway.add_channel(channel)
        return gateway, channel

    return _build


