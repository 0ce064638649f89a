"""
Gateway — connects channels to the agent.

For every inbound message:
- Filtering: drop bot-authored messages, messages missing the command
  prefix, messages empty after the prefix, and authors on cooldown. Drops
  are silent: no reply, no history change, no cooldown update.
- Typing indicator, then Agent.run() for the channel's history
- Reply to the originating chat, then start the author's cooldown
- Any failure after filtering is caught here and answered with a short
  notice chosen by cause. The cooldown is not set on failure, so the user
  can retry immediately.

Messages are not serialized per chat: two messages in the same chat may
finish (and append to history) in either order.
"""

from __future__ import annotations

import asyncio
from enum import Enum

from loguru import logger

from ultron.agent import Agent
from ultron.channels.base import Channel, IncomingMessage
from ultron.cooldown import CooldownTracker
from ultron.errors import ErrorKind, classify, notice_for


class HandleResult(str, Enum):
    """Where a message's handling ended."""

    IGNORED_BOT = "ignored_bot"
    IGNORED_PREFIX = "ignored_prefix"
    IGNORED_EMPTY = "ignored_empty"
    ON_COOLDOWN = "on_cooldown"
    REPLIED = "replied"
    ERRORED = "errored"


class Gateway:
    """Routes channel messages through filtering, the agent, and back.

    Usage::

        gw = Gateway(agent=agent, cooldowns=CooldownTracker(3), command_prefix="!")
        gw.add_channel(DiscordChannel(token=...))
        await gw.run()
    """

    def __init__(
        self,
        agent: Agent,
        cooldowns: CooldownTracker,
        command_prefix: str = "",
    ) -> None:
        self.agent = agent
        self.cooldowns = cooldowns
        self.command_prefix = command_prefix

        self._channels: dict[str, Channel] = {}

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------

    def add_channel(self, channel: Channel) -> "Gateway":
        """Register a channel. Returns self for chaining."""
        self._channels[channel.name] = channel
        logger.info(f"[gateway] Channel registered: {channel.name!r}")
        return self

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    async def run(self) -> None:
        """Start all channels and block until they stop."""
        if not self._channels:
            raise RuntimeError("No channels registered. Call add_channel() first.")

        tasks = [
            asyncio.create_task(
                channel.start(self.handle),
                name=f"channel:{name}",
            )
            for name, channel in self._channels.items()
        ]
        logger.info(f"[gateway] Started {len(tasks)} channel(s): {list(self._channels.keys())}")

        try:
            await asyncio.gather(*tasks)
        finally:
            await self.stop()

    async def stop(self) -> None:
        """Stop all channels."""
        for channel in self._channels.values():
            try:
                await channel.stop()
            except Exception as exc:
                logger.warning(f"[gateway] Error stopping channel {channel.name!r}: {exc}")

    # ------------------------------------------------------------------
    # Message handling
    # ------------------------------------------------------------------

    def _filter(self, msg: IncomingMessage) -> tuple[HandleResult | None, str]:
        """Return (drop reason, cleaned content). A None reason means accept."""
        if msg.is_bot:
            return HandleResult.IGNORED_BOT, ""

        content = msg.content
        if self.command_prefix:
            if not content.startswith(self.command_prefix):
                return HandleResult.IGNORED_PREFIX, ""
            content = content[len(self.command_prefix):]
        content = content.strip()

        if not content:
            return HandleResult.IGNORED_EMPTY, ""

        if self.cooldowns.is_on_cooldown(msg.author_id):
            logger.debug(f"[gateway] {msg.author_id!r} on cooldown, ignoring")
            return HandleResult.ON_COOLDOWN, ""

        return None, content

    async def handle(self, msg: IncomingMessage) -> HandleResult:
        """Process one inbound message end to end. Never raises."""
        dropped, content = self._filter(msg)
        if dropped is not None:
            return dropped

        channel = self._channels.get(msg.channel)
        if channel is None:
            logger.warning(f"[gateway] Channel {msg.channel!r} not registered, dropping message")
            return HandleResult.ERRORED

        logger.info(f"[gateway] {msg.channel}:{msg.chat_id} [{msg.author_id}]: {content[:80]!r}")

        try:
            await channel.send_typing(msg)
        except Exception as exc:
            logger.debug(f"[gateway] Typing indicator failed: {exc}")

        try:
            reply = await self.agent.run(msg.chat_id, content)
            await channel.reply(msg, reply)
        except Exception as exc:
            await self._report_error(channel, msg, exc)
            return HandleResult.ERRORED

        self.cooldowns.set_cooldown(msg.author_id)
        logger.info(f"[gateway] reply: {reply[:100]!r}")
        return HandleResult.REPLIED

    async def _report_error(self, channel: Channel, msg: IncomingMessage, exc: Exception) -> None:
        kind = classify(exc)
        if kind is ErrorKind.AUTHENTICATION:
            logger.error(f"❌ Invalid completion API key: {exc}")
        elif kind is ErrorKind.UNKNOWN:
            logger.opt(exception=exc).error(f"❌ Error processing message: {exc}")
        else:
            logger.error(f"❌ Error processing message ({kind.value}): {exc}")

        try:
            await channel.reply(msg, notice_for(exc))
        except Exception as send_exc:
            logger.error(f"[gateway] Could not send error notice: {send_exc}")
