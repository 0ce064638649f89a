"""
Discord channel — gateway connection via discord.py.

Features:
- Receives guild and DM text messages (message content intent required)
- Each message event runs as its own task (discord.py dispatch)
- Typing indicator while the agent works
- Replies longer than Discord's 2000-character limit are split

Setup:
1. Create an application at https://discord.com/developers/applications
2. Add a bot user and enable the "Message Content" privileged intent
3. Invite the bot with the "Send Messages" and "Read Message History" permissions

Environment variables:
    BOT_TOKEN  — Bot token from the developer portal
"""

from __future__ import annotations

from typing import Any

import discord
from loguru import logger

from ultron.channels.base import Channel, IncomingMessage, MessageHandler

MESSAGE_LIMIT = 2000


def split_message(text: str, limit: int = MESSAGE_LIMIT) -> list[str]:
    """Split text into chunks of at most ``limit`` characters.

    Cuts at the last newline, then the last space, before the limit; falls
    back to a hard cut for unbroken runs.
    """
    chunks: list[str] = []
    rest = text
    while len(rest) > limit:
        cut = rest.rfind("\n", 0, limit)
        if cut <= 0:
            cut = rest.rfind(" ", 0, limit)
        if cut <= 0:
            cut = limit
        chunks.append(rest[:cut])
        rest = rest[cut:].lstrip("\n ")
    if rest or not chunks:
        chunks.append(rest)
    return chunks


class DiscordChannel(Channel):
    """Discord bot channel."""

    name = "discord"

    def __init__(self, token: str) -> None:
        self.token = token

        intents = discord.Intents.none()
        intents.guilds = True
        intents.guild_messages = True
        intents.dm_messages = True
        intents.message_content = True
        self.client = discord.Client(intents=intents)

        self._handler: MessageHandler | None = None
        self._register_events()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self, on_message: MessageHandler) -> None:
        """Log in and listen until the connection is closed.

        Raises:
            discord.LoginFailure: the token was rejected.
        """
        self._handler = on_message
        logger.info("[discord] Connecting to gateway")
        async with self.client:
            await self.client.start(self.token)

    async def stop(self) -> None:
        if not self.client.is_closed():
            try:
                await self.client.close()
            except Exception as exc:
                logger.warning(f"[discord] Stop error: {exc}")

    # ------------------------------------------------------------------
    # Receive
    # ------------------------------------------------------------------

    def _register_events(self) -> None:
        client = self.client

        @client.event
        async def on_ready() -> None:
            logger.info(f"✅ Logged in as {client.user}")

        @client.event
        async def on_message(message: discord.Message) -> None:
            await self._handle_event(message)

        @client.event
        async def on_error(event: str, *args: Any, **kwargs: Any) -> None:
            logger.exception(f"[discord] Client error in {event}")

    async def _handle_event(self, message: discord.Message) -> None:
        if not self._handler:
            return

        incoming = IncomingMessage(
            channel=self.name,
            chat_id=str(message.channel.id),
            author_id=str(message.author.id),
            content=message.content or "",
            is_bot=message.author.bot,
            message_id=str(message.id),
            raw=message,
        )
        await self._handler(incoming)

    # ------------------------------------------------------------------
    # Send
    # ------------------------------------------------------------------

    async def send_typing(self, original: IncomingMessage) -> None:
        target = self._resolve_channel(original)
        if target is not None:
            await target.typing()

    async def reply(self, original: IncomingMessage, text: str) -> None:
        chunks = split_message(text)
        message = original.raw

        if isinstance(message, discord.Message):
            await message.reply(chunks[0])
            target: Any = message.channel
            rest = chunks[1:]
        else:
            target = self._resolve_channel(original)
            rest = chunks

        if target is None:
            logger.warning(f"[discord] Channel {original.chat_id!r} not found for reply")
            return
        for chunk in rest:
            await target.send(chunk)

    def _resolve_channel(self, original: IncomingMessage) -> Any:
        if isinstance(original.raw, discord.Message):
            return original.raw.channel
        try:
            return self.client.get_channel(int(original.chat_id))
        except ValueError:
            return None
