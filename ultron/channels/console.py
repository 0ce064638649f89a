"""
Console channel for local testing.

Reads lines from stdin and prints replies to stdout. Every line is one
message from the same local user in the same chat.
"""

from __future__ import annotations

import asyncio
import sys

from loguru import logger

from ultron.channels.base import Channel, IncomingMessage, MessageHandler


class ConsoleChannel(Channel):
    """
    Simple console channel for trying the bot without Discord.

    Usage::

        channel = ConsoleChannel()
        await channel.start(gateway.handle)
    """

    name = "console"

    def __init__(
        self,
        prompt: str = "You: ",
        bot_name: str = "Ultron",
        chat_id: str = "console",
        user_id: str = "local",
    ) -> None:
        self.prompt = prompt
        self.bot_name = bot_name
        self.chat_id = chat_id
        self.user_id = user_id
        self._running = False
        self._msg_counter = 0

    async def reply(self, original: IncomingMessage, text: str) -> None:
        print(f"\n{self.bot_name}: {text}\n")

    async def send_typing(self, original: IncomingMessage) -> None:
        print(f"[{self.bot_name} is typing...]")

    async def start(self, on_message: MessageHandler) -> None:
        """Read from stdin until EOF or Ctrl+C."""
        self._running = True
        print("[ultron console] Type your message and press Enter. Ctrl+D to quit.\n")

        loop = asyncio.get_running_loop()

        while self._running:
            # Read input in a thread so we don't block the event loop
            line = await loop.run_in_executor(None, self._read_line)
            if not line:
                # EOF
                break
            text = line.rstrip("\n")
            if not text.strip():
                continue

            self._msg_counter += 1
            msg = IncomingMessage(
                channel=self.name,
                chat_id=self.chat_id,
                author_id=self.user_id,
                content=text,
                message_id=f"console_{self._msg_counter}",
            )
            await on_message(msg)

        self._running = False
        logger.debug("[console] Input closed")

    def _read_line(self) -> str:
        """Read a line from stdin (blocking). Returns "" on EOF."""
        sys.stdout.write(self.prompt)
        sys.stdout.flush()
        return sys.stdin.readline()

    async def stop(self) -> None:
        self._running = False
        logger.debug("[console] Stopped")
