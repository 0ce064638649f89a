"""
ultron entry point.

Usage:
    ultron                  # Connect to Discord (BOT_TOKEN, OPENAI_API_KEY from env/.env)
    ultron --console        # Chat from the terminal instead of Discord
    ultron --help
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from loguru import logger

from ultron import __version__
from ultron.agent import Agent, AgentConfig
from ultron.channels.base import Channel
from ultron.config import BotConfig
from ultron.cooldown import CooldownTracker
from ultron.errors import ConfigError
from ultron.gateway import Gateway
from ultron.history import ConversationStore
from ultron.prices import PriceClient
from ultron.providers.openai import OpenAIProvider
from ultron.tools import default_registry


def configure_logging(level: str = "INFO", log_file: str = "") -> None:
    """Replace loguru's default sink with the bot's stderr (and optional file) sinks."""
    logger.remove()
    logger.add(
        sys.stderr,
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | {message}",
        level=level,
    )
    if log_file:
        logger.add(
            Path(log_file).expanduser(),
            rotation="10 MB",
            retention="7 days",
            level="DEBUG",
        )


def build_gateway(config: BotConfig, channel: Channel) -> Gateway:
    """Wire provider, tools, history, cooldowns and the channel together."""
    provider = OpenAIProvider(
        api_key=config.openai_api_key,
        base_url=config.openai_base_url or None,
    )
    tools = default_registry(PriceClient(base_url=config.price_api_url))
    agent = Agent(
        provider=provider,
        history=ConversationStore(config.context_messages),
        tools=tools,
        config=AgentConfig(
            system_prompt=config.system_prompt,
            model=config.model,
            sampling=config.sampling,
        ),
    )
    gateway = Gateway(
        agent=agent,
        cooldowns=CooldownTracker(config.cooldown_seconds),
        command_prefix=config.command_prefix,
    )
    gateway.add_channel(channel)
    return gateway


def _log_loop_exception(loop: asyncio.AbstractEventLoop, context: dict[str, Any]) -> None:
    exc = context.get("exception")
    message = context.get("message", "Unhandled exception in event loop")
    if exc is not None:
        logger.opt(exception=exc).error(f"❌ Unhandled async error: {message}")
    else:
        logger.error(f"❌ Unhandled async error: {message}")


async def _run(config: BotConfig, console: bool) -> None:
    asyncio.get_running_loop().set_exception_handler(_log_loop_exception)

    if console:
        from ultron.channels.console import ConsoleChannel
        channel: Channel = ConsoleChannel()
    else:
        from ultron.channels.discord import DiscordChannel
        channel = DiscordChannel(token=config.bot_token)

    gateway = build_gateway(config, channel)

    logger.info(f"📝 Command prefix: {config.command_prefix or '(responds to all messages)'}")
    logger.info(f"🤖 Using model: {config.model}")
    logger.info(f"💬 Context messages: {config.context_messages}")

    await gateway.run()


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="ultron",
        description="ultron - Discord chat bot backed by an OpenAI-compatible model",
    )
    parser.add_argument(
        "--console",
        action="store_true",
        help="Chat from the terminal instead of connecting to Discord",
    )
    parser.add_argument(
        "--log-level",
        default="",
        help="Log level override (default: LOG_LEVEL or INFO)",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"ultron {__version__}",
    )
    args = parser.parse_args(argv)

    # Load .env from current directory or parent
    load_dotenv()
    config = BotConfig.from_env()
    configure_logging(args.log_level.upper() or config.log_level, config.log_file)

    try:
        config.require("openai_api_key")
        if not args.console:
            config.require("bot_token")
    except ConfigError as exc:
        logger.error(f"❌ {exc}")
        sys.exit(1)

    try:
        asyncio.run(_run(config, console=args.console))
    except KeyboardInterrupt:
        logger.info("Bye!")
    except Exception as exc:
        # Login failure (discord.LoginFailure) and anything else that kills the channel
        logger.opt(exception=exc).error(f"❌ Failed to run bot: {exc}")
        sys.exit(1)


if __name__ == "__main__":
    main()
