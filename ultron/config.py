"""
Bot configuration, read from environment variables (.env file or system env).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Mapping

from loguru import logger

from ultron.errors import ConfigError

DEFAULT_SYSTEM_PROMPT = (
    "You are Ultron, a helpful and friendly AI assistant in a Discord server. "
    "Be concise, engaging, and helpful in your responses."
)
DEFAULT_PRICE_API_URL = "https://api.coingecko.com/api/v3"


@dataclass
class SamplingParams:
    """Fixed sampling parameters sent with every completion request."""

    temperature: float = 0.7
    top_p: float = 1.0
    frequency_penalty: float = 0.5
    presence_penalty: float = 0.0
    max_tokens: int = 500


@dataclass
class BotConfig:
    """Everything the bot needs at startup."""

    # Credentials
    bot_token: str = ""
    openai_api_key: str = ""
    openai_base_url: str = ""

    # Behaviour
    command_prefix: str = ""        # Empty = respond to every message
    model: str = "gpt-4o-mini"
    max_tokens: int = 500
    system_prompt: str = DEFAULT_SYSTEM_PROMPT
    context_messages: int = 10      # Sliding-window size per channel
    cooldown_seconds: int = 3       # 0 disables the cooldown

    # Price source
    price_api_url: str = DEFAULT_PRICE_API_URL

    # Logging
    log_level: str = "INFO"
    log_file: str = ""

    sampling: SamplingParams = field(default_factory=SamplingParams)

    def __post_init__(self) -> None:
        self.sampling.max_tokens = self.max_tokens

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "BotConfig":
        """Build a config from ``env`` (defaults to ``os.environ``).

        Integer settings that are missing, unparsable or below their minimum
        fall back to their defaults.
        """
        env = os.environ if env is None else env
        defaults = cls()

        def _str(key: str, default: str) -> str:
            return env.get(key, "").strip() or default

        def _int(key: str, default: int, minimum: int = 1) -> int:
            raw = env.get(key, "").strip()
            if not raw:
                return default
            try:
                value = int(raw)
            except ValueError:
                logger.warning(f"[config] {key}={raw!r} is not an integer, using {default}")
                return default
            if value < minimum:
                logger.warning(f"[config] {key}={raw!r} must be >= {minimum}, using {default}")
                return default
            return value

        return cls(
            bot_token=_str("BOT_TOKEN", ""),
            openai_api_key=_str("OPENAI_API_KEY", ""),
            openai_base_url=_str("OPENAI_BASE_URL", ""),
            # The prefix is taken verbatim: a space may be part of it
            command_prefix=env.get("COMMAND_PREFIX", ""),
            model=_str("OPENAI_MODEL", defaults.model),
            max_tokens=_int("MAX_TOKENS", defaults.max_tokens),
            system_prompt=_str("SYSTEM_PROMPT", defaults.system_prompt),
            context_messages=_int("CONTEXT_MESSAGES", defaults.context_messages),
            cooldown_seconds=_int("COOLDOWN_SECONDS", defaults.cooldown_seconds, minimum=0),
            price_api_url=_str("PRICE_API_URL", defaults.price_api_url),
            log_level=_str("LOG_LEVEL", defaults.log_level).upper(),
            log_file=_str("LOG_FILE", ""),
        )

    def require(self, *fields: str) -> None:
        """Raise ConfigError if any of the named fields is empty."""
        missing = [name for name in fields if not getattr(self, name)]
        if missing:
            names = ", ".join(_ENV_NAMES.get(name, name) for name in missing)
            raise ConfigError(f"{names} is not set. Copy .env.example to .env and fill in values.")


_ENV_NAMES = {
    "bot_token": "BOT_TOKEN",
    "openai_api_key": "OPENAI_API_KEY",
}
