"""
Per-user cooldown: a minimum interval between accepted requests.

Expired records are dropped lazily when looked up; there is no sweeper.
"""

from __future__ import annotations

import time
from typing import Callable

from loguru import logger


class CooldownTracker:
    """Maps user id -> timestamp of the last accepted request."""

    def __init__(
        self,
        cooldown_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if cooldown_seconds < 0:
            raise ValueError("cooldown_seconds must be >= 0")
        self.cooldown_seconds = cooldown_seconds
        self._clock = clock
        self._last_seen: dict[str, float] = {}

    def is_on_cooldown(self, user_id: str) -> bool:
        last = self._last_seen.get(user_id)
        if last is None:
            return False

        if self._clock() - last < self.cooldown_seconds:
            return True

        del self._last_seen[user_id]
        return False

    def set_cooldown(self, user_id: str) -> None:
        self._last_seen[user_id] = self._clock()
        logger.debug(f"[cooldown] {user_id!r} cooling down for {self.cooldown_seconds}s")

    def __contains__(self, user_id: str) -> bool:
        return user_id in self._last_seen

    def __len__(self) -> int:
        return len(self._last_seen)
