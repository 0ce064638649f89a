"""
Error taxonomy and user-facing notices.

Provider errors come from the completion endpoint, tool errors from the
dispatcher. The gateway catches everything at the top of the per-message
handler and turns it into one short notice via ``notice_for``.
"""

from __future__ import annotations

from enum import Enum


class UltronError(Exception):
    """Base class for all bot errors."""


class ConfigError(UltronError):
    """Missing or invalid startup configuration."""


# ---------------------------------------------------------------------------
# Completion endpoint
# ---------------------------------------------------------------------------

class ProviderError(UltronError):
    """The completion endpoint failed."""


class AuthenticationError(ProviderError):
    """Invalid credential for the completion endpoint (401)."""


class RateLimited(ProviderError):
    """The completion endpoint throttled the request (429)."""


class NetworkError(ProviderError):
    """DNS, connection or timeout failure talking to the endpoint."""


# ---------------------------------------------------------------------------
# Tools
# ---------------------------------------------------------------------------

class ToolError(UltronError):
    """A tool could not be dispatched or failed while running."""


class UnknownTool(ToolError):
    def __init__(self, name: str) -> None:
        super().__init__(f"unknown tool {name!r}")
        self.name = name


class InvalidArguments(ToolError):
    def __init__(self, name: str, problems: list[str]) -> None:
        super().__init__(f"invalid arguments for {name!r}: {'; '.join(problems)}")
        self.name = name
        self.problems = problems


class ExternalLookupError(ToolError):
    """The external data source returned an error or was unreachable."""


# ---------------------------------------------------------------------------
# Notices
# ---------------------------------------------------------------------------

class ErrorKind(str, Enum):
    AUTHENTICATION = "authentication"
    RATE_LIMITED = "rate_limited"
    NETWORK = "network"
    TOOL = "tool"
    UNKNOWN = "unknown"


_NOTICES: dict[ErrorKind, str] = {
    ErrorKind.AUTHENTICATION: "⚠️ Authentication error. Please contact the bot operator.",
    ErrorKind.RATE_LIMITED: "⚠️ Rate limit reached. Please try again in a moment.",
    ErrorKind.NETWORK: "⚠️ Network error. Please try again later.",
    ErrorKind.TOOL: "⚠️ Sorry, I encountered an error processing your message. Please try again.",
    ErrorKind.UNKNOWN: "⚠️ Sorry, I encountered an error processing your message. Please try again.",
}


def classify(exc: BaseException) -> ErrorKind:
    if isinstance(exc, AuthenticationError):
        return ErrorKind.AUTHENTICATION
    if isinstance(exc, RateLimited):
        return ErrorKind.RATE_LIMITED
    if isinstance(exc, NetworkError):
        return ErrorKind.NETWORK
    if isinstance(exc, ToolError):
        return ErrorKind.TOOL
    return ErrorKind.UNKNOWN


def notice_for(exc: BaseException) -> str:
    """Return the short user-facing notice for a failure."""
    return _NOTICES[classify(exc)]
