import pytest

from ultron.errors import (
    AuthenticationError,
    ErrorKind,
    ExternalLookupError,
    InvalidArguments,
    NetworkError,
    RateLimited,
    UnknownTool,
    classify,
    notice_for,
)


@pytest.mark.parametrize(
    "exc, kind",
    [
        (AuthenticationError("401"), ErrorKind.AUTHENTICATION),
        (RateLimited("429"), ErrorKind.RATE_LIMITED),
        (NetworkError("timeout"), ErrorKind.NETWORK),
        (UnknownTool("x"), ErrorKind.TOOL),
        (InvalidArguments("x", ["missing required symbols"]), ErrorKind.TOOL),
        (ExternalLookupError("503"), ErrorKind.TOOL),
        (KeyError("x"), ErrorKind.UNKNOWN),
    ],
)
def test_classify(exc: Exception, kind: ErrorKind) -> None:
    assert classify(exc) is kind


def test_tool_errors_share_the_generic_notice() -> None:
    assert notice_for(UnknownTool("x")) == notice_for(ValueError("boom"))


def test_notices_differ_by_cause() -> None:
    notices = {notice_for(AuthenticationError()), notice_for(RateLimited()), notice_for(NetworkError())}
    assert len(notices) == 3


def test_invalid_arguments_message_lists_problems() -> None:
    exc = InvalidArguments("get_crypto_price", ["missing required symbols", "x should be string"])
    assert "missing required symbols; x should be string" in str(exc)
