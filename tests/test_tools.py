import json
from typing import Any

import httpx
import pytest

from ultron.errors import ExternalLookupError, InvalidArguments, ToolError, UnknownTool
from ultron.prices import PriceClient, to_external_id
from ultron.tools import ToolRegistry, default_registry, tool


BASE_URL = "https://prices.test/api/v3"


def make_price_client(handler, requests: list[httpx.Request] | None = None) -> PriceClient:
    def _record(request: httpx.Request) -> httpx.Response:
        if requests is not None:
            requests.append(request)
        return handler(request)

    client = httpx.AsyncClient(transport=httpx.MockTransport(_record))
    return PriceClient(base_url=BASE_URL, client=client)


def coingecko_ok(request: httpx.Request) -> httpx.Response:
    known = {
        "bitcoin": {"usd": 65000.0, "usd_24h_change": 1.25, "usd_market_cap": 1.28e12},
        "ethereum": {"usd": 3200.0, "usd_24h_change": -0.5, "usd_market_cap": 3.8e11},
    }
    ids = request.url.params["ids"].split(",")
    return httpx.Response(200, json={i: known[i] for i in ids if i in known})


# ---------------------------------------------------------------------------
# @tool schema generation
# ---------------------------------------------------------------------------

def test_tool_decorator_schema() -> None:
    @tool(overrides={"symbols": {"minItems": 1}})
    def lookup(symbols: list[str], limit: int = 5) -> dict:
        """Look things up.

        symbols: What to look up.
        """
        return {}

    schema = lookup.to_schema()
    assert schema["function"]["name"] == "lookup"
    assert schema["function"]["description"] == "Look things up."
    params = schema["function"]["parameters"]
    assert params["required"] == ["symbols"]
    assert params["properties"]["symbols"] == {
        "type": "array",
        "items": {"type": "string"},
        "description": "What to look up.",
        "minItems": 1,
    }
    assert params["properties"]["limit"] == {"type": "integer"}


def test_duplicate_registration_rejected(registry: ToolRegistry) -> None:
    with pytest.raises(ValueError):
        registry.register(registry.get("get_crypto_price"))


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------

async def test_dispatch_unknown_tool(registry: ToolRegistry, price_calls: list) -> None:
    with pytest.raises(UnknownTool) as info:
        await registry.dispatch("launch_rockets", "{}")
    assert info.value.name == "launch_rockets"
    assert isinstance(info.value, ToolError)
    assert price_calls == []


async def test_dispatch_parses_json_arguments(registry: ToolRegistry, price_calls: list) -> None:
    result = await registry.dispatch("get_crypto_price", '{"symbols": ["btc"]}')
    assert price_calls == [["btc"]]
    assert set(result) == {"BTC"}


async def test_dispatch_accepts_decoded_arguments(registry: ToolRegistry, price_calls: list) -> None:
    await registry.dispatch("get_crypto_price", {"symbols": ["ETH"]})
    assert price_calls == [["ETH"]]


@pytest.mark.parametrize(
    "raw, problem",
    [
        ("not json", "not valid JSON"),
        ('["BTC"]', "arguments should be object"),
        ("{}", "missing required symbols"),
        ('{"symbols": "BTC"}', "symbols should be array"),
        ('{"symbols": ["BTC", 7]}', "symbols[1] should be string"),
    ],
)
async def test_dispatch_invalid_arguments(
    registry: ToolRegistry, price_calls: list, raw: str, problem: str
) -> None:
    with pytest.raises(InvalidArguments) as info:
        await registry.dispatch("get_crypto_price", raw)
    assert problem in str(info.value)
    assert price_calls == []


async def test_dispatch_ignores_unknown_fields(registry: ToolRegistry, price_calls: list) -> None:
    await registry.dispatch("get_crypto_price", {"symbols": ["BTC"], "currency": "eur"})
    assert price_calls == [["BTC"]]


async def test_sync_handler() -> None:
    @tool()
    def echo(text: str) -> str:
        """Echo text back."""
        return text

    registry = ToolRegistry([echo])
    assert await registry.dispatch("echo", '{"text": "hi"}') == "hi"


# ---------------------------------------------------------------------------
# Price lookup
# ---------------------------------------------------------------------------

def test_symbol_mapping() -> None:
    assert to_external_id("btc") == "bitcoin"
    assert to_external_id("Eth") == "ethereum"
    assert to_external_id("FAKE123") == "fake123"


async def test_price_lookup_batches_one_request() -> None:
    requests: list[httpx.Request] = []
    client = make_price_client(coingecko_ok, requests)

    result = await client.get_prices(["btc", "ETH", "BTC"])

    assert len(requests) == 1
    params = requests[0].url.params
    assert requests[0].url.path == "/api/v3/simple/price"
    assert params["ids"] == "bitcoin,ethereum"
    assert params["vs_currencies"] == "usd"
    assert params["include_24hr_change"] == "true"
    assert params["include_market_cap"] == "true"
    assert result == {
        "BTC": {"price": 65000.0, "change_24h": 1.25, "market_cap": 1.28e12},
        "ETH": {"price": 3200.0, "change_24h": -0.5, "market_cap": 3.8e11},
    }


async def test_unrecognized_symbols_are_omitted() -> None:
    client = make_price_client(coingecko_ok)
    result = await client.get_prices(["BTC", "FAKE123"])
    assert list(result) == ["BTC"]


async def test_price_lookup_http_error() -> None:
    client = make_price_client(lambda request: httpx.Response(503, text="down"))
    with pytest.raises(ExternalLookupError, match="503"):
        await client.get_prices(["BTC"])


async def test_price_lookup_transport_error() -> None:
    def fail(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("name resolution failed", request=request)

    client = make_price_client(fail)
    with pytest.raises(ExternalLookupError):
        await client.get_prices(["BTC"])


async def test_price_lookup_unexpected_payload() -> None:
    client = make_price_client(lambda request: httpx.Response(200, json=["nope"]))
    with pytest.raises(ExternalLookupError):
        await client.get_prices(["BTC"])


async def test_builtin_registry_dispatches_price_tool() -> None:
    registry = default_registry(make_price_client(coingecko_ok))
    assert registry.names() == ["get_crypto_price"]

    result: Any = await registry.dispatch("get_crypto_price", json.dumps({"symbols": ["BTC", "FAKE123"]}))
    assert list(result) == ["BTC"]


async def test_builtin_registry_propagates_lookup_error() -> None:
    registry = default_registry(make_price_client(lambda request: httpx.Response(500)))
    with pytest.raises(ExternalLookupError):
        await registry.dispatch("get_crypto_price", '{"symbols": ["BTC"]}')


async def test_builtin_registry_rejects_empty_symbol_list() -> None:
    registry = default_registry(make_price_client(coingecko_ok))
    with pytest.raises(InvalidArguments, match="at least 1"):
        await registry.dispatch("get_crypto_price", '{"symbols": []}')
