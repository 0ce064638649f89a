"""
CoinGecko price client.

Ticker symbols are what users type ("BTC"); CoinGecko keys its data by
coin id ("bitcoin"). Known tickers are mapped through ``SYMBOL_TO_ID``;
anything else is passed through lower-cased and looked up as-is.
"""

from __future__ import annotations

from typing import Any

import httpx
from loguru import logger

from ultron.errors import ExternalLookupError

SYMBOL_TO_ID: dict[str, str] = {
    "BTC": "bitcoin",
    "ETH": "ethereum",
    "USDT": "tether",
    "USDC": "usd-coin",
    "BNB": "binancecoin",
    "SOL": "solana",
    "XRP": "ripple",
    "ADA": "cardano",
    "DOGE": "dogecoin",
    "TRX": "tron",
    "DOT": "polkadot",
    "MATIC": "matic-network",
    "LTC": "litecoin",
    "AVAX": "avalanche-2",
    "LINK": "chainlink",
    "SHIB": "shiba-inu",
    "XLM": "stellar",
    "ATOM": "cosmos",
}


def to_external_id(symbol: str) -> str:
    return SYMBOL_TO_ID.get(symbol.upper(), symbol.lower())


class PriceClient:
    """Batched USD price lookups against the CoinGecko simple-price API.

    Args:
        base_url: API root, e.g. ``https://api.coingecko.com/api/v3``.
        timeout: Per-request timeout in seconds.
        client: Optional pre-built ``httpx.AsyncClient`` (owned by the caller).
    """

    def __init__(
        self,
        base_url: str = "https://api.coingecko.com/api/v3",
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = client

    async def get_prices(self, symbols: list[str]) -> dict[str, dict[str, Any]]:
        """Return ``{SYMBOL: {price, change_24h, market_cap}}``.

        Symbols the source does not know are left out of the result.

        Raises:
            ExternalLookupError: non-2xx response, transport failure, or a
                body that is not a JSON object.
        """
        by_symbol = {s.upper(): to_external_id(s) for s in symbols}
        if not by_symbol:
            return {}

        ids = sorted(set(by_symbol.values()))
        params = {
            "ids": ",".join(ids),
            "vs_currencies": "usd",
            "include_24hr_change": "true",
            "include_market_cap": "true",
        }
        data = await self._fetch("/simple/price", params)

        result: dict[str, dict[str, Any]] = {}
        for symbol, coin_id in by_symbol.items():
            quote = data.get(coin_id)
            if not isinstance(quote, dict) or "usd" not in quote:
                logger.debug(f"[prices] No quote for {symbol} ({coin_id})")
                continue
            result[symbol] = {
                "price": quote["usd"],
                "change_24h": quote.get("usd_24h_change"),
                "market_cap": quote.get("usd_market_cap"),
            }
        return result

    async def _fetch(self, path: str, params: dict[str, str]) -> dict[str, Any]:
        url = f"{self.base_url}{path}"
        logger.debug(f"[prices] GET {url} ids={params.get('ids')}")
        try:
            if self._client is not None:
                resp = await self._client.get(url, params=params, timeout=self.timeout)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    resp = await client.get(url, params=params)
        except httpx.HTTPError as exc:
            raise ExternalLookupError(f"price request failed: {exc}") from exc

        if not resp.is_success:
            raise ExternalLookupError(f"price source returned HTTP {resp.status_code}")

        try:
            data = resp.json()
        except ValueError as exc:
            raise ExternalLookupError("price source returned invalid JSON") from exc
        if not isinstance(data, dict):
            raise ExternalLookupError("price source returned an unexpected payload")
        return data
