"""CoinGecko price provider for crypto assets.

Uses the ``/simple/price`` endpoint. The free tier works without an API key
and is rate limited to roughly 50 calls per minute; a demo key is sent when
configured.
"""

import logging
from typing import Any

import httpx

from app.core.config import settings

logger = logging.getLogger(__name__)

# CoinGecko identifies coins by slug, not by ticker symbol.
# Unknown symbols fall back to their lowercase form.
SYMBOL_TO_COIN_ID: dict[str, str] = {
    "BTC": "bitcoin",
    "ETH": "ethereum",
    "USDT": "tether",
    "BNB": "binancecoin",
    "USDC": "usd-coin",
    "XRP": "ripple",
    "ADA": "cardano",
    "DOGE": "dogecoin",
    "SOL": "solana",
    "MATIC": "matic-network",
    "DOT": "polkadot",
    "LTC": "litecoin",
    "SHIB": "shiba-inu",
    "TRX": "tron",
    "AVAX": "avalanche-2",
    "UNI": "uniswap",
    "LINK": "chainlink",
    "ATOM": "cosmos",
    "XLM": "stellar",
    "BCH": "bitcoin-cash",
}


def coin_id_for_symbol(symbol: str) -> str:
    """Map a ticker symbol (e.g. "BTC") to its CoinGecko coin id."""
    return SYMBOL_TO_COIN_ID.get(symbol.upper(), symbol.lower())


class CoinGeckoPriceProvider:
    """Crypto price provider backed by the CoinGecko public API.

    Args:
        client: HTTP client to use (shared with other providers in production,
            a mock transport in tests)
        base_url: API root, defaults to ``settings.COINGECKO_BASE_URL``
        api_key: Optional demo API key
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        base_url: str | None = None,
        api_key: str | None = None,
    ) -> None:
        self._client = client
        self.base_url = (base_url or settings.COINGECKO_BASE_URL).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.COINGECKO_API_KEY

    async def get_current_price(self, symbol: str, currency_code: str) -> str | None:
        """Fetch the current price of ``symbol`` in ``currency_code``.

        Returns:
            Price as a string, or None if the request fails or CoinGecko has
            no price for the pair
        """
        coin_id = coin_id_for_symbol(symbol)
        currency = currency_code.lower()

        headers = {"Accept": "application/json"}
        if self.api_key:
            headers["x-cg-demo-api-key"] = self.api_key

        try:
            response = await self._client.get(
                f"{self.base_url}/simple/price",
                params={"ids": coin_id, "vs_currencies": currency},
                headers=headers,
            )
            response.raise_for_status()
            data: Any = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(
                f"CoinGecko API error for {symbol}/{currency_code}: {e.response.status_code}"
            )
            return None
        except httpx.HTTPError as e:
            logger.error(f"HTTP error fetching {symbol} price from CoinGecko: {e}")
            return None
        except ValueError as e:
            logger.error(f"Invalid JSON from CoinGecko for {symbol}: {e}")
            return None

        coin_prices = data.get(coin_id) if isinstance(data, dict) else None
        price = coin_prices.get(currency) if isinstance(coin_prices, dict) else None
        if not price:
            logger.warning(f"No CoinGecko price found for {symbol} in {currency_code}")
            return None

        return str(price)
