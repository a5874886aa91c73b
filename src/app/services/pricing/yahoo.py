"""Yahoo Finance price provider for index funds and ETFs.

Funds are usually stored by ISIN, which Yahoo Finance does not understand.
ISINs are converted to tickers through the OpenFIGI mapping API (requires
``OPENFIGI_API_KEY``) and the mappings are kept in a bounded in-memory LRU.
Quotes are fetched with yfinance in a thread pool executor.

Note:
    yfinance HTTP traffic goes through the requests-cache Redis backend
    installed by ``app.core.cache.configure_price_cache`` at startup.
"""

import asyncio
import logging
import re
from collections import OrderedDict
from collections.abc import Callable
from typing import Any

import httpx
import pandas as pd
import yfinance as yf

from app.core.config import settings
from app.core.constants import ISIN_PATTERN, TICKER_PATTERN

logger = logging.getLogger(__name__)

_ISIN_RE = re.compile(ISIN_PATTERN)
_TICKER_RE = re.compile(TICKER_PATTERN)

# Substrings that indicate path traversal or URL-encoding tricks
_FORBIDDEN_TICKER_SUBSTRINGS = ("..", "/", "\\", "\0", "%2E", "%2F", "%5C")


def is_isin(code: str) -> bool:
    """Check whether ``code`` looks like an ISIN (e.g. "IE00B3RBWM25")."""
    return bool(_ISIN_RE.match(code.upper()))


def is_valid_ticker(ticker: str) -> bool:
    """Check whether ``ticker`` is safe to send to Yahoo Finance."""
    normalized = ticker.upper()
    if any(sub in normalized for sub in _FORBIDDEN_TICKER_SUBSTRINGS):
        return False
    return bool(_TICKER_RE.match(normalized))


def fetch_last_close(ticker: str) -> str | None:
    """Fetch the most recent closing price of ``ticker`` (blocking).

    Falls back to the last traded price when the daily history is empty.

    Returns:
        Price as a string, or None if Yahoo Finance has no price
    """
    yf_ticker = yf.Ticker(ticker)
    history = yf_ticker.history(period="1d", interval="1d")

    if not history.empty:
        closes = history["Close"].dropna()
        if not closes.empty:
            return str(float(closes.iloc[-1]))

    last_price = yf_ticker.fast_info.get("lastPrice")
    if last_price is None or pd.isna(last_price):
        return None
    return str(float(last_price))


class IsinTickerCache:
    """Least-recently-used map of ISIN to ticker with a fixed capacity."""

    def __init__(self, max_size: int) -> None:
        self.max_size = max_size
        self._entries: OrderedDict[str, str] = OrderedDict()

    def get(self, isin: str) -> str | None:
        ticker = self._entries.get(isin)
        if ticker is not None:
            self._entries.move_to_end(isin)
        return ticker

    def set(self, isin: str, ticker: str) -> None:
        self._entries[isin] = ticker
        self._entries.move_to_end(isin)
        while len(self._entries) > self.max_size:
            self._entries.popitem(last=False)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, isin: object) -> bool:
        return isin in self._entries


class YahooFinancePriceProvider:
    """Fund price provider backed by Yahoo Finance and OpenFIGI.

    The target currency is not used for conversion: Yahoo Finance quotes a
    fund in its listing currency.

    Args:
        client: HTTP client used for OpenFIGI requests
        openfigi_api_key: OpenFIGI key, defaults to ``settings.OPENFIGI_API_KEY``
        openfigi_base_url: OpenFIGI API root
        cache_max_size: Capacity of the ISIN to ticker LRU
        quote_fetcher: Blocking callable returning the price for a ticker
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        openfigi_api_key: str | None = None,
        openfigi_base_url: str | None = None,
        cache_max_size: int | None = None,
        quote_fetcher: Callable[[str], str | None] = fetch_last_close,
    ) -> None:
        self._client = client
        self.openfigi_api_key = (
            openfigi_api_key if openfigi_api_key is not None else settings.OPENFIGI_API_KEY
        )
        self.openfigi_base_url = (openfigi_base_url or settings.OPENFIGI_BASE_URL).rstrip("/")
        self.ticker_cache = IsinTickerCache(cache_max_size or settings.ISIN_CACHE_MAX_SIZE)
        self._quote_fetcher = quote_fetcher

    async def get_current_price(self, symbol: str, currency_code: str) -> str | None:
        """Fetch the current price for an ISIN or ticker.

        Returns:
            Price as a string, or None if the ISIN cannot be mapped, the
            ticker is invalid, or Yahoo Finance has no price
        """
        if not symbol or not symbol.strip():
            return None

        code = symbol.strip().upper()
        if is_isin(code):
            ticker = await self.resolve_ticker(code)
            if ticker is None:
                logger.warning(f"ISIN-to-ticker mapping failed for ISIN: {code}")
                return None
        else:
            ticker = code

        if not is_valid_ticker(ticker):
            logger.warning(f"Invalid ticker supplied to Yahoo Finance: {ticker}")
            return None

        loop = asyncio.get_running_loop()
        try:
            # yfinance is blocking; keep it off the event loop
            price = await loop.run_in_executor(None, self._quote_fetcher, ticker)
        except Exception as e:
            logger.error(f"Error fetching fund price for {ticker} from Yahoo Finance: {e}")
            return None

        if price is None:
            logger.warning(f"No Yahoo Finance price for {ticker}")
        return price

    async def resolve_ticker(self, isin: str) -> str | None:
        """Convert an ISIN to a ticker using OpenFIGI, caching successful mappings."""
        cached = self.ticker_cache.get(isin)
        if cached is not None:
            return cached

        if not self.openfigi_api_key:
            logger.warning(f"OPENFIGI_API_KEY not set; cannot convert ISIN: {isin}")
            return None

        try:
            response = await self._client.post(
                f"{self.openfigi_base_url}/mapping",
                json=[{"idType": "ID_ISIN", "idValue": isin}],
                headers={"X-OPENFIGI-APIKEY": self.openfigi_api_key},
            )
            response.raise_for_status()
            data: Any = response.json()
        except httpx.HTTPError as e:
            logger.warning(f"OpenFIGI lookup failed for {isin}: {e}")
            return None
        except ValueError as e:
            logger.warning(f"Invalid JSON from OpenFIGI for {isin}: {e}")
            return None

        try:
            ticker = data[0]["data"][0]["ticker"]
        except (LookupError, TypeError):
            logger.warning(f"OpenFIGI returned no ticker for {isin}")
            return None

        if not ticker:
            return None

        normalized = str(ticker).upper()
        self.ticker_cache.set(isin, normalized)
        return normalized
