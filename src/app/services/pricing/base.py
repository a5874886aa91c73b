"""Price provider contract and per-asset-class selection."""

import logging
from typing import Protocol

import httpx

from app.core.config import settings
from app.schemas.calculation import AssetClass
from app.services.pricing.coingecko import CoinGeckoPriceProvider
from app.services.pricing.yahoo import YahooFinancePriceProvider

logger = logging.getLogger(__name__)


class PriceProvider(Protocol):
    """Source of current unit prices.

    Implementations return the price as a decimal string, or ``None`` when it
    is temporarily unavailable. ``None`` never means zero, and implementations
    never raise for lookup failures.
    """

    async def get_current_price(self, symbol: str, currency_code: str) -> str | None: ...


class PriceProviderRegistry:
    """Selects the price provider used for each priced asset class.

    Interest projections need no external price, so only crypto and fund
    providers are registered.

    Example:
        >>> registry = PriceProviderRegistry(crypto=CoinGeckoPriceProvider(), fund=...)
        >>> provider = registry.for_asset_class(AssetClass.CRYPTO)
    """

    def __init__(
        self,
        *,
        crypto: PriceProvider,
        fund: PriceProvider,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._providers: dict[AssetClass, PriceProvider] = {
            AssetClass.CRYPTO: crypto,
            AssetClass.FUND: fund,
        }
        self._client = client

    def for_asset_class(self, asset_class: AssetClass) -> PriceProvider:
        """Get the provider for an asset class.

        Raises:
            ValueError: If the asset class is not priced externally
        """
        try:
            return self._providers[asset_class]
        except KeyError:
            raise ValueError(f"No price provider for asset class '{asset_class.value}'") from None

    async def aclose(self) -> None:
        """Close the shared HTTP client, if the registry owns one."""
        if self._client is not None:
            await self._client.aclose()
            logger.debug("Closed price provider HTTP client")


def build_price_providers() -> PriceProviderRegistry:
    """Build the production registry: CoinGecko for crypto, Yahoo Finance for funds.

    Both providers share one ``httpx.AsyncClient``; call ``aclose`` on the
    returned registry at shutdown.
    """
    client = httpx.AsyncClient(timeout=settings.PRICE_REQUEST_TIMEOUT_SECONDS)
    return PriceProviderRegistry(
        crypto=CoinGeckoPriceProvider(client),
        fund=YahooFinancePriceProvider(client),
        client=client,
    )
