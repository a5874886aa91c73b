"""External price providers used by the valuation calculators."""

from app.services.pricing.base import PriceProvider, PriceProviderRegistry, build_price_providers
from app.services.pricing.coingecko import CoinGeckoPriceProvider
from app.services.pricing.yahoo import IsinTickerCache, YahooFinancePriceProvider

__all__ = [
    "PriceProvider",
    "PriceProviderRegistry",
    "build_price_providers",
    "CoinGeckoPriceProvider",
    "YahooFinancePriceProvider",
    "IsinTickerCache",
]
