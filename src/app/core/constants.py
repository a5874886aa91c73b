"""Application-wide constants and configuration values.

This module centralizes the numeric policy used by the valuation engine so
that rounding, percentage scaling and coverage thresholds live in one place.
"""

from decimal import Decimal


class MoneyConstants:
    """Constants for monetary rounding."""

    # All persisted monetary values are rounded half-up to cents
    MONEY_QUANTUM = Decimal("0.01")
    ZERO = Decimal("0")


class InterestConstants:
    """Constants for interest projections."""

    # Interest rates are stored as percentages (2.50 == 2.5% per year)
    PERCENT_DIVISOR = Decimal("100")
    MONTHS_PER_YEAR = Decimal("12")


class FundValuationConstants:
    """Constants for fund basket valuation."""

    # A basket is only valued when at least this share of the funds that have
    # a share count could be priced. Below it the value would be misleading.
    MIN_PRICED_FUND_RATIO = Decimal("0.5")


class PricingConstants:
    """Constants for external price lookups."""

    # ISIN format: two-letter country code followed by ten alphanumerics
    ISIN_PATTERN = r"^[A-Z]{2}[A-Z0-9]{10}$"
    # Letters, digits, dot, hyphen and caret (e.g. BRK.B, BRK-B, ^GSPC)
    TICKER_PATTERN = r"^[A-Z0-9.\-^]+$"


# Direct exports for modules that import constants by name
MONEY_QUANTUM = MoneyConstants.MONEY_QUANTUM
ZERO = MoneyConstants.ZERO
PERCENT_DIVISOR = InterestConstants.PERCENT_DIVISOR
MONTHS_PER_YEAR = InterestConstants.MONTHS_PER_YEAR
MIN_PRICED_FUND_RATIO = FundValuationConstants.MIN_PRICED_FUND_RATIO
ISIN_PATTERN = PricingConstants.ISIN_PATTERN
TICKER_PATTERN = PricingConstants.TICKER_PATTERN
