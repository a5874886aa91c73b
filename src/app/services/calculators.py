"""Valuation calculators, one per asset class.

Every calculator follows the same policy: compute a current value, persist
it through the ``SnapshotStore`` and return it. A calculation that cannot
run this cycle (no balance, no cost basis, no price) returns ``None`` and
leaves the previous snapshot untouched. Missing owners raise
``NotFoundError``. Persistence errors propagate.

All arithmetic uses ``Decimal``; stored values are rounded half-up to cents.
"""

import asyncio
import logging
from datetime import date
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import cast
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.constants import (
    MIN_PRICED_FUND_RATIO,
    MONEY_QUANTUM,
    MONTHS_PER_YEAR,
    PERCENT_DIVISOR,
    ZERO,
)
from app.core.exceptions import NotFoundError
from app.core.observer import ValuationObserver
from app.models.bank_account import BankAccount, BankAccountInterestRate
from app.models.crypto_exchange import CryptoExchange
from app.models.roboadvisor import Roboadvisor, RoboadvisorFund
from app.repositories.bank_account import BankAccountRepository
from app.repositories.crypto_exchange import CryptoExchangeRepository
from app.repositories.interest_rate import InterestRateRepository
from app.repositories.roboadvisor import RoboadvisorRepository
from app.schemas.calculation import AssetClass, InterestValuation, TaxAdjustedValuation
from app.services.pricing.base import PriceProvider
from app.services.snapshot_store import (
    CryptoSnapshotKey,
    FundSnapshotKey,
    InterestProfit,
    InterestSnapshotKey,
    SnapshotStore,
)

logger = logging.getLogger(__name__)


# ----------------------------------------------------------------------------
# Numeric policy
# ----------------------------------------------------------------------------


def round_money(value: Decimal) -> Decimal:
    """Round to cents using half-up rounding (not truncation)."""
    return value.quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP)


def project_interest(balance: Decimal, annual_rate_percent: Decimal) -> tuple[Decimal, Decimal]:
    """Project monthly and annual interest profit.

    ``monthly = balance * (rate / 100) / 12`` and ``annual = balance * (rate / 100)``,
    each rounded from the unrounded product.

    Args:
        balance: Current balance
        annual_rate_percent: Yearly rate as a percentage (2.50 == 2.5%)

    Returns:
        Tuple of (monthly_profit, annual_profit)
    """
    annual = balance * (annual_rate_percent / PERCENT_DIVISOR)
    return round_money(annual / MONTHS_PER_YEAR), round_money(annual)


def tax_on_profit(profit: Decimal, tax_rate: Decimal | None) -> Decimal:
    """Return ``profit`` after tax; only a positive profit is taxed."""
    if profit <= ZERO or not tax_rate:
        return profit
    return profit - profit * tax_rate


def apply_gain_tax(
    current_value: Decimal,
    invested_amount: Decimal,
    tax_rate: Decimal | None,
    currency_code: str,
) -> TaxAdjustedValuation:
    """Compute the value after tax on the gain over the invested amount.

    Tax is levied on the gain only, never on the full position and never on
    a loss or break-even.

    Example:
        >>> result = apply_gain_tax(Decimal("60000"), Decimal("50000"), Decimal("0.30"), "EUR")
        >>> result.current_value_after_tax
        Decimal('57000.00')
    """
    gain = current_value - invested_amount
    tax_amount = gain * tax_rate if gain > ZERO and tax_rate else ZERO
    return TaxAdjustedValuation(
        current_value=round_money(current_value),
        invested_amount=round_money(invested_amount),
        gain=round_money(gain),
        tax_amount=round_money(tax_amount),
        current_value_after_tax=round_money(current_value - tax_amount),
        currency_code=currency_code,
    )


def parse_price(raw: str | None) -> Decimal | None:
    """Parse a provider price string; anything unusable counts as unavailable."""
    if raw is None:
        return None
    try:
        price = Decimal(raw)
    except (InvalidOperation, ValueError):
        return None
    if not price.is_finite() or price <= ZERO:
        return None
    return price


# ----------------------------------------------------------------------------
# Calculators
# ----------------------------------------------------------------------------


class InterestRateCalculator:
    """Projects interest profit from the latest balance and the active rate."""

    asset_class = AssetClass.INTEREST_RATE

    def __init__(self, observer: ValuationObserver) -> None:
        self.observer = observer

    async def calculate(
        self,
        db: AsyncSession,
        bank_account_id: UUID,
        on_date: date | None = None,
    ) -> InterestValuation | None:
        """Project and store the interest profit of a bank account.

        No active rate on ``on_date`` (default today) yields zero profit.

        Args:
            db: Database session; the snapshot write is flushed, not committed
            bank_account_id: Bank account to value
            on_date: Day the interest rate must be active on

        Returns:
            The valuation, or None if the account has no balance yet

        Raises:
            NotFoundError: If the bank account does not exist
        """
        key = InterestSnapshotKey(bank_account_id)
        account = await BankAccountRepository(BankAccount, db).get(bank_account_id)
        if account is None:
            raise NotFoundError(f"Bank account {bank_account_id} not found")

        latest_balance = await BankAccountRepository(BankAccount, db).get_latest_balance(
            bank_account_id
        )
        if latest_balance is None:
            self.observer.calculation_skipped(self.asset_class, str(key), "no balance recorded")
            return None

        active = await InterestRateRepository(BankAccountInterestRate, db).get_active(
            bank_account_id, on_date or date.today()
        )
        rate = active.interest_rate if active is not None else None
        if rate is None:
            monthly = annual = round_money(ZERO)
        else:
            monthly, annual = project_interest(latest_balance.balance, rate)

        profit = InterestProfit(
            monthly_profit=monthly,
            annual_profit=annual,
            monthly_profit_after_tax=round_money(tax_on_profit(monthly, account.tax_rate)),
            annual_profit_after_tax=round_money(tax_on_profit(annual, account.tax_rate)),
        )
        currency_code = latest_balance.currency_code
        await SnapshotStore(db).store(key, profit, currency_code)
        self.observer.snapshot_stored(
            self.asset_class, str(key), profit.annual_profit_after_tax, currency_code
        )

        return InterestValuation(
            bank_account_id=bank_account_id,
            balance=latest_balance.balance,
            interest_rate=rate,
            monthly_profit=profit.monthly_profit,
            annual_profit=profit.annual_profit,
            monthly_profit_after_tax=profit.monthly_profit_after_tax,
            annual_profit_after_tax=profit.annual_profit_after_tax,
            currency_code=currency_code,
        )


class CryptoCalculator:
    """Values a crypto position and taxes only the gain over its cost basis."""

    asset_class = AssetClass.CRYPTO

    def __init__(self, price_provider: PriceProvider, observer: ValuationObserver) -> None:
        self.price_provider = price_provider
        self.observer = observer

    async def calculate(
        self,
        db: AsyncSession,
        crypto_exchange_id: UUID,
        symbol_code: str,
    ) -> TaxAdjustedValuation | None:
        """Value and store one (exchange, symbol) position.

        Args:
            db: Database session; the snapshot row is flushed, not committed
            crypto_exchange_id: Exchange holding the position
            symbol_code: Held asset symbol (e.g. "BTC")

        Returns:
            The valuation, or None if the balance, cost basis or price is
            unavailable

        Raises:
            NotFoundError: If the exchange does not exist
        """
        key = CryptoSnapshotKey(crypto_exchange_id, symbol_code)
        repo = CryptoExchangeRepository(CryptoExchange, db)
        exchange = await repo.get(crypto_exchange_id)
        if exchange is None:
            raise NotFoundError(f"Crypto exchange {crypto_exchange_id} not found")

        position = await repo.get_latest_balance(crypto_exchange_id, key.symbol_code)
        if position is None:
            self.observer.calculation_skipped(self.asset_class, str(key), "no balance recorded")
            return None
        if not position.has_cost_basis:
            self.observer.calculation_skipped(self.asset_class, str(key), "missing cost basis")
            return None

        invested_amount = cast(Decimal, position.invested_amount)
        currency_code = cast(str, position.invested_currency_code)

        try:
            raw = await self.price_provider.get_current_price(key.symbol_code, currency_code)
        except Exception as e:
            logger.error(f"Error fetching price for {key.symbol_code} in {currency_code}: {e}")
            raw = None
        price = parse_price(raw)
        if price is None:
            self.observer.calculation_skipped(
                self.asset_class, str(key), f"price unavailable in {currency_code}"
            )
            return None

        valuation = apply_gain_tax(
            position.balance * price, invested_amount, exchange.tax_rate, currency_code
        )
        await SnapshotStore(db).store(key, valuation.current_value_after_tax, currency_code)
        self.observer.snapshot_stored(
            self.asset_class, str(key), valuation.current_value_after_tax, currency_code
        )
        return valuation


class FundCalculator:
    """Values a roboadvisor fund basket and taxes only the gain over deposits.

    Basket value is the sum of ``share_count * price`` over funds with a share
    count. Weights are informational and are not required to sum to 1.0.
    """

    asset_class = AssetClass.FUND

    def __init__(self, price_provider: PriceProvider, observer: ValuationObserver) -> None:
        self.price_provider = price_provider
        self.observer = observer

    async def _price_fund(self, fund: RoboadvisorFund, currency_code: str) -> Decimal | None:
        try:
            raw = await self.price_provider.get_current_price(fund.isin, currency_code)
        except Exception as e:
            logger.error(f"Error fetching price for fund {fund.name} (ISIN: {fund.isin}): {e}")
            return None
        price = parse_price(raw)
        if price is None:
            logger.warning(f"Unable to fetch price for ISIN {fund.isin}, skipping fund")
        return price

    async def calculate(
        self,
        db: AsyncSession,
        roboadvisor_id: UUID,
    ) -> TaxAdjustedValuation | None:
        """Value and store the fund basket of a roboadvisor.

        Prices are fetched concurrently. The basket is unavailable when no
        price was retrieved or fewer than half of the eligible funds were
        priced.

        Args:
            db: Database session; the snapshot write is flushed, not committed
            roboadvisor_id: Roboadvisor to value

        Returns:
            The valuation, or None if funds, cost basis or prices are missing

        Raises:
            NotFoundError: If the roboadvisor does not exist
        """
        key = FundSnapshotKey(roboadvisor_id)
        repo = RoboadvisorRepository(Roboadvisor, db)
        roboadvisor = await repo.get(roboadvisor_id)
        if roboadvisor is None:
            raise NotFoundError(f"Roboadvisor {roboadvisor_id} not found")

        funds = await repo.get_funds(roboadvisor_id)
        if not funds:
            self.observer.calculation_skipped(self.asset_class, str(key), "no funds configured")
            return None

        movements = await repo.get_balances(roboadvisor_id)
        if not movements:
            self.observer.calculation_skipped(self.asset_class, str(key), "missing cost basis")
            return None
        invested = sum((movement.signed_amount for movement in movements), ZERO)

        eligible = [fund for fund in funds if fund.share_count is not None]
        for fund in funds:
            if fund.share_count is None:
                logger.warning(f"Fund {fund.name} (ISIN: {fund.isin}) has no share count, skipping")

        currency_code = roboadvisor.currency_code
        prices = await asyncio.gather(
            *(self._price_fund(fund, currency_code) for fund in eligible)
        )

        current_value = ZERO
        priced = 0
        for fund, price in zip(eligible, prices):
            if price is None or fund.share_count is None:
                continue
            current_value += fund.share_count * price
            priced += 1

        if priced == 0 or Decimal(priced) < Decimal(len(eligible)) * MIN_PRICED_FUND_RATIO:
            self.observer.calculation_skipped(
                self.asset_class,
                str(key),
                f"only {priced} out of {len(eligible)} eligible fund prices retrieved",
            )
            return None

        valuation = apply_gain_tax(current_value, invested, roboadvisor.tax_rate, currency_code)
        await SnapshotStore(db).store(key, valuation.current_value_after_tax, currency_code)
        self.observer.snapshot_stored(
            self.asset_class, str(key), valuation.current_value_after_tax, currency_code
        )
        return valuation
