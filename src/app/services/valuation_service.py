"""Valuation service: dispatches tagged calculation requests to calculators.

Requests are a closed set of variants (``interest_rate``, ``crypto``,
``fund``). Each variant has its own method; ``calculate`` only selects it.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.observer import ValuationObserver
from app.schemas.calculation import (
    AssetClass,
    CalculationRequest,
    CalculationResult,
    CryptoCalculationRequest,
    FundCalculationRequest,
    InterestRateCalculationRequest,
)
from app.services.calculators import CryptoCalculator, FundCalculator, InterestRateCalculator
from app.services.pricing.base import PriceProviderRegistry
from app.services.snapshot_store import Snapshot, SnapshotKey, SnapshotStore

logger = logging.getLogger(__name__)


class ValuationService:
    """Single entry point for on-demand valuations and snapshot reads.

    Unavailable valuations come back as ``success=False`` results. Missing
    owners (``NotFoundError``) and persistence errors are raised to the caller.

    Args:
        price_providers: Registry selecting the price provider per asset class
        observer: Receives calculation events
    """

    def __init__(self, price_providers: PriceProviderRegistry, observer: ValuationObserver):
        self.observer = observer
        self.interest_calculator = InterestRateCalculator(observer)
        self.crypto_calculator = CryptoCalculator(
            price_providers.for_asset_class(AssetClass.CRYPTO), observer
        )
        self.fund_calculator = FundCalculator(
            price_providers.for_asset_class(AssetClass.FUND), observer
        )

    async def calculate(self, db: AsyncSession, request: CalculationRequest) -> CalculationResult:
        """Run the calculation matching the request variant."""
        if isinstance(request, InterestRateCalculationRequest):
            return await self.calculate_interest_rate(db, request)
        if isinstance(request, CryptoCalculationRequest):
            return await self.calculate_crypto(db, request)
        if isinstance(request, FundCalculationRequest):
            return await self.calculate_fund(db, request)
        raise TypeError(f"Unsupported calculation request: {type(request).__name__}")

    async def calculate_interest_rate(
        self,
        db: AsyncSession,
        request: InterestRateCalculationRequest,
    ) -> CalculationResult:
        """Project interest profit for a bank account."""
        valuation = await self.interest_calculator.calculate(db, request.bank_account_id)
        if valuation is None:
            return CalculationResult(
                success=False,
                message=(
                    f"Unable to calculate interest for bank account {request.bank_account_id}. "
                    "Ensure a balance is recorded."
                ),
                calculation_type=AssetClass.INTEREST_RATE,
            )
        return CalculationResult(
            success=True,
            message="Interest rate calculation completed successfully",
            calculation_type=AssetClass.INTEREST_RATE,
            data=valuation,
        )

    async def calculate_crypto(
        self,
        db: AsyncSession,
        request: CryptoCalculationRequest,
    ) -> CalculationResult:
        """Value one crypto symbol held on an exchange."""
        valuation = await self.crypto_calculator.calculate(
            db, request.crypto_exchange_id, request.symbol_code
        )
        if valuation is None:
            return CalculationResult(
                success=False,
                message=(
                    f"Unable to calculate crypto value for exchange {request.crypto_exchange_id} "
                    f"and symbol {request.symbol_code.upper()}. Ensure a balance with invested "
                    "amount is recorded and a price is available."
                ),
                calculation_type=AssetClass.CRYPTO,
            )
        return CalculationResult(
            success=True,
            message="Crypto calculation completed successfully",
            calculation_type=AssetClass.CRYPTO,
            data=valuation,
        )

    async def calculate_fund(
        self,
        db: AsyncSession,
        request: FundCalculationRequest,
    ) -> CalculationResult:
        """Value the fund basket of a roboadvisor."""
        valuation = await self.fund_calculator.calculate(db, request.roboadvisor_id)
        if valuation is None:
            return CalculationResult(
                success=False,
                message=(
                    f"Unable to calculate fund value for roboadvisor {request.roboadvisor_id}. "
                    "Ensure funds with share counts and balances are configured."
                ),
                calculation_type=AssetClass.FUND,
            )
        return CalculationResult(
            success=True,
            message="Fund calculation completed successfully",
            calculation_type=AssetClass.FUND,
            data=valuation,
        )

    async def get_latest_snapshot(self, db: AsyncSession, key: SnapshotKey) -> Snapshot | None:
        """Read the latest stored valuation without recomputing."""
        return await SnapshotStore(db).get_latest(key)
