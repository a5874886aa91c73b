"""Tests for the valuation service dispatch."""

import uuid
from decimal import Decimal

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError
from app.schemas.calculation import (
    AssetClass,
    CryptoCalculationRequest,
    FundCalculationRequest,
    InterestRateCalculationRequest,
)
from app.services.pricing.base import PriceProviderRegistry
from app.services.snapshot_store import FundSnapshotKey
from app.services.valuation_service import ValuationService
from doubles import FakePriceProvider, RecordingObserver
from factories import create_bank_account, create_crypto_position, create_roboadvisor


@pytest.fixture
def service(
    price_providers: PriceProviderRegistry, observer: RecordingObserver
) -> ValuationService:
    return ValuationService(price_providers, observer)


@pytest.mark.asyncio
class TestValuationService:
    """Each request variant reaches its own calculator."""

    async def test_interest_variant(self, test_db: AsyncSession, service: ValuationService) -> None:
        account = await create_bank_account(test_db)

        result = await service.calculate(
            test_db, InterestRateCalculationRequest(bank_account_id=account.id)
        )

        assert result.success is True
        assert result.calculation_type == AssetClass.INTEREST_RATE

    async def test_crypto_variant(self, test_db: AsyncSession, service: ValuationService) -> None:
        exchange = await create_crypto_position(test_db)

        result = await service.calculate(
            test_db, CryptoCalculationRequest(crypto_exchange_id=exchange.id, symbol_code="BTC")
        )

        assert result.success is True
        assert result.data is not None
        assert result.data.current_value_after_tax == Decimal("57000.00")

    async def test_fund_variant(
        self,
        test_db: AsyncSession,
        service: ValuationService,
        fund_prices: FakePriceProvider,
    ) -> None:
        roboadvisor = await create_roboadvisor(
            test_db, funds=[("IE00B3RBWM25", Decimal("10"))], deposits=[Decimal("1000")]
        )
        fund_prices.prices["IE00B3RBWM25"] = "100"

        result = await service.calculate(
            test_db, FundCalculationRequest(roboadvisor_id=roboadvisor.id)
        )
        await test_db.commit()

        assert result.success is True
        snapshot = await service.get_latest_snapshot(test_db, FundSnapshotKey(roboadvisor.id))
        assert snapshot is not None
        assert snapshot.current_value_after_tax == Decimal("1000.00")

    async def test_unavailable_result_carries_no_data(
        self, test_db: AsyncSession, service: ValuationService
    ) -> None:
        exchange = await create_crypto_position(test_db, symbol_code="DOGE")

        result = await service.calculate(
            test_db, CryptoCalculationRequest(crypto_exchange_id=exchange.id, symbol_code="doge")
        )

        assert result.success is False
        assert result.data is None
        assert "DOGE" in result.message

    async def test_missing_owner_propagates(
        self, test_db: AsyncSession, service: ValuationService
    ) -> None:
        with pytest.raises(NotFoundError):
            await service.calculate(test_db, FundCalculationRequest(roboadvisor_id=uuid.uuid4()))
