"""Tests for batch recomputation and the background dispatcher."""

import asyncio
from decimal import Decimal

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.schemas.calculation import (
    AssetClass,
    CryptoCalculationRequest,
    FundCalculationRequest,
    InterestRateCalculationRequest,
)
from app.services.batch import RecomputeDispatcher, list_positions, recompute_all
from app.services.pricing.base import PriceProviderRegistry
from app.services.snapshot_store import CryptoSnapshotKey, InterestSnapshotKey, SnapshotStore
from app.services.valuation_service import ValuationService
from doubles import FakePriceProvider, RecordingObserver
from factories import create_bank_account, create_crypto_position, create_roboadvisor


@pytest.mark.asyncio
class TestListPositions:
    """Tests for list_positions."""

    async def test_interest_positions_need_a_balance(self, test_db: AsyncSession) -> None:
        with_balance = await create_bank_account(test_db)
        await create_bank_account(test_db, balance=None)

        requests = await list_positions(test_db, AssetClass.INTEREST_RATE)

        assert requests == [InterestRateCalculationRequest(bank_account_id=with_balance.id)]

    async def test_crypto_positions_are_exchange_symbol_pairs(self, test_db: AsyncSession) -> None:
        exchange = await create_crypto_position(test_db, symbol_code="BTC")
        await create_crypto_position(test_db, symbol_code="ETH", exchange=exchange)
        # A second balance row for the same symbol is still one position
        await create_crypto_position(test_db, symbol_code="BTC", exchange=exchange)

        requests = await list_positions(test_db, AssetClass.CRYPTO)

        assert sorted(r.symbol_code for r in requests) == ["BTC", "ETH"]
        assert all(isinstance(r, CryptoCalculationRequest) for r in requests)

    async def test_fund_positions_are_roboadvisors(self, test_db: AsyncSession) -> None:
        roboadvisor = await create_roboadvisor(test_db, funds=[("IE00B3RBWM25", Decimal("1"))])

        requests = await list_positions(test_db, AssetClass.FUND)

        assert requests == [FundCalculationRequest(roboadvisor_id=roboadvisor.id)]


@pytest.mark.asyncio
class TestRecomputeAll:
    """Tests for recompute_all."""

    async def test_missing_cost_basis_does_not_stop_the_batch(
        self,
        test_db: AsyncSession,
        session_factory: async_sessionmaker[AsyncSession],
        observer: RecordingObserver,
    ) -> None:
        exchange = await create_crypto_position(test_db, symbol_code="BTC")
        await create_crypto_position(test_db, symbol_code="ETH", exchange=exchange)
        await create_crypto_position(
            test_db,
            symbol_code="SOL",
            exchange=exchange,
            invested_amount=None,
            invested_currency_code=None,
        )
        prices = FakePriceProvider({"BTC": "60000", "ETH": "3000", "SOL": "150"})
        service = ValuationService(
            PriceProviderRegistry(crypto=prices, fund=FakePriceProvider()), observer
        )

        await recompute_all(
            AssetClass.CRYPTO,
            session_factory=session_factory,
            valuation_service=service,
            observer=observer,
            concurrency=1,
        )

        store = SnapshotStore(test_db)
        assert await store.get_latest(CryptoSnapshotKey(exchange.id, "BTC")) is not None
        assert await store.get_latest(CryptoSnapshotKey(exchange.id, "ETH")) is not None
        assert await store.get_latest(CryptoSnapshotKey(exchange.id, "SOL")) is None
        assert observer.batches == [(AssetClass.CRYPTO, 3, 0)]
        assert [reason for _, _, reason in observer.skipped] == ["missing cost basis"]

    async def test_failing_position_is_reported_and_isolated(
        self,
        test_db: AsyncSession,
        session_factory: async_sessionmaker[AsyncSession],
        observer: RecordingObserver,
    ) -> None:
        healthy = await create_bank_account(test_db)
        broken = await create_bank_account(test_db)

        class FlakyService(ValuationService):
            async def calculate(self, db, request):
                if request.bank_account_id == broken.id:
                    raise RuntimeError("database went away")
                return await super().calculate(db, request)

        service = FlakyService(
            PriceProviderRegistry(crypto=FakePriceProvider(), fund=FakePriceProvider()), observer
        )

        await recompute_all(
            AssetClass.INTEREST_RATE,
            session_factory=session_factory,
            valuation_service=service,
            observer=observer,
            concurrency=1,
        )

        store = SnapshotStore(test_db)
        assert await store.get_latest(InterestSnapshotKey(healthy.id)) is not None
        assert await store.get_latest(InterestSnapshotKey(broken.id)) is None
        assert observer.batches == [(AssetClass.INTEREST_RATE, 2, 1)]
        assert len(observer.failed) == 1
        assert observer.failed[0][1] == f"bank_account={broken.id}"
        assert isinstance(observer.failed[0][2], RuntimeError)

    async def test_empty_batch(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        observer: RecordingObserver,
    ) -> None:
        service = ValuationService(
            PriceProviderRegistry(crypto=FakePriceProvider(), fund=FakePriceProvider()), observer
        )

        await recompute_all(
            AssetClass.FUND,
            session_factory=session_factory,
            valuation_service=service,
            observer=observer,
        )

        assert observer.batches == [(AssetClass.FUND, 0, 0)]


@pytest.mark.asyncio
class TestRecomputeDispatcher:
    """Tests for RecomputeDispatcher."""

    async def test_dispatch_returns_before_the_run_completes(self) -> None:
        started = asyncio.Event()
        release = asyncio.Event()

        async def runner(asset_class: AssetClass) -> None:
            started.set()
            await release.wait()

        dispatcher = RecomputeDispatcher(runner)
        ack = dispatcher.dispatch(AssetClass.FUND)

        assert ack.asset_class == AssetClass.FUND
        assert dispatcher.pending == 1

        await started.wait()
        release.set()
        await dispatcher.wait_idle()
        assert dispatcher.pending == 0

    async def test_runner_errors_are_contained(self) -> None:
        async def runner(asset_class: AssetClass) -> None:
            raise RuntimeError("batch exploded")

        dispatcher = RecomputeDispatcher(runner)
        dispatcher.dispatch(AssetClass.CRYPTO)

        await dispatcher.wait_idle()
        assert dispatcher.pending == 0

    async def test_shutdown_cancels_runs_in_flight(self) -> None:
        async def runner(asset_class: AssetClass) -> None:
            await asyncio.sleep(3600)

        dispatcher = RecomputeDispatcher(runner)
        first = dispatcher.dispatch(AssetClass.CRYPTO)
        second = dispatcher.dispatch(AssetClass.FUND)
        assert first.task_id != second.task_id

        await dispatcher.shutdown()
        await asyncio.sleep(0)
        assert dispatcher.pending == 0
