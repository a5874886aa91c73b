"""Tests for the valuation calculators and their numeric policy."""

import uuid
from datetime import date, timedelta
from decimal import Decimal

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError
from app.schemas.calculation import AssetClass
from app.services.calculators import (
    CryptoCalculator,
    FundCalculator,
    InterestRateCalculator,
    apply_gain_tax,
    parse_price,
    project_interest,
    round_money,
    tax_on_profit,
)
from app.services.snapshot_store import (
    CryptoSnapshotKey,
    FundSnapshotKey,
    InterestSnapshotKey,
    SnapshotStore,
)
from doubles import FakePriceProvider, RecordingObserver
from factories import (
    add_interest_rate,
    create_bank_account,
    create_crypto_position,
    create_roboadvisor,
)


class TestNumericPolicy:
    """Tests for rounding, interest projection and gain taxation."""

    def test_round_money_is_half_up(self) -> None:
        assert round_money(Decimal("0.125")) == Decimal("0.13")
        assert round_money(Decimal("0.124")) == Decimal("0.12")
        assert round_money(Decimal("-0.125")) == Decimal("-0.13")

    def test_project_interest(self) -> None:
        monthly, annual = project_interest(Decimal("10000"), Decimal("2.50"))

        assert annual == Decimal("250.00")
        assert monthly == Decimal("20.83")

    def test_gain_is_taxed(self) -> None:
        result = apply_gain_tax(Decimal("60000"), Decimal("50000"), Decimal("0.30"), "EUR")

        assert result.current_value_after_tax == Decimal("57000.00")
        assert result.gain == Decimal("10000.00")
        assert result.tax_amount == Decimal("3000.00")

    def test_loss_is_not_taxed(self) -> None:
        result = apply_gain_tax(Decimal("40000"), Decimal("50000"), Decimal("0.30"), "EUR")

        assert result.current_value_after_tax == Decimal("40000.00")
        assert result.tax_amount == Decimal("0.00")
        assert result.gain == Decimal("-10000.00")

    def test_break_even_is_not_taxed(self) -> None:
        result = apply_gain_tax(Decimal("50000"), Decimal("50000"), Decimal("0.30"), "EUR")

        assert result.current_value_after_tax == Decimal("50000.00")

    def test_missing_tax_rate_means_no_tax(self) -> None:
        result = apply_gain_tax(Decimal("60000"), Decimal("50000"), None, "EUR")

        assert result.current_value_after_tax == Decimal("60000.00")

    def test_tax_on_profit_only_taxes_positive_profit(self) -> None:
        assert tax_on_profit(Decimal("100"), Decimal("0.19")) == Decimal("81.00")
        assert tax_on_profit(Decimal("0"), Decimal("0.19")) == Decimal("0")

    @pytest.mark.parametrize("raw", [None, "", "abc", "0", "-1", "NaN", "Infinity"])
    def test_parse_price_rejects_unusable_values(self, raw: str | None) -> None:
        assert parse_price(raw) is None

    def test_parse_price(self) -> None:
        assert parse_price("61234.5") == Decimal("61234.5")


@pytest.mark.asyncio
class TestInterestRateCalculator:
    """Tests for InterestRateCalculator."""

    async def test_projects_interest_with_active_rate(
        self, test_db: AsyncSession, observer: RecordingObserver
    ) -> None:
        account = await create_bank_account(
            test_db, balance=Decimal("10000.00"), tax_rate=Decimal("0.19")
        )
        await add_interest_rate(
            test_db, account.id, "2.50", date.today() - timedelta(days=30)
        )

        valuation = await InterestRateCalculator(observer).calculate(test_db, account.id)
        await test_db.commit()

        assert valuation is not None
        assert valuation.annual_profit == Decimal("250.00")
        assert valuation.monthly_profit == Decimal("20.83")
        assert valuation.annual_profit_after_tax == Decimal("202.50")
        assert valuation.monthly_profit_after_tax == Decimal("16.87")

        snapshot = await SnapshotStore(test_db).get_latest(InterestSnapshotKey(account.id))
        assert snapshot is not None
        assert snapshot.annual_profit == Decimal("250.00")
        assert snapshot.currency_code == "EUR"

    async def test_no_active_rate_yields_zero_profit(
        self, test_db: AsyncSession, observer: RecordingObserver
    ) -> None:
        account = await create_bank_account(test_db)
        # Expired long ago
        await add_interest_rate(test_db, account.id, "2.50", date(2020, 1, 1), date(2020, 12, 31))

        valuation = await InterestRateCalculator(observer).calculate(test_db, account.id)

        assert valuation is not None
        assert valuation.interest_rate is None
        assert valuation.monthly_profit == Decimal("0.00")
        assert valuation.annual_profit == Decimal("0.00")

    async def test_rate_is_picked_for_the_requested_day(
        self, test_db: AsyncSession, observer: RecordingObserver
    ) -> None:
        account = await create_bank_account(test_db, balance=Decimal("1200.00"))
        await add_interest_rate(test_db, account.id, "1.00", date(2026, 1, 1), date(2026, 6, 30))
        await add_interest_rate(test_db, account.id, "3.00", date(2026, 7, 1), date(2026, 12, 31))

        valuation = await InterestRateCalculator(observer).calculate(
            test_db, account.id, on_date=date(2026, 8, 15)
        )

        assert valuation is not None
        assert valuation.interest_rate == Decimal("3.00")
        assert valuation.annual_profit == Decimal("36.00")
        assert valuation.monthly_profit == Decimal("3.00")

    async def test_no_balance_is_skipped(
        self, test_db: AsyncSession, observer: RecordingObserver
    ) -> None:
        account = await create_bank_account(test_db, balance=None)

        valuation = await InterestRateCalculator(observer).calculate(test_db, account.id)

        assert valuation is None
        assert observer.skipped[0][0] == AssetClass.INTEREST_RATE
        assert await SnapshotStore(test_db).get_latest(InterestSnapshotKey(account.id)) is None

    async def test_missing_account(
        self, test_db: AsyncSession, observer: RecordingObserver
    ) -> None:
        with pytest.raises(NotFoundError):
            await InterestRateCalculator(observer).calculate(test_db, uuid.uuid4())


@pytest.mark.asyncio
class TestCryptoCalculator:
    """Tests for CryptoCalculator."""

    async def test_values_position_and_taxes_gain(
        self, test_db: AsyncSession, observer: RecordingObserver
    ) -> None:
        exchange = await create_crypto_position(
            test_db, balance=Decimal("1"), invested_amount=Decimal("50000")
        )
        prices = FakePriceProvider({"BTC": "60000"})

        valuation = await CryptoCalculator(prices, observer).calculate(test_db, exchange.id, "btc")
        await test_db.commit()

        assert valuation is not None
        assert valuation.current_value_after_tax == Decimal("57000.00")
        assert prices.calls == [("BTC", "EUR")]

        snapshot = await SnapshotStore(test_db).get_latest(CryptoSnapshotKey(exchange.id, "BTC"))
        assert snapshot is not None
        assert snapshot.current_value_after_tax == Decimal("57000.00")

    async def test_loss_is_not_taxed(
        self, test_db: AsyncSession, observer: RecordingObserver
    ) -> None:
        exchange = await create_crypto_position(test_db, invested_amount=Decimal("50000"))

        valuation = await CryptoCalculator(
            FakePriceProvider({"BTC": "40000"}), observer
        ).calculate(test_db, exchange.id, "BTC")

        assert valuation is not None
        assert valuation.current_value_after_tax == Decimal("40000.00")

    async def test_unavailable_price_leaves_snapshot_untouched(
        self, test_db: AsyncSession, observer: RecordingObserver
    ) -> None:
        exchange = await create_crypto_position(test_db)
        prices = FakePriceProvider({"BTC": "60000"})
        calculator = CryptoCalculator(prices, observer)
        key = CryptoSnapshotKey(exchange.id, "BTC")

        await calculator.calculate(test_db, exchange.id, "BTC")
        await test_db.commit()
        before = await SnapshotStore(test_db).get_latest(key)
        assert before is not None
        stored_value, stored_at = before.current_value_after_tax, before.calculated_at

        prices.prices["BTC"] = None
        valuation = await calculator.calculate(test_db, exchange.id, "BTC")
        await test_db.commit()

        assert valuation is None
        after = await SnapshotStore(test_db).get_latest(key)
        assert after is not None
        assert after.current_value_after_tax == stored_value
        assert after.calculated_at == stored_at
        assert observer.skipped[-1][2] == "price unavailable in EUR"

    async def test_provider_error_is_skipped_not_raised(
        self, test_db: AsyncSession, observer: RecordingObserver
    ) -> None:
        class BrokenProvider:
            async def get_current_price(self, symbol: str, currency_code: str) -> str | None:
                raise RuntimeError("provider down")

        exchange = await create_crypto_position(test_db)

        valuation = await CryptoCalculator(BrokenProvider(), observer).calculate(
            test_db, exchange.id, "BTC"
        )

        assert valuation is None
        assert observer.failed == []
        assert observer.skipped[0][2] == "price unavailable in EUR"
        assert await SnapshotStore(test_db).get_latest(CryptoSnapshotKey(exchange.id, "BTC")) is None

    async def test_missing_cost_basis_is_skipped(
        self, test_db: AsyncSession, observer: RecordingObserver
    ) -> None:
        exchange = await create_crypto_position(
            test_db, invested_amount=None, invested_currency_code=None
        )
        prices = FakePriceProvider({"BTC": "60000"})

        valuation = await CryptoCalculator(prices, observer).calculate(test_db, exchange.id, "BTC")

        assert valuation is None
        assert prices.calls == []
        assert observer.skipped[0][2] == "missing cost basis"

    async def test_missing_exchange(
        self, test_db: AsyncSession, observer: RecordingObserver
    ) -> None:
        with pytest.raises(NotFoundError):
            await CryptoCalculator(FakePriceProvider(), observer).calculate(
                test_db, uuid.uuid4(), "BTC"
            )


@pytest.mark.asyncio
class TestFundCalculator:
    """Tests for FundCalculator."""

    async def test_values_basket_from_share_counts(
        self, test_db: AsyncSession, observer: RecordingObserver
    ) -> None:
        roboadvisor = await create_roboadvisor(
            test_db,
            funds=[("IE00B3RBWM25", Decimal("10")), ("IE00B4L5Y983", Decimal("20"))],
            deposits=[Decimal("3000"), Decimal("1000")],
            withdrawals=[Decimal("500")],
            tax_rate=Decimal("0.19"),
        )
        prices = FakePriceProvider({"IE00B3RBWM25": "200", "IE00B4L5Y983": "100"})

        valuation = await FundCalculator(prices, observer).calculate(test_db, roboadvisor.id)

        # value 10*200 + 20*100 = 4000, invested 3500, gain 500 taxed at 19%
        assert valuation is not None
        assert valuation.current_value == Decimal("4000.00")
        assert valuation.invested_amount == Decimal("3500.00")
        assert valuation.current_value_after_tax == Decimal("3905.00")
        assert {currency for _, currency in prices.calls} == {"EUR"}

    async def test_funds_without_share_count_are_skipped(
        self, test_db: AsyncSession, observer: RecordingObserver
    ) -> None:
        roboadvisor = await create_roboadvisor(
            test_db,
            funds=[("IE00B3RBWM25", Decimal("10")), ("IE00B4L5Y983", None)],
            deposits=[Decimal("1000")],
        )
        prices = FakePriceProvider({"IE00B3RBWM25": "100", "IE00B4L5Y983": "100"})

        valuation = await FundCalculator(prices, observer).calculate(test_db, roboadvisor.id)

        assert valuation is not None
        assert valuation.current_value == Decimal("1000.00")
        assert [symbol for symbol, _ in prices.calls] == ["IE00B3RBWM25"]

    async def test_half_of_funds_priced_is_enough(
        self, test_db: AsyncSession, observer: RecordingObserver
    ) -> None:
        roboadvisor = await create_roboadvisor(
            test_db,
            funds=[("IE00B3RBWM25", Decimal("10")), ("IE00B4L5Y983", Decimal("10"))],
            deposits=[Decimal("500")],
        )
        prices = FakePriceProvider({"IE00B3RBWM25": "100"})

        valuation = await FundCalculator(prices, observer).calculate(test_db, roboadvisor.id)

        assert valuation is not None
        assert valuation.current_value == Decimal("1000.00")

    async def test_too_few_prices_is_unavailable(
        self, test_db: AsyncSession, observer: RecordingObserver
    ) -> None:
        roboadvisor = await create_roboadvisor(
            test_db,
            funds=[
                ("IE00B3RBWM25", Decimal("10")),
                ("IE00B4L5Y983", Decimal("10")),
                ("LU0996182563", Decimal("10")),
            ],
            deposits=[Decimal("500")],
        )
        prices = FakePriceProvider({"IE00B3RBWM25": "100"})

        valuation = await FundCalculator(prices, observer).calculate(test_db, roboadvisor.id)

        assert valuation is None
        assert observer.skipped[0][2] == "only 1 out of 3 eligible fund prices retrieved"
        assert await SnapshotStore(test_db).get_latest(FundSnapshotKey(roboadvisor.id)) is None

    async def test_no_cash_movements_is_unavailable(
        self, test_db: AsyncSession, observer: RecordingObserver
    ) -> None:
        roboadvisor = await create_roboadvisor(test_db, funds=[("IE00B3RBWM25", Decimal("10"))])

        valuation = await FundCalculator(
            FakePriceProvider({"IE00B3RBWM25": "100"}), observer
        ).calculate(test_db, roboadvisor.id)

        assert valuation is None
        assert observer.skipped[0][2] == "missing cost basis"

    async def test_no_funds_is_unavailable(
        self, test_db: AsyncSession, observer: RecordingObserver
    ) -> None:
        roboadvisor = await create_roboadvisor(test_db, funds=[], deposits=[Decimal("100")])

        valuation = await FundCalculator(FakePriceProvider(), observer).calculate(
            test_db, roboadvisor.id
        )

        assert valuation is None
        assert observer.skipped[0][2] == "no funds configured"

    async def test_provider_error_counts_as_missing_price(
        self, test_db: AsyncSession, observer: RecordingObserver
    ) -> None:
        class BrokenProvider:
            async def get_current_price(self, symbol: str, currency_code: str) -> str | None:
                raise RuntimeError("boom")

        roboadvisor = await create_roboadvisor(
            test_db, funds=[("IE00B3RBWM25", Decimal("10"))], deposits=[Decimal("100")]
        )

        valuation = await FundCalculator(BrokenProvider(), observer).calculate(
            test_db, roboadvisor.id
        )

        assert valuation is None
