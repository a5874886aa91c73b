"""Snapshot store: latest valuation per owner key.

Keys are a closed set of frozen dataclasses, one per asset class. The key
type selects the persistence mode:

- ``InterestSnapshotKey`` / ``FundSnapshotKey``: upsert-by-owner, one row per
  bank account or roboadvisor, overwritten in place.
- ``CryptoSnapshotKey``: append a row per computation for the
  (exchange, symbol) pair; the latest ``calculated_at`` wins at read time.

The store never deletes snapshots. They go away only with their owner.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.calculation import (
    BankAccountCalculation,
    CryptoExchangeCalculation,
    RoboadvisorFundCalculation,
)
from app.repositories.calculation import (
    CryptoCalculationRepository,
    bank_account_snapshots,
    roboadvisor_snapshots,
)
from app.schemas.calculation import AssetClass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InterestSnapshotKey:
    """Snapshot key of a bank account interest projection."""

    bank_account_id: UUID

    @property
    def asset_class(self) -> AssetClass:
        return AssetClass.INTEREST_RATE

    def __str__(self) -> str:
        return f"bank_account={self.bank_account_id}"


@dataclass(frozen=True)
class CryptoSnapshotKey:
    """Snapshot key of one crypto symbol on an exchange."""

    crypto_exchange_id: UUID
    symbol_code: str

    def __post_init__(self) -> None:
        # Symbols are stored upper case; normalize so equal keys compare equal
        object.__setattr__(self, "symbol_code", self.symbol_code.upper())

    @property
    def asset_class(self) -> AssetClass:
        return AssetClass.CRYPTO

    def __str__(self) -> str:
        return f"crypto_exchange={self.crypto_exchange_id} symbol={self.symbol_code}"


@dataclass(frozen=True)
class FundSnapshotKey:
    """Snapshot key of a roboadvisor fund basket."""

    roboadvisor_id: UUID

    @property
    def asset_class(self) -> AssetClass:
        return AssetClass.FUND

    def __str__(self) -> str:
        return f"roboadvisor={self.roboadvisor_id}"


SnapshotKey = InterestSnapshotKey | CryptoSnapshotKey | FundSnapshotKey
Snapshot = BankAccountCalculation | CryptoExchangeCalculation | RoboadvisorFundCalculation


@dataclass(frozen=True)
class InterestProfit:
    """Rounded interest figures stored in an interest snapshot."""

    monthly_profit: Decimal
    annual_profit: Decimal
    monthly_profit_after_tax: Decimal
    annual_profit_after_tax: Decimal


class SnapshotStore:
    """Reads and writes valuation snapshots within the caller's session.

    Writes are flushed but not committed; the caller owns the transaction.

    Example:
        >>> store = SnapshotStore(db)
        >>> await store.store(CryptoSnapshotKey(exchange_id, "BTC"), Decimal("57000.00"), "EUR")
        >>> latest = await store.get_latest(CryptoSnapshotKey(exchange_id, "btc"))
    """

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def get_latest(self, key: SnapshotKey) -> Snapshot | None:
        """Get the most recent snapshot stored under ``key``, or None."""
        if isinstance(key, InterestSnapshotKey):
            return await bank_account_snapshots(self.db).get_by_owner(key.bank_account_id)
        if isinstance(key, FundSnapshotKey):
            return await roboadvisor_snapshots(self.db).get_by_owner(key.roboadvisor_id)
        if isinstance(key, CryptoSnapshotKey):
            return await CryptoCalculationRepository(self.db).get_latest(
                key.crypto_exchange_id, key.symbol_code
            )
        raise TypeError(f"Unsupported snapshot key: {key!r}")

    async def store(
        self,
        key: SnapshotKey,
        value: Decimal | InterestProfit,
        currency_code: str,
    ) -> Snapshot:
        """Store a new valuation under ``key``.

        Args:
            key: Owner key; selects upsert or append mode
            value: Rounded tax-adjusted value, or the interest figures for an
                ``InterestSnapshotKey``
            currency_code: Currency of the value

        Returns:
            The stored snapshot row

        Raises:
            TypeError: If the value does not match the key's asset class
        """
        snapshot: Snapshot
        if isinstance(key, InterestSnapshotKey):
            if not isinstance(value, InterestProfit):
                raise TypeError("Interest snapshots require an InterestProfit value")
            snapshot = await bank_account_snapshots(self.db).upsert(
                key.bank_account_id,
                {
                    "monthly_profit": value.monthly_profit,
                    "annual_profit": value.annual_profit,
                    "monthly_profit_after_tax": value.monthly_profit_after_tax,
                    "annual_profit_after_tax": value.annual_profit_after_tax,
                    "currency_code": currency_code,
                },
            )
        elif isinstance(key, FundSnapshotKey):
            if not isinstance(value, Decimal):
                raise TypeError("Fund snapshots require a Decimal value")
            snapshot = await roboadvisor_snapshots(self.db).upsert(
                key.roboadvisor_id,
                {"current_value_after_tax": value, "currency_code": currency_code},
            )
        elif isinstance(key, CryptoSnapshotKey):
            if not isinstance(value, Decimal):
                raise TypeError("Crypto snapshots require a Decimal value")
            snapshot = await CryptoCalculationRepository(self.db).append(
                key.crypto_exchange_id, key.symbol_code, value, currency_code
            )
        else:
            raise TypeError(f"Unsupported snapshot key: {key!r}")

        logger.debug(f"Stored {key.asset_class.value} snapshot for {key}")
        return snapshot
