"""Snapshot repositories for persisted valuation results.

Two persistence modes are provided:

- ``OwnerSnapshotRepository``: one row per owner, written with a native
  ``INSERT ... ON CONFLICT DO UPDATE`` keyed by the owner column.
- ``CryptoCalculationRepository``: append-only rows per (exchange, symbol);
  the latest row is selected by ``calculated_at`` at read time.
"""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any, Generic

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.base import utc_now
from app.models.calculation import (
    BankAccountCalculation,
    CryptoExchangeCalculation,
    RoboadvisorFundCalculation,
)
from app.repositories.base import BaseRepository, ModelType


class OwnerSnapshotRepository(BaseRepository[ModelType], Generic[ModelType]):
    """Repository for snapshot tables holding a single row per owner.

    Args:
        model: Snapshot model class
        db: Async database session
        owner_field: Name of the unique owner foreign key column

    Example:
        >>> repo = OwnerSnapshotRepository(BankAccountCalculation, db, "bank_account_id")
        >>> snapshot = await repo.upsert(account_id, {"monthly_profit": Decimal("5.00"), ...})
    """

    def __init__(self, model: type[ModelType], db: AsyncSession, owner_field: str):
        super().__init__(model, db)
        self.owner_field = owner_field
        self.owner_column = getattr(model, owner_field)

    async def get_by_owner(self, owner_id: uuid.UUID) -> ModelType | None:
        """Get the snapshot stored for an owner, if any."""
        result = await self.db.execute(
            select(self.model).where(self.owner_column == owner_id)
        )
        return result.scalar_one_or_none()

    async def upsert(self, owner_id: uuid.UUID, values: dict[str, Any]) -> ModelType:
        """Insert the owner's snapshot or overwrite it in place.

        ``calculated_at`` and ``updated_at`` are always refreshed, so repeated
        calls with identical values still advance the snapshot timestamp.

        Args:
            owner_id: Owner ID (unique key of the snapshot table)
            values: Column values to store

        Returns:
            The stored snapshot, reloaded from the database
        """
        now = utc_now()
        stmt = self.dialect_insert().values(
            id=uuid.uuid4(),
            created_at=now,
            updated_at=now,
            calculated_at=now,
            **{self.owner_field: owner_id},
            **values,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[self.owner_field],
            set_={**values, "calculated_at": now, "updated_at": now},
        )
        await self.db.execute(stmt)

        result = await self.db.execute(
            select(self.model)
            .where(self.owner_column == owner_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one()


def bank_account_snapshots(db: AsyncSession) -> OwnerSnapshotRepository[BankAccountCalculation]:
    """Build the upsert repository for interest snapshots."""
    return OwnerSnapshotRepository(BankAccountCalculation, db, "bank_account_id")


def roboadvisor_snapshots(
    db: AsyncSession,
) -> OwnerSnapshotRepository[RoboadvisorFundCalculation]:
    """Build the upsert repository for fund basket snapshots."""
    return OwnerSnapshotRepository(RoboadvisorFundCalculation, db, "roboadvisor_id")


class CryptoCalculationRepository(BaseRepository[CryptoExchangeCalculation]):
    """Append-only repository for crypto valuations keyed by exchange and symbol."""

    def __init__(self, db: AsyncSession):
        super().__init__(CryptoExchangeCalculation, db)

    async def append(
        self,
        exchange_id: uuid.UUID,
        symbol_code: str,
        current_value_after_tax: Decimal,
        currency_code: str,
        calculated_at: datetime | None = None,
    ) -> CryptoExchangeCalculation:
        """Append a new valuation row for an (exchange, symbol) pair.

        Args:
            exchange_id: Crypto exchange ID
            symbol_code: Asset symbol
            current_value_after_tax: Tax-adjusted value, already rounded
            currency_code: Currency of the value
            calculated_at: Timestamp of the calculation (defaults to now)

        Returns:
            The created snapshot row
        """
        return await self.create(
            obj_in={
                "crypto_exchange_id": exchange_id,
                "symbol_code": symbol_code.upper(),
                "current_value_after_tax": current_value_after_tax,
                "currency_code": currency_code,
                "calculated_at": calculated_at or utc_now(),
            }
        )

    async def get_latest(
        self,
        exchange_id: uuid.UUID,
        symbol_code: str,
    ) -> CryptoExchangeCalculation | None:
        """Get the row with the latest ``calculated_at`` for an (exchange, symbol) pair."""
        result = await self.db.execute(
            select(CryptoExchangeCalculation)
            .where(
                CryptoExchangeCalculation.crypto_exchange_id == exchange_id,
                CryptoExchangeCalculation.symbol_code == symbol_code.upper(),
            )
            .order_by(
                CryptoExchangeCalculation.calculated_at.desc(),
                CryptoExchangeCalculation.created_at.desc(),
            )
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def count(self, exchange_id: uuid.UUID, symbol_code: str) -> int:
        """Count the valuation rows kept for an (exchange, symbol) pair."""
        result = await self.db.execute(
            select(func.count())
            .select_from(CryptoExchangeCalculation)
            .where(
                CryptoExchangeCalculation.crypto_exchange_id == exchange_id,
                CryptoExchangeCalculation.symbol_code == symbol_code.upper(),
            )
        )
        return result.scalar_one()
