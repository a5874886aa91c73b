"""Crypto exchange repository for balance and position queries."""

from uuid import UUID

from sqlalchemy import func, select

from app.models.crypto_exchange import CryptoExchange, CryptoExchangeBalance
from app.repositories.base import BaseRepository


class CryptoExchangeRepository(BaseRepository[CryptoExchange]):
    """Repository for CryptoExchange with per-symbol balance lookups.

    Example:
        >>> repo = CryptoExchangeRepository(CryptoExchange, db)
        >>> position = await repo.get_latest_balance(exchange_id, "BTC")
    """

    async def get_latest_balance(
        self,
        exchange_id: UUID,
        symbol_code: str,
    ) -> CryptoExchangeBalance | None:
        """Get the most recent balance row for a symbol on an exchange.

        Args:
            exchange_id: Crypto exchange ID
            symbol_code: Asset symbol (e.g., "BTC")

        Returns:
            Most recent CryptoExchangeBalance or None
        """
        result = await self.db.execute(
            select(CryptoExchangeBalance)
            .where(
                CryptoExchangeBalance.crypto_exchange_id == exchange_id,
                func.upper(CryptoExchangeBalance.symbol_code) == symbol_code.upper(),
            )
            .order_by(CryptoExchangeBalance.created_at.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def get_symbol_positions(self) -> list[tuple[UUID, str]]:
        """Get every distinct (exchange, symbol) pair that has a balance.

        Symbols are upper-cased, so rows stored in mixed case collapse into
        one position.

        Returns:
            List of ``(crypto_exchange_id, symbol_code)`` tuples
        """
        symbol = func.upper(CryptoExchangeBalance.symbol_code)
        result = await self.db.execute(
            select(CryptoExchangeBalance.crypto_exchange_id, symbol)
            .distinct()
            .order_by(CryptoExchangeBalance.crypto_exchange_id, symbol)
        )
        return [(row[0], row[1]) for row in result.all()]
