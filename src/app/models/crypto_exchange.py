"""Crypto exchange models."""

import uuid
from decimal import Decimal

from sqlalchemy import ForeignKey, Index, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class CryptoExchange(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """Exchange or wallet holding one or more crypto assets."""

    __tablename__ = "crypto_exchanges"

    name: Mapped[str] = mapped_column(String(255), index=True)
    # Capital gains tax as a fraction (0.30 == 30%)
    tax_rate: Mapped[Decimal | None] = mapped_column(Numeric(5, 4), nullable=True)

    # Relationships
    balances: Mapped[list["CryptoExchangeBalance"]] = relationship(
        back_populates="crypto_exchange", cascade="all, delete-orphan", passive_deletes=True
    )
    calculations: Mapped[list["CryptoExchangeCalculation"]] = relationship(  # noqa: F821
        "CryptoExchangeCalculation",
        back_populates="crypto_exchange",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class CryptoExchangeBalance(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """Held quantity of one symbol, with the optional cost basis."""

    __tablename__ = "crypto_exchange_balances"

    crypto_exchange_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("crypto_exchanges.id", ondelete="CASCADE"), index=True
    )
    symbol_code: Mapped[str] = mapped_column(String(10))
    balance: Mapped[Decimal] = mapped_column(Numeric(20, 8))
    invested_amount: Mapped[Decimal | None] = mapped_column(Numeric(15, 2), nullable=True)
    invested_currency_code: Mapped[str | None] = mapped_column(String(3), nullable=True)

    crypto_exchange: Mapped[CryptoExchange] = relationship(back_populates="balances")

    __table_args__ = (
        Index(
            "ix_crypto_balances_exchange_symbol_created",
            "crypto_exchange_id",
            "symbol_code",
            "created_at",
        ),
    )

    @property
    def has_cost_basis(self) -> bool:
        """Whether both the invested amount and its currency are recorded."""
        return self.invested_amount is not None and bool(self.invested_currency_code)
