"""Valuation snapshot models.

Bank account and roboadvisor snapshots hold one row per owner and are
overwritten on every calculation. Crypto snapshots are appended per
(exchange, symbol) and the latest row wins at read time.
"""

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, ForeignKey, Index, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base, TimestampMixin, UUIDPrimaryKeyMixin, utc_now
from app.models.bank_account import BankAccount
from app.models.crypto_exchange import CryptoExchange
from app.models.roboadvisor import Roboadvisor


class BankAccountCalculation(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """Latest projected interest profit for a bank account."""

    __tablename__ = "bank_account_calculations"

    bank_account_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("bank_accounts.id", ondelete="CASCADE"), unique=True
    )
    monthly_profit: Mapped[Decimal] = mapped_column(Numeric(15, 2))
    annual_profit: Mapped[Decimal] = mapped_column(Numeric(15, 2))
    monthly_profit_after_tax: Mapped[Decimal] = mapped_column(Numeric(15, 2))
    annual_profit_after_tax: Mapped[Decimal] = mapped_column(Numeric(15, 2))
    currency_code: Mapped[str] = mapped_column(String(3))
    calculated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)

    bank_account: Mapped[BankAccount] = relationship(back_populates="calculation")


class RoboadvisorFundCalculation(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """Latest tax-adjusted value of a roboadvisor fund basket."""

    __tablename__ = "roboadvisor_fund_calculations"

    roboadvisor_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("roboadvisors.id", ondelete="CASCADE"), unique=True
    )
    current_value_after_tax: Mapped[Decimal] = mapped_column(Numeric(15, 2))
    currency_code: Mapped[str] = mapped_column(String(3))
    calculated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)

    roboadvisor: Mapped[Roboadvisor] = relationship(back_populates="calculation")


class CryptoExchangeCalculation(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """Tax-adjusted value of one crypto symbol held on an exchange."""

    __tablename__ = "crypto_exchange_calculations"

    crypto_exchange_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("crypto_exchanges.id", ondelete="CASCADE"), index=True
    )
    symbol_code: Mapped[str] = mapped_column(String(10))
    current_value_after_tax: Mapped[Decimal] = mapped_column(Numeric(15, 2))
    currency_code: Mapped[str] = mapped_column(String(3))
    calculated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)

    crypto_exchange: Mapped[CryptoExchange] = relationship(back_populates="calculations")

    __table_args__ = (
        Index(
            "ix_crypto_calcs_exchange_symbol_calculated",
            "crypto_exchange_id",
            "symbol_code",
            "calculated_at",
        ),
    )
