"""Bank account models: accounts, balance history and interest rate periods."""

import uuid
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import CheckConstraint, Date, DateTime, ForeignKey, Index, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base, TimestampMixin, UUIDPrimaryKeyMixin, utc_now


class BankAccount(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """Interest-bearing bank account."""

    __tablename__ = "bank_accounts"

    name: Mapped[str] = mapped_column(String(255))
    currency_code: Mapped[str] = mapped_column(String(3))
    # Tax withheld on interest, as a fraction (0.19 == 19%)
    tax_rate: Mapped[Decimal | None] = mapped_column(Numeric(5, 4), nullable=True)

    # Relationships
    balances: Mapped[list["BankAccountBalance"]] = relationship(
        back_populates="bank_account", cascade="all, delete-orphan", passive_deletes=True
    )
    interest_rates: Mapped[list["BankAccountInterestRate"]] = relationship(
        back_populates="bank_account", cascade="all, delete-orphan", passive_deletes=True
    )
    calculation: Mapped["BankAccountCalculation"] = relationship(  # noqa: F821
        "BankAccountCalculation",
        uselist=False,
        back_populates="bank_account",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class BankAccountBalance(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """Balance of a bank account at a point in time."""

    __tablename__ = "bank_account_balances"

    bank_account_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("bank_accounts.id", ondelete="CASCADE"), index=True
    )
    balance: Mapped[Decimal] = mapped_column(Numeric(15, 2))
    currency_code: Mapped[str] = mapped_column(String(3))
    # Overrides the mixin column to make "latest balance" queries indexable
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, index=True
    )

    bank_account: Mapped[BankAccount] = relationship(back_populates="balances")


class BankAccountInterestRate(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """Effective-dated interest rate for a bank account.

    ``interest_rate`` is a yearly percentage (2.50 == 2.5%). A missing
    ``end_date`` means the rate applies indefinitely.
    """

    __tablename__ = "bank_account_interest_rates"

    bank_account_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("bank_accounts.id", ondelete="CASCADE"), index=True
    )
    interest_rate: Mapped[Decimal] = mapped_column(Numeric(5, 2))
    start_date: Mapped[date] = mapped_column(Date)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    bank_account: Mapped[BankAccount] = relationship(back_populates="interest_rates")

    __table_args__ = (
        CheckConstraint(
            "end_date IS NULL OR end_date >= start_date",
            name="end_date_after_start",
        ),
        Index("ix_interest_rates_account_start", "bank_account_id", "start_date"),
    )
