"""Roboadvisor models: managed fund baskets and their cash movements."""

import enum
import uuid
from datetime import date
from decimal import Decimal

from sqlalchemy import Date, Enum, ForeignKey, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class RoboadvisorBalanceType(str, enum.Enum):
    """Kinds of cash movement into or out of a roboadvisor."""

    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    ADJUSTMENT = "adjustment"


class Roboadvisor(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """Managed portfolio holding a weighted basket of funds."""

    __tablename__ = "roboadvisors"

    name: Mapped[str] = mapped_column(String(255))
    currency_code: Mapped[str] = mapped_column(String(3))
    # Capital gains tax as a fraction (0.19 == 19%)
    tax_rate: Mapped[Decimal | None] = mapped_column(Numeric(5, 4), nullable=True)

    # Relationships
    funds: Mapped[list["RoboadvisorFund"]] = relationship(
        back_populates="roboadvisor", cascade="all, delete-orphan", passive_deletes=True
    )
    balances: Mapped[list["RoboadvisorBalance"]] = relationship(
        back_populates="roboadvisor", cascade="all, delete-orphan", passive_deletes=True
    )
    calculation: Mapped["RoboadvisorFundCalculation"] = relationship(  # noqa: F821
        "RoboadvisorFundCalculation",
        uselist=False,
        back_populates="roboadvisor",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class RoboadvisorFund(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """Fund held by a roboadvisor.

    ``weight`` is the target allocation (0.39 == 39%). Weights across a basket
    are expected to sum to about 1.0 but this is not enforced.
    """

    __tablename__ = "roboadvisor_funds"

    roboadvisor_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("roboadvisors.id", ondelete="CASCADE"), index=True
    )
    name: Mapped[str] = mapped_column(String(255))
    isin: Mapped[str] = mapped_column(String(12))
    fund_currency_code: Mapped[str] = mapped_column(String(3))
    weight: Mapped[Decimal] = mapped_column(Numeric(8, 6))
    share_count: Mapped[Decimal | None] = mapped_column(Numeric(20, 8), nullable=True)

    roboadvisor: Mapped[Roboadvisor] = relationship(back_populates="funds")


class RoboadvisorBalance(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """Deposit, withdrawal or adjustment; together they form the cost basis."""

    __tablename__ = "roboadvisor_balances"

    roboadvisor_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("roboadvisors.id", ondelete="CASCADE"), index=True
    )
    type: Mapped[RoboadvisorBalanceType] = mapped_column(Enum(RoboadvisorBalanceType))
    amount: Mapped[Decimal] = mapped_column(Numeric(15, 2))
    currency_code: Mapped[str] = mapped_column(String(3))
    movement_date: Mapped[date] = mapped_column(Date)

    roboadvisor: Mapped[Roboadvisor] = relationship(back_populates="balances")

    @property
    def signed_amount(self) -> Decimal:
        """Amount as it contributes to the invested total."""
        if self.type == RoboadvisorBalanceType.WITHDRAWAL:
            return -self.amount
        return self.amount
