"""Valuation request, result and snapshot schemas."""

import enum
from datetime import datetime
from decimal import Decimal
from typing import Annotated, Literal
from uuid import UUID

from pydantic import BaseModel, Field


class AssetClass(str, enum.Enum):
    """Asset classes the valuation engine knows how to price."""

    INTEREST_RATE = "interest_rate"
    CRYPTO = "crypto"
    FUND = "fund"


# ----------------------------------------------------------------------------
# Calculation requests (closed set of tagged variants)
# ----------------------------------------------------------------------------


class InterestRateCalculationRequest(BaseModel):
    """Project interest profit for one bank account."""

    type: Literal["interest_rate"] = "interest_rate"
    bank_account_id: UUID


class CryptoCalculationRequest(BaseModel):
    """Value one crypto symbol held on an exchange."""

    type: Literal["crypto"] = "crypto"
    crypto_exchange_id: UUID
    symbol_code: str = Field(..., min_length=1, max_length=10)


class FundCalculationRequest(BaseModel):
    """Value the fund basket of one roboadvisor."""

    type: Literal["fund"] = "fund"
    roboadvisor_id: UUID


CalculationVariant = (
    InterestRateCalculationRequest | CryptoCalculationRequest | FundCalculationRequest
)
CalculationRequest = Annotated[CalculationVariant, Field(discriminator="type")]


# ----------------------------------------------------------------------------
# Calculator outputs
# ----------------------------------------------------------------------------


class InterestValuation(BaseModel):
    """Projected interest profit, before and after tax."""

    bank_account_id: UUID
    balance: Decimal
    interest_rate: Decimal | None
    monthly_profit: Decimal
    annual_profit: Decimal
    monthly_profit_after_tax: Decimal
    annual_profit_after_tax: Decimal
    currency_code: str


class TaxAdjustedValuation(BaseModel):
    """Current value of a taxable position after tax on any gain."""

    current_value: Decimal
    invested_amount: Decimal
    gain: Decimal
    tax_amount: Decimal
    current_value_after_tax: Decimal
    currency_code: str


class CalculationResult(BaseModel):
    """Outcome of a single calculation request."""

    success: bool
    message: str
    calculation_type: AssetClass
    data: InterestValuation | TaxAdjustedValuation | None = None


# ----------------------------------------------------------------------------
# Snapshots
# ----------------------------------------------------------------------------


class InterestSnapshotResponse(BaseModel):
    """Latest stored interest projection for a bank account."""

    bank_account_id: UUID
    monthly_profit: Decimal
    annual_profit: Decimal
    monthly_profit_after_tax: Decimal
    annual_profit_after_tax: Decimal
    currency_code: str
    calculated_at: datetime

    model_config = {"from_attributes": True}


class CryptoSnapshotResponse(BaseModel):
    """Latest stored value for a crypto symbol on an exchange."""

    crypto_exchange_id: UUID
    symbol_code: str
    current_value_after_tax: Decimal
    currency_code: str
    calculated_at: datetime

    model_config = {"from_attributes": True}


class FundSnapshotResponse(BaseModel):
    """Latest stored value for a roboadvisor fund basket."""

    roboadvisor_id: UUID
    current_value_after_tax: Decimal
    currency_code: str
    calculated_at: datetime

    model_config = {"from_attributes": True}


class RecomputeAck(BaseModel):
    """Acknowledgment that a batch recomputation was scheduled."""

    task_id: UUID
    asset_class: AssetClass
    accepted_at: datetime
