"""Schemas package."""

from app.schemas.calculation import (
    AssetClass,
    CalculationRequest,
    CalculationResult,
    CalculationVariant,
    CryptoCalculationRequest,
    CryptoSnapshotResponse,
    FundCalculationRequest,
    FundSnapshotResponse,
    InterestRateCalculationRequest,
    InterestSnapshotResponse,
    InterestValuation,
    RecomputeAck,
    TaxAdjustedValuation,
)
from app.schemas.interest_rate import (
    InterestRateBase,
    InterestRateCreate,
    InterestRateResponse,
    InterestRateUpdate,
)

__all__ = [
    # Interest rate schemas
    "InterestRateBase",
    "InterestRateCreate",
    "InterestRateResponse",
    "InterestRateUpdate",
    # Calculation requests
    "AssetClass",
    "CalculationRequest",
    "CalculationVariant",
    "InterestRateCalculationRequest",
    "CryptoCalculationRequest",
    "FundCalculationRequest",
    # Calculation results
    "CalculationResult",
    "InterestValuation",
    "TaxAdjustedValuation",
    # Snapshots
    "InterestSnapshotResponse",
    "CryptoSnapshotResponse",
    "FundSnapshotResponse",
    "RecomputeAck",
]
