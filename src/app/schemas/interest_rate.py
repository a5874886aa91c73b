"""Interest rate period schemas."""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field, model_validator


class InterestRateBase(BaseModel):
    """Base interest rate schema."""

    interest_rate: Decimal = Field(..., ge=0, le=100, decimal_places=2)
    start_date: date
    end_date: date | None = None


class InterestRateCreate(InterestRateBase):
    """Schema for creating an interest rate period."""

    @model_validator(mode="after")
    def validate_bounds(self) -> "InterestRateCreate":
        """Reject periods that end before they start."""
        if self.end_date is not None and self.end_date < self.start_date:
            raise ValueError("end_date must be on or after start_date")
        return self


class InterestRateUpdate(BaseModel):
    """Schema for updating an interest rate period.

    Fields left unset keep their stored value. ``end_date`` may be set
    explicitly to ``null`` to reopen a period.
    """

    interest_rate: Decimal | None = Field(None, ge=0, le=100, decimal_places=2)
    start_date: date | None = None
    end_date: date | None = None


class InterestRateResponse(InterestRateBase):
    """Schema for interest rate response."""

    id: UUID
    bank_account_id: UUID
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
