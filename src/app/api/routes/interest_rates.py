"""Bank account interest rate period endpoints."""

import logging
from uuid import UUID

from fastapi import APIRouter, status

from app.core.deps import DbSession, Observer
from app.models.bank_account import BankAccountInterestRate
from app.schemas.interest_rate import InterestRateCreate, InterestRateResponse, InterestRateUpdate
from app.services import interest_rate_service

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/", response_model=list[InterestRateResponse])
async def list_interest_rates(
    bank_account_id: UUID,
    db: DbSession,
) -> list[BankAccountInterestRate]:
    """
    List the interest rate periods of a bank account, newest start first.

    Raises:
        NotFoundError: 404 if the bank account does not exist
    """
    return await interest_rate_service.list_interest_rates(db, bank_account_id)


@router.post("/", response_model=InterestRateResponse, status_code=status.HTTP_201_CREATED)
async def create_interest_rate(
    bank_account_id: UUID,
    rate_in: InterestRateCreate,
    db: DbSession,
    observer: Observer,
) -> BankAccountInterestRate:
    """
    Add an interest rate period to a bank account.

    An open-ended period still running on the new start date is closed the day before.
    The account's interest projection is recalculated afterwards.

    Raises:
        NotFoundError: 404 if the bank account does not exist
        OverlappingPeriodError: 400 if the period overlaps an existing one
    """
    return await interest_rate_service.create_interest_rate(
        db, bank_account_id, rate_in, observer=observer
    )


@router.get("/{rate_id}", response_model=InterestRateResponse)
async def get_interest_rate(
    bank_account_id: UUID,
    rate_id: UUID,
    db: DbSession,
) -> BankAccountInterestRate:
    """Get one interest rate period."""
    return await interest_rate_service.get_interest_rate(db, bank_account_id, rate_id)


@router.patch("/{rate_id}", response_model=InterestRateResponse)
async def update_interest_rate(
    bank_account_id: UUID,
    rate_id: UUID,
    rate_in: InterestRateUpdate,
    db: DbSession,
    observer: Observer,
) -> BankAccountInterestRate:
    """
    Update an interest rate period.

    Raises:
        NotFoundError: 404 if the account or period does not exist
        ValidationError: 400 if the end date is before the start date
        OverlappingPeriodError: 400 if the new bounds overlap another period
    """
    return await interest_rate_service.update_interest_rate(
        db, bank_account_id, rate_id, rate_in, observer=observer
    )


@router.delete("/{rate_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_interest_rate(
    bank_account_id: UUID,
    rate_id: UUID,
    db: DbSession,
    observer: Observer,
) -> None:
    """Delete an interest rate period."""
    await interest_rate_service.delete_interest_rate(
        db, bank_account_id, rate_id, observer=observer
    )
