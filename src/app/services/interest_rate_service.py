"""Service layer for bank account interest rate periods.

Every write locks the owning bank account row, runs the overlap guard and
performs the write inside one transaction. After a successful write the
account's interest projection is recalculated; a failing recalculation is
logged and leaves the committed write in place.
"""

import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError, ValidationError
from app.core.observer import LoggingValuationObserver, ValuationObserver
from app.db.session import transactional
from app.models.bank_account import BankAccount, BankAccountInterestRate
from app.repositories.bank_account import BankAccountRepository
from app.repositories.interest_rate import InterestRateRepository
from app.schemas.interest_rate import InterestRateCreate, InterestRateUpdate
from app.services.calculators import InterestRateCalculator
from app.services.interval_guard import assert_no_overlap

logger = logging.getLogger(__name__)

_PERIOD_FIELDS = frozenset({"interest_rate", "start_date", "end_date"})


async def _lock_bank_account(db: AsyncSession, bank_account_id: UUID) -> BankAccount:
    account = await BankAccountRepository(BankAccount, db).get_for_update(bank_account_id)
    if account is None:
        raise NotFoundError(f"Bank account {bank_account_id} not found")
    return account


async def _get_rate_or_404(
    db: AsyncSession,
    bank_account_id: UUID,
    rate_id: UUID,
) -> BankAccountInterestRate:
    rate = await InterestRateRepository(BankAccountInterestRate, db).get_by_id_and_account(
        rate_id, bank_account_id
    )
    if rate is None:
        raise NotFoundError(f"Interest rate {rate_id} not found for bank account {bank_account_id}")
    return rate


async def recalculate_interest(
    db: AsyncSession,
    bank_account_id: UUID,
    observer: ValuationObserver | None = None,
) -> None:
    """Re-run the interest projection of an account after a rate change.

    Errors are logged, never raised: the rate write has already been committed.
    """
    calculator = InterestRateCalculator(observer or LoggingValuationObserver())
    try:
        async with transactional(db):
            await calculator.calculate(db, bank_account_id)
    except Exception as e:
        logger.error(
            f"Interest recalculation failed for bank account {bank_account_id}: {e}",
            exc_info=True,
        )


async def list_interest_rates(
    db: AsyncSession,
    bank_account_id: UUID,
) -> list[BankAccountInterestRate]:
    """List the rate periods of a bank account, newest start first.

    Raises:
        NotFoundError: If the bank account does not exist
    """
    if await BankAccountRepository(BankAccount, db).get(bank_account_id) is None:
        raise NotFoundError(f"Bank account {bank_account_id} not found")
    return await InterestRateRepository(BankAccountInterestRate, db).get_by_account_id(
        bank_account_id
    )


async def get_interest_rate(
    db: AsyncSession,
    bank_account_id: UUID,
    rate_id: UUID,
) -> BankAccountInterestRate:
    """Get one rate period of a bank account.

    Raises:
        NotFoundError: If the period does not exist or belongs to another account
    """
    return await _get_rate_or_404(db, bank_account_id, rate_id)


async def create_interest_rate(
    db: AsyncSession,
    bank_account_id: UUID,
    rate_in: InterestRateCreate,
    *,
    observer: ValuationObserver | None = None,
) -> BankAccountInterestRate:
    """Create a rate period for a bank account.

    Open-ended periods still running when the new one starts are closed on
    the day before its start. The overlap guard then checks the new period
    against the bounded periods.

    Args:
        db: Database session
        bank_account_id: Owning bank account
        rate_in: Rate, start date and optional end date
        observer: Receives the recalculation events

    Returns:
        The created rate period

    Raises:
        NotFoundError: If the bank account does not exist
        OverlappingPeriodError: If the period overlaps an existing one

    Example:
        >>> rate = await create_interest_rate(
        ...     db, account_id, InterestRateCreate(interest_rate=Decimal("2.50"), start_date=date(2026, 1, 1))
        ... )
    """
    async with transactional(db):
        await _lock_bank_account(db, bank_account_id)

        repo = InterestRateRepository(BankAccountInterestRate, db)
        closed = await repo.close_open_periods_before(bank_account_id, rate_in.start_date)
        if closed:
            logger.info(
                f"Closed {closed} running interest rate period(s) of bank account "
                f"{bank_account_id} before {rate_in.start_date}"
            )

        await assert_no_overlap(db, bank_account_id, rate_in.start_date, rate_in.end_date)

        rate = await repo.create(
            obj_in={**rate_in.model_dump(), "bank_account_id": bank_account_id}
        )

    logger.info(
        f"Created interest rate {rate.id} ({rate.interest_rate}%) for bank account "
        f"{bank_account_id} from {rate.start_date} to {rate.end_date or 'ongoing'}"
    )
    await recalculate_interest(db, bank_account_id, observer)
    return rate


async def update_interest_rate(
    db: AsyncSession,
    bank_account_id: UUID,
    rate_id: UUID,
    rate_in: InterestRateUpdate,
    *,
    observer: ValuationObserver | None = None,
) -> BankAccountInterestRate:
    """Update a rate period, re-checking overlap against the merged bounds.

    The period being updated is excluded from the overlap scan.

    Raises:
        NotFoundError: If the account or period does not exist
        ValidationError: If the merged end date is before the start date
        OverlappingPeriodError: If the new bounds overlap another period
    """
    update_data = rate_in.model_dump(exclude_unset=True)

    async with transactional(db):
        await _lock_bank_account(db, bank_account_id)
        rate = await _get_rate_or_404(db, bank_account_id, rate_id)

        # Only end_date may be cleared; a null rate or start keeps the stored value
        for field in ("interest_rate", "start_date"):
            if field in update_data and update_data[field] is None:
                update_data.pop(field)

        start_date = update_data.get("start_date", rate.start_date)
        end_date = update_data.get("end_date", rate.end_date)
        if end_date is not None and end_date < start_date:
            raise ValidationError("end_date must be on or after start_date")

        if _PERIOD_FIELDS & update_data.keys():
            await assert_no_overlap(db, bank_account_id, start_date, end_date, exclude_id=rate.id)

        rate = await InterestRateRepository(BankAccountInterestRate, db).update(
            db_obj=rate, obj_in=update_data
        )

    logger.info(f"Updated interest rate {rate_id} of bank account {bank_account_id}")
    await recalculate_interest(db, bank_account_id, observer)
    return rate


async def delete_interest_rate(
    db: AsyncSession,
    bank_account_id: UUID,
    rate_id: UUID,
    *,
    observer: ValuationObserver | None = None,
) -> None:
    """Delete a rate period.

    Raises:
        NotFoundError: If the account or period does not exist
    """
    async with transactional(db):
        await _lock_bank_account(db, bank_account_id)
        rate = await _get_rate_or_404(db, bank_account_id, rate_id)
        await InterestRateRepository(BankAccountInterestRate, db).delete(db_obj=rate)

    logger.info(f"Deleted interest rate {rate_id} of bank account {bank_account_id}")
    await recalculate_interest(db, bank_account_id, observer)
