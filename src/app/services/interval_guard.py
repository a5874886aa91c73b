"""Temporal integrity checks for effective-dated interest rate periods.

Two periods ``[s1, e1]`` and ``[s2, e2]`` overlap iff ``s1 <= e2 and s2 <= e1``.
Bounds are inclusive, so periods that share a boundary day conflict. Only
fully-bounded periods take part in the check: a proposed period without an
end date passes until an end date is supplied, and stored open-ended periods
are ignored by the scan.
"""

import logging
from datetime import date
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import OverlappingPeriodError
from app.models.bank_account import BankAccountInterestRate
from app.repositories.interest_rate import InterestRateRepository

logger = logging.getLogger(__name__)


def periods_overlap(start_a: date, end_a: date, start_b: date, end_b: date) -> bool:
    """Return True if two inclusive date ranges share at least one day."""
    return start_a <= end_b and start_b <= end_a


async def assert_no_overlap(
    db: AsyncSession,
    bank_account_id: UUID,
    start_date: date,
    end_date: date | None,
    exclude_id: UUID | None = None,
) -> None:
    """Reject a proposed rate period that overlaps another period of the account.

    Read-only. Call it inside the same transaction as the write that follows,
    after locking the owning account, so no concurrent writer can admit a
    conflicting period between the check and the insert.

    Args:
        db: Database session (inside the caller's transaction)
        bank_account_id: Owning bank account
        start_date: Proposed start date
        end_date: Proposed end date; ``None`` skips the check
        exclude_id: Period being updated, excluded from the scan

    Raises:
        OverlappingPeriodError: If a stored period shares at least one day
            with the proposed one
    """
    if end_date is None:
        return

    repo = InterestRateRepository(BankAccountInterestRate, db)
    conflict = await repo.find_overlapping(
        bank_account_id, start_date, end_date, exclude_id=exclude_id
    )
    if conflict is None:
        return

    logger.warning(
        f"Rejected interest rate period {start_date}..{end_date} for bank account "
        f"{bank_account_id}: overlaps period {conflict.id} "
        f"({conflict.start_date}..{conflict.end_date})"
    )
    raise OverlappingPeriodError(
        proposed_start=start_date,
        proposed_end=end_date,
        conflicting_id=conflict.id,
        conflicting_start=conflict.start_date,
        conflicting_end=conflict.end_date,
    )
