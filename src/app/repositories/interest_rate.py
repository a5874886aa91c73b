"""Interest rate repository for effective-dated rate period queries."""

from datetime import date, timedelta
from uuid import UUID

from sqlalchemy import or_, select, update

from app.db.base import utc_now
from app.models.bank_account import BankAccountInterestRate
from app.repositories.base import BaseRepository


class InterestRateRepository(BaseRepository[BankAccountInterestRate]):
    """Repository for BankAccountInterestRate with period queries.

    Example:
        >>> repo = InterestRateRepository(BankAccountInterestRate, db)
        >>> active = await repo.get_active(account_id, date.today())
    """

    async def get_by_account_id(self, account_id: UUID) -> list[BankAccountInterestRate]:
        """Get every rate period of a bank account, newest start first.

        Args:
            account_id: Bank account ID

        Returns:
            List of interest rate periods
        """
        result = await self.db.execute(
            select(BankAccountInterestRate)
            .where(BankAccountInterestRate.bank_account_id == account_id)
            .order_by(BankAccountInterestRate.start_date.desc())
        )
        return list(result.scalars().all())

    async def get_by_id_and_account(
        self,
        rate_id: UUID,
        account_id: UUID,
    ) -> BankAccountInterestRate | None:
        """Get a rate period by ID, ensuring it belongs to the given account.

        Args:
            rate_id: Interest rate ID
            account_id: Bank account ID (for ownership verification)

        Returns:
            The rate period if found and owned by the account, None otherwise
        """
        result = await self.db.execute(
            select(BankAccountInterestRate).where(
                BankAccountInterestRate.id == rate_id,
                BankAccountInterestRate.bank_account_id == account_id,
            )
        )
        return result.scalar_one_or_none()

    async def find_overlapping(
        self,
        account_id: UUID,
        start_date: date,
        end_date: date,
        exclude_id: UUID | None = None,
    ) -> BankAccountInterestRate | None:
        """Find a fully-bounded period of the account that overlaps ``[start, end]``.

        Bounds are inclusive on both sides: two periods overlap iff
        ``s1 <= e2 AND s2 <= e1``, so periods sharing a boundary day conflict.
        Periods without an end date are not part of the scan.

        Args:
            account_id: Bank account ID
            start_date: Proposed period start
            end_date: Proposed period end
            exclude_id: Period to ignore (the record being updated)

        Returns:
            The first conflicting period by start date, or None
        """
        query = select(BankAccountInterestRate).where(
            BankAccountInterestRate.bank_account_id == account_id,
            BankAccountInterestRate.end_date.is_not(None),
            BankAccountInterestRate.start_date <= end_date,
            BankAccountInterestRate.end_date >= start_date,
        )
        if exclude_id is not None:
            query = query.where(BankAccountInterestRate.id != exclude_id)

        result = await self.db.execute(
            query.order_by(BankAccountInterestRate.start_date.asc()).limit(1)
        )
        return result.scalar_one_or_none()

    async def get_active(
        self,
        account_id: UUID,
        on_date: date,
    ) -> BankAccountInterestRate | None:
        """Get the rate period whose bounds contain ``on_date``.

        When several match (open-ended periods are not overlap-checked), the
        one with the latest start wins, then the most recently created.

        Args:
            account_id: Bank account ID
            on_date: Day the rate must be effective on

        Returns:
            The active rate period or None
        """
        result = await self.db.execute(
            select(BankAccountInterestRate)
            .where(
                BankAccountInterestRate.bank_account_id == account_id,
                BankAccountInterestRate.start_date <= on_date,
                or_(
                    BankAccountInterestRate.end_date.is_(None),
                    BankAccountInterestRate.end_date >= on_date,
                ),
            )
            .order_by(
                BankAccountInterestRate.start_date.desc(),
                BankAccountInterestRate.created_at.desc(),
            )
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def close_open_periods_before(self, account_id: UUID, new_start: date) -> int:
        """End the open-ended periods that would still be running when a new one starts.

        Every open-ended period of the account that started before ``new_start``
        gets ``end_date = new_start - 1``. Bounded periods are left alone; the
        overlap guard rejects any conflict with them.

        Args:
            account_id: Bank account ID
            new_start: Start date of the period about to be inserted

        Returns:
            Number of periods closed
        """
        result = await self.db.execute(
            update(BankAccountInterestRate)
            .where(
                BankAccountInterestRate.bank_account_id == account_id,
                BankAccountInterestRate.start_date < new_start,
                BankAccountInterestRate.end_date.is_(None),
            )
            .values(end_date=new_start - timedelta(days=1), updated_at=utc_now())
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount or 0
