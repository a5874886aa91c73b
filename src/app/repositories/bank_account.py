"""Bank account repository for bank account and balance queries."""

from uuid import UUID

from sqlalchemy import select

from app.models.bank_account import BankAccount, BankAccountBalance
from app.repositories.base import BaseRepository


class BankAccountRepository(BaseRepository[BankAccount]):
    """Repository for BankAccount model with balance lookups.

    Example:
        >>> repo = BankAccountRepository(BankAccount, db)
        >>> balance = await repo.get_latest_balance(account_id)
    """

    async def get_for_update(self, account_id: UUID) -> BankAccount | None:
        """Get a bank account and lock its row for the rest of the transaction.

        Writers of interest rate periods lock the owning account first, which
        serializes concurrent overlap checks for the same account. Dialects
        without row locks (SQLite) ignore the ``FOR UPDATE`` clause.

        Args:
            account_id: Bank account ID

        Returns:
            BankAccount if found, None otherwise
        """
        result = await self.db.execute(
            select(BankAccount).where(BankAccount.id == account_id).with_for_update()
        )
        return result.scalar_one_or_none()

    async def get_latest_balance(self, account_id: UUID) -> BankAccountBalance | None:
        """Get the most recently recorded balance for a bank account.

        Args:
            account_id: Bank account ID

        Returns:
            Most recent BankAccountBalance or None if no balance exists
        """
        result = await self.db.execute(
            select(BankAccountBalance)
            .where(BankAccountBalance.bank_account_id == account_id)
            .order_by(BankAccountBalance.created_at.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def get_ids_with_balances(self) -> list[UUID]:
        """Get the IDs of every bank account that has at least one balance.

        Returns:
            Bank account IDs, ordered for stable batch runs
        """
        result = await self.db.execute(
            select(BankAccountBalance.bank_account_id)
            .distinct()
            .order_by(BankAccountBalance.bank_account_id)
        )
        return list(result.scalars().all())
