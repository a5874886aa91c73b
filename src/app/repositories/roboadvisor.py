"""Roboadvisor repository for fund basket and cash movement queries."""

from uuid import UUID

from sqlalchemy import select

from app.models.roboadvisor import Roboadvisor, RoboadvisorBalance, RoboadvisorFund
from app.repositories.base import BaseRepository


class RoboadvisorRepository(BaseRepository[Roboadvisor]):
    """Repository for Roboadvisor with fund and balance lookups."""

    async def get_funds(self, roboadvisor_id: UUID) -> list[RoboadvisorFund]:
        """Get the funds held by a roboadvisor."""
        result = await self.db.execute(
            select(RoboadvisorFund)
            .where(RoboadvisorFund.roboadvisor_id == roboadvisor_id)
            .order_by(RoboadvisorFund.weight.desc())
        )
        return list(result.scalars().all())

    async def get_balances(self, roboadvisor_id: UUID) -> list[RoboadvisorBalance]:
        """Get every deposit, withdrawal and adjustment of a roboadvisor."""
        result = await self.db.execute(
            select(RoboadvisorBalance)
            .where(RoboadvisorBalance.roboadvisor_id == roboadvisor_id)
            .order_by(RoboadvisorBalance.movement_date.asc())
        )
        return list(result.scalars().all())

    async def get_all_ids(self) -> list[UUID]:
        """Get the IDs of all roboadvisors."""
        result = await self.db.execute(select(Roboadvisor.id).order_by(Roboadvisor.id))
        return list(result.scalars().all())
