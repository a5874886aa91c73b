"""Batch recomputation of valuation snapshots.

``recompute_all`` values every position of one asset class. Each position
runs in its own session and transaction, so a failure rolls back only that
position and never stops the rest of the batch. Positions are valued
concurrently, bounded by ``CALCULATION_CONCURRENCY``.

``RecomputeDispatcher`` turns a batch run into a background task and answers
with an acknowledgment instead of waiting for completion.
"""

import asyncio
import logging
import uuid
from collections.abc import Awaitable, Callable

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.config import settings
from app.core.observer import ValuationObserver
from app.db.base import utc_now
from app.db.session import transactional
from app.models.bank_account import BankAccount
from app.models.crypto_exchange import CryptoExchange
from app.models.roboadvisor import Roboadvisor
from app.repositories.bank_account import BankAccountRepository
from app.repositories.crypto_exchange import CryptoExchangeRepository
from app.repositories.roboadvisor import RoboadvisorRepository
from app.schemas.calculation import (
    AssetClass,
    CalculationRequest,
    CryptoCalculationRequest,
    FundCalculationRequest,
    InterestRateCalculationRequest,
    RecomputeAck,
)
from app.services.valuation_service import ValuationService

logger = logging.getLogger(__name__)


def _owner_key(request: CalculationRequest) -> str:
    if isinstance(request, InterestRateCalculationRequest):
        return f"bank_account={request.bank_account_id}"
    if isinstance(request, CryptoCalculationRequest):
        return f"crypto_exchange={request.crypto_exchange_id} symbol={request.symbol_code}"
    return f"roboadvisor={request.roboadvisor_id}"


async def list_positions(db: AsyncSession, asset_class: AssetClass) -> list[CalculationRequest]:
    """Build one calculation request per position of an asset class.

    - Interest: every bank account with at least one balance
    - Crypto: every (exchange, symbol) pair with a balance
    - Fund: every roboadvisor
    """
    if asset_class == AssetClass.INTEREST_RATE:
        account_ids = await BankAccountRepository(BankAccount, db).get_ids_with_balances()
        return [InterestRateCalculationRequest(bank_account_id=id_) for id_ in account_ids]
    if asset_class == AssetClass.CRYPTO:
        pairs = await CryptoExchangeRepository(CryptoExchange, db).get_symbol_positions()
        return [
            CryptoCalculationRequest(crypto_exchange_id=exchange_id, symbol_code=symbol)
            for exchange_id, symbol in pairs
        ]
    roboadvisor_ids = await RoboadvisorRepository(Roboadvisor, db).get_all_ids()
    return [FundCalculationRequest(roboadvisor_id=id_) for id_ in roboadvisor_ids]


async def recompute_all(
    asset_class: AssetClass,
    *,
    session_factory: async_sessionmaker[AsyncSession],
    valuation_service: ValuationService,
    observer: ValuationObserver,
    concurrency: int | None = None,
) -> None:
    """Recompute the snapshot of every position of ``asset_class``.

    Per-position errors are reported to the observer and never raised. The
    run reports nothing beyond completing; partial success is normal.

    Args:
        asset_class: Asset class to recompute
        session_factory: Factory for the per-position sessions
        valuation_service: Service running the calculations
        observer: Receives failure and completion events
        concurrency: Maximum positions valued at once
            (default: ``settings.CALCULATION_CONCURRENCY``)
    """
    async with session_factory() as db:
        requests = await list_positions(db, asset_class)

    logger.info(f"Recomputing {len(requests)} {asset_class.value} position(s)")
    semaphore = asyncio.Semaphore(max(1, concurrency or settings.CALCULATION_CONCURRENCY))

    async def run_one(request: CalculationRequest) -> bool:
        async with semaphore:
            async with session_factory() as db:
                try:
                    async with transactional(db):
                        await valuation_service.calculate(db, request)
                except Exception as e:
                    observer.calculation_failed(asset_class, _owner_key(request), e)
                    return False
        return True

    # return_exceptions keeps one cancelled position from cancelling the others
    outcomes = await asyncio.gather(
        *(run_one(request) for request in requests), return_exceptions=True
    )
    failed = sum(1 for outcome in outcomes if outcome is not True)
    observer.batch_completed(asset_class, len(requests), failed)


class RecomputeDispatcher:
    """Runs batch recomputations as background asyncio tasks.

    Args:
        runner: Coroutine function performing one batch run for an asset class

    Example:
        >>> dispatcher = RecomputeDispatcher(lambda asset_class: recompute_all(asset_class, ...))
        >>> ack = dispatcher.dispatch(AssetClass.CRYPTO)
    """

    def __init__(self, runner: Callable[[AssetClass], Awaitable[None]]) -> None:
        self._runner = runner
        self._tasks: dict[uuid.UUID, asyncio.Task[None]] = {}

    @property
    def pending(self) -> int:
        """Number of batch runs not finished yet."""
        return len(self._tasks)

    def dispatch(self, asset_class: AssetClass) -> RecomputeAck:
        """Schedule a batch run and return immediately with an acknowledgment.

        Must be called from a running event loop.
        """
        task_id = uuid.uuid4()
        task = asyncio.create_task(
            self._run(task_id, asset_class),
            name=f"recompute-{asset_class.value}-{task_id}",
        )
        self._tasks[task_id] = task
        task.add_done_callback(lambda _: self._tasks.pop(task_id, None))

        logger.info(f"Scheduled {asset_class.value} recomputation {task_id}")
        return RecomputeAck(task_id=task_id, asset_class=asset_class, accepted_at=utc_now())

    async def _run(self, task_id: uuid.UUID, asset_class: AssetClass) -> None:
        try:
            await self._runner(asset_class)
        except Exception as e:
            logger.error(
                f"Recomputation {task_id} ({asset_class.value}) aborted: {e}", exc_info=True
            )
        else:
            logger.info(f"Recomputation {task_id} ({asset_class.value}) completed")

    async def wait_idle(self) -> None:
        """Wait for every scheduled batch run to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks.values()), return_exceptions=True)

    async def shutdown(self) -> None:
        """Cancel the batch runs still in flight."""
        tasks = list(self._tasks.values())
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        if tasks:
            logger.info(f"Cancelled {len(tasks)} recomputation(s) at shutdown")
