"""Valuation endpoints: on-demand calculations, latest snapshots, batch recompute."""

import logging
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Body, Path, status

from app.core.deps import DbSession, Dispatcher, Valuations
from app.core.exceptions import NotFoundError
from app.schemas.calculation import (
    AssetClass,
    CalculationResult,
    CalculationVariant,
    CryptoSnapshotResponse,
    FundSnapshotResponse,
    InterestSnapshotResponse,
    RecomputeAck,
)
from app.services.snapshot_store import (
    CryptoSnapshotKey,
    FundSnapshotKey,
    InterestSnapshotKey,
    Snapshot,
    SnapshotKey,
)

router = APIRouter()
logger = logging.getLogger(__name__)


async def _latest_or_404(valuations: Valuations, db: DbSession, key: SnapshotKey) -> Snapshot:
    snapshot = await valuations.get_latest_snapshot(db, key)
    if snapshot is None:
        raise NotFoundError(f"No {key.asset_class.value} calculation stored for {key}")
    return snapshot


@router.post("/", response_model=CalculationResult)
async def calculate(
    calculation: Annotated[CalculationVariant, Body(discriminator="type")],
    db: DbSession,
    valuations: Valuations,
) -> CalculationResult:
    """
    Run one valuation now and store its snapshot.

    The body is a tagged request; ``type`` selects the variant:

    - ``interest_rate``: ``bank_account_id``
    - ``crypto``: ``crypto_exchange_id`` and ``symbol_code``
    - ``fund``: ``roboadvisor_id``

    An unavailable valuation (no balance, cost basis or price) returns
    ``success: false`` and leaves the previous snapshot in place.

    Raises:
        NotFoundError: 404 if the owning account, exchange or roboadvisor does not exist
    """
    return await valuations.calculate(db, calculation)


@router.get("/interest/{bank_account_id}", response_model=InterestSnapshotResponse)
async def get_latest_interest(bank_account_id: UUID, db: DbSession, valuations: Valuations):
    """Get the latest stored interest projection of a bank account."""
    return await _latest_or_404(valuations, db, InterestSnapshotKey(bank_account_id))


@router.get("/crypto/{crypto_exchange_id}/{symbol_code}", response_model=CryptoSnapshotResponse)
async def get_latest_crypto(
    crypto_exchange_id: UUID,
    symbol_code: Annotated[str, Path(min_length=1, max_length=10)],
    db: DbSession,
    valuations: Valuations,
):
    """Get the latest stored value of a crypto symbol on an exchange."""
    return await _latest_or_404(
        valuations, db, CryptoSnapshotKey(crypto_exchange_id, symbol_code)
    )


@router.get("/fund/{roboadvisor_id}", response_model=FundSnapshotResponse)
async def get_latest_fund(roboadvisor_id: UUID, db: DbSession, valuations: Valuations):
    """Get the latest stored value of a roboadvisor fund basket."""
    return await _latest_or_404(valuations, db, FundSnapshotKey(roboadvisor_id))


@router.post(
    "/recompute/{asset_class}",
    response_model=RecomputeAck,
    status_code=status.HTTP_202_ACCEPTED,
)
async def recompute(asset_class: AssetClass, dispatcher: Dispatcher) -> RecomputeAck:
    """
    Schedule recomputation of every position of an asset class.

    Returns as soon as the run is scheduled; completion is not awaited.
    """
    return dispatcher.dispatch(asset_class)
