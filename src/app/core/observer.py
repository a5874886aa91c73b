"""Observer hooks for valuation events.

Calculators and the batch driver report what happened through a
``ValuationObserver`` instead of writing to logs or metrics directly, so the
calculation logic can be exercised without any telemetry backend. The default
implementation forwards every event to the standard logging system.
"""

import logging
from decimal import Decimal
from typing import Protocol

from app.schemas.calculation import AssetClass

logger = logging.getLogger("app.valuation")


class ValuationObserver(Protocol):
    """Receives valuation lifecycle events."""

    def snapshot_stored(
        self, asset_class: AssetClass, owner_key: str, value: Decimal, currency_code: str
    ) -> None:
        """A calculation succeeded and its snapshot was written."""
        ...

    def calculation_skipped(self, asset_class: AssetClass, owner_key: str, reason: str) -> None:
        """A calculation could not run this cycle (missing price or cost basis)."""
        ...

    def calculation_failed(
        self, asset_class: AssetClass, owner_key: str, error: BaseException
    ) -> None:
        """A calculation raised inside a batch run."""
        ...

    def batch_completed(self, asset_class: AssetClass, total: int, failed: int) -> None:
        """A batch run finished."""
        ...


class LoggingValuationObserver:
    """Observer that writes valuation events to the ``app.valuation`` logger."""

    def snapshot_stored(
        self, asset_class: AssetClass, owner_key: str, value: Decimal, currency_code: str
    ) -> None:
        logger.info(f"Stored {asset_class.value} valuation for {owner_key}: {value} {currency_code}")

    def calculation_skipped(self, asset_class: AssetClass, owner_key: str, reason: str) -> None:
        logger.warning(f"Skipped {asset_class.value} valuation for {owner_key}: {reason}")

    def calculation_failed(
        self, asset_class: AssetClass, owner_key: str, error: BaseException
    ) -> None:
        logger.error(
            f"Failed {asset_class.value} valuation for {owner_key}: "
            f"{type(error).__name__}: {error}",
            exc_info=error,
        )

    def batch_completed(self, asset_class: AssetClass, total: int, failed: int) -> None:
        logger.info(f"Recomputed {asset_class.value} valuations: {total} positions, {failed} failed")
