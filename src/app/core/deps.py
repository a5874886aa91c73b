"""Dependencies for FastAPI routes.

Long-lived collaborators (price providers, observer, recompute dispatcher)
are created in the application lifespan and stored on ``app.state``. Tests
swap them through ``app.dependency_overrides``.
"""

from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.observer import ValuationObserver
from app.db.session import get_db
from app.services.batch import RecomputeDispatcher
from app.services.pricing.base import PriceProviderRegistry
from app.services.valuation_service import ValuationService


def get_observer(request: Request) -> ValuationObserver:
    """Get the valuation observer configured at startup."""
    return request.app.state.valuation_observer


def get_price_providers(request: Request) -> PriceProviderRegistry:
    """Get the price provider registry configured at startup."""
    return request.app.state.price_providers


def get_recompute_dispatcher(request: Request) -> RecomputeDispatcher:
    """Get the background recompute dispatcher configured at startup."""
    return request.app.state.recompute_dispatcher


def get_valuation_service(
    price_providers: Annotated[PriceProviderRegistry, Depends(get_price_providers)],
    observer: Annotated[ValuationObserver, Depends(get_observer)],
) -> ValuationService:
    """
    Build the valuation service for a request.

    Args:
        price_providers: Registry of price providers (injected)
        observer: Valuation event observer (injected)

    Returns:
        ValuationService wired to the shared collaborators
    """
    return ValuationService(price_providers, observer)


# Type aliases for cleaner dependency injection
DbSession = Annotated[AsyncSession, Depends(get_db)]
Observer = Annotated[ValuationObserver, Depends(get_observer)]
Valuations = Annotated[ValuationService, Depends(get_valuation_service)]
Dispatcher = Annotated[RecomputeDispatcher, Depends(get_recompute_dispatcher)]
