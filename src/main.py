"""FastAPI application entry point."""

import logging
import logging.config
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from functools import partial

from fastapi import FastAPI

from app import models  # noqa: F401  (registers every mapped class)
from app.api.routes import calculations, health, interest_rates
from app.core.cache import configure_price_cache
from app.core.config import settings
from app.core.exceptions import AppException, app_exception_handler
from app.core.middleware import RequestLoggingMiddleware
from app.core.observer import LoggingValuationObserver
from app.db.base import Base
from app.db.session import AsyncSessionLocal, engine
from app.services.batch import RecomputeDispatcher, recompute_all
from app.services.pricing.base import build_price_providers
from app.services.valuation_service import ValuationService

# Configure logging
logging.config.dictConfig(settings.LOGGING_CONFIG)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan events."""
    logger.info(f"Starting {settings.APP_NAME} ({settings.ENVIRONMENT})")

    async with engine.begin() as conn:
        # Create tables (use Alembic in production)
        if settings.ENVIRONMENT == "development":
            await conn.run_sync(Base.metadata.create_all)

    # Redis-backed HTTP cache for yfinance lookups
    configure_price_cache()

    observer = LoggingValuationObserver()
    price_providers = build_price_providers()
    dispatcher = RecomputeDispatcher(
        partial(
            recompute_all,
            session_factory=AsyncSessionLocal,
            valuation_service=ValuationService(price_providers, observer),
            observer=observer,
        )
    )
    app.state.valuation_observer = observer
    app.state.price_providers = price_providers
    app.state.recompute_dispatcher = dispatcher

    yield

    logger.info("Shutting down application")
    await dispatcher.shutdown()
    await price_providers.aclose()
    await engine.dispose()


app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
    lifespan=lifespan,
)

# Request/response logging with timing and request ids
app.add_middleware(RequestLoggingMiddleware)

# Register exception handlers
app.add_exception_handler(AppException, app_exception_handler)  # type: ignore[arg-type]

# Include routers
app.include_router(health.router, tags=["health"])
app.include_router(
    interest_rates.router,
    prefix="/api/v1/bank-accounts/{bank_account_id}/interest-rates",
    tags=["interest-rates"],
)
app.include_router(calculations.router, prefix="/api/v1/calculations", tags=["calculations"])
