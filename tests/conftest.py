"""Pytest fixtures for testing."""

from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.core.deps import get_observer, get_price_providers, get_recompute_dispatcher
from app.db.base import Base
from app.db.session import get_db
from app.schemas.calculation import AssetClass
from app.services.batch import RecomputeDispatcher
from app.services.pricing.base import PriceProviderRegistry
from doubles import FakePriceProvider, RecordingObserver
from main import app


@pytest_asyncio.fixture(scope="function")
async def test_engine(tmp_path):
    """Create a file-backed SQLite engine so several sessions share one database."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        echo=False,
    )

    @event.listens_for(engine.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    # Create all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    # Drop all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture(scope="function")
def session_factory(test_engine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the test engine."""
    return async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture(scope="function")
async def test_db(session_factory) -> AsyncGenerator[AsyncSession]:
    """Create a test database session."""
    async with session_factory() as session:
        yield session


@pytest.fixture(scope="function")
def observer() -> RecordingObserver:
    return RecordingObserver()


@pytest.fixture(scope="function")
def crypto_prices() -> FakePriceProvider:
    return FakePriceProvider({"BTC": "60000"})


@pytest.fixture(scope="function")
def fund_prices() -> FakePriceProvider:
    return FakePriceProvider()


@pytest.fixture(scope="function")
def price_providers(
    crypto_prices: FakePriceProvider, fund_prices: FakePriceProvider
) -> PriceProviderRegistry:
    return PriceProviderRegistry(crypto=crypto_prices, fund=fund_prices)


@pytest.fixture(scope="function")
def recompute_runs() -> list[AssetClass]:
    """Asset classes the test dispatcher was asked to recompute."""
    return []


@pytest_asyncio.fixture(scope="function")
async def dispatcher(recompute_runs: list[AssetClass]) -> AsyncGenerator[RecomputeDispatcher]:
    """Dispatcher whose batch runs only record the requested asset class."""

    async def runner(asset_class: AssetClass) -> None:
        recompute_runs.append(asset_class)

    recompute_dispatcher = RecomputeDispatcher(runner)
    yield recompute_dispatcher
    await recompute_dispatcher.shutdown()


@pytest_asyncio.fixture(scope="function")
async def client(
    test_db: AsyncSession,
    observer: RecordingObserver,
    price_providers: PriceProviderRegistry,
    dispatcher: RecomputeDispatcher,
) -> AsyncGenerator[AsyncClient]:
    """Create a test client with database and collaborator overrides.

    ``ASGITransport`` does not run the lifespan, so everything the lifespan
    puts on ``app.state`` is injected through dependency overrides.
    """

    async def override_get_db() -> AsyncGenerator[AsyncSession]:
        yield test_db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_observer] = lambda: observer
    app.dependency_overrides[get_price_providers] = lambda: price_providers
    app.dependency_overrides[get_recompute_dispatcher] = lambda: dispatcher

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as test_client:
        yield test_client

    app.dependency_overrides.clear()
