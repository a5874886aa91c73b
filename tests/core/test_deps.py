"""Tests for core dependencies."""

from types import SimpleNamespace

from app.core.deps import (
    get_observer,
    get_price_providers,
    get_recompute_dispatcher,
    get_valuation_service,
)
from app.schemas.calculation import AssetClass
from app.services.pricing.base import PriceProviderRegistry
from doubles import FakePriceProvider, RecordingObserver


def _request_with_state(**state):
    return SimpleNamespace(app=SimpleNamespace(state=SimpleNamespace(**state)))


def test_collaborators_come_from_app_state():
    observer = RecordingObserver()
    registry = PriceProviderRegistry(crypto=FakePriceProvider(), fund=FakePriceProvider())
    dispatcher = object()
    request = _request_with_state(
        valuation_observer=observer,
        price_providers=registry,
        recompute_dispatcher=dispatcher,
    )

    assert get_observer(request) is observer
    assert get_price_providers(request) is registry
    assert get_recompute_dispatcher(request) is dispatcher


def test_valuation_service_uses_registry_per_asset_class():
    crypto = FakePriceProvider()
    fund = FakePriceProvider()
    observer = RecordingObserver()
    registry = PriceProviderRegistry(crypto=crypto, fund=fund)

    service = get_valuation_service(registry, observer)

    assert service.crypto_calculator.price_provider is crypto
    assert service.fund_calculator.price_provider is fund
    assert service.interest_calculator.observer is observer
    assert registry.for_asset_class(AssetClass.CRYPTO) is crypto
