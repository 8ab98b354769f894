"""Unit tests for the service container (farmfocus/services/container.py)"""
import pytest

from farmfocus.services import container as container_module
from farmfocus.services.container import ServiceContainer, get_container, init_container


def test_components_are_lazy_singletons(container):
    assert container._progress_service is None

    first = container.progress_service

    assert container.progress_service is first
    assert first.ledger is container.ledger
    assert first.streaks is container.streaks


def test_components_share_store_and_clock(container, store, clock):
    assert container.ledger.clock is clock
    assert container.streaks.store is store
    assert container.schedulers.clock is clock


def test_get_container_requires_init(monkeypatch):
    monkeypatch.setattr(container_module, "_container", None)

    with pytest.raises(RuntimeError):
        get_container()


def test_init_container(monkeypatch, store, clock):
    monkeypatch.setattr(container_module, "_container", None)

    created = init_container(store, clock)

    assert isinstance(created, ServiceContainer)
    assert get_container() is created
