"""Shared fixtures: a seeded store on a fixed clock and a client around it."""

from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from devsecops_api.config import Settings
from devsecops_api.main import create_app
from devsecops_api.seed import build_seeded_store
from devsecops_api.store import DevSecOpsStore

FIXED_NOW = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    """Callable clock the tests can move forward by hand."""

    def __init__(self, now: datetime = FIXED_NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(clock):
    return build_seeded_store(clock=clock)


@pytest.fixture
def empty_store(clock):
    return DevSecOpsStore(clock=clock)


@pytest.fixture
def settings():
    return Settings(_env_file=None, seed_sample_data=False, enable_legacy_routes=True)


@pytest.fixture
def client(store, settings):
    app = create_app(settings=settings, store=store)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def empty_client(empty_store, settings):
    app = create_app(settings=settings, store=empty_store)
    with TestClient(app) as test_client:
        yield test_client
