from __future__ import annotations

import pytest

from tradedash.config import Settings
from tradedash.io.backend import BackendClient
from tradedash.services.fetch import DataFetchOrchestrator
from tradedash.services.filters import FilterStateManager

from helpers import BASE_URL, NOW, StubBackend


@pytest.fixture()
def stub_backend() -> StubBackend:
    return StubBackend()


@pytest.fixture()
def settings() -> Settings:
    return Settings()


@pytest.fixture()
def manager(settings: Settings) -> FilterStateManager:
    return FilterStateManager.from_settings(settings, now=NOW)


@pytest.fixture()
def orchestrator(stub_backend: StubBackend) -> DataFetchOrchestrator:
    return DataFetchOrchestrator(BackendClient(BASE_URL, client_factory=stub_backend.client_factory))
