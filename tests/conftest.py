"""Test fixtures for PVC reaper tests."""

from __future__ import annotations

from collections.abc import AsyncIterator, Iterator

import pytest
import pytest_asyncio
import respx
from pydantic import SecretStr
from safir.testing.slack import MockSlackWebhook, mock_slack_webhook
from structlog.stdlib import BoundLogger, get_logger

from pvcreaper.config import Config
from pvcreaper.constants import ROOT_LOGGER
from pvcreaper.factory import Factory

from .support.kubernetes import MockReaperKubernetesApi, patch_kubernetes


@pytest.fixture(autouse=True)
def environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep settings from the outer environment out of the tests."""
    monkeypatch.delenv("PVC_REAPER_ALERT_HOOK", raising=False)
    monkeypatch.delenv("PVC_REAPER_CONFIG_FILE", raising=False)
    monkeypatch.delenv("PVC_REAPER_DRY_RUN", raising=False)


@pytest.fixture
def config() -> Config:
    """Construct default configuration for tests."""
    return Config()


@pytest.fixture
def logger() -> BoundLogger:
    return get_logger(ROOT_LOGGER)


@pytest.fixture
def mock_kubernetes() -> Iterator[MockReaperKubernetesApi]:
    yield from patch_kubernetes()


@pytest.fixture
def mock_slack(
    config: Config, respx_mock: respx.Router
) -> Iterator[MockSlackWebhook]:
    config.alert_hook = SecretStr("https://slack.example.com/webhook")
    yield mock_slack_webhook(config.alert_hook.get_secret_value(), respx_mock)
    config.alert_hook = None


@pytest_asyncio.fixture
async def factory(
    config: Config, mock_kubernetes: MockReaperKubernetesApi
) -> AsyncIterator[Factory]:
    """Create a component factory for tests."""
    async with Factory.standalone(config) as factory:
        yield factory
