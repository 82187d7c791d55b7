"""Component factory for the reaper."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Self

import structlog
from kubernetes_asyncio import client
from kubernetes_asyncio.client import ApiClient
from kubernetes_asyncio.config import ConfigException
from safir.kubernetes import initialize_kubernetes
from safir.slack.webhook import SlackWebhookClient
from structlog.stdlib import BoundLogger

from .background import ReaperLoop
from .config import Config
from .constants import ROOT_LOGGER
from .exceptions import KubernetesClientError
from .services.reaper import Reaper
from .storage.kubernetes.node import NodeStorage
from .storage.kubernetes.pod import PodStorage
from .storage.kubernetes.pvc import PersistentVolumeClaimStorage

__all__ = ["Factory"]


class Factory:
    """Build reaper components that share a Kubernetes client.

    Use `standalone` to create one, which also takes care of configuring
    and closing the Kubernetes client.

    Parameters
    ----------
    config
        Reaper configuration.
    kubernetes_client
        Kubernetes API client.
    logger
        Logger to use.
    """

    @classmethod
    @asynccontextmanager
    async def standalone(cls, config: Config) -> AsyncIterator[Self]:
        """Create a factory with a freshly configured Kubernetes client.

        Parameters
        ----------
        config
            Reaper configuration.

        Yields
        ------
        Factory
            Newly-created factory.

        Raises
        ------
        KubernetesClientError
            Raised if no Kubernetes configuration could be loaded.
        """
        logger = structlog.get_logger(ROOT_LOGGER)
        try:
            await initialize_kubernetes()
        except ConfigException as e:
            msg = f"Cannot configure Kubernetes client: {e!s}"
            raise KubernetesClientError(msg) from e
        kubernetes_client = client.ApiClient()
        try:
            yield cls(config, kubernetes_client, logger)
        finally:
            await kubernetes_client.close()

    def __init__(
        self,
        config: Config,
        kubernetes_client: ApiClient,
        logger: BoundLogger,
    ) -> None:
        self._config = config
        self._kubernetes_client = kubernetes_client
        self._logger = logger

    def create_reaper(self) -> Reaper:
        """Create the service that runs a single reconciliation pass."""
        return Reaper(
            config=self._config,
            node_storage=NodeStorage(self._kubernetes_client, self._logger),
            pod_storage=PodStorage(self._kubernetes_client, self._logger),
            pvc_storage=PersistentVolumeClaimStorage(
                self._kubernetes_client, self._logger
            ),
            logger=self._logger,
        )

    def create_reaper_loop(self) -> ReaperLoop:
        """Create the loop that runs reconciliation passes periodically."""
        return ReaperLoop(
            reaper=self.create_reaper(),
            interval=self._config.reap_interval,
            slack_client=self.create_slack_client(),
            logger=self._logger,
        )

    def create_slack_client(self) -> SlackWebhookClient | None:
        """Create a Slack webhook client if alerts are configured."""
        if not self._config.alert_hook:
            return None
        return SlackWebhookClient(
            self._config.alert_hook.get_secret_value(),
            "PVC Reaper",
            self._logger,
        )
