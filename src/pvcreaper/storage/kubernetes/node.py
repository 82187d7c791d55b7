"""Storage layer for Kubernetes node objects."""

from __future__ import annotations

from kubernetes_asyncio import client
from kubernetes_asyncio.client import ApiClient, ApiException, V1Node
from structlog.stdlib import BoundLogger

from ...exceptions import KubernetesError

__all__ = ["NodeStorage"]


class NodeStorage:
    """Storage layer for Kubernetes node objects.

    Parameters
    ----------
    api_client
        Kubernetes API client.
    logger
        Logger to use.
    """

    def __init__(self, api_client: ApiClient, logger: BoundLogger) -> None:
        self._api = client.CoreV1Api(api_client)
        self._logger = logger

    async def list(self) -> list[V1Node]:
        """Get data about all Kubernetes nodes.

        Returns
        -------
        list of kubernetes_asyncio.client.models.V1Node
            List of node metadata.

        Raises
        ------
        KubernetesError
            Raised for exceptions from the Kubernetes API server.
        """
        self._logger.debug("Getting node data")
        try:
            nodes = await self._api.list_node()
        except ApiException as e:
            raise KubernetesError.from_exception(
                "Error reading node information", e, kind="Node"
            ) from e
        return nodes.items
