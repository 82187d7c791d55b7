"""Storage layer for ``Pod`` objects."""

from __future__ import annotations

from kubernetes_asyncio import client
from kubernetes_asyncio.client import ApiClient, ApiException, V1Pod
from structlog.stdlib import BoundLogger

from ...exceptions import KubernetesError

__all__ = ["PodStorage"]


class PodStorage:
    """Storage layer for ``Pod`` objects.

    The reaper only ever reads pods, so no write operations are provided.

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

    async def list_all(self) -> list[V1Pod]:
        """List the pods in every namespace.

        Returns
        -------
        list of kubernetes_asyncio.client.models.V1Pod
            All pods in the cluster.

        Raises
        ------
        KubernetesError
            Raised for exceptions from the Kubernetes API server.
        """
        self._logger.debug("Listing pods in all namespaces")
        try:
            pods = await self._api.list_pod_for_all_namespaces()
        except ApiException as e:
            raise KubernetesError.from_exception(
                "Error listing pods", e, kind="Pod"
            ) from e
        return pods.items
