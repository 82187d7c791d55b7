"""Storage layer for ``PersistentVolumeClaim`` objects."""

from __future__ import annotations

from kubernetes_asyncio import client
from kubernetes_asyncio.client import (
    ApiClient,
    ApiException,
    V1PersistentVolumeClaim,
)
from structlog.stdlib import BoundLogger

from ...exceptions import KubernetesError

__all__ = ["PersistentVolumeClaimStorage"]


class PersistentVolumeClaimStorage:
    """Storage layer for ``PersistentVolumeClaim`` objects.

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

    async def delete(self, name: str, namespace: str) -> None:
        """Delete a persistent volume claim.

        A claim that is already gone is not an error.

        Parameters
        ----------
        name
            Name of the claim.
        namespace
            Namespace of the claim.

        Raises
        ------
        KubernetesError
            Raised for exceptions from the Kubernetes API server.
        """
        self._logger.debug(
            "Deleting PersistentVolumeClaim", name=name, namespace=namespace
        )
        try:
            await self._api.delete_namespaced_persistent_volume_claim(
                name, namespace
            )
        except ApiException as e:
            if e.status == 404:
                msg = "PersistentVolumeClaim was already missing"
                self._logger.warning(msg, name=name, namespace=namespace)
                return
            raise KubernetesError.from_exception(
                "Error deleting PersistentVolumeClaim",
                e,
                kind="PersistentVolumeClaim",
                namespace=namespace,
                name=name,
            ) from e

    async def list_all(self) -> list[V1PersistentVolumeClaim]:
        """List the persistent volume claims in every namespace.

        Returns
        -------
        list of kubernetes_asyncio.client.models.V1PersistentVolumeClaim
            All claims in the cluster.

        Raises
        ------
        KubernetesError
            Raised for exceptions from the Kubernetes API server.
        """
        self._logger.debug("Listing PersistentVolumeClaims in all namespaces")
        list_method = self._api.list_persistent_volume_claim_for_all_namespaces
        try:
            pvcs = await list_method()
        except ApiException as e:
            raise KubernetesError.from_exception(
                "Error listing PersistentVolumeClaims",
                e,
                kind="PersistentVolumeClaim",
            ) from e
        return pvcs.items
