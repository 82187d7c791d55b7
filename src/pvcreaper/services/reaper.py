"""The reconciliation pass: snapshot the cluster, decide, and delete."""

from __future__ import annotations

from safir.datetime import current_datetime
from structlog.stdlib import BoundLogger

from ..config import Config
from ..models.domain.kubernetes import ClaimRecord, PodRecord
from ..models.domain.reap import ClusterSnapshot, PlannedDeletion, ReapResult
from ..storage.kubernetes.node import NodeStorage
from ..storage.kubernetes.pod import PodStorage
from ..storage.kubernetes.pvc import PersistentVolumeClaimStorage
from .decider import DeletionDecider
from .inventory import build_node_inventory

__all__ = ["Reaper"]


class Reaper:
    """Run reconciliation passes over the cluster.

    Each pass takes a fresh snapshot of nodes, pods, and claims, decides
    which managed claims to delete, and deletes them (or only logs them in a
    dry run). Nothing is kept between passes.

    Parameters
    ----------
    config
        Reaper configuration.
    node_storage
        Storage layer for nodes.
    pod_storage
        Storage layer for pods.
    pvc_storage
        Storage layer for persistent volume claims.
    logger
        Logger to use.
    """

    def __init__(
        self,
        *,
        config: Config,
        node_storage: NodeStorage,
        pod_storage: PodStorage,
        pvc_storage: PersistentVolumeClaimStorage,
        logger: BoundLogger,
    ) -> None:
        self._config = config
        self._node_storage = node_storage
        self._pod_storage = pod_storage
        self._pvc_storage = pvc_storage
        self._logger = logger
        self._decider = DeletionDecider(config, logger)

    async def snapshot(self) -> ClusterSnapshot:
        """Read the current state of the cluster.

        The three listings are not taken atomically. The snapshot is only as
        consistent as the API server makes it.

        Returns
        -------
        ClusterSnapshot
            Current state of nodes, pods, and claims.

        Raises
        ------
        KubernetesError
            Raised if any listing fails. There is no partial snapshot.
        """
        nodes = await self._node_storage.list()
        pods = await self._pod_storage.list_all()
        pvcs = await self._pvc_storage.list_all()
        snapshot = ClusterSnapshot(
            inventory=build_node_inventory(nodes),
            pods=tuple(PodRecord.from_pod(p) for p in pods),
            claims=tuple(ClaimRecord.from_pvc(c) for c in pvcs),
            taken_at=current_datetime(microseconds=True),
        )
        self._logger.info(
            "Loaded cluster state",
            nodes=len(snapshot.inventory.available),
            schedulable_nodes=len(snapshot.inventory.schedulable),
            pods=len(snapshot.pods),
            claims=len(snapshot.claims),
        )
        return snapshot

    def plan(self, snapshot: ClusterSnapshot) -> ReapResult:
        """Decide which claims to delete.

        Parameters
        ----------
        snapshot
            State of the cluster.

        Returns
        -------
        ReapResult
            Planned deletions, with managed claims that will be kept counted
            as skipped. Nothing is counted as deleted yet.
        """
        planned = self._decider.decide_all(snapshot)
        managed = sum(1 for c in snapshot.claims if self._decider.manages(c))
        skipped = managed - len(planned)
        return ReapResult(skipped_count=skipped, planned=planned)

    async def reap(self) -> ReapResult:
        """Run one reconciliation pass.

        Failure to delete one claim is logged and does not stop the pass.

        Returns
        -------
        ReapResult
            Counts for the pass.

        Raises
        ------
        KubernetesError
            Raised if the cluster state could not be read.
        """
        snapshot = await self.snapshot()
        result = self.plan(snapshot)
        for deletion in result.planned:
            if await self._delete(deletion):
                result.deleted_count += 1
            else:
                result.failed_count += 1
        self._logger.info(
            "Reaping complete",
            deleted=result.deleted_count,
            skipped=result.skipped_count,
            failed=result.failed_count,
            dry_run=self._config.dry_run,
        )
        return result

    async def report(self) -> ReapResult:
        """Report what a reconciliation pass would delete.

        Returns
        -------
        ReapResult
            Planned deletions, with nothing deleted.

        Raises
        ------
        KubernetesError
            Raised if the cluster state could not be read.
        """
        snapshot = await self.snapshot()
        result = self.plan(snapshot)
        for deletion in result.planned:
            claim = deletion.claim
            self._logger.info(
                "PersistentVolumeClaim would be deleted",
                namespace=claim.namespace,
                name=claim.name,
                reason=deletion.describe(),
            )
        self._logger.info(
            "Report complete",
            planned=len(result.planned),
            skipped=result.skipped_count,
        )
        return result

    async def _delete(self, deletion: PlannedDeletion) -> bool:
        """Delete one claim, or log the deletion in a dry run.

        Returns
        -------
        bool
            `True` if the claim was (or would have been) deleted, `False` if
            the deletion failed.
        """
        claim = deletion.claim
        reason = deletion.describe()
        logger = self._logger.bind(namespace=claim.namespace, name=claim.name)
        msg = "PersistentVolumeClaim scheduled for deletion"
        logger.info(msg, reason=reason)
        if self._config.dry_run:
            logger.info(
                "[dry run] Would delete PersistentVolumeClaim", reason=reason
            )
            return True
        try:
            await self._pvc_storage.delete(claim.name, claim.namespace)
        except Exception:
            # The claim is evaluated again from scratch on the next pass.
            logger.exception("Failed to delete PersistentVolumeClaim")
            return False
        logger.info("Deleted PersistentVolumeClaim", reason=reason)
        return True
