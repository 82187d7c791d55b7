"""Decide whether a claim should be deleted."""

from __future__ import annotations

from structlog.stdlib import BoundLogger

from ..config import Config
from ..models.domain.kubernetes import ClaimRecord
from ..models.domain.reap import (
    ClusterSnapshot,
    DeletionVerdict,
    MissingNode,
    PendingTooLong,
    PlannedDeletion,
    UnavailableNode,
)
from .correlator import (
    find_referencing_pod,
    find_unschedulable_pod,
    pod_exceeds_pending_threshold,
)
from .criteria import matches_storage_criteria

__all__ = ["DeletionDecider"]


class DeletionDecider:
    """Derive a deletion verdict for each claim from a cluster snapshot.

    The checks run in a fixed priority order and the first one that applies
    wins:

    #. Claims outside the managed storage are never touched.
    #. A claim pinned to a node that no longer exists is deleted, whatever
       state its pods are in.
    #. A claim pinned to a node that is cordoned or not ready is deleted.
    #. If enabled, a claim whose pod has been unschedulable for at least the
       configured threshold is deleted.

    Deciding never has side effects other than logging, so the same snapshot
    always produces the same verdicts.

    Parameters
    ----------
    config
        Reaper configuration.
    logger
        Logger to use.
    """

    def __init__(self, config: Config, logger: BoundLogger) -> None:
        self._config = config
        self._logger = logger

    def manages(self, claim: ClaimRecord) -> bool:
        """Whether the claim is one the reaper may act on."""
        return matches_storage_criteria(claim, self._config)

    def decide(
        self, claim: ClaimRecord, snapshot: ClusterSnapshot
    ) -> DeletionVerdict | None:
        """Decide whether to delete a claim.

        Parameters
        ----------
        claim
            Claim to decide on.
        snapshot
            State of the cluster the decision is based on.

        Returns
        -------
        DeletionVerdict or None
            Reason to delete the claim, or `None` to keep it.
        """
        if not self.manages(claim):
            return None
        inventory = snapshot.inventory

        node = claim.selected_node
        if node is not None:
            if node not in inventory.available:
                pod = find_referencing_pod(
                    claim.name, snapshot.pods, namespace=claim.namespace
                )
                return MissingNode(node=node, pod=pod.name if pod else None)
            if node not in inventory.schedulable:
                reason = inventory.unavailability(node)
                return UnavailableNode(node=node, reason=reason)

        if self._config.check_unschedulable_pods:
            pod = find_unschedulable_pod(
                claim.name,
                snapshot.pods,
                namespace=claim.namespace,
                logger=self._logger.bind(claim=str(claim)),
            )
            threshold = self._config.unschedulable_pod_threshold
            if pod and pod_exceeds_pending_threshold(
                pod, threshold, snapshot.taken_at
            ):
                return PendingTooLong(pod=pod.name)

        return None

    def decide_all(self, snapshot: ClusterSnapshot) -> list[PlannedDeletion]:
        """Decide on every claim in a snapshot.

        Parameters
        ----------
        snapshot
            State of the cluster.

        Returns
        -------
        list of PlannedDeletion
            Claims to delete and why, in the order the claims were listed.
        """
        planned = []
        for claim in snapshot.claims:
            verdict = self.decide(claim, snapshot)
            if verdict is not None:
                planned.append(PlannedDeletion(claim=claim, verdict=verdict))
        return planned
