"""Deletion verdicts and the results of a reconciliation pass."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from .inventory import NodeInventory, NodeUnavailability
from .kubernetes import ClaimRecord, PodRecord

__all__ = [
    "ClusterSnapshot",
    "DeletionVerdict",
    "MissingNode",
    "PendingTooLong",
    "PlannedDeletion",
    "ReapResult",
    "UnavailableNode",
]


@dataclass(frozen=True)
class MissingNode:
    """The claim is pinned to a node that no longer exists."""

    node: str
    """Name of the missing node."""

    pod: str | None = None
    """Name of a pod using the claim, if one was found."""

    def describe(self) -> str:
        """Render a one-line explanation for the audit log."""
        if self.pod:
            return f"pod '{self.pod}' references missing node '{self.node}'"
        return f"selected node '{self.node}' no longer exists"


@dataclass(frozen=True)
class UnavailableNode:
    """The claim is pinned to a node that cannot accept new work."""

    node: str
    """Name of the node."""

    reason: NodeUnavailability
    """Why the node cannot accept new work."""

    def describe(self) -> str:
        """Render a one-line explanation for the audit log."""
        return f"selected node '{self.node}' is unavailable ({self.reason})"


@dataclass(frozen=True)
class PendingTooLong:
    """A pod using the claim has been unschedulable past the threshold."""

    pod: str
    """Name of the unschedulable pod."""

    def describe(self) -> str:
        """Render a one-line explanation for the audit log."""
        return (
            f"pod '{self.pod}' has been pending past the configured threshold"
        )


type DeletionVerdict = MissingNode | UnavailableNode | PendingTooLong
"""Reason to delete a claim. Absence of a verdict means keep the claim."""


@dataclass(frozen=True)
class ClusterSnapshot:
    """Everything one pass decides from, taken at a single point in time."""

    inventory: NodeInventory
    """Availability of every node."""

    pods: tuple[PodRecord, ...]
    """Every pod in every namespace."""

    claims: tuple[ClaimRecord, ...]
    """Every claim in every namespace."""

    taken_at: datetime
    """When the snapshot was taken, used to measure pending durations."""


@dataclass(frozen=True)
class PlannedDeletion:
    """A claim the decider chose to delete, and why."""

    claim: ClaimRecord
    """Claim to delete."""

    verdict: DeletionVerdict
    """Reason for deleting it."""

    def describe(self) -> str:
        """Render a one-line explanation for the audit log."""
        return self.verdict.describe()


@dataclass
class ReapResult:
    """Counts from one reconciliation pass."""

    deleted_count: int = 0
    """Claims deleted, or that would have been deleted in a dry run."""

    skipped_count: int = 0
    """Managed claims that were kept."""

    failed_count: int = 0
    """Claims whose deletion failed."""

    planned: list[PlannedDeletion] = field(default_factory=list)
    """Every deletion the decider planned, in claim order."""
