"""Data types for claims and pods read from Kubernetes."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Self

from kubernetes_asyncio.client import V1PersistentVolumeClaim, V1Pod

from ...constants import PROVISIONER_ANNOTATION, SELECTED_NODE_ANNOTATION

__all__ = [
    "ClaimRecord",
    "PodPhase",
    "PodRecord",
    "PodScheduledCondition",
]


class PodPhase(str, Enum):
    """One of the valid phases reported in the status section of a Pod."""

    PENDING = "Pending"
    RUNNING = "Running"
    SUCCEEDED = "Succeeded"
    FAILED = "Failed"
    UNKNOWN = "Unknown"


@dataclass(frozen=True)
class ClaimRecord:
    """The parts of a ``PersistentVolumeClaim`` the reaper looks at."""

    namespace: str
    """Namespace of the claim."""

    name: str
    """Name of the claim."""

    storage_class_name: str | None = None
    """Storage class requested by the claim, if any."""

    provisioner: str | None = None
    """Value of the storage provisioner annotation, if present."""

    selected_node: str | None = None
    """Node the volume is pinned to, from the selected-node annotation."""

    @classmethod
    def from_pvc(cls, pvc: V1PersistentVolumeClaim) -> Self:
        """Create from a Kubernetes API object.

        Parameters
        ----------
        pvc
            Kubernetes API object.

        Returns
        -------
        ClaimRecord
            The corresponding object.
        """
        annotations = pvc.metadata.annotations or {}
        storage_class = pvc.spec.storage_class_name if pvc.spec else None
        return cls(
            namespace=pvc.metadata.namespace or "",
            name=pvc.metadata.name,
            storage_class_name=storage_class,
            provisioner=annotations.get(PROVISIONER_ANNOTATION),
            selected_node=annotations.get(SELECTED_NODE_ANNOTATION),
        )

    def __str__(self) -> str:
        return f"{self.namespace}/{self.name}"


@dataclass(frozen=True)
class PodScheduledCondition:
    """The ``PodScheduled`` condition from a pod status."""

    status: str
    """Condition status, one of ``True``, ``False``, or ``Unknown``."""

    reason: str | None = None
    """Machine-readable reason for the status, if any."""

    @property
    def unschedulable(self) -> bool:
        """Whether the scheduler gave up placing the pod."""
        return self.status == "False" and self.reason == "Unschedulable"


@dataclass(frozen=True)
class PodRecord:
    """The parts of a ``Pod`` the reaper looks at."""

    namespace: str
    """Namespace of the pod."""

    name: str
    """Name of the pod."""

    phase: str | None = None
    """Phase from the pod status, if reported."""

    creation_timestamp: datetime | None = None
    """When the pod was created, if known."""

    scheduled_condition: PodScheduledCondition | None = None
    """The ``PodScheduled`` condition, if the pod has one."""

    claim_names: tuple[str, ...] = ()
    """Names of claims mounted by the pod, in volume order."""

    @classmethod
    def from_pod(cls, pod: V1Pod) -> Self:
        """Create from a Kubernetes API object.

        Parameters
        ----------
        pod
            Kubernetes API object.

        Returns
        -------
        PodRecord
            The corresponding object.
        """
        phase = None
        scheduled = None
        if pod.status:
            phase = pod.status.phase
            for condition in pod.status.conditions or []:
                if condition.type == "PodScheduled":
                    scheduled = PodScheduledCondition(
                        status=condition.status, reason=condition.reason
                    )
                    break
        claim_names = []
        if pod.spec and pod.spec.volumes:
            claim_names = [
                v.persistent_volume_claim.claim_name
                for v in pod.spec.volumes
                if v.persistent_volume_claim
            ]
        return cls(
            namespace=pod.metadata.namespace or "",
            name=pod.metadata.name,
            phase=phase,
            creation_timestamp=pod.metadata.creation_timestamp,
            scheduled_condition=scheduled,
            claim_names=tuple(claim_names),
        )

    @property
    def pending(self) -> bool:
        """Whether the pod is in the ``Pending`` phase."""
        return self.phase == PodPhase.PENDING.value

    @property
    def unschedulable(self) -> bool:
        """Whether the scheduler has marked the pod unschedulable."""
        if not self.scheduled_condition:
            return False
        return self.scheduled_condition.unschedulable

    def uses_claim(self, claim_name: str) -> bool:
        """Whether the pod mounts the named claim."""
        return claim_name in self.claim_names

    def __str__(self) -> str:
        return f"{self.namespace}/{self.name}"
