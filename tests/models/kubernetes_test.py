"""Tests for conversion of Kubernetes objects."""

from __future__ import annotations

from datetime import UTC, datetime

from kubernetes_asyncio.client import V1ObjectMeta, V1PersistentVolumeClaim

from pvcreaper.models.domain.inventory import (
    Cordoned,
    NodeUnavailability,
    NotReady,
)
from pvcreaper.models.domain.kubernetes import (
    ClaimRecord,
    PodRecord,
    PodScheduledCondition,
)
from pvcreaper.models.domain.reap import (
    MissingNode,
    PendingTooLong,
    PlannedDeletion,
    UnavailableNode,
)

from ..support.data import make_pod, make_pvc


def test_claim() -> None:
    claim = ClaimRecord.from_pvc(make_pvc("data", namespace="a", node="n1"))
    assert claim == ClaimRecord(
        namespace="a",
        name="data",
        storage_class_name="openebs-lvm",
        provisioner="local.csi.openebs.io",
        selected_node="n1",
    )
    assert str(claim) == "a/data"

    # A claim with no annotations or spec has none of the optional fields.
    pvc = V1PersistentVolumeClaim(
        metadata=V1ObjectMeta(name="bare", namespace="a")
    )
    claim = ClaimRecord.from_pvc(pvc)
    assert claim.storage_class_name is None
    assert claim.provisioner is None
    assert claim.selected_node is None


def test_pod() -> None:
    created = datetime(2025, 1, 1, tzinfo=UTC)
    pod = make_pod("p1", namespace="a", claims=["c1", "c2"], created=created)
    record = PodRecord.from_pod(pod)
    assert record.phase == "Pending"
    assert record.pending
    assert record.unschedulable
    assert record.creation_timestamp == created
    assert record.scheduled_condition == PodScheduledCondition(
        status="False", reason="Unschedulable"
    )
    assert record.claim_names == ("c1", "c2")
    assert record.uses_claim("c2")
    assert not record.uses_claim("c3")
    assert str(record) == "a/p1"


def test_pod_scheduled() -> None:
    pod = make_pod("p1", phase="Running", scheduled="True")
    record = PodRecord.from_pod(pod)
    assert not record.pending
    assert not record.unschedulable
    assert record.claim_names == ()

    record = PodRecord.from_pod(make_pod("p1", scheduled=None))
    assert record.scheduled_condition is None
    assert not record.unschedulable


def test_describe() -> None:
    claim = ClaimRecord(namespace="a", name="data")
    reason = NodeUnavailability(causes=(Cordoned(), NotReady("Unknown")))
    deletion = PlannedDeletion(
        claim=claim, verdict=UnavailableNode(node="n1", reason=reason)
    )
    expected = "selected node 'n1' is unavailable (cordoned, Ready=Unknown)"
    assert deletion.describe() == expected
    assert MissingNode(node="n1").describe() == (
        "selected node 'n1' no longer exists"
    )
    assert PendingTooLong(pod="p1").describe() == (
        "pod 'p1' has been pending past the configured threshold"
    )
