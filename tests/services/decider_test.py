"""Tests for deletion decisions."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

from structlog.stdlib import BoundLogger

from pvcreaper.config import Config
from pvcreaper.models.domain.inventory import (
    Cordoned,
    NodeUnavailability,
    NotReady,
)
from pvcreaper.models.domain.kubernetes import ClaimRecord, PodRecord
from pvcreaper.models.domain.reap import (
    ClusterSnapshot,
    DeletionVerdict,
    MissingNode,
    PendingTooLong,
    UnavailableNode,
)
from pvcreaper.services.decider import DeletionDecider
from pvcreaper.services.inventory import build_node_inventory

from ..support.data import make_node, make_pod, make_pvc

NOW = datetime(2025, 1, 1, 12, 0, 0, tzinfo=UTC)


def build_snapshot() -> ClusterSnapshot:
    """Build a cluster with one claim in each interesting state.

    ``c1`` is on a node that is gone, ``c2`` is on a cordoned node, ``c3`` is
    used by a pod that has been unschedulable for 601 seconds, and ``c4`` is
    healthy.
    """
    nodes = [make_node("n1", cordoned=True), make_node("n2")]
    pods = [
        make_pod(
            "p1",
            claims=["c3"],
            created=NOW - timedelta(seconds=601),
        ),
        make_pod("p2", claims=["c4"], phase="Running", scheduled="True"),
    ]
    claims = [
        make_pvc("c1", node="ghost"),
        make_pvc("c2", node="n1"),
        make_pvc("c3", node="n2"),
        make_pvc("c4", node="n2"),
    ]
    return ClusterSnapshot(
        inventory=build_node_inventory(nodes),
        pods=tuple(PodRecord.from_pod(p) for p in pods),
        claims=tuple(ClaimRecord.from_pvc(c) for c in claims),
        taken_at=NOW,
    )


def decide_all(
    decider: DeletionDecider, snapshot: ClusterSnapshot
) -> dict[str, DeletionVerdict | None]:
    return {c.name: decider.decide(c, snapshot) for c in snapshot.claims}


def test_decide(logger: BoundLogger) -> None:
    config = Config(unschedulable_pod_threshold=timedelta(seconds=300))
    decider = DeletionDecider(config, logger)
    verdicts = decide_all(decider, build_snapshot())
    assert verdicts == {
        "c1": MissingNode(node="ghost"),
        "c2": UnavailableNode(
            node="n1", reason=NodeUnavailability(causes=(Cordoned(),))
        ),
        "c3": PendingTooLong(pod="p1"),
        "c4": None,
    }
    verdict = verdicts["c2"]
    assert verdict is not None
    expected = "selected node 'n1' is unavailable (cordoned)"
    assert verdict.describe() == expected


def test_threshold_not_reached(logger: BoundLogger) -> None:
    config = Config(unschedulable_pod_threshold=timedelta(seconds=900))
    decider = DeletionDecider(config, logger)
    verdicts = decide_all(decider, build_snapshot())
    assert verdicts["c3"] is None

    config = Config(unschedulable_pod_threshold=timedelta(seconds=60))
    decider = DeletionDecider(config, logger)
    verdicts = decide_all(decider, build_snapshot())
    assert verdicts["c3"] == PendingTooLong(pod="p1")


def test_unschedulable_check_disabled(logger: BoundLogger) -> None:
    config = Config(check_unschedulable_pods=False)
    decider = DeletionDecider(config, logger)
    verdicts = decide_all(decider, build_snapshot())
    assert verdicts["c3"] is None

    # Node checks still apply.
    assert isinstance(verdicts["c1"], MissingNode)
    assert isinstance(verdicts["c2"], UnavailableNode)


def test_missing_node_names_pod(config: Config, logger: BoundLogger) -> None:
    decider = DeletionDecider(config, logger)
    pod = make_pod("p1", claims=["data"], phase="Running", scheduled="True")
    claim = ClaimRecord.from_pvc(make_pvc("data", node="ghost"))
    snapshot = ClusterSnapshot(
        inventory=build_node_inventory([make_node("n1")]),
        pods=(PodRecord.from_pod(pod),),
        claims=(claim,),
        taken_at=NOW,
    )
    verdict = decider.decide(claim, snapshot)
    assert isinstance(verdict, MissingNode)
    assert verdict == MissingNode(node="ghost", pod="p1")
    assert verdict.describe() == "pod 'p1' references missing node 'ghost'"

    # A pod in another namespace does not count.
    other = ClaimRecord.from_pvc(
        make_pvc("data", namespace="other", node="ghost")
    )
    verdict = decider.decide(other, snapshot)
    assert isinstance(verdict, MissingNode)
    assert verdict == MissingNode(node="ghost")
    assert verdict.describe() == "selected node 'ghost' no longer exists"


def test_no_selected_node(config: Config, logger: BoundLogger) -> None:
    decider = DeletionDecider(config, logger)
    claim = ClaimRecord.from_pvc(make_pvc("data"))
    pod = make_pod("p1", claims=["data"], created=NOW - timedelta(hours=1))
    snapshot = ClusterSnapshot(
        inventory=build_node_inventory([]),
        pods=(PodRecord.from_pod(pod),),
        claims=(claim,),
        taken_at=NOW,
    )
    assert decider.decide(claim, snapshot) == PendingTooLong(pod="p1")

    snapshot = ClusterSnapshot(
        inventory=snapshot.inventory, pods=(), claims=(claim,), taken_at=NOW
    )
    assert decider.decide(claim, snapshot) is None


def test_unmanaged_claims(config: Config, logger: BoundLogger) -> None:
    decider = DeletionDecider(config, logger)
    snapshot = build_snapshot()
    claims = [
        make_pvc("c1", node="ghost", storage_class="standard"),
        make_pvc("c1", node="ghost", provisioner="ebs.csi.aws.com"),
        make_pvc("c1", node="ghost", provisioner=None),
    ]
    for pvc in claims:
        claim = ClaimRecord.from_pvc(pvc)
        assert not decider.manages(claim)
        assert decider.decide(claim, snapshot) is None


def test_repeatable(config: Config, logger: BoundLogger) -> None:
    decider = DeletionDecider(config, logger)
    snapshot = build_snapshot()
    first = decide_all(decider, snapshot)
    assert decide_all(decider, snapshot) == first
    assert snapshot == build_snapshot()


def test_young_pod(logger: BoundLogger) -> None:
    config = Config(unschedulable_pod_threshold=timedelta(seconds=300))
    decider = DeletionDecider(config, logger)
    pod = make_pod("p1", claims=["c3"], created=NOW - timedelta(seconds=60))
    claim = ClaimRecord.from_pvc(make_pvc("c3", node="n2"))
    snapshot = ClusterSnapshot(
        inventory=build_node_inventory([make_node("n2")]),
        pods=(PodRecord.from_pod(pod),),
        claims=(claim,),
        taken_at=NOW,
    )
    assert decider.decide(claim, snapshot) is None


def test_decide_all(config: Config, logger: BoundLogger) -> None:
    decider = DeletionDecider(config, logger)
    planned = decider.decide_all(build_snapshot())
    assert [d.claim.name for d in planned] == ["c1", "c2", "c3"]
    assert [d.describe() for d in planned] == [
        "selected node 'ghost' no longer exists",
        "selected node 'n1' is unavailable (cordoned)",
        "pod 'p1' has been pending past the configured threshold",
    ]


def test_node_checks_before_pending(
    config: Config, logger: BoundLogger
) -> None:
    decider = DeletionDecider(config, logger)
    created = NOW - timedelta(hours=1)
    pods = [
        make_pod("p1", claims=["c1"], created=created),
        make_pod("p2", claims=["c2"], created=created),
    ]
    claims = [make_pvc("c1", node="ghost"), make_pvc("c2", node="n1")]
    snapshot = ClusterSnapshot(
        inventory=build_node_inventory([make_node("n1", cordoned=True)]),
        pods=tuple(PodRecord.from_pod(p) for p in pods),
        claims=tuple(ClaimRecord.from_pvc(c) for c in claims),
        taken_at=NOW,
    )

    # Both pods are unschedulable well past the threshold, but the node
    # checks decide first.
    assert decide_all(decider, snapshot) == {
        "c1": MissingNode(node="ghost", pod="p1"),
        "c2": UnavailableNode(
            node="n1", reason=NodeUnavailability(causes=(Cordoned(),))
        ),
    }


def test_not_ready_node(config: Config, logger: BoundLogger) -> None:
    decider = DeletionDecider(config, logger)
    node = make_node("n3", ready="False", ready_reason="KubeletNotReady")
    claim = ClaimRecord.from_pvc(make_pvc("data", node="n3"))
    snapshot = ClusterSnapshot(
        inventory=build_node_inventory([node]),
        pods=(),
        claims=(claim,),
        taken_at=NOW,
    )
    verdict = decider.decide(claim, snapshot)
    assert isinstance(verdict, UnavailableNode)
    assert verdict == UnavailableNode(
        node="n3",
        reason=NodeUnavailability(causes=(NotReady("KubeletNotReady"),)),
    )
    assert verdict.describe() == (
        "selected node 'n3' is unavailable (Ready=KubeletNotReady)"
    )
