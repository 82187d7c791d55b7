"""Classification of Kubernetes nodes into available and schedulable."""

from __future__ import annotations

from collections.abc import Iterable

from kubernetes_asyncio.client import V1Node

from ..models.domain.inventory import (
    Cordoned,
    NodeCause,
    NodeInventory,
    NodeRecord,
    NodeUnavailability,
    NotReady,
    ReadyConditionMissing,
    SchedulabilityUnknown,
)

__all__ = ["build_node_inventory", "classify_node"]


def classify_node(node: V1Node) -> NodeRecord:
    """Decide whether a node can accept new work, and if not, why.

    A node is schedulable if it is not cordoned and its ``Ready`` condition
    is true. Otherwise every applicable cause is recorded: cordoning first,
    then the state of the ``Ready`` condition.

    Parameters
    ----------
    node
        Kubernetes node.

    Returns
    -------
    NodeRecord
        Classification of the node.
    """
    cordoned = bool(node.spec and node.spec.unschedulable)
    ready = None
    if node.status and node.status.conditions:
        for condition in node.status.conditions:
            if condition.type == "Ready":
                ready = condition
                break
    ready_ok = ready is not None and ready.status == "True"
    if not cordoned and ready_ok:
        return NodeRecord(name=node.metadata.name, schedulable=True)

    causes: list[NodeCause] = []
    if cordoned:
        causes.append(Cordoned())
    if ready is None:
        causes.append(ReadyConditionMissing())
    elif not ready_ok:
        causes.append(NotReady(reason=ready.reason or "NotReady"))
    if not causes:
        causes.append(SchedulabilityUnknown())
    return NodeRecord(
        name=node.metadata.name,
        schedulable=False,
        unavailable=NodeUnavailability(causes=tuple(causes)),
    )


def build_node_inventory(nodes: Iterable[V1Node]) -> NodeInventory:
    """Build the node inventory for one reconciliation pass.

    Parameters
    ----------
    nodes
        Every node in the cluster.

    Returns
    -------
    NodeInventory
        Availability of every node.
    """
    records = [
        classify_node(n) for n in nodes if n.metadata and n.metadata.name
    ]
    return NodeInventory.from_records(records)
