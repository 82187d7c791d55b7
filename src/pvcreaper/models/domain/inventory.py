"""Node availability as seen by one reconciliation pass."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

__all__ = [
    "Cordoned",
    "NodeCause",
    "NodeInventory",
    "NodeRecord",
    "NodeUnavailability",
    "NotReady",
    "ReadyConditionMissing",
    "SchedulabilityUnknown",
    "UNKNOWN_UNAVAILABILITY",
]


@dataclass(frozen=True)
class Cordoned:
    """The node has been marked unschedulable."""

    def __str__(self) -> str:
        return "cordoned"


@dataclass(frozen=True)
class NotReady:
    """The node's ``Ready`` condition is present but not true."""

    reason: str = "NotReady"
    """Reason given by the condition, or ``NotReady`` if it gave none."""

    def __str__(self) -> str:
        return f"Ready={self.reason}"


@dataclass(frozen=True)
class ReadyConditionMissing:
    """The node reports no ``Ready`` condition at all."""

    def __str__(self) -> str:
        return "Ready condition missing"


@dataclass(frozen=True)
class SchedulabilityUnknown:
    """The node is not schedulable but no specific cause was found."""

    def __str__(self) -> str:
        return "Node schedulability unknown"


type NodeCause = (
    Cordoned | NotReady | ReadyConditionMissing | SchedulabilityUnknown
)
"""One reason a node cannot accept new work."""


@dataclass(frozen=True)
class NodeUnavailability:
    """Why a node cannot accept new work.

    All applicable causes are kept, in the order they were determined, so
    that a node that is both cordoned and not ready reports both.
    """

    causes: tuple[NodeCause, ...]
    """Causes, never empty."""

    def __str__(self) -> str:
        return ", ".join(str(c) for c in self.causes)

    @property
    def cordoned(self) -> bool:
        """Whether the node is cordoned."""
        return any(isinstance(c, Cordoned) for c in self.causes)


UNKNOWN_UNAVAILABILITY = NodeUnavailability(
    causes=(SchedulabilityUnknown(),)
)
"""Fallback reason for a node that is not schedulable for no known cause."""


@dataclass(frozen=True)
class NodeRecord:
    """Classification of a single node."""

    name: str
    """Name of the node."""

    schedulable: bool
    """Whether the node can accept new work."""

    unavailable: NodeUnavailability | None = None
    """Why the node cannot accept new work, `None` if it can."""


@dataclass(frozen=True)
class NodeInventory:
    """Availability of every node in the cluster at snapshot time.

    Every name in ``available`` but not in ``schedulable`` has an entry in
    ``unavailable_reasons``.
    """

    available: frozenset[str] = frozenset()
    """Names of all nodes that exist."""

    schedulable: frozenset[str] = frozenset()
    """Names of nodes that can accept new work."""

    unavailable_reasons: Mapping[str, NodeUnavailability] = field(
        default_factory=lambda: MappingProxyType({})
    )
    """Reasons for every existing node that cannot accept new work."""

    @classmethod
    def from_records(cls, records: list[NodeRecord]) -> NodeInventory:
        """Assemble the inventory from classified nodes.

        Parameters
        ----------
        records
            Classification of every node in the cluster.

        Returns
        -------
        NodeInventory
            Corresponding inventory.
        """
        reasons: dict[str, NodeUnavailability] = {}
        for record in records:
            if not record.schedulable:
                reason = record.unavailable or UNKNOWN_UNAVAILABILITY
                reasons[record.name] = reason
        return cls(
            available=frozenset(r.name for r in records),
            schedulable=frozenset(r.name for r in records if r.schedulable),
            unavailable_reasons=MappingProxyType(reasons),
        )

    def unavailability(self, name: str) -> NodeUnavailability:
        """Return why an existing node cannot accept new work.

        Parameters
        ----------
        name
            Name of a node in ``available`` but not ``schedulable``.

        Returns
        -------
        NodeUnavailability
            Recorded reason, or the generic unknown reason.
        """
        return self.unavailable_reasons.get(name, UNKNOWN_UNAVAILABILITY)
