"""Correlation of claims with the pods that mount them."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timedelta

from structlog.stdlib import BoundLogger, get_logger

from ..constants import ROOT_LOGGER
from ..models.domain.kubernetes import PodRecord

__all__ = [
    "find_referencing_pod",
    "find_unschedulable_pod",
    "pod_exceeds_pending_threshold",
]


def find_referencing_pod(
    claim_name: str,
    pods: Iterable[PodRecord],
    *,
    namespace: str | None = None,
) -> PodRecord | None:
    """Find the first pod that mounts a claim.

    Only the first pod found is ever returned, even if several pods share
    the claim.

    Parameters
    ----------
    claim_name
        Name of the claim.
    pods
        Pods to search, in order.
    namespace
        If given, only consider pods in this namespace.

    Returns
    -------
    PodRecord or None
        First pod mounting the claim, or `None` if there is none.
    """
    for pod in pods:
        # A pod can only mount claims in its own namespace.
        if namespace is not None and pod.namespace != namespace:
            continue
        if pod.uses_claim(claim_name):
            return pod
    return None


def find_unschedulable_pod(
    claim_name: str,
    pods: Iterable[PodRecord],
    *,
    namespace: str | None = None,
    logger: BoundLogger | None = None,
) -> PodRecord | None:
    """Find the pod stuck waiting to be scheduled with a claim.

    The first pod mounting the claim is the only one inspected. It must be
    pending and marked unschedulable by the scheduler. A pending pod without
    that mark is still being scheduled and is not considered stuck.

    Parameters
    ----------
    claim_name
        Name of the claim.
    pods
        Pods to search, in order.
    namespace
        If given, only consider pods in this namespace.
    logger
        Logger to use.

    Returns
    -------
    PodRecord or None
        The unschedulable pod, or `None` if the claim has none.
    """
    logger = logger or get_logger(ROOT_LOGGER)
    pod = find_referencing_pod(claim_name, pods, namespace=namespace)
    if pod is None or not pod.pending:
        return None
    if not pod.unschedulable:
        logger.debug("Pod is pending but not unschedulable", pod=str(pod))
        return None
    logger.debug("Pod is unschedulable", pod=str(pod))
    return pod


def pod_exceeds_pending_threshold(
    pod: PodRecord, threshold: timedelta, now: datetime
) -> bool:
    """Whether a pod has been pending for at least the threshold.

    A pod with no creation timestamp never exceeds the threshold, since how
    long it has been waiting cannot be measured.

    Parameters
    ----------
    pod
        Pod to check.
    threshold
        Minimum time the pod must have been waiting.
    now
        Current time.

    Returns
    -------
    bool
        `True` if the pod is pending and old enough, `False` otherwise.
    """
    if not pod.pending or pod.creation_timestamp is None:
        return False
    return now - pod.creation_timestamp >= threshold
