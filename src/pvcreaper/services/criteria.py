"""Selection of the claims the reaper is allowed to manage."""

from __future__ import annotations

from ..config import Config
from ..models.domain.kubernetes import ClaimRecord

__all__ = ["matches_storage_criteria"]


def matches_storage_criteria(claim: ClaimRecord, config: Config) -> bool:
    """Determine whether a claim belongs to the managed storage.

    A claim matches only if it names one of the configured storage classes
    and carries a provisioner annotation equal to the configured provisioner.
    A claim missing either is simply not managed.

    Parameters
    ----------
    claim
        Claim to check.
    config
        Reaper configuration.

    Returns
    -------
    bool
        `True` if the reaper may act on this claim, `False` otherwise.
    """
    if claim.storage_class_name is None or claim.provisioner is None:
        return False
    return (
        claim.storage_class_name in config.storage_classes
        and claim.provisioner == config.storage_provisioner
    )
