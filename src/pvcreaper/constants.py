"""Global constants."""

from datetime import timedelta

__all__ = [
    "ALERT_HOOK_ENV_VAR",
    "CONFIG_FILE_ENV_VAR",
    "DEFAULT_REAP_INTERVAL",
    "DEFAULT_STORAGE_CLASSES",
    "DEFAULT_STORAGE_PROVISIONER",
    "DEFAULT_UNSCHEDULABLE_POD_THRESHOLD",
    "ENV_PREFIX",
    "PROVISIONER_ANNOTATION",
    "ROOT_LOGGER",
    "SELECTED_NODE_ANNOTATION",
]

ENV_PREFIX = "PVC_REAPER_"
"""Prefix for all environment variables read by the reaper."""

ALERT_HOOK_ENV_VAR = f"{ENV_PREFIX}ALERT_HOOK"
"""Environment variable holding the Slack webhook for CLI-level alerts."""

CONFIG_FILE_ENV_VAR = f"{ENV_PREFIX}CONFIG_FILE"
"""Environment variable naming the YAML configuration file, if any."""

ROOT_LOGGER = "pvcreaper"
"""Name of the logger all reaper logging is done under."""

SELECTED_NODE_ANNOTATION = "volume.kubernetes.io/selected-node"
"""Claim annotation naming the node a topology-aware volume is pinned to."""

PROVISIONER_ANNOTATION = "volume.beta.kubernetes.io/storage-provisioner"
"""Claim annotation naming the storage provisioner responsible for it."""

DEFAULT_STORAGE_CLASSES = ["openebs-lvm"]
"""Storage classes whose claims are managed unless configured otherwise."""

DEFAULT_STORAGE_PROVISIONER = "local.csi.openebs.io"
"""Provisioner whose claims are managed unless configured otherwise."""

DEFAULT_REAP_INTERVAL = timedelta(seconds=60)
"""How frequently to run a reconciliation pass."""

DEFAULT_UNSCHEDULABLE_POD_THRESHOLD = timedelta(seconds=120)
"""How long a pod must be unschedulable before its claim may be deleted."""
