"""Configuration settings for the SELinux Policy Helper controller."""

import os
from dataclasses import dataclass
from enum import Enum

# Pod / namespace annotations
OPT_IN_ANNOTATION = "generate-selinux-policy"
PROCESSED_ANNOTATION = "selinux-policy"
OWNED_BY_ANNOTATION = "owned-by-selinux-policy-helper"

# Operator defaults
OPERATOR_NAMESPACE = os.environ.get(
    "OPERATOR_NAMESPACE", "openshift-selinux-policy-helper-operator"
)
COMPANION_IMAGE = "quay.io/jaosorior/selinux-k8s:latest"
COMPANION_CONTAINER_NAME = "selinux-k8s"
COMPANION_COMMAND = "selinuxk8s"
COMPANION_SERVICE_ACCOUNT = "selinux-policy-helper-operator"

# Companion name prefixes
HASHED_NAME_PREFIX = "selinux-k8s-"
CONCAT_NAME_PREFIX = "selinux-k8s-for-"

# Watch settings
WATCH_TIMEOUT_SECONDS = 300
RESYNC_INTERVAL_SECONDS = 300
WATCH_ERROR_BACKOFF_SECONDS = 5

# Work queue settings
DEFAULT_WORKERS = 2
REQUEUE_DELAY_SECONDS = 1.0
BACKOFF_BASE_SECONDS = 0.5
BACKOFF_MAX_SECONDS = 300.0

# Pod phases
PHASE_RUNNING = "Running"
PHASE_SUCCEEDED = "Succeeded"
PHASE_FAILED = "Failed"


class OptInScope(str, Enum):
    """Where the opt-in annotation is looked up."""
    POD_ONLY = "pod"
    POD_OR_NAMESPACE = "namespace"


class NamingScheme(str, Enum):
    """How companion pod names are derived from the target."""
    HASHED = "hashed"
    CONCAT = "concat"


@dataclass
class ControllerConfig:
    """Runtime configuration shared by the reconciler and the factory."""
    operator_namespace: str = OPERATOR_NAMESPACE
    image: str = COMPANION_IMAGE
    service_account: str = COMPANION_SERVICE_ACCOUNT
    opt_in_scope: OptInScope = OptInScope.POD_OR_NAMESPACE
    naming_scheme: NamingScheme = NamingScheme.HASHED
    watch_namespace: str = ""
    workers: int = DEFAULT_WORKERS
    resync_interval: float = RESYNC_INTERVAL_SECONDS
    dry_run: bool = False
