"""
SELinux Policy Helper controller.

Watches pods annotated with ``generate-selinux-policy`` (directly or through
their namespace), runs a privileged policy helper pod on the same node, and
records the helper in the pod's ``selinux-policy`` annotation.
"""

from .controller import PodController
from .gateway import ClusterGateway
from .manager import ControllerManager
from .reconciler import Outcome, PodReconciler, ReconcileResult

__all__ = [
    "ClusterGateway",
    "ControllerManager",
    "Outcome",
    "PodController",
    "PodReconciler",
    "ReconcileResult",
]
