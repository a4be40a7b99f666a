"""Deterministic naming of companion pods."""

import hashlib
from dataclasses import dataclass

from .config import CONCAT_NAME_PREFIX, HASHED_NAME_PREFIX, NamingScheme


@dataclass(frozen=True)
class NamespacedName:
    """Identity of a namespaced object."""
    namespace: str
    name: str

    def __str__(self) -> str:
        return f"{self.namespace}/{self.name}"


def companion_pod_name(
    target_name: str,
    target_namespace: str,
    scheme: NamingScheme = NamingScheme.HASHED
) -> str:
    """
    Derive the companion pod name for a target pod.

    The hashed form is a SHA-1 of "<name>-<namespace>", so equal pod names in
    different namespaces get different companions. The concatenated form only
    uses the pod name and is kept for clusters running the older layout.

    Examples:
        ("web-1", "app", HASHED) -> "selinux-k8s-<40 hex chars>"
        ("web-1", "app", CONCAT) -> "selinux-k8s-for-web-1"
    """
    if not target_name:
        raise ValueError("target pod name must not be empty")

    if scheme == NamingScheme.CONCAT:
        return CONCAT_NAME_PREFIX + target_name

    if not target_namespace:
        raise ValueError("target pod namespace must not be empty")

    digest = hashlib.sha1(f"{target_name}-{target_namespace}".encode()).hexdigest()
    return HASHED_NAME_PREFIX + digest


def companion_identity(
    target_name: str,
    target_namespace: str,
    operator_namespace: str,
    scheme: NamingScheme = NamingScheme.HASHED
) -> NamespacedName:
    """Full identity of the companion pod for a target pod."""
    return NamespacedName(
        namespace=operator_namespace,
        name=companion_pod_name(target_name, target_namespace, scheme)
    )
