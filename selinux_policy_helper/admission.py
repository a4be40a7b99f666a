"""Decides what the controller should do with an observed pod."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from kubernetes import client

from .config import (
    OPT_IN_ANNOTATION,
    OWNED_BY_ANNOTATION,
    PHASE_RUNNING,
    PROCESSED_ANNOTATION,
    OptInScope,
)


class Classification(str, Enum):
    IGNORE = "ignore"
    IS_COMPANION = "is-companion"
    NEEDS_POLICY = "needs-policy"


@dataclass(frozen=True)
class AdmissionResult:
    classification: Classification
    reason: str = ""


def _annotations(obj) -> dict:
    if obj is None or obj.metadata is None:
        return {}
    return obj.metadata.annotations or {}


def _phase(pod: client.V1Pod) -> Optional[str]:
    if pod.status is None:
        return None
    return pod.status.phase


def is_companion_pod(pod: client.V1Pod) -> bool:
    """Check if a pod was created by this controller."""
    return OWNED_BY_ANNOTATION in _annotations(pod)


def is_opted_in(
    pod: client.V1Pod,
    namespace: Optional[client.V1Namespace] = None,
    scope: OptInScope = OptInScope.POD_OR_NAMESPACE
) -> bool:
    """Check if policy generation was requested for the pod."""
    if OPT_IN_ANNOTATION in _annotations(pod):
        return True
    if scope == OptInScope.POD_OR_NAMESPACE:
        return OPT_IN_ANNOTATION in _annotations(namespace)
    return False


def classify(
    pod: client.V1Pod,
    namespace: Optional[client.V1Namespace] = None,
    scope: OptInScope = OptInScope.POD_OR_NAMESPACE
) -> AdmissionResult:
    """
    Classify a pod.

    Rules are checked in order: companion pods first, then opt-in, phase
    and finally whether the pod already carries a policy reference.

    Args:
        pod: The observed pod
        namespace: The pod's namespace, only consulted for POD_OR_NAMESPACE
        scope: Where the opt-in annotation is looked up

    Returns:
        AdmissionResult with a reason for ignored pods
    """
    if is_companion_pod(pod):
        return AdmissionResult(Classification.IS_COMPANION)

    if not is_opted_in(pod, namespace, scope):
        return AdmissionResult(Classification.IGNORE, "not opted in")

    if _phase(pod) != PHASE_RUNNING:
        return AdmissionResult(Classification.IGNORE, "not running")

    if PROCESSED_ANNOTATION in _annotations(pod):
        return AdmissionResult(Classification.IGNORE, "already processed")

    return AdmissionResult(Classification.NEEDS_POLICY)
