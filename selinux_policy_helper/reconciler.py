"""Reconciliation logic for the SELinux Policy Helper controller."""

import copy
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from kubernetes import client

from .admission import Classification, classify, is_companion_pod
from .companion import build_companion_pod
from .config import (
    PHASE_FAILED,
    PHASE_SUCCEEDED,
    PROCESSED_ANNOTATION,
    ControllerConfig,
    OptInScope,
)
from .errors import AlreadyExistsError, NotFoundError
from .gateway import ClusterGateway
from .naming import NamespacedName, companion_identity

logger = logging.getLogger(__name__)


class Outcome(str, Enum):
    NOT_FOUND = "not-found"
    IGNORED = "ignored"
    COMPANION_PENDING = "companion-pending"
    COMPANION_FAILED = "companion-failed"
    COMPANION_DELETED = "companion-deleted"
    COMPANION_CREATED = "companion-created"
    ANNOTATED = "annotated"


@dataclass
class ReconcileResult:
    """What a single reconciliation pass did."""
    outcome: Outcome
    namespace: str
    name: str
    message: str = ""
    requeue: bool = False
    dry_run: bool = False


class PodReconciler:
    """
    Converges a single pod towards its desired state.

    Every call re-reads the pod (and companion) from the API server, so no
    state is carried between calls and concurrent calls are safe.
    """

    def __init__(self, gateway: ClusterGateway, config: Optional[ControllerConfig] = None):
        """
        Initialize the reconciler.

        Args:
            gateway: Cluster API gateway
            config: Controller configuration (defaults if omitted)
        """
        self.gateway = gateway
        self.config = config if config is not None else ControllerConfig()

    def _result(self, outcome: Outcome, pod_key: NamespacedName, message: str = "",
                requeue: bool = False) -> ReconcileResult:
        return ReconcileResult(
            outcome=outcome,
            namespace=pod_key.namespace,
            name=pod_key.name,
            message=message,
            requeue=requeue,
            dry_run=self.config.dry_run
        )

    def reconcile(self, namespace: str, name: str) -> ReconcileResult:
        """
        Reconcile one pod.

        Args:
            namespace: Pod namespace
            name: Pod name

        Returns:
            ReconcileResult describing the action taken

        Raises:
            GatewayError: On any retryable API failure
        """
        pod_key = NamespacedName(namespace=namespace, name=name)

        try:
            pod = self.gateway.get_pod(namespace, name)
        except NotFoundError:
            logger.debug(f"Pod {pod_key} not found, nothing to do")
            return self._result(Outcome.NOT_FOUND, pod_key)

        if is_companion_pod(pod):
            return self.handle_companion_pod(pod_key, pod)

        ns = None
        if self.config.opt_in_scope == OptInScope.POD_OR_NAMESPACE:
            try:
                ns = self.gateway.get_namespace(namespace)
            except NotFoundError:
                # The pod goes away with its namespace
                logger.debug(f"Namespace {namespace} not found, skipping pod {pod_key}")
                return self._result(Outcome.IGNORED, pod_key, "namespace not found")

        admission = classify(pod, ns, self.config.opt_in_scope)

        if admission.classification == Classification.IGNORE:
            logger.debug(f"Skipping pod {pod_key}: {admission.reason}")
            return self._result(Outcome.IGNORED, pod_key, admission.reason)

        return self.handle_pod_that_needs_policy(pod_key, pod)

    def handle_companion_pod(self, pod_key: NamespacedName, pod: client.V1Pod) -> ReconcileResult:
        """Delete a finished companion pod, report a failed one."""
        phase = pod.status.phase if pod.status else None

        if phase == PHASE_SUCCEEDED:
            if self.config.dry_run:
                logger.info(f"[DRY-RUN] Would delete finished policy helper pod {pod_key}")
                return self._result(Outcome.COMPANION_DELETED, pod_key)

            try:
                self.gateway.delete_pod(pod_key.namespace, pod_key.name)
                logger.info(f"Deleted finished policy helper pod {pod_key}")
            except NotFoundError:
                logger.debug(f"Policy helper pod {pod_key} already gone")
            return self._result(Outcome.COMPANION_DELETED, pod_key)

        if phase == PHASE_FAILED:
            logger.error(
                f"Policy helper pod {pod_key} failed. Please check the logs to see why"
            )
            return self._result(Outcome.COMPANION_FAILED, pod_key, "policy helper pod failed")

        logger.debug(f"Skipping policy helper pod {pod_key} since it's not done (phase={phase})")
        return self._result(Outcome.COMPANION_PENDING, pod_key, f"phase {phase}")

    def handle_pod_that_needs_policy(self, pod_key: NamespacedName, pod: client.V1Pod) -> ReconcileResult:
        """
        Make sure a companion pod exists for the target, then annotate the target.

        Creating the companion and annotating the target happen in separate
        passes. The annotation is only written once the companion is read
        back from the API server.
        """
        helper_key = companion_identity(
            pod_key.name,
            pod_key.namespace,
            self.config.operator_namespace,
            self.config.naming_scheme
        )

        try:
            self.gateway.get_pod(helper_key.namespace, helper_key.name)
        except NotFoundError:
            return self._create_companion(pod_key, pod, helper_key)

        return self._annotate_target(pod_key, pod, helper_key)

    def _create_companion(self, pod_key: NamespacedName, pod: client.V1Pod,
                          helper_key: NamespacedName) -> ReconcileResult:
        node_name = pod.spec.node_name if pod.spec else None
        helper_pod = build_companion_pod(pod_key.name, pod_key.namespace, node_name, self.config)

        logger.info(f"Running policy helper {helper_key} for pod {pod_key} on node {node_name}")

        if self.config.dry_run:
            logger.info(f"[DRY-RUN] Would create policy helper pod {helper_key}")
            return self._result(Outcome.COMPANION_CREATED, pod_key, str(helper_key))

        try:
            self.gateway.create_pod(helper_pod)
        except AlreadyExistsError:
            logger.debug(f"Policy helper pod {helper_key} already exists")

        return self._result(Outcome.COMPANION_CREATED, pod_key, str(helper_key), requeue=True)

    def _annotate_target(self, pod_key: NamespacedName, pod: client.V1Pod,
                         helper_key: NamespacedName) -> ReconcileResult:
        pod_copy = copy.deepcopy(pod)
        if pod_copy.metadata.annotations is None:
            pod_copy.metadata.annotations = {}
        pod_copy.metadata.annotations[PROCESSED_ANNOTATION] = str(helper_key)

        if self.config.dry_run:
            logger.info(f"[DRY-RUN] Would annotate pod {pod_key} with {PROCESSED_ANNOTATION}={helper_key}")
            return self._result(Outcome.ANNOTATED, pod_key, str(helper_key))

        self.gateway.update_pod(pod_copy)
        logger.info(f"Annotated pod {pod_key} with {PROCESSED_ANNOTATION}={helper_key}")
        return self._result(Outcome.ANNOTATED, pod_key, str(helper_key))
