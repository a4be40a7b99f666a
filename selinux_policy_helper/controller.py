"""Main controller logic for the SELinux Policy Helper."""

import logging
import threading
import time
from typing import List, Optional

from .config import (
    REQUEUE_DELAY_SECONDS,
    WATCH_ERROR_BACKOFF_SECONDS,
    WATCH_TIMEOUT_SECONDS,
    ControllerConfig,
)
from .errors import GatewayError
from .gateway import ClusterGateway
from .naming import NamespacedName
from .predicates import EventFilter
from .reconciler import PodReconciler, ReconcileResult
from .workqueue import ShutDown, WorkQueue

logger = logging.getLogger(__name__)


class PodController:
    """
    Watches pods and feeds them to the PodReconciler.

    Pod events pass through an EventFilter into a WorkQueue; worker threads
    reconcile queued pods and requeue them with backoff on errors.
    """

    name = "pod-controller"

    def __init__(
        self,
        gateway: ClusterGateway,
        config: Optional[ControllerConfig] = None,
        event_filter: Optional[EventFilter] = None,
        queue: Optional[WorkQueue] = None
    ):
        """
        Initialize the controller.

        Args:
            gateway: Cluster API gateway
            config: Controller configuration (defaults if omitted)
            event_filter: Which watch events to act on
            queue: Work queue (a new one is created if omitted)
        """
        self.gateway = gateway
        self.config = config if config is not None else ControllerConfig()
        self.event_filter = event_filter if event_filter is not None else EventFilter()
        self.queue = queue if queue is not None else WorkQueue()
        self.watch_error_backoff = WATCH_ERROR_BACKOFF_SECONDS
        self.reconciler = PodReconciler(gateway, self.config)

        self._stop_event = threading.Event()
        self._threads: List[threading.Thread] = []

    def handle_pod_event(self, event_type: str, pod) -> bool:
        """
        Queue the pod of a watch event if the filter lets it through.

        Returns:
            True if the pod was queued
        """
        if not self.event_filter.allows(event_type):
            return False

        key = NamespacedName(namespace=pod.metadata.namespace, name=pod.metadata.name)
        logger.debug(f"Pod {event_type}: {key}")
        self.queue.add(key)
        return True

    def process_next(self) -> Optional[ReconcileResult]:
        """
        Reconcile one queued pod.

        Raises:
            ShutDown: If the queue was shut down
        """
        key = self.queue.get()
        try:
            result = self.reconciler.reconcile(key.namespace, key.name)
        except GatewayError as e:
            delay = self.queue.add_rate_limited(key)
            logger.warning(f"Reconciling {key} failed, retrying in {delay:.1f}s: {e}")
            return None
        except Exception as e:
            delay = self.queue.add_rate_limited(key)
            logger.exception(f"Unexpected error reconciling {key}, retrying in {delay:.1f}s: {e}")
            return None
        finally:
            self.queue.done(key)

        self.queue.forget(key)
        if result.requeue:
            self.queue.add_after(key, REQUEUE_DELAY_SECONDS)
        return result

    def run_worker(self) -> None:
        """Process queued pods until the queue shuts down."""
        while True:
            try:
                self.process_next()
            except ShutDown:
                return

    def watched_namespaces(self) -> List[str]:
        """
        Namespaces to watch and resync ("" for all namespaces).

        Policy helper pods live in the operator namespace, which is always
        included so finished helpers get cleaned up.
        """
        watch_namespace = self.config.watch_namespace
        if not watch_namespace:
            return [""]
        if watch_namespace == self.config.operator_namespace:
            return [watch_namespace]
        return [watch_namespace, self.config.operator_namespace]

    def watch_pods(self, namespace: str = "") -> None:
        """Watch for Pod events in a loop."""
        logger.info(f"Starting pod watcher for {namespace or 'all namespaces'}...")

        while not self._stop_event.is_set():
            try:
                for event in self.gateway.watch_pods(
                    namespace=namespace,
                    timeout=WATCH_TIMEOUT_SECONDS
                ):
                    if self._stop_event.is_set():
                        break

                    event_type = event["type"]
                    pod = event["object"]
                    if event_type == "ERROR" or not hasattr(pod, "metadata"):
                        logger.warning(f"Pod watch returned {event_type}: {pod}")
                        continue
                    self.handle_pod_event(event_type, pod)

            except GatewayError as e:
                logger.error(f"Pod watch error: {e}")
                self._stop_event.wait(self.watch_error_backoff)
            except Exception as e:
                logger.error(f"Unexpected error in pod watcher: {e}")
                self._stop_event.wait(self.watch_error_backoff)

    def resync(self) -> int:
        """
        Queue every pod in the watched namespaces.

        Returns:
            Number of pods queued
        """
        count = 0
        for namespace in self.watched_namespaces():
            for pod in self.gateway.list_pods(namespace):
                self.queue.add(NamespacedName(namespace=pod.metadata.namespace, name=pod.metadata.name))
                count += 1
        logger.debug(f"Resync queued {count} pod(s)")
        return count

    def periodic_resync(self) -> None:
        """Periodically queue all pods, starting immediately."""
        logger.info(f"Starting periodic resync (interval: {self.config.resync_interval}s)")

        while not self._stop_event.is_set():
            try:
                self.resync()
            except GatewayError as e:
                logger.error(f"Resync error: {e}")

            self._stop_event.wait(self.config.resync_interval)

    def start(self) -> None:
        """Start watcher, resync and worker threads."""
        logger.info(f"Namespace: {self.config.watch_namespace or 'all namespaces'}")
        logger.info(f"Operator namespace: {self.config.operator_namespace}")
        logger.info(f"Opt-in scope: {self.config.opt_in_scope.value}")
        logger.info(f"Naming scheme: {self.config.naming_scheme.value}")
        logger.info(f"Dry run: {self.config.dry_run}")

        self._threads = [
            threading.Thread(
                target=self.watch_pods,
                args=(namespace,),
                name=f"pod-watcher-{namespace or 'all'}",
                daemon=True
            )
            for namespace in self.watched_namespaces()
        ]
        self._threads.append(
            threading.Thread(target=self.periodic_resync, name="periodic-resync", daemon=True)
        )
        for i in range(max(1, self.config.workers)):
            self._threads.append(
                threading.Thread(target=self.run_worker, name=f"worker-{i}", daemon=True)
            )

        for thread in self._threads:
            thread.start()

    def stop(self, timeout: float = 5) -> None:
        """Stop the controller."""
        logger.info(f"Stopping {self.name}...")
        self._stop_event.set()
        self.queue.shut_down()

        deadline = time.monotonic() + timeout
        for thread in self._threads:
            # The watcher may be blocked on the stream; it is a daemon thread
            thread.join(max(0, deadline - time.monotonic()))
