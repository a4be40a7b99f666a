"""Client for the pod and namespace objects the controller works with."""

import json
import logging
from typing import Iterator, List, Optional

from kubernetes import client, watch
from kubernetes.client.rest import ApiException

from .errors import (
    AlreadyExistsError,
    ConflictError,
    GatewayError,
    NotFoundError,
    TransientGatewayError,
)

logger = logging.getLogger(__name__)


def _status_reason(e: ApiException) -> str:
    """Reason field of the Status object in the error body, if any."""
    try:
        return json.loads(e.body or "{}").get("reason") or ""
    except (ValueError, TypeError, AttributeError):
        return ""


def _translate(e: ApiException, action: str, key: str) -> GatewayError:
    """Map an ApiException to the controller's error taxonomy."""
    message = f"Error {action} {key}: {e.status} {e.reason}"
    if e.status == 404:
        return NotFoundError(message, status=e.status)
    if e.status == 409:
        if _status_reason(e) == "AlreadyExists":
            return AlreadyExistsError(message, status=e.status)
        return ConflictError(message, status=e.status)
    return TransientGatewayError(message, status=e.status)


class ClusterGateway:
    """Thin wrapper around CoreV1Api that raises GatewayError subclasses."""

    def __init__(self, api: Optional[client.CoreV1Api] = None):
        """
        Initialize the gateway.

        Args:
            api: CoreV1Api to use (a new one is created if omitted)
        """
        self.v1 = api or client.CoreV1Api()

    def get_pod(self, namespace: str, name: str) -> client.V1Pod:
        try:
            return self.v1.read_namespaced_pod(name=name, namespace=namespace)
        except ApiException as e:
            raise _translate(e, "reading pod", f"{namespace}/{name}") from e

    def get_namespace(self, name: str) -> client.V1Namespace:
        try:
            return self.v1.read_namespace(name=name)
        except ApiException as e:
            raise _translate(e, "reading namespace", name) from e

    def list_pods(self, namespace: str = "") -> List[client.V1Pod]:
        """
        List pods.

        Args:
            namespace: Namespace to list from ("" for all namespaces)
        """
        try:
            if namespace:
                response = self.v1.list_namespaced_pod(namespace=namespace)
            else:
                response = self.v1.list_pod_for_all_namespaces()
            return response.items
        except ApiException as e:
            raise _translate(e, "listing pods in", namespace or "all namespaces") from e

    def create_pod(self, pod: client.V1Pod) -> client.V1Pod:
        """
        Create a pod.

        Raises:
            AlreadyExistsError: If a pod with the same name exists
        """
        key = f"{pod.metadata.namespace}/{pod.metadata.name}"
        try:
            created = self.v1.create_namespaced_pod(
                namespace=pod.metadata.namespace,
                body=pod
            )
            logger.debug(f"Created pod {key}")
            return created
        except ApiException as e:
            raise _translate(e, "creating pod", key) from e

    def update_pod(self, pod: client.V1Pod) -> client.V1Pod:
        """
        Replace a pod. The pod's resourceVersion is sent along, so a stale
        copy is rejected.

        Raises:
            ConflictError: If the pod changed since it was read
        """
        key = f"{pod.metadata.namespace}/{pod.metadata.name}"
        try:
            updated = self.v1.replace_namespaced_pod(
                name=pod.metadata.name,
                namespace=pod.metadata.namespace,
                body=pod
            )
            logger.debug(f"Updated pod {key}")
            return updated
        except ApiException as e:
            raise _translate(e, "updating pod", key) from e

    def delete_pod(self, namespace: str, name: str) -> None:
        try:
            self.v1.delete_namespaced_pod(name=name, namespace=namespace)
            logger.debug(f"Deleted pod {namespace}/{name}")
        except ApiException as e:
            raise _translate(e, "deleting pod", f"{namespace}/{name}") from e

    def watch_pods(self, namespace: str = "", timeout: int = 300) -> Iterator[dict]:
        """
        Create a watch stream for pods.

        Args:
            namespace: Namespace to watch ("" for all namespaces)
            timeout: Watch timeout in seconds

        Yields:
            Watch events
        """
        w = watch.Watch()

        try:
            if namespace:
                stream = w.stream(
                    self.v1.list_namespaced_pod,
                    namespace=namespace,
                    timeout_seconds=timeout
                )
            else:
                stream = w.stream(
                    self.v1.list_pod_for_all_namespaces,
                    timeout_seconds=timeout
                )

            for event in stream:
                yield event

        except ApiException as e:
            raise _translate(e, "watching pods in", namespace or "all namespaces") from e
