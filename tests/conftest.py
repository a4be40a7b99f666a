from __future__ import annotations

import copy
import time
from typing import Callable, Dict, List, Optional, Tuple

import pytest
from kubernetes import client

from selinux_policy_helper.errors import (
    AlreadyExistsError,
    ConflictError,
    NotFoundError,
)


def make_pod(
    name: str,
    namespace: str,
    annotations: Optional[dict] = None,
    phase: Optional[str] = "Running",
    node_name: Optional[str] = "node-1",
    resource_version: str = "1",
) -> client.V1Pod:
    return client.V1Pod(
        api_version="v1",
        kind="Pod",
        metadata=client.V1ObjectMeta(
            name=name,
            namespace=namespace,
            annotations=annotations,
            resource_version=resource_version,
        ),
        spec=client.V1PodSpec(containers=[client.V1Container(name="app")], node_name=node_name),
        status=client.V1PodStatus(phase=phase),
    )


def make_namespace(name: str, annotations: Optional[dict] = None) -> client.V1Namespace:
    return client.V1Namespace(metadata=client.V1ObjectMeta(name=name, annotations=annotations))


class FakeGateway:
    """In-memory stand-in for ClusterGateway with optimistic concurrency."""

    def __init__(self) -> None:
        self.pods: Dict[Tuple[str, str], client.V1Pod] = {}
        self.namespaces: Dict[str, client.V1Namespace] = {}
        self.calls: List[Tuple[str, str]] = []
        self.fail_next: Dict[str, Exception] = {}
        self.watch_streams: Dict[str, list] = {}
        self.on_watch_exhausted: Optional[Callable[[], None]] = None

    def add_pod(self, pod: client.V1Pod) -> None:
        self.pods[(pod.metadata.namespace, pod.metadata.name)] = pod

    def add_namespace(self, ns: client.V1Namespace) -> None:
        self.namespaces[ns.metadata.name] = ns

    def _record(self, op: str, key: str) -> None:
        self.calls.append((op, key))
        if op in self.fail_next:
            raise self.fail_next.pop(op)

    def calls_of(self, op: str) -> List[str]:
        return [key for o, key in self.calls if o == op]

    def get_pod(self, namespace: str, name: str) -> client.V1Pod:
        self._record("get_pod", f"{namespace}/{name}")
        try:
            return copy.deepcopy(self.pods[(namespace, name)])
        except KeyError:
            raise NotFoundError(f"pod {namespace}/{name} not found", status=404)

    def get_namespace(self, name: str) -> client.V1Namespace:
        self._record("get_namespace", name)
        try:
            return copy.deepcopy(self.namespaces[name])
        except KeyError:
            raise NotFoundError(f"namespace {name} not found", status=404)

    def list_pods(self, namespace: str = "") -> List[client.V1Pod]:
        self._record("list_pods", namespace)
        return [copy.deepcopy(p) for (ns, _), p in self.pods.items() if not namespace or ns == namespace]

    def create_pod(self, pod: client.V1Pod) -> client.V1Pod:
        key = (pod.metadata.namespace, pod.metadata.name)
        self._record("create_pod", f"{key[0]}/{key[1]}")
        if key in self.pods:
            raise AlreadyExistsError(f"pod {key[0]}/{key[1]} already exists", status=409)
        stored = copy.deepcopy(pod)
        stored.metadata.resource_version = "1"
        stored.status = client.V1PodStatus(phase="Pending")
        self.pods[key] = stored
        return copy.deepcopy(stored)

    def update_pod(self, pod: client.V1Pod) -> client.V1Pod:
        key = (pod.metadata.namespace, pod.metadata.name)
        self._record("update_pod", f"{key[0]}/{key[1]}")
        current = self.pods.get(key)
        if current is None:
            raise NotFoundError(f"pod {key[0]}/{key[1]} not found", status=404)
        if current.metadata.resource_version != pod.metadata.resource_version:
            raise ConflictError(f"pod {key[0]}/{key[1]} was modified", status=409)
        stored = copy.deepcopy(pod)
        stored.metadata.resource_version = str(int(current.metadata.resource_version) + 1)
        self.pods[key] = stored
        return copy.deepcopy(stored)

    def delete_pod(self, namespace: str, name: str) -> None:
        self._record("delete_pod", f"{namespace}/{name}")
        if self.pods.pop((namespace, name), None) is None:
            raise NotFoundError(f"pod {namespace}/{name} not found", status=404)

    def watch_pods(self, namespace: str = "", timeout: int = 300):
        """Play back the next scripted stream for the namespace."""
        self._record("watch_pods", namespace)
        streams = self.watch_streams.get(namespace) or []
        if not streams:
            if self.on_watch_exhausted is not None:
                self.on_watch_exhausted()
            else:
                time.sleep(0.01)
            return
        stream = streams.pop(0)
        if isinstance(stream, Exception):
            raise stream
        for event in stream:
            yield event


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()
