"""Builds the policy helper (companion) pod for a target pod."""

from typing import List, Optional, Tuple

from kubernetes import client

from .config import (
    COMPANION_COMMAND,
    COMPANION_CONTAINER_NAME,
    OWNED_BY_ANNOTATION,
    ControllerConfig,
)
from .naming import companion_identity

# (volume name, host path, host path type)
HOST_PATH_MOUNTS: List[Tuple[str, str, str]] = [
    ("fsselinux", "/sys/fs/selinux", "Directory"),
    ("etcselinux", "/etc/selinux", "Directory"),
    ("varlibselinux", "/var/lib/selinux", "Directory"),
    ("varruncrio", "/var/run/crio", "Directory"),
    ("crictlyaml", "/etc/crictl.yaml", "File"),
]


def build_companion_pod(
    target_name: str,
    target_namespace: str,
    node_name: str,
    config: Optional[ControllerConfig] = None
) -> client.V1Pod:
    """
    Create the pod spec that generates a policy for the target pod.

    The pod runs privileged on the target's node with the host's SELinux
    and CRI-O state mounted in, and is never restarted.

    Args:
        target_name: Name of the target pod
        target_namespace: Namespace of the target pod
        node_name: Node the target pod runs on
        config: Controller configuration (defaults if omitted)

    Returns:
        New V1Pod object

    Raises:
        ValueError: If any of the identity fields is empty
    """
    if not target_name:
        raise ValueError("target pod name must not be empty")
    if not target_namespace:
        raise ValueError("target pod namespace must not be empty")
    if not node_name:
        raise ValueError("node name must not be empty")

    config = config if config is not None else ControllerConfig()
    identity = companion_identity(
        target_name,
        target_namespace,
        config.operator_namespace,
        config.naming_scheme
    )

    container = client.V1Container(
        name=COMPANION_CONTAINER_NAME,
        image=config.image,
        command=[COMPANION_COMMAND],
        args=["--name", target_name, "--namespace", target_namespace],
        security_context=client.V1SecurityContext(privileged=True),
        volume_mounts=[
            client.V1VolumeMount(name=name, mount_path=path)
            for name, path, _ in HOST_PATH_MOUNTS
        ]
    )

    volumes = [
        client.V1Volume(
            name=name,
            host_path=client.V1HostPathVolumeSource(path=path, type=path_type)
        )
        for name, path, path_type in HOST_PATH_MOUNTS
    ]

    return client.V1Pod(
        api_version="v1",
        kind="Pod",
        metadata=client.V1ObjectMeta(
            name=identity.name,
            namespace=identity.namespace,
            annotations={OWNED_BY_ANNOTATION: ""},
        ),
        spec=client.V1PodSpec(
            containers=[container],
            node_name=node_name,
            restart_policy="Never",
            service_account_name=config.service_account,
            volumes=volumes
        )
    )
