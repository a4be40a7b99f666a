from __future__ import annotations

import pytest

from selinux_policy_helper.companion import build_companion_pod
from selinux_policy_helper.config import ControllerConfig, NamingScheme
from selinux_policy_helper.naming import companion_pod_name


def test_companion_pod_identity_and_placement() -> None:
    config = ControllerConfig(operator_namespace="operator-ns")
    pod = build_companion_pod("web-1", "app", "node-7", config)

    assert pod.metadata.name == companion_pod_name("web-1", "app")
    assert pod.metadata.namespace == "operator-ns"
    assert pod.metadata.annotations == {"owned-by-selinux-policy-helper": ""}
    assert pod.spec.node_name == "node-7"
    assert pod.spec.restart_policy == "Never"
    assert pod.spec.service_account_name == "selinux-policy-helper-operator"


def test_companion_container() -> None:
    pod = build_companion_pod("web-1", "app", "node-7", ControllerConfig(image="example.com/helper:1"))
    (container,) = pod.spec.containers

    assert container.image == "example.com/helper:1"
    assert container.command == ["selinuxk8s"]
    assert container.args == ["--name", "web-1", "--namespace", "app"]
    assert container.security_context.privileged is True


def test_companion_host_mounts() -> None:
    pod = build_companion_pod("web-1", "app", "node-7")
    mounts = {m.name: m.mount_path for m in pod.spec.containers[0].volume_mounts}
    volumes = {v.name: (v.host_path.path, v.host_path.type) for v in pod.spec.volumes}

    assert mounts == {
        "fsselinux": "/sys/fs/selinux",
        "etcselinux": "/etc/selinux",
        "varlibselinux": "/var/lib/selinux",
        "varruncrio": "/var/run/crio",
        "crictlyaml": "/etc/crictl.yaml",
    }
    assert volumes["crictlyaml"] == ("/etc/crictl.yaml", "File")
    assert volumes["varruncrio"] == ("/var/run/crio", "Directory")
    assert set(volumes) == set(mounts)


def test_companion_uses_configured_naming_scheme() -> None:
    pod = build_companion_pod("web-1", "app", "node-7", ControllerConfig(naming_scheme=NamingScheme.CONCAT))
    assert pod.metadata.name == "selinux-k8s-for-web-1"


@pytest.mark.parametrize("args", [("", "app", "n"), ("web-1", "", "n"), ("web-1", "app", "")])
def test_empty_inputs_fail_fast(args) -> None:
    with pytest.raises(ValueError):
        build_companion_pod(*args)
