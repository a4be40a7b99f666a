from __future__ import annotations

import hashlib

import pytest

from selinux_policy_helper.config import NamingScheme
from selinux_policy_helper.naming import NamespacedName, companion_identity, companion_pod_name


def test_hashed_name_matches_sha1_of_name_and_namespace() -> None:
    expected = "selinux-k8s-" + hashlib.sha1(b"web-1-app").hexdigest()
    assert companion_pod_name("web-1", "app") == expected
    assert len(expected) <= 63


def test_hashed_name_is_deterministic() -> None:
    assert companion_pod_name("web-1", "app") == companion_pod_name("web-1", "app")


def test_same_pod_name_in_different_namespaces_differs() -> None:
    assert companion_pod_name("web-1", "app") != companion_pod_name("web-1", "other")


def test_hashed_names_do_not_collide() -> None:
    names = {
        companion_pod_name(f"pod-{i}", f"ns-{i % 97}")
        for i in range(10000)
    }
    assert len(names) == 10000


def test_concat_name() -> None:
    assert companion_pod_name("web-1", "app", NamingScheme.CONCAT) == "selinux-k8s-for-web-1"
    assert companion_pod_name("web-1", "", NamingScheme.CONCAT) == "selinux-k8s-for-web-1"


def test_empty_inputs_are_rejected() -> None:
    with pytest.raises(ValueError):
        companion_pod_name("", "app")
    with pytest.raises(ValueError):
        companion_pod_name("web-1", "")


def test_companion_identity_uses_operator_namespace() -> None:
    identity = companion_identity("web-1", "app", "operator-ns")
    assert identity == NamespacedName("operator-ns", companion_pod_name("web-1", "app"))
    assert str(identity) == f"operator-ns/{identity.name}"
