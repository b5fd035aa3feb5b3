from __future__ import annotations

from app.clients.identity import (
    LABEL_CONTAINER_NAME,
    LABEL_MANAGED_BY,
    LABEL_POD_NAME,
    LABEL_POD_NAMESPACE,
    container_labels_for,
    container_name_of,
    derive_name,
    labels_for,
    pod_key_of,
)
from app.models.pod import BackendObjectSummary, PodKey


def _summary(labels: dict[str, str], name: str = "VK_default_web_c1") -> BackendObjectSummary:
    return BackendObjectSummary(
        handle="abc",
        name=name,
        image="nginx:latest",
        labels=labels,
        state="running",
    )


def test_derive_name_joins_prefix_and_components() -> None:
    assert derive_name("default", "web", "c1") == "VK_default_web_c1"
    assert derive_name("default", "web", "c1", prefix="EDGE") == "EDGE_default_web_c1"


def test_derive_name_is_deterministic() -> None:
    assert derive_name("team-a", "api", "main") == derive_name("team-a", "api", "main")


def test_derive_name_does_not_collide_when_components_contain_separator() -> None:
    first = derive_name("a_b", "c", "d")
    second = derive_name("a", "b_c", "d")

    assert first != second
    assert first.startswith("VK_a_b_c_d_")
    assert second.startswith("VK_a_b_c_d_")


def test_derive_name_replaces_characters_the_runtime_rejects() -> None:
    name = derive_name("default", "web/1", "c1")

    assert "/" not in name
    assert name.startswith("VK_default_web-1_c1_")
    assert name != derive_name("default", "web-1", "c1")


def test_labels_for_identify_the_pod() -> None:
    assert labels_for("default", "web") == {
        LABEL_MANAGED_BY: "VK",
        LABEL_POD_NAMESPACE: "default",
        LABEL_POD_NAME: "web",
    }


def test_container_labels_include_container_name() -> None:
    labels = container_labels_for("default", "web", "c1", prefix="EDGE")

    assert labels[LABEL_MANAGED_BY] == "EDGE"
    assert labels[LABEL_CONTAINER_NAME] == "c1"


def test_pod_key_of_reads_labels_not_name() -> None:
    summary = _summary(labels_for("ns_with_underscore", "web"), name="VK_unrelated")

    assert pod_key_of(summary) == PodKey("ns_with_underscore", "web")


def test_pod_key_of_ignores_unlabelled_objects() -> None:
    assert pod_key_of(_summary({LABEL_MANAGED_BY: "VK"})) is None


def test_container_name_of_prefers_label() -> None:
    labelled = _summary(container_labels_for("default", "web", "c1"))
    unlabelled = _summary(labels_for("default", "web"), name="/VK_default_web_c1")

    assert container_name_of(labelled) == "c1"
    assert container_name_of(unlabelled) == "VK_default_web_c1"
