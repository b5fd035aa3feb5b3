"""Mapping between pod identity and runtime object identity.

Derived names make runtime objects readable in ``docker ps`` output, but they
are never parsed back: namespaces and pod names may contain the separator.
Reverse lookup goes through the labels attached at creation time.
"""

from __future__ import annotations

import hashlib
import re

from app.core.config import DEFAULT_CONTAINER_NAME_PREFIX
from app.models.pod import BackendObjectSummary, PodKey

LABEL_MANAGED_BY = "vk.managed-by"
LABEL_POD_NAMESPACE = "podNamespace"
LABEL_POD_NAME = "podName"
LABEL_CONTAINER_NAME = "podContainerName"

NAME_SEPARATOR = "_"
# Docker object names: [a-zA-Z0-9][a-zA-Z0-9_.-]*
_ILLEGAL_NAME_CHARS = re.compile(r"[^a-zA-Z0-9_.-]")


def derive_name(
    namespace: str,
    pod_name: str,
    container_name: str,
    prefix: str = DEFAULT_CONTAINER_NAME_PREFIX,
) -> str:
    parts = [namespace, pod_name, container_name]
    cleaned = [_ILLEGAL_NAME_CHARS.sub("-", part) for part in parts]
    name = NAME_SEPARATOR.join([prefix, *cleaned])
    if cleaned != parts or any(NAME_SEPARATOR in part for part in parts):
        # A rewritten or separator-bearing component could collide with another
        # triple; disambiguate with a digest of the raw components.
        digest = hashlib.sha256("\x00".join(parts).encode("utf-8")).hexdigest()[:10]
        name = f"{name}{NAME_SEPARATOR}{digest}"
    return name


def labels_for(
    namespace: str,
    pod_name: str,
    prefix: str = DEFAULT_CONTAINER_NAME_PREFIX,
) -> dict[str, str]:
    return {
        LABEL_MANAGED_BY: prefix,
        LABEL_POD_NAMESPACE: namespace,
        LABEL_POD_NAME: pod_name,
    }


def container_labels_for(
    namespace: str,
    pod_name: str,
    container_name: str,
    prefix: str = DEFAULT_CONTAINER_NAME_PREFIX,
) -> dict[str, str]:
    labels = labels_for(namespace, pod_name, prefix)
    labels[LABEL_CONTAINER_NAME] = container_name
    return labels


def pod_key_of(summary: BackendObjectSummary) -> PodKey | None:
    namespace = summary.labels.get(LABEL_POD_NAMESPACE)
    name = summary.labels.get(LABEL_POD_NAME)
    if namespace is None or not name:
        return None
    return PodKey(namespace, name)


def container_name_of(summary: BackendObjectSummary) -> str:
    label = summary.labels.get(LABEL_CONTAINER_NAME)
    if label:
        return label
    return summary.name.lstrip("/")
