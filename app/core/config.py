from __future__ import annotations

import json
import os
import re
from dataclasses import dataclass

from kubernetes.utils import parse_quantity

DEFAULT_CONTAINER_NAME_PREFIX = "VK"
SUPPORTED_BACKENDS = ("docker", "memory")
# Docker object names: the prefix leads every derived name.
_NAME_PREFIX = re.compile(r"[a-zA-Z0-9][a-zA-Z0-9_.-]*")


def _get_int_env(name: str, default: int) -> int:
    value = os.getenv(name)
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _get_quantity_env(name: str, default: str) -> str:
    value = os.getenv(name, "").strip() or default
    try:
        parse_quantity(value)
    except ValueError as exc:
        raise ValueError(f"{name} is not a valid quantity: {value}") from exc
    return value


def _get_backend_env(name: str, default: str) -> str:
    value = os.getenv(name, "").strip().lower() or default
    if value not in SUPPORTED_BACKENDS:
        supported = ", ".join(SUPPORTED_BACKENDS)
        raise ValueError(f"{name} must be one of {supported}, got '{value}'")
    return value


def _get_name_prefix_env(name: str, default: str) -> str:
    value = os.getenv(name, "").strip() or default
    if not _NAME_PREFIX.fullmatch(value):
        raise ValueError(f"{name} must match [a-zA-Z0-9][a-zA-Z0-9_.-]*, got '{value}'")
    return value


def _get_regex_list_env(name: str) -> list[str]:
    raw = os.getenv(name, "").strip()
    if not raw:
        return []
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError(f"{name} must be a JSON array of strings") from exc
    if not isinstance(parsed, list):
        raise ValueError(f"{name} must be a JSON array of strings")

    patterns: list[str] = []
    for idx, item in enumerate(parsed):
        if not isinstance(item, str):
            raise ValueError(f"{name}[{idx}] must be a string")
        pattern = item.strip()
        if not pattern:
            continue
        try:
            re.compile(pattern)
        except re.error as exc:
            raise ValueError(f"{name}[{idx}] is not a valid regex: {pattern}") from exc
        patterns.append(pattern)
    return patterns


@dataclass(frozen=True)
class Settings:
    port: int
    log_level: str
    backend: str
    node_ip: str
    docker_timeout_seconds: int
    container_name_prefix: str
    capacity_cpu: str
    capacity_memory: str
    capacity_pods: str
    masking_regex_list: list[str]


def load_settings() -> Settings:
    return Settings(
        port=_get_int_env("PORT", 3000),
        log_level=os.getenv("LOG_LEVEL", "info"),
        backend=_get_backend_env("BACKEND", "docker"),
        node_ip=os.getenv("VKUBELET_POD_IP", "").strip(),
        docker_timeout_seconds=_get_int_env("DOCKER_TIMEOUT_SECONDS", 60),
        container_name_prefix=_get_name_prefix_env(
            "CONTAINER_NAME_PREFIX", DEFAULT_CONTAINER_NAME_PREFIX
        ),
        capacity_cpu=_get_quantity_env("NODE_CAPACITY_CPU", "20"),
        capacity_memory=_get_quantity_env("NODE_CAPACITY_MEMORY", "100Gi"),
        capacity_pods=_get_quantity_env("NODE_CAPACITY_PODS", "20"),
        masking_regex_list=_get_regex_list_env("MASKING_REGEX_LIST_JSON"),
    )
