from __future__ import annotations

from functools import lru_cache

from app.clients.backend import ContainerBackend
from app.clients.docker_backend import DockerBackend
from app.clients.memory_backend import InMemoryBackend
from app.core.config import Settings, load_settings
from app.core.masking import ErrorMasker, build_masker
from app.services.node import NodeService
from app.services.pods import PodService
from app.services.registry import PodRegistry


@lru_cache
def get_settings() -> Settings:
    return load_settings()


@lru_cache
def get_backend() -> ContainerBackend:
    settings = get_settings()
    if settings.backend == "memory":
        return InMemoryBackend()
    return DockerBackend(timeout_seconds=settings.docker_timeout_seconds)


@lru_cache
def get_registry() -> PodRegistry:
    return PodRegistry()


@lru_cache
def get_pod_service() -> PodService:
    settings = get_settings()
    return PodService(get_backend(), get_registry(), name_prefix=settings.container_name_prefix)


@lru_cache
def get_node_service() -> NodeService:
    return NodeService(get_settings())


@lru_cache
def get_masker() -> ErrorMasker:
    return build_masker(get_settings().masking_regex_list)
