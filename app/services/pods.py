from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, timezone

from app.clients.backend import ContainerBackend, LogStream, drain_pull
from app.clients.identity import (
    container_labels_for,
    container_name_of,
    derive_name,
    pod_key_of,
)
from app.core.config import DEFAULT_CONTAINER_NAME_PREFIX
from app.core.errors import (
    BackendError,
    CreateFailed,
    PodNotFoundError,
    PodValidationError,
    RemoveFailed,
    StartFailed,
)
from app.models.pod import (
    BackendObjectSummary,
    ContainerSpec,
    PodKey,
    PodPhase,
    PodRecord,
)
from app.schemas.pod import Pod
from app.services.registry import PodRegistry
from app.services.status import synthesize

_IN_FLIGHT = (PodPhase.CREATING, PodPhase.STARTING)
# Preferred summary when one pod key maps to several runtime objects.
_STATE_RANK = {"running": 0, "restarting": 1, "paused": 2, "created": 3}


class PodService:
    """Drives the container runtime on behalf of the orchestrator.

    Create runs pull, create, start in that order, tracking the pod as Creating
    and Starting until the runtime accepts the start. Queries re-list the
    runtime so reported status follows what the runtime actually holds.
    """

    def __init__(
        self,
        backend: ContainerBackend,
        registry: PodRegistry,
        name_prefix: str = DEFAULT_CONTAINER_NAME_PREFIX,
    ) -> None:
        self._logger = logging.getLogger(__name__)
        self._backend = backend
        self._registry = registry
        self._name_prefix = name_prefix

    def create_pod(self, pod: Pod) -> PodRecord:
        record = _validate_create(pod)
        container = record.containers[0]
        self._logger.info("createPod %s - %s", record.namespace, record.name)

        drain_pull(container.image, self._backend.pull_image(container.image))
        self._logger.info("Pulled image %s", container.image)

        name = derive_name(record.namespace, record.name, container.name, self._name_prefix)
        labels = container_labels_for(
            record.namespace, record.name, container.name, self._name_prefix
        )
        in_flight = record.with_phase(PodPhase.CREATING, "Creating")
        previous = self._registry.put(in_flight)
        try:
            self._remove_objects(record.key)
            self._logger.info("Creating container %s", name)
            handle = self._backend.create(container.image, labels, name)
            self._logger.info("Created container %s. ID: %s", name, handle)

            starting = replace(
                record, phase=PodPhase.STARTING, message="Starting", backend_handle=handle
            )
            self._claim(in_flight, starting, handle)
            in_flight = starting
            self._start(handle)
            self._logger.info("Started container %s", handle)
        except BackendError:
            self._registry.restore(in_flight, previous)
            raise

        running = synthesize(
            record,
            BackendObjectSummary(
                handle=handle,
                name=name,
                image=container.image,
                labels=labels,
                state="running",
                created_at=datetime.now(timezone.utc),
            ),
        )
        self._claim(in_flight, running, handle)
        return running

    def delete_pod(self, namespace: str, name: str) -> None:
        key = _require_key(namespace, name)
        self._logger.info("deletePod %s - %s", namespace, name)
        record = self._registry.get(key)
        if record is None:
            raise PodNotFoundError(namespace, name)

        if record.backend_handle is None:
            self._remove_objects(key)
        else:
            try:
                self._backend.remove(record.backend_handle, force=True)
            except RemoveFailed:
                if self._find_object(key) is not None:
                    raise
                self._logger.warning(
                    "Backend object %s for %s already gone", record.backend_handle, key
                )
        self._registry.delete(key)
        self._logger.info("Deleted pod %s", key)

    def get_pod_status(self, namespace: str, name: str) -> PodRecord:
        key = _require_key(namespace, name)
        record = self._registry.get(key)
        if record is None:
            self._logger.info("getPodStatus. Pod not found: %s - %s", namespace, name)
            raise PodNotFoundError(namespace, name)
        return self._refresh(record, self._find_object(key))

    def list_pods(self) -> list[PodRecord]:
        objects = self._index(self._backend.list_by_label_prefix(self._name_prefix))
        pods = [self._refresh(record, objects.get(record.key)) for record in self._registry.list()]
        return sorted(pods, key=lambda pod: (pod.namespace, pod.name))

    def stream_container_logs(
        self, namespace: str, pod_name: str, container_name: str
    ) -> LogStream:
        if not container_name:
            raise PodValidationError("containerName is required")
        key = _require_key(namespace, pod_name)
        self._logger.info("getContainerLogs %s - %s", key, container_name)
        name = derive_name(namespace, pod_name, container_name, self._name_prefix)
        return self._backend.stream_logs(name)

    def resync(self) -> int:
        """Register pods whose runtime objects outlived a previous process."""
        recovered = 0
        for key, summary in self._index(
            self._backend.list_by_label_prefix(self._name_prefix)
        ).items():
            if self._registry.get(key) is not None:
                continue
            record = PodRecord(
                namespace=key.namespace,
                name=key.name,
                containers=(ContainerSpec(name=container_name_of(summary), image=summary.image),),
            )
            self._registry.put(synthesize(record, summary))
            recovered += 1
        return recovered

    def _refresh(self, record: PodRecord, summary: BackendObjectSummary | None) -> PodRecord:
        # In-flight records belong to the create that wrote them.
        if record.phase in _IN_FLIGHT:
            return record
        refreshed = synthesize(record, summary)
        self._registry.compare_and_put(record, refreshed)
        return refreshed

    def _claim(self, in_flight: PodRecord, record: PodRecord, handle: str) -> None:
        """Advance this create's record, or discard ``handle`` if the key changed hands."""
        if self._registry.compare_and_put(in_flight, record):
            return
        self._logger.warning(
            "Pod %s was deleted or replaced during create; discarding container %s",
            record.key,
            handle,
        )
        self._discard(handle)
        raise CreateFailed(
            f"pod {record.namespace} - {record.name} was deleted or replaced while being created"
        )

    def _start(self, handle: str) -> None:
        try:
            self._backend.start(handle)
        except StartFailed:
            self._discard(handle)
            raise

    def _discard(self, handle: str) -> None:
        try:
            self._backend.remove(handle, force=True)
        except BackendError as cleanup_exc:
            self._logger.warning("Failed to remove container %s: %s", handle, cleanup_exc)

    def _remove_objects(self, key: PodKey) -> None:
        for summary in self._backend.list_by_label_prefix(self._name_prefix):
            if pod_key_of(summary) == key:
                self._logger.info(
                    "Removing container %s (%s) of %s", summary.name, summary.handle, key
                )
                self._backend.remove(summary.handle, force=True)

    def _find_object(self, key: PodKey) -> BackendObjectSummary | None:
        return self._index(self._backend.list_by_label_prefix(self._name_prefix)).get(key)

    @staticmethod
    def _index(summaries: list[BackendObjectSummary]) -> dict[PodKey, BackendObjectSummary]:
        index: dict[PodKey, BackendObjectSummary] = {}
        for summary in summaries:
            key = pod_key_of(summary)
            if key is None:
                continue
            current = index.get(key)
            if current is None or _STATE_RANK.get(summary.state, 9) < _STATE_RANK.get(
                current.state, 9
            ):
                index[key] = summary
        return index


def _require_key(namespace: str, name: str) -> PodKey:
    if not namespace or not name:
        raise PodValidationError("namespace and name are required")
    return PodKey(namespace, name)


def _validate_create(pod: Pod) -> PodRecord:
    metadata = pod.metadata
    _require_key(metadata.namespace, metadata.name)
    containers = pod.spec.containers
    # Only single-container pods are supported.
    if len(containers) != 1:
        raise PodValidationError("CreatePod currently only supports a single container per pod")
    container = containers[0]
    if not container.name or not container.image:
        raise PodValidationError("container name and image are required")
    return PodRecord(
        namespace=metadata.namespace,
        name=metadata.name,
        containers=(ContainerSpec(name=container.name, image=container.image),),
        uid=metadata.uid,
        labels=dict(metadata.labels or {}),
    )
