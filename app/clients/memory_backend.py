from __future__ import annotations

import logging
import secrets
import threading
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone

from app.clients.identity import LABEL_MANAGED_BY
from app.core.errors import CreateFailed, LogsFailed, RemoveFailed, StartFailed
from app.models.pod import BackendObjectSummary, PullEvent


@dataclass
class _SimulatedObject:
    summary: BackendObjectSummary
    logs: list[bytes] = field(default_factory=list)


class InMemoryBackend:
    """Runtime stand-in that keeps simulated containers in process memory.

    Mirrors the Docker Engine's observable rules closely enough for the node
    to run without a daemon: names are unique, a running object is only
    removed when forced, and objects can be addressed by id or by name.
    """

    def __init__(self, unavailable_images: Iterable[str] = ()) -> None:
        self._logger = logging.getLogger(__name__)
        self._lock = threading.Lock()
        self._objects: dict[str, _SimulatedObject] = {}
        self._pulled: set[str] = set()
        self._unavailable_images = set(unavailable_images)

    def ping(self) -> None:
        return None

    def list_by_label_prefix(self, prefix: str) -> list[BackendObjectSummary]:
        with self._lock:
            return [
                item.summary
                for item in self._objects.values()
                if item.summary.labels.get(LABEL_MANAGED_BY) == prefix
            ]

    def pull_image(self, ref: str) -> Iterator[PullEvent]:
        repository, sep, tag = ref.rpartition(":")
        if not sep or "/" in tag:
            repository, tag = ref, "latest"
        yield PullEvent(status=f"Pulling from {repository}", layer_id=tag)
        if ref in self._unavailable_images:
            yield PullEvent(error=f"pull access denied for {repository}, repository does not exist")
            return
        with self._lock:
            fresh = ref not in self._pulled
            self._pulled.add(ref)
        if fresh:
            yield PullEvent(status="Download complete", layer_id=secrets.token_hex(6))
            yield PullEvent(status=f"Status: Downloaded newer image for {repository}:{tag}")
        else:
            yield PullEvent(status=f"Status: Image is up to date for {repository}:{tag}")

    def create(self, image: str, labels: dict[str, str], name: str) -> str:
        with self._lock:
            if image not in self._pulled:
                raise CreateFailed(f"No such image: {image}")
            if any(item.summary.name == name for item in self._objects.values()):
                raise CreateFailed(f'Conflict. The container name "/{name}" is already in use')
            handle = secrets.token_hex(32)
            self._objects[handle] = _SimulatedObject(
                summary=BackendObjectSummary(
                    handle=handle,
                    name=name,
                    image=image,
                    labels=dict(labels),
                    state="created",
                    created_at=datetime.now(timezone.utc),
                )
            )
        self._logger.debug("Created simulated container %s (%s)", name, handle)
        return handle

    def start(self, handle: str) -> None:
        with self._lock:
            item = self._resolve(handle)
            if item is None:
                raise StartFailed(f"No such container: {handle}")
            item.summary = replace(item.summary, state="running", exit_code=None)

    def remove(self, handle: str, force: bool = False) -> None:
        with self._lock:
            item = self._resolve(handle)
            if item is None:
                raise RemoveFailed(f"No such container: {handle}")
            if item.summary.state == "running" and not force:
                raise RemoveFailed(
                    f"You cannot remove a running container {item.summary.handle}. "
                    "Stop the container before attempting removal or force remove"
                )
            del self._objects[item.summary.handle]

    def stream_logs(self, handle: str) -> MemoryLogStream:
        with self._lock:
            item = self._resolve(handle)
            if item is None:
                raise LogsFailed(f"No such container: {handle}")
            return MemoryLogStream(list(item.logs))

    def append_log(self, handle: str, data: bytes) -> None:
        with self._lock:
            item = self._resolve(handle)
            if item is None:
                raise LogsFailed(f"No such container: {handle}")
            item.logs.append(data)

    def set_exited(self, handle: str, exit_code: int) -> None:
        """Simulate the workload exiting on its own."""
        with self._lock:
            item = self._resolve(handle)
            if item is None:
                raise StartFailed(f"No such container: {handle}")
            item.summary = replace(item.summary, state="exited", exit_code=exit_code)

    def evict(self, handle: str) -> None:
        """Simulate the runtime dropping an object behind the node's back."""
        with self._lock:
            item = self._resolve(handle)
            if item is not None:
                del self._objects[item.summary.handle]

    def _resolve(self, handle: str) -> _SimulatedObject | None:
        item = self._objects.get(handle)
        if item is not None:
            return item
        for candidate in self._objects.values():
            if candidate.summary.name == handle:
                return candidate
        return None


class MemoryLogStream:
    def __init__(self, chunks: list[bytes]) -> None:
        self._chunks = chunks
        self._closed = False

    def __iter__(self) -> Iterator[bytes]:
        for chunk in self._chunks:
            if self._closed:
                return
            yield chunk

    def close(self) -> None:
        self._closed = True
