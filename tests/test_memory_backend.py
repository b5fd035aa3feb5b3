from __future__ import annotations

import pytest

from app.clients.backend import drain_pull
from app.clients.identity import container_labels_for, labels_for
from app.clients.memory_backend import InMemoryBackend
from app.core.errors import CreateFailed, ImagePullFailed, LogsFailed, RemoveFailed, StartFailed


def _create(backend: InMemoryBackend, name: str = "VK_default_web_c1") -> str:
    drain_pull("nginx:latest", backend.pull_image("nginx:latest"))
    return backend.create("nginx:latest", container_labels_for("default", "web", "c1"), name)


def test_pull_stream_ends_with_status() -> None:
    backend = InMemoryBackend()

    last = drain_pull("nginx:latest", backend.pull_image("nginx:latest"))
    again = drain_pull("nginx:latest", backend.pull_image("nginx:latest"))

    assert last is not None
    assert last.status == "Status: Downloaded newer image for nginx:latest"
    assert again is not None
    assert again.status == "Status: Image is up to date for nginx:latest"


def test_pull_of_registry_with_port_defaults_tag() -> None:
    backend = InMemoryBackend()

    last = drain_pull("registry:5000/team/app", backend.pull_image("registry:5000/team/app"))

    assert last is not None
    assert last.status.endswith("registry:5000/team/app:latest")


def test_unavailable_image_fails_pull() -> None:
    backend = InMemoryBackend(unavailable_images=["ghost:1"])

    with pytest.raises(ImagePullFailed, match="repository does not exist"):
        drain_pull("ghost:1", backend.pull_image("ghost:1"))


def test_create_requires_pulled_image() -> None:
    backend = InMemoryBackend()

    with pytest.raises(CreateFailed, match="No such image"):
        backend.create("nginx:latest", labels_for("default", "web"), "VK_default_web_c1")


def test_create_rejects_duplicate_name() -> None:
    backend = InMemoryBackend()
    _create(backend)

    with pytest.raises(CreateFailed, match="already in use"):
        _create(backend)


def test_lifecycle_is_visible_in_listing() -> None:
    backend = InMemoryBackend()
    handle = _create(backend)

    [created] = backend.list_by_label_prefix("VK")
    assert created.handle == handle
    assert created.state == "created"

    backend.start(handle)
    [running] = backend.list_by_label_prefix("VK")
    assert running.state == "running"
    assert backend.list_by_label_prefix("OTHER") == []


def test_remove_running_requires_force() -> None:
    backend = InMemoryBackend()
    handle = _create(backend)
    backend.start(handle)

    with pytest.raises(RemoveFailed, match="cannot remove a running container"):
        backend.remove(handle)

    backend.remove(handle, force=True)
    assert backend.list_by_label_prefix("VK") == []


def test_unknown_handles_fail() -> None:
    backend = InMemoryBackend()

    with pytest.raises(StartFailed):
        backend.start("missing")
    with pytest.raises(RemoveFailed):
        backend.remove("missing", force=True)
    with pytest.raises(LogsFailed):
        backend.stream_logs("missing")


def test_logs_are_addressable_by_name() -> None:
    backend = InMemoryBackend()
    handle = _create(backend)
    backend.append_log(handle, b"hello\n")
    backend.append_log(handle, b"world\n")

    stream = backend.stream_logs("VK_default_web_c1")

    assert list(stream) == [b"hello\n", b"world\n"]


def test_closed_log_stream_stops() -> None:
    backend = InMemoryBackend()
    handle = _create(backend)
    backend.append_log(handle, b"one\n")
    backend.append_log(handle, b"two\n")

    stream = backend.stream_logs(handle)
    chunks = []
    for chunk in stream:
        chunks.append(chunk)
        stream.close()

    assert chunks == [b"one\n"]
