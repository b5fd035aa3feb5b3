from __future__ import annotations

import logging
import re
from collections.abc import Iterator
from datetime import datetime, timezone
from typing import Any

import docker
from docker import auth
from docker.errors import DockerException
from docker.utils import parse_repository_tag
from requests.exceptions import RequestException

from app.clients.identity import LABEL_MANAGED_BY
from app.core.errors import (
    BackendUnavailable,
    CreateFailed,
    ImagePullFailed,
    LogsFailed,
    RemoveFailed,
    StartFailed,
)
from app.models.pod import BackendObjectSummary, PullEvent

_RUNTIME_ERRORS = (DockerException, RequestException)
_STREAM_ERRORS = (DockerException, RequestException, OSError)
_EXIT_CODE = re.compile(r"^Exited \((-?\d+)\)")


class DockerBackend:
    """Container runtime adapter backed by the Docker Engine API.

    Uses the low-level ``APIClient`` so pulls can be consumed as a progress
    stream and listings come back in a single call without per-object inspects.
    Every call is bounded by ``timeout_seconds``.
    """

    def __init__(self, timeout_seconds: int, api: Any | None = None) -> None:
        self._logger = logging.getLogger(__name__)
        self._timeout_seconds = timeout_seconds
        self._api = api if api is not None else self._build_client()

    def ping(self) -> None:
        try:
            self._api.ping()
        except _RUNTIME_ERRORS as exc:
            raise BackendUnavailable(str(exc)) from exc

    def list_by_label_prefix(self, prefix: str) -> list[BackendObjectSummary]:
        try:
            containers = self._api.containers(
                all=True,
                filters={"label": [f"{LABEL_MANAGED_BY}={prefix}"]},
            )
        except _RUNTIME_ERRORS as exc:
            self._logger.warning("Failed to list containers for %s: %s", prefix, exc)
            raise BackendUnavailable(str(exc)) from exc
        return [_to_summary(item) for item in containers or []]

    def pull_image(self, ref: str) -> Iterator[PullEvent]:
        self._logger.info("Pulling image %s", ref)
        try:
            for chunk in self._open_pull(ref):
                yield _to_pull_event(chunk)
        except _STREAM_ERRORS as exc:
            raise ImagePullFailed(f"{ref}: {exc}") from exc

    def create(self, image: str, labels: dict[str, str], name: str) -> str:
        try:
            response = self._api.create_container(
                image=image,
                name=name,
                labels=labels,
                detach=True,
            )
        except _RUNTIME_ERRORS as exc:
            raise CreateFailed(str(exc)) from exc
        handle = response.get("Id") if isinstance(response, dict) else None
        if not handle:
            raise CreateFailed(f"runtime returned no container id for {name}")
        for warning in response.get("Warnings") or []:
            self._logger.warning("Create %s: %s", name, warning)
        return handle

    def start(self, handle: str) -> None:
        try:
            self._api.start(handle)
        except _RUNTIME_ERRORS as exc:
            raise StartFailed(str(exc)) from exc

    def remove(self, handle: str, force: bool = False) -> None:
        try:
            self._api.remove_container(handle, force=force)
        except _RUNTIME_ERRORS as exc:
            raise RemoveFailed(str(exc)) from exc

    def stream_logs(self, handle: str) -> DockerLogStream:
        try:
            stream = self._api.logs(handle, stdout=True, stderr=False, stream=True, follow=True)
        except _RUNTIME_ERRORS as exc:
            raise LogsFailed(str(exc)) from exc
        return DockerLogStream(handle, stream)

    def _build_client(self) -> Any:
        try:
            client = docker.from_env(timeout=self._timeout_seconds)
        except DockerException as exc:
            raise BackendUnavailable(f"cannot configure docker client: {exc}") from exc
        self._logger.info("Configured docker client for %s", client.api.base_url)
        return client.api

    def _open_pull(self, ref: str) -> Iterator[Any]:
        # Same request as APIClient.pull, which always sends timeout=None.
        repository, tag = parse_repository_tag(ref)
        registry, _ = auth.resolve_repository_name(repository)
        headers: dict[str, str] = {}
        header = auth.get_config_header(self._api, registry)
        if header:
            headers["X-Registry-Auth"] = header
        response = self._api._post(
            self._api._url("/images/create"),
            params={"fromImage": repository, "tag": tag or "latest"},
            headers=headers,
            stream=True,
            timeout=self._timeout_seconds,
        )
        self._api._raise_for_status(response)
        return self._api._stream_helper(response, decode=True)


class DockerLogStream:
    def __init__(self, handle: str, stream: Any) -> None:
        self._handle = handle
        self._stream = stream
        self._closed = False

    def __iter__(self) -> Iterator[bytes]:
        try:
            for chunk in self._stream:
                yield chunk
        except _STREAM_ERRORS as exc:
            if self._closed:
                return
            raise LogsFailed(f"{self._handle}: {exc}") from exc

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        close = getattr(self._stream, "close", None)
        if close is not None:
            close()


def _to_summary(item: dict[str, Any]) -> BackendObjectSummary:
    names = item.get("Names") or []
    state = str(item.get("State") or "").lower()
    return BackendObjectSummary(
        handle=str(item.get("Id", "")),
        name=names[0].lstrip("/") if names else "",
        image=str(item.get("Image", "")),
        labels=dict(item.get("Labels") or {}),
        state=state,
        created_at=_from_epoch(item.get("Created")),
        exit_code=_parse_exit_code(item.get("Status")) if state in ("exited", "dead") else None,
    )


def _to_pull_event(chunk: Any) -> PullEvent:
    if not isinstance(chunk, dict):
        return PullEvent(status=str(chunk))
    error = chunk.get("error")
    detail = chunk.get("errorDetail")
    if error is None and isinstance(detail, dict):
        error = detail.get("message")
    return PullEvent(
        status=chunk.get("status"),
        progress=chunk.get("progress"),
        layer_id=chunk.get("id"),
        error=str(error) if error is not None else None,
    )


def _from_epoch(value: Any) -> datetime | None:
    if not isinstance(value, (int, float)) or value <= 0:
        return None
    return datetime.fromtimestamp(value, tz=timezone.utc)


def _parse_exit_code(status: Any) -> int | None:
    if not isinstance(status, str):
        return None
    match = _EXIT_CODE.match(status)
    if match is None:
        return None
    return int(match.group(1))
