from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from typing import Protocol

from app.core.errors import ImagePullFailed
from app.models.pod import BackendObjectSummary, PullEvent

logger = logging.getLogger(__name__)


class LogStream(Protocol):
    """Live log output of one runtime object; ``close`` unblocks a pending read."""

    def __iter__(self) -> Iterator[bytes]:
        raise NotImplementedError

    def close(self) -> None:
        raise NotImplementedError


class ContainerBackend(Protocol):
    def ping(self) -> None:
        raise NotImplementedError

    def list_by_label_prefix(self, prefix: str) -> list[BackendObjectSummary]:
        raise NotImplementedError

    def pull_image(self, ref: str) -> Iterator[PullEvent]:
        raise NotImplementedError

    def create(self, image: str, labels: dict[str, str], name: str) -> str:
        raise NotImplementedError

    def start(self, handle: str) -> None:
        raise NotImplementedError

    def remove(self, handle: str, force: bool = False) -> None:
        raise NotImplementedError

    def stream_logs(self, handle: str) -> LogStream:
        raise NotImplementedError


def drain_pull(ref: str, events: Iterable[PullEvent]) -> PullEvent | None:
    """Consume a pull progress stream to its end.

    Returns the last event seen. Raises ImagePullFailed as soon as the stream
    reports an error; adapters raise it themselves when the transport breaks.
    """
    last: PullEvent | None = None
    for event in events:
        last = event
        if event.failed:
            raise ImagePullFailed(f"{ref}: {event.error}")
        logger.debug(
            "Pull %s: %s %s %s",
            ref,
            event.layer_id or "",
            event.status or "",
            event.progress or "",
        )
    return last
