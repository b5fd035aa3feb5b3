from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum


class PodPhase(str, Enum):
    PENDING = "Pending"
    CREATING = "Creating"
    STARTING = "Starting"
    RUNNING = "Running"
    SUCCEEDED = "Succeeded"
    FAILED = "Failed"
    UNKNOWN = "Unknown"

    @property
    def reported(self) -> str:
        """Phase name as the orchestrator understands it.

        Creating and Starting are intermediate steps of this node only; they
        are reported as Pending with the step name as the status message.
        """
        if self in (PodPhase.CREATING, PodPhase.STARTING):
            return PodPhase.PENDING.value
        return self.value


@dataclass(frozen=True)
class PodKey:
    namespace: str
    name: str

    def __str__(self) -> str:
        return f"{self.namespace}/{self.name}"


@dataclass(frozen=True)
class ContainerSpec:
    name: str
    image: str


@dataclass(frozen=True)
class ContainerState:
    """Exactly one of running/waiting/terminated is meaningful, selected by ``kind``."""

    kind: str
    started_at: datetime | None = None
    reason: str | None = None
    message: str | None = None
    exit_code: int | None = None


@dataclass(frozen=True)
class ContainerStatusRecord:
    name: str
    image: str
    ready: bool
    restart_count: int
    state: ContainerState
    container_id: str | None = None


@dataclass(frozen=True)
class PodConditionRecord:
    type: str
    status: str
    last_transition_time: datetime | None = None
    last_probe_time: datetime | None = None
    reason: str | None = None
    message: str | None = None


@dataclass(frozen=True)
class PodRecord:
    namespace: str
    name: str
    containers: tuple[ContainerSpec, ...]
    phase: PodPhase = PodPhase.PENDING
    message: str | None = None
    uid: str | None = None
    labels: dict[str, str] = field(default_factory=dict)
    conditions: tuple[PodConditionRecord, ...] = ()
    container_statuses: tuple[ContainerStatusRecord, ...] = ()
    backend_handle: str | None = None
    start_time: datetime | None = None

    @property
    def key(self) -> PodKey:
        return PodKey(self.namespace, self.name)

    def with_phase(self, phase: PodPhase, message: str | None = None) -> PodRecord:
        return replace(self, phase=phase, message=message)


@dataclass(frozen=True)
class BackendObjectSummary:
    """One runtime object as reported by a label-filtered listing."""

    handle: str
    name: str
    image: str
    labels: dict[str, str]
    state: str
    created_at: datetime | None = None
    exit_code: int | None = None


@dataclass(frozen=True)
class PullEvent:
    status: str | None = None
    progress: str | None = None
    layer_id: str | None = None
    error: str | None = None

    @property
    def failed(self) -> bool:
        return self.error is not None


@dataclass(frozen=True)
class NodeAddressRecord:
    address: str
    type: str


@dataclass(frozen=True)
class NodeConditionRecord:
    type: str
    status: str
    last_heartbeat_time: datetime
    last_transition_time: datetime
    reason: str
    message: str
