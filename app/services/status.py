"""Turns runtime listings into orchestrator-shaped pod and container status."""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone

from app.clients.identity import container_name_of
from app.models.pod import (
    BackendObjectSummary,
    ContainerState,
    ContainerStatusRecord,
    PodConditionRecord,
    PodPhase,
    PodRecord,
)
from app.schemas import pod as schema

BACKEND_MISSING_MESSAGE = "backend object not found"


def synthesize(
    record: PodRecord,
    summary: BackendObjectSummary | None,
    now: datetime | None = None,
) -> PodRecord:
    """Return ``record`` with phase, conditions and container status taken from ``summary``.

    A record without a backend object keeps its containers but is reported as
    Unknown: the object vanished outside of this node's control.
    """
    now = now or datetime.now(timezone.utc)
    if summary is None:
        return replace(
            record,
            phase=PodPhase.UNKNOWN,
            message=BACKEND_MISSING_MESSAGE,
            conditions=_conditions(ready=False, at=record.start_time or now),
            container_statuses=(),
        )

    started_at = summary.created_at or now
    state, ready, phase = _map_state(summary, started_at)
    container_name = _container_name(record, summary)
    status = ContainerStatusRecord(
        name=container_name,
        image=_spec_image(record, container_name) or summary.image,
        ready=ready,
        restart_count=0,
        state=state,
        container_id=f"docker://{summary.handle}",
    )
    return replace(
        record,
        phase=phase,
        message=phase.value,
        backend_handle=summary.handle,
        start_time=started_at,
        conditions=_conditions(ready=ready, at=started_at),
        container_statuses=(status,),
    )


def _map_state(
    summary: BackendObjectSummary, started_at: datetime
) -> tuple[ContainerState, bool, PodPhase]:
    state = summary.state
    if state == "running":
        return ContainerState(kind="running", started_at=started_at), True, PodPhase.RUNNING
    if state == "paused":
        return ContainerState(kind="running", started_at=started_at), False, PodPhase.RUNNING
    if state == "created":
        waiting = ContainerState(kind="waiting", reason="ContainerCreating")
        return waiting, False, PodPhase.PENDING
    if state == "restarting":
        waiting = ContainerState(kind="waiting", reason="CrashLoopBackOff")
        return waiting, False, PodPhase.RUNNING
    if state in ("exited", "dead"):
        exit_code = summary.exit_code if summary.exit_code is not None else -1
        succeeded = exit_code == 0
        terminated = ContainerState(
            kind="terminated",
            started_at=started_at,
            exit_code=exit_code,
            reason="Completed" if succeeded else "Error",
        )
        return terminated, False, PodPhase.SUCCEEDED if succeeded else PodPhase.FAILED
    unknown = ContainerState(kind="waiting", reason="Unknown", message=f"runtime state {state!r}")
    return unknown, False, PodPhase.UNKNOWN


def _conditions(ready: bool, at: datetime) -> tuple[PodConditionRecord, ...]:
    ready_status = "True" if ready else "False"
    return (
        PodConditionRecord(type="Initialized", status="True", last_transition_time=at),
        PodConditionRecord(type="Ready", status=ready_status, last_transition_time=at),
        PodConditionRecord(type="PodScheduled", status="True", last_transition_time=at),
    )


def _container_name(record: PodRecord, summary: BackendObjectSummary) -> str:
    if len(record.containers) == 1:
        return record.containers[0].name
    return container_name_of(summary)


def _spec_image(record: PodRecord, container_name: str) -> str:
    for container in record.containers:
        if container.name == container_name:
            return container.image
    return ""


def to_pod_status(record: PodRecord) -> schema.PodStatus:
    return schema.PodStatus(
        phase=record.phase.reported,
        message=record.message,
        start_time=record.start_time,
        conditions=[
            schema.PodCondition(
                type=condition.type,
                status=condition.status,
                last_probe_time=condition.last_probe_time,
                last_transition_time=condition.last_transition_time,
                reason=condition.reason,
                message=condition.message,
            )
            for condition in record.conditions
        ],
        container_statuses=[_to_container_status(status) for status in record.container_statuses],
    )


def to_pod(record: PodRecord) -> schema.Pod:
    return schema.Pod(
        metadata=schema.ObjectMeta(
            name=record.name,
            namespace=record.namespace,
            uid=record.uid,
            labels=record.labels or None,
        ),
        spec=schema.PodSpec(
            containers=[
                schema.Container(name=container.name, image=container.image)
                for container in record.containers
            ]
        ),
        status=to_pod_status(record),
    )


def _to_container_status(status: ContainerStatusRecord) -> schema.ContainerStatus:
    state = status.state
    if state.kind == "running":
        wire_state = schema.ContainerState(
            running=schema.ContainerStateRunning(started_at=state.started_at)
        )
    elif state.kind == "terminated":
        wire_state = schema.ContainerState(
            terminated=schema.ContainerStateTerminated(
                exit_code=state.exit_code or 0,
                reason=state.reason,
                message=state.message,
                started_at=state.started_at,
            )
        )
    else:
        wire_state = schema.ContainerState(
            waiting=schema.ContainerStateWaiting(reason=state.reason, message=state.message)
        )
    return schema.ContainerStatus(
        name=status.name,
        image=status.image,
        ready=status.ready,
        restart_count=status.restart_count,
        state=wire_state,
        container_id=status.container_id,
    )
