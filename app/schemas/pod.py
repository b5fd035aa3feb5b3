from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class ObjectMeta(_CamelModel):
    name: str = ""
    namespace: str = ""
    uid: str | None = None
    labels: dict[str, str] | None = None
    creation_timestamp: datetime | None = Field(default=None, alias="creationTimestamp")


class Container(_CamelModel):
    name: str = ""
    image: str = ""


class PodSpec(_CamelModel):
    containers: list[Container] = Field(default_factory=list)
    node_name: str | None = Field(default=None, alias="nodeName")


class ContainerStateRunning(_CamelModel):
    started_at: datetime | None = Field(default=None, alias="startedAt")


class ContainerStateWaiting(_CamelModel):
    reason: str | None = None
    message: str | None = None


class ContainerStateTerminated(_CamelModel):
    exit_code: int = Field(default=0, alias="exitCode")
    reason: str | None = None
    message: str | None = None
    started_at: datetime | None = Field(default=None, alias="startedAt")


class ContainerState(_CamelModel):
    running: ContainerStateRunning | None = None
    waiting: ContainerStateWaiting | None = None
    terminated: ContainerStateTerminated | None = None


class ContainerStatus(_CamelModel):
    name: str
    image: str
    ready: bool = False
    restart_count: int = Field(default=0, alias="restartCount")
    state: ContainerState = Field(default_factory=ContainerState)
    container_id: str | None = Field(default=None, alias="containerID")


class PodCondition(_CamelModel):
    type: str
    status: str
    last_probe_time: datetime | None = Field(default=None, alias="lastProbeTime")
    last_transition_time: datetime | None = Field(default=None, alias="lastTransitionTime")
    reason: str | None = None
    message: str | None = None


class PodStatus(_CamelModel):
    phase: str | None = None
    message: str | None = None
    reason: str | None = None
    start_time: datetime | None = Field(default=None, alias="startTime")
    conditions: list[PodCondition] = Field(default_factory=list)
    container_statuses: list[ContainerStatus] = Field(
        default_factory=list, alias="containerStatuses"
    )


class Pod(_CamelModel):
    """Pod object in the orchestrator's JSON shape; unknown fields are ignored."""

    api_version: str = Field(default="v1", alias="apiVersion")
    kind: str = "Pod"
    metadata: ObjectMeta = Field(default_factory=ObjectMeta)
    spec: PodSpec = Field(default_factory=PodSpec)
    status: PodStatus | None = None
