from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class NodeAddress(BaseModel):
    address: str
    type: str


class NodeCondition(BaseModel):
    type: str
    status: str
    last_heartbeat_time: datetime = Field(alias="lastHeartbeatTime")
    last_transition_time: datetime = Field(alias="lastTransitionTime")
    reason: str
    message: str

    model_config = ConfigDict(populate_by_name=True)
