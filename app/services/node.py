from __future__ import annotations

from datetime import datetime, timezone

from app.core.config import Settings
from app.models.pod import NodeAddressRecord, NodeConditionRecord


class NodeService:
    """Descriptive node values; fixed for the lifetime of the process."""

    def __init__(self, settings: Settings) -> None:
        self._capacity = {
            "cpu": settings.capacity_cpu,
            "memory": settings.capacity_memory,
            "pods": settings.capacity_pods,
        }
        self._node_ip = settings.node_ip
        self._ready_since = datetime.now(timezone.utc)

    def capacity(self) -> dict[str, str]:
        return dict(self._capacity)

    def addresses(self) -> list[NodeAddressRecord]:
        if not self._node_ip:
            return []
        return [NodeAddressRecord(address=self._node_ip, type="InternalIP")]

    def conditions(self) -> list[NodeConditionRecord]:
        return [
            NodeConditionRecord(
                type="Ready",
                status="True",
                last_heartbeat_time=datetime.now(timezone.utc),
                last_transition_time=self._ready_since,
                reason="KubeletReady",
                message="At your service",
            )
        ]
