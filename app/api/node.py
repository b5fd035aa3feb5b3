from __future__ import annotations

from fastapi import APIRouter, Depends

from app.core.dependencies import get_node_service
from app.schemas.node import NodeAddress, NodeCondition
from app.services.node import NodeService

router = APIRouter()


@router.get("/capacity")
def get_capacity(
    service: NodeService = Depends(get_node_service),  # noqa: B008
) -> dict[str, str]:
    return service.capacity()


@router.get("/nodeAddresses", response_model=list[NodeAddress])
def get_node_addresses(
    service: NodeService = Depends(get_node_service),  # noqa: B008
) -> list[NodeAddress]:
    return [
        NodeAddress(address=address.address, type=address.type)
        for address in service.addresses()
    ]


@router.get("/nodeConditions", response_model=list[NodeCondition])
def get_node_conditions(
    service: NodeService = Depends(get_node_service),  # noqa: B008
) -> list[NodeCondition]:
    return [
        NodeCondition(
            type=condition.type,
            status=condition.status,
            last_heartbeat_time=condition.last_heartbeat_time,
            last_transition_time=condition.last_transition_time,
            reason=condition.reason,
            message=condition.message,
        )
        for condition in service.conditions()
    ]
