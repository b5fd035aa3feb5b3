from __future__ import annotations

from collections.abc import AsyncIterator

from fastapi import APIRouter, Depends, Query, Response
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import StreamingResponse

from app.clients.backend import LogStream
from app.core.dependencies import get_pod_service
from app.schemas.pod import Pod, PodStatus
from app.services.pods import PodService
from app.services.status import to_pod, to_pod_status

router = APIRouter()

_END = object()


@router.get("/getPods", response_model=list[Pod], response_model_exclude_none=True)
def get_pods(
    service: PodService = Depends(get_pod_service),  # noqa: B008
) -> list[Pod]:
    return [to_pod(record) for record in service.list_pods()]


@router.get("/getPodStatus", response_model=PodStatus, response_model_exclude_none=True)
def get_pod_status(
    namespace: str = Query(...),  # noqa: B008
    name: str = Query(...),  # noqa: B008
    service: PodService = Depends(get_pod_service),  # noqa: B008
) -> PodStatus:
    return to_pod_status(service.get_pod_status(namespace, name))


@router.post("/createPod", status_code=202)
def create_pod(
    pod: Pod,
    service: PodService = Depends(get_pod_service),  # noqa: B008
) -> Response:
    service.create_pod(pod)
    return Response(status_code=202)


@router.post("/deletePod")
def delete_pod(
    pod: Pod,
    service: PodService = Depends(get_pod_service),  # noqa: B008
) -> Response:
    service.delete_pod(pod.metadata.namespace, pod.metadata.name)
    return Response(status_code=200)


@router.get("/getContainerLogs")
async def get_container_logs(
    namespace: str = Query(...),  # noqa: B008
    pod_name: str = Query(..., alias="podName"),  # noqa: B008
    container_name: str = Query(..., alias="containerName"),  # noqa: B008
    service: PodService = Depends(get_pod_service),  # noqa: B008
) -> StreamingResponse:
    stream = await run_in_threadpool(
        service.stream_container_logs, namespace, pod_name, container_name
    )
    return StreamingResponse(_relay(stream), media_type="application/octet-stream")


async def _relay(stream: LogStream) -> AsyncIterator[bytes]:
    # Starlette cancels this generator when the client goes away; closing the
    # stream unblocks the worker thread still waiting on the runtime.
    iterator = iter(stream)
    try:
        while True:
            chunk = await run_in_threadpool(next, iterator, _END)
            if chunk is _END:
                break
            yield chunk
    finally:
        stream.close()
