from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.api import health, node, pods
from app.core.cors import PermissiveCORSMiddleware
from app.core.dependencies import get_backend, get_masker, get_pod_service, get_settings
from app.core.errors import NodeShimError
from app.core.logging import configure_logging

settings = get_settings()
configure_logging(settings.log_level)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    current = get_settings()
    logger.info(
        "Starting kube-node-shim on port %s with %s backend", current.port, current.backend
    )
    # Any BackendError here aborts startup before a request is served.
    get_backend().ping()
    recovered = get_pod_service().resync()
    logger.info("Recovered %d pods from the container runtime", recovered)
    yield


app = FastAPI(title="kube-node-shim", version="1.0.0", lifespan=lifespan)
app.add_middleware(PermissiveCORSMiddleware)
app.include_router(health.router)
app.include_router(node.router)
app.include_router(pods.router)


@app.exception_handler(NodeShimError)
async def handle_node_shim_error(request: Request, exc: NodeShimError) -> JSONResponse:
    logger.warning("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": get_masker().mask(exc.message)},
    )


@app.exception_handler(RequestValidationError)
async def handle_request_validation_error(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    problems = [
        f"{'.'.join(str(part) for part in error.get('loc', ()))}: {error.get('msg', '')}"
        for error in exc.errors()
    ]
    message = "invalid request: " + "; ".join(problems)
    logger.warning("%s %s rejected: %s", request.method, request.url.path, message)
    return JSONResponse(status_code=400, content={"detail": message})


def run() -> None:
    uvicorn.run(
        app,
        host="0.0.0.0",  # noqa: S104
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
