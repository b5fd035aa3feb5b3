"""Error taxonomy shared by the backend adapters, services and HTTP layer."""

from __future__ import annotations


class NodeShimError(Exception):
    """Base class for every error surfaced to the orchestrator."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class PodValidationError(NodeShimError):
    """Malformed request or unsupported pod shape."""

    status_code = 400


class PodNotFoundError(NodeShimError):
    status_code = 404

    def __init__(self, namespace: str, name: str) -> None:
        super().__init__(f"Pod not found: {namespace} - {name}")
        self.namespace = namespace
        self.name = name


class BackendError(NodeShimError):
    """A container runtime operation failed.

    The message carries the runtime's own error text so operators can match it
    against daemon logs.
    """

    status_code = 400
    operation = "backend"

    def __init__(self, reason: str) -> None:
        super().__init__(f"{self.operation} failed: {reason}")
        self.reason = reason


class BackendUnavailable(BackendError):
    operation = "ContainerList"


class ImagePullFailed(BackendError):
    operation = "ImagePull"


class CreateFailed(BackendError):
    operation = "ContainerCreate"


class StartFailed(BackendError):
    operation = "ContainerStart"


class RemoveFailed(BackendError):
    operation = "ContainerRemove"


class LogsFailed(BackendError):
    operation = "ContainerLogs"
