"""Container runtime helpers.

This package provides structured helpers for:
    * Detecting the runtime binary (podman preferred, then docker) and an
        NVIDIA GPU on the host (``detect_runtime`` / ``has_nvidia_gpu``)
    * Invoking that binary with pass-through stdio (``ContainerRuntime``)
    * Rendering run arguments for the Ollama container and recovering them
        from inspection output (``ContainerSpec`` / ``ContainerSnapshot``)

Principles:
    * Keep subprocess usage inside ``client.py`` so higher-level code can be
        tested against a fake runtime.
    * Avoid side effects at import time (no probing until asked).

Public API (re-exported):
        - ContainerRuntimeError and subclasses
        - ContainerRuntime
        - ContainerSpec
        - ContainerSnapshot
        - detect_runtime
        - has_nvidia_gpu
"""

from .client import ContainerRuntime
from .container import CONTAINER_PORT, MODELS_MOUNT_TARGET, ContainerSnapshot, ContainerSpec
from .errors import (
    ContainerExistsError,
    ContainerNotFoundError,
    ContainerRuntimeError,
    InspectParseError,
    RuntimeCommandError,
    RuntimeNotFoundError,
    VolumePathError,
)
from .probe import detect_runtime, has_nvidia_gpu


__all__ = [
    "CONTAINER_PORT",
    "MODELS_MOUNT_TARGET",
    "ContainerRuntime",
    "ContainerSpec",
    "ContainerSnapshot",
    "ContainerRuntimeError",
    "ContainerExistsError",
    "ContainerNotFoundError",
    "InspectParseError",
    "RuntimeCommandError",
    "RuntimeNotFoundError",
    "VolumePathError",
    "detect_runtime",
    "has_nvidia_gpu",
]
