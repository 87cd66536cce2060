"""Host capability detection: container runtime binary and NVIDIA GPU."""

from __future__ import annotations

from pathlib import Path
import shutil

from ollamactl.utils.log_utils import logger

from .client import ContainerRuntime
from .errors import RuntimeNotFoundError


# Order matters: podman wins when both are installed.
SUPPORTED_RUNTIMES: tuple[str, ...] = ("podman", "docker")


def detect_runtime(preferred: str | None = None) -> ContainerRuntime:
    """Return a handle to the first available runtime binary.

    Args:
        preferred: Explicit binary name or path. When given, only that binary
            is considered.

    Raises:
        RuntimeNotFoundError: If no candidate resolves on ``PATH``.
    """
    candidates = (preferred,) if preferred else SUPPORTED_RUNTIMES
    for candidate in candidates:
        path = shutil.which(candidate)
        if path:
            runtime = ContainerRuntime(name=Path(candidate).name, path=path)
            logger.debug(f"Using '{runtime.name}' as the container runtime.")
            return runtime

    if preferred:
        raise RuntimeNotFoundError(f"Container runtime '{preferred}' not found in your PATH.")
    raise RuntimeNotFoundError("Neither 'podman' nor 'docker' found in your PATH.")


def has_nvidia_gpu() -> bool:
    """Return True when ``nvidia-smi`` is available on the host."""
    if shutil.which("nvidia-smi"):
        logger.debug("NVIDIA GPU detected. Enabling GPU acceleration.")
        return True
    logger.debug("No NVIDIA GPU detected or nvidia-smi not in PATH. Running in CPU-only mode.")
    return False


__all__ = ["SUPPORTED_RUNTIMES", "detect_runtime", "has_nvidia_gpu"]
