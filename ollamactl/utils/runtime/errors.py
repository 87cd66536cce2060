"""Custom exception types for container runtime helpers."""

from __future__ import annotations

from collections.abc import Sequence
import shlex


class ContainerRuntimeError(RuntimeError):
    """Base class for failures that end the current invocation.

    ``exit_code`` is the process status the CLI exits with.
    """

    exit_code: int = 1


class RuntimeNotFoundError(ContainerRuntimeError):
    """Raised when no supported runtime binary is available on ``PATH``."""


class RuntimeCommandError(ContainerRuntimeError):
    """Raised when the runtime binary exits with a non-zero status."""

    def __init__(self, argv: Sequence[str], returncode: int) -> None:
        self.argv = list(argv)
        self.returncode = returncode
        super().__init__(f"'{shlex.join(self.argv)}' exited with status {returncode}.")

    @property
    def exit_code(self) -> int:  # type: ignore[override]
        return self.returncode if self.returncode > 0 else 1


class ContainerNotFoundError(ContainerRuntimeError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Container '{name}' is not running. Use 'run' to start it.")


class ContainerExistsError(ContainerRuntimeError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Container '{name}' already exists.")


class VolumePathError(ContainerRuntimeError):
    """Raised when a bind-mount path cannot be used as the model directory."""


class InspectParseError(ContainerRuntimeError):
    """Raised when inspection output lacks a field needed to rebuild the container."""


__all__ = [
    "ContainerRuntimeError",
    "RuntimeNotFoundError",
    "RuntimeCommandError",
    "ContainerNotFoundError",
    "ContainerExistsError",
    "VolumePathError",
    "InspectParseError",
]
