from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import shlex

from rich.markup import escape

from ollamactl.config import OllamaSettings
from ollamactl.utils.log_utils import get_console, logger
from ollamactl.utils.runtime import (
    ContainerNotFoundError,
    ContainerRuntime,
    ContainerSpec,
    VolumePathError,
)


@dataclass(slots=True)
class AppState:
    """Per-invocation state shared by every subcommand."""

    runtime: ContainerRuntime
    settings: OllamaSettings
    verbose: bool = False

    @property
    def container_name(self) -> str:
        return self.settings.container.name

    @property
    def image(self) -> str:
        return self.settings.container.image


def step(message: str) -> None:
    """Print a progress line in the ``==> message`` style."""
    get_console().print(f"[cyan]==>[/cyan] {message}")


def styled_name(name: str, style: str = "green") -> str:
    return f"[{style}]{escape(name)}[/{style}]"


def ensure_container_exists(state: AppState) -> None:
    """Raise ``ContainerNotFoundError`` unless the managed container exists."""
    if not state.runtime.container_exists(state.container_name):
        raise ContainerNotFoundError(state.container_name)


def resolve_volume_source(volume_path: Path | None, volume_name: str) -> str:
    """Return the mount source for the models directory.

    A host path is created when missing; an existing non-directory is rejected.
    Without a path the runtime-managed named volume is used.
    """
    if volume_path is None:
        logger.debug(f"Using named volume: {escape(volume_name)}")
        return volume_name

    # Bind mounts need an absolute path; a bare name would be taken as a volume.
    volume_path = volume_path.expanduser().resolve()
    if volume_path.exists() and not volume_path.is_dir():
        raise VolumePathError(f"Volume path '{volume_path}' exists but is not a directory.")
    if not volume_path.is_dir():
        logger.debug(f"Volume path '{escape(str(volume_path))}' does not exist. Creating it.")
        try:
            volume_path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise VolumePathError(f"Failed to create volume path '{volume_path}'.") from e

    logger.debug(f"Using host path for volume: {escape(str(volume_path))}")
    return str(volume_path)


def start_container(state: AppState, spec: ContainerSpec) -> None:
    """Run the container detached, discarding the id the runtime prints."""
    args = ["run", *spec.run_args()]
    if state.verbose:
        get_console().print(
            f"[yellow]RUNNING:[/yellow] {escape(shlex.join([state.runtime.name, *args]))}"
        )
    state.runtime.check(args, quiet=True)
