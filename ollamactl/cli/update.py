from __future__ import annotations

import sys

from rich.markup import escape
import typer

from ollamactl.utils.log_utils import get_console, logger
from ollamactl.utils.runtime import ContainerRuntimeError, ContainerSnapshot, has_nvidia_gpu

from .helpers import AppState, ensure_container_exists, start_container, styled_name
from .lifecycle import stop_container


RECREATE_PROMPT = "Re-create the container now to apply it? (y/N)"


def _confirm_recreate(assume_yes: bool) -> bool:
    if assume_yes:
        return True
    if not sys.stdin.isatty():
        logger.debug("stdin is not interactive; not re-creating the container.")
        return False
    return typer.confirm(
        RECREATE_PROMPT, default=False, show_default=False, prompt_suffix=" "
    )


def update_image(state: AppState, *, assume_yes: bool = False) -> None:
    """Pull the image and offer to re-create the container when it changed."""
    console = get_console()
    image = state.image
    console.print(f"[cyan]==>[/cyan] Checking for new version of {escape(image)}...")

    old_id = state.runtime.image_id(image) or ""
    state.runtime.check(["pull", image])
    new_id = state.runtime.image_id(image)
    if new_id is None:
        raise ContainerRuntimeError("Failed to inspect image after pull.")

    if old_id == new_id:
        console.print("Image is already up to date.")
        return

    console.print("[green]Image updated successfully.[/green]")

    name = state.container_name
    if not state.runtime.container_exists(name):
        console.print(
            f"Container {styled_name(name, 'yellow')} is not running. "
            "Use 'run' to start it with the new image."
        )
        return

    console.print("A new image has been downloaded.")
    if _confirm_recreate(assume_yes):
        recreate_container(state)
    else:
        console.print(
            "Update downloaded. Run '[bold]ollamactl recreate[/bold]' later to apply the changes."
        )


def recreate_container(state: AppState) -> None:
    """Replace the container with one from the current image, keeping its settings."""
    ensure_container_exists(state)
    get_console().print("Re-creating container with previous settings to apply latest image...")

    name = state.container_name
    snapshot = ContainerSnapshot.from_inspect(state.runtime.inspect_container(name))
    logger.debug(f"Replacing container {escape(name)} ({snapshot.id[:12]})")
    logger.debug(f"Re-creating with host port: {snapshot.host_port}")
    logger.debug(f"Re-creating with volume source: {escape(snapshot.volume_source)}")
    if snapshot.env:
        logger.debug("Re-creating with the following environment variables:")
        for key, value in snapshot.env.items():
            logger.debug(f"  - {escape(key)}={escape(value)}")

    # GPU access is re-detected from the host rather than read back from inspect.
    gpu_args = state.runtime.gpu_args() if has_nvidia_gpu() else []
    spec = snapshot.to_spec(name=name, image=state.image, gpu_args=gpu_args)

    stop_container(state)
    start_container(state, spec)
    get_console().print(
        f"Container {styled_name(name)} has been updated and restarted with its previous configuration."
    )
