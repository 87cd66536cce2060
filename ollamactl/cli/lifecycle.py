from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path

from rich.markup import escape

from ollamactl.utils.log_utils import get_console, logger
from ollamactl.utils.runtime import ContainerExistsError, ContainerSpec, has_nvidia_gpu

from .helpers import (
    AppState,
    ensure_container_exists,
    resolve_volume_source,
    start_container,
    step,
    styled_name,
)


@dataclass(slots=True)
class RunOptions:
    port: int | None = None
    debug: bool = False
    flash_attention: bool = False
    keep_alive: str | None = None
    max_loaded_models: int | None = None
    num_parallel: int | None = None
    volume_path: Path | None = None
    force: bool = False


def build_run_spec(state: AppState, options: RunOptions, volume_source: str) -> ContainerSpec:
    """Merge flags over configured defaults into a ``ContainerSpec``."""
    server = state.settings.server
    overrides: dict[str, str] = {}
    if options.debug:
        overrides["debug"] = "1"
    if options.flash_attention:
        overrides["flash_attention"] = "1"
    if options.keep_alive:
        overrides["keep_alive"] = options.keep_alive
    if options.max_loaded_models is not None:
        overrides["max_loaded_models"] = str(options.max_loaded_models)
    if options.num_parallel is not None:
        overrides["num_parallel"] = str(options.num_parallel)
    server = replace(server, **overrides)

    return ContainerSpec(
        name=state.container_name,
        image=state.image,
        host_port=options.port if options.port is not None else state.settings.container.port,
        volume_source=volume_source,
        gpu_args=state.runtime.gpu_args() if has_nvidia_gpu() else [],
        env=server.as_env(),
    )


def run_container(state: AppState, options: RunOptions) -> None:
    name = state.container_name
    if state.runtime.container_exists(name):
        if not options.force:
            raise ContainerExistsError(name)
        logger.debug(f"Container '{escape(name)}' exists. --force is set, removing it.")
        state.runtime.check(["rm", "--force", name], quiet=True)

    volume_source = resolve_volume_source(options.volume_path, state.settings.container.volume)
    spec = build_run_spec(state, options, volume_source)

    logger.debug("Starting Ollama container...")
    start_container(state, spec)
    get_console().print(f"Container {styled_name(name)} started.")
    if state.verbose:
        show_status(state)


def stop_container(state: AppState) -> None:
    name = state.container_name
    console = get_console()
    if not state.runtime.container_exists(name):
        console.print(f"Container {styled_name(name, 'yellow')} is not running. Nothing to do.")
        return
    step(f"Stopping and removing container: {escape(name)}")
    state.runtime.check(["rm", "--force", name], quiet=True)
    console.print(f"Container {styled_name(name)} stopped and removed.")


def restart_container(state: AppState) -> None:
    name = state.container_name
    step(f"Restarting container: {escape(name)}")
    ensure_container_exists(state)
    state.runtime.check(["restart", name], quiet=True)
    get_console().print(f"Container {styled_name(name)} restarted.")


def pull_image(state: AppState) -> None:
    step(f"Pulling latest image: {escape(state.image)}")
    state.runtime.check(["pull", state.image])


def show_status(state: AppState) -> None:
    name = state.container_name
    if not state.runtime.container_exists(name):
        get_console().print(f"Container {styled_name(name, 'yellow')} is not running.")
        return
    step(f"Status for container: {escape(name)}")
    state.runtime.check(["ps", "--filter", f"name={name}"])
