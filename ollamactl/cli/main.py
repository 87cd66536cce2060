from __future__ import annotations

from collections.abc import Callable, Sequence
from functools import wraps
from pathlib import Path
import sys
from typing import Any, ParamSpec, TypeVar

from rich.markup import escape
import typer  # type: ignore[import]

from ollamactl import __version__
from ollamactl.config import get_settings
from ollamactl.config.settings import (
    DEFAULT_FLASH_ATTENTION,
    DEFAULT_MAX_LOADED_MODELS,
    DEFAULT_NUM_PARALLEL,
    DEFAULT_PORT,
    DEFAULT_VOLUME_NAME,
)
from ollamactl.utils.log_utils import configure_logging, get_console, logger
from ollamactl.utils.runtime import (
    ContainerExistsError,
    ContainerNotFoundError,
    ContainerRuntimeError,
    RuntimeNotFoundError,
    detect_runtime,
)

from . import interact, lifecycle, update
from .helpers import AppState


PROG_NAME = "ollamactl"

app = typer.Typer(
    help="Manages the Ollama container lifecycle using Podman or Docker.",
    context_settings={"help_option_names": ["-h", "--help"]},
    add_completion=False,
    rich_markup_mode=None,
)

_PASSTHROUGH_SETTINGS = {"ignore_unknown_options": True, "allow_extra_args": True}

_P = ParamSpec("_P")
_T = TypeVar("_T")


def _report_error(err: ContainerRuntimeError) -> None:
    console = get_console(stderr=True)
    if isinstance(err, ContainerNotFoundError):
        console.print(
            f"Container [yellow]{escape(err.name)}[/yellow] is not running. Use 'run' to start it."
        )
        return
    console.print(f"Error: {escape(str(err))}")
    if isinstance(err, ContainerExistsError):
        console.print(
            "Use the [green]'--force'[/green] flag to remove it and start a new one, "
            "or use the [green]'stop'[/green] command first."
        )


def _exits_on_runtime_error(handler: Callable[_P, _T]) -> Callable[_P, _T]:
    @wraps(handler)
    def wrapper(*args: _P.args, **kwargs: _P.kwargs) -> _T:
        try:
            return handler(*args, **kwargs)
        except ContainerRuntimeError as err:
            _report_error(err)
            raise typer.Exit(code=err.exit_code) from err
        except KeyboardInterrupt as err:
            logger.info("Interrupted by user")
            raise typer.Exit(code=130) from err

    return wrapper


def _state(ctx: typer.Context) -> AppState:
    return ctx.find_object(AppState)  # type: ignore[return-value]


def _print_banner(state: AppState) -> None:
    get_console().print(
        f"[bold]Ollama Container Manager[/bold] v{__version__} "
        f"(using [green]{state.runtime.display_name}[/green])\n"
    )


def _version_callback(value: bool) -> None:
    if value:
        get_console().print(f"{PROG_NAME} version {__version__}")
        raise typer.Exit()


def _require_value(value: str | None) -> str | None:
    if value is not None and not value.strip():
        raise typer.BadParameter("a non-empty value is required.")
    return value


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose output."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    settings = get_settings()
    configure_logging(
        verbose=verbose, color=not no_color, log_file=settings.log_file, force=True
    )
    try:
        runtime = detect_runtime(settings.container.runtime)
    except RuntimeNotFoundError as err:
        console = get_console(stderr=True)
        console.print(f"[yellow]Error: {escape(str(err))}[/yellow]")
        console.print("Please install one of them to manage the Ollama container.")
        raise typer.Exit(code=1) from err

    ctx.obj = AppState(runtime=runtime, settings=settings, verbose=verbose)
    if ctx.invoked_subcommand is None:
        _print_banner(ctx.obj)
        get_console().print(escape(ctx.get_help()))
        return
    logger.debug(f"Dispatching command '{ctx.invoked_subcommand}'")


@app.command("run")
@_exits_on_runtime_error
def run_command(
    ctx: typer.Context,
    port: int | None = typer.Option(
        None,
        "--port",
        "-p",
        min=1,
        max=65535,
        help=f"Set the host port to expose. (default: {DEFAULT_PORT})",
        show_default=False,
    ),
    debug: bool = typer.Option(
        False, "--debug", "-d", help="Enable debug mode by setting OLLAMA_DEBUG=1."
    ),
    flash_attention: bool = typer.Option(
        False,
        "--flash-attention",
        "-f",
        help=(
            "Enable flash attention via OLLAMA_FLASH_ATTENTION=1. "
            f"(default: {'enabled' if DEFAULT_FLASH_ATTENTION == '1' else 'disabled'})"
        ),
    ),
    keep_alive: str | None = typer.Option(
        None,
        "--keep-alive",
        "-k",
        help="Set OLLAMA_KEEP_ALIVE. (e.g., '5m', '-1')",
        callback=_require_value,
    ),
    max_loaded_models: int | None = typer.Option(
        None,
        "--max-loaded-models",
        "-m",
        min=0,
        help=f"Set OLLAMA_MAX_LOADED_MODELS. (default: {DEFAULT_MAX_LOADED_MODELS})",
        show_default=False,
    ),
    num_parallel: int | None = typer.Option(
        None,
        "--num-parallel",
        "-n",
        min=0,
        help=f"Set OLLAMA_NUM_PARALLEL. (default: {DEFAULT_NUM_PARALLEL})",
        show_default=False,
    ),
    volume_path: str | None = typer.Option(
        None,
        "--volume-path",
        "-V",
        help=f"Bind mount a host path for models. (default: named volume '{DEFAULT_VOLUME_NAME}')",
        callback=_require_value,
    ),
    force: bool = typer.Option(
        False,
        "--force",
        help="Force removal of an existing container before running.",
    ),
) -> None:
    """Start the Ollama container with specified options."""
    options = lifecycle.RunOptions(
        port=port,
        debug=debug,
        flash_attention=flash_attention,
        keep_alive=keep_alive,
        max_loaded_models=max_loaded_models,
        num_parallel=num_parallel,
        volume_path=Path(volume_path) if volume_path is not None else None,
        force=force,
    )
    lifecycle.run_container(_state(ctx), options)


@app.command("stop")
@_exits_on_runtime_error
def stop_command(ctx: typer.Context) -> None:
    """Stop and remove the Ollama container."""
    lifecycle.stop_container(_state(ctx))


@app.command("restart")
@_exits_on_runtime_error
def restart_command(ctx: typer.Context) -> None:
    """Restart the Ollama container."""
    lifecycle.restart_container(_state(ctx))


@app.command("pull")
@_exits_on_runtime_error
def pull_command(ctx: typer.Context) -> None:
    """Pull the latest ollama image."""
    lifecycle.pull_image(_state(ctx))


@app.command("update")
@_exits_on_runtime_error
def update_command(
    ctx: typer.Context,
    yes: bool = typer.Option(
        False,
        "--yes",
        "-y",
        help="Re-create the container without asking when a new image was pulled.",
    ),
) -> None:
    """Pull the latest image and prompt to re-create the container."""
    update.update_image(_state(ctx), assume_yes=yes)


@app.command("recreate")
@_exits_on_runtime_error
def recreate_command(ctx: typer.Context) -> None:
    """Re-create the container using the latest image and existing settings."""
    update.recreate_container(_state(ctx))


@app.command("logs", context_settings=_PASSTHROUGH_SETTINGS)
@_exits_on_runtime_error
def logs_command(
    ctx: typer.Context,
    args: list[str] | None = typer.Argument(
        None, help="Extra arguments for the runtime's logs command (e.g. -f, --tail 50)."
    ),
) -> None:
    """View logs. Pass extra args like -f (e.g., 'ollamactl logs -f')."""
    interact.show_logs(_state(ctx), args or [])


@app.command(
    "ollama",
    context_settings={**_PASSTHROUGH_SETTINGS, "help_option_names": []},
)
@_exits_on_runtime_error
def ollama_command(
    ctx: typer.Context,
    args: list[str] | None = typer.Argument(None, help="Arguments for the ollama CLI."),
) -> None:
    """Run ollama CLI commands inside the container (e.g., 'ollamactl ollama pull llama2')."""
    code = interact.exec_ollama(_state(ctx), args or [])
    if code != 0:
        raise typer.Exit(code=code)


@app.command("shell")
@_exits_on_runtime_error
def shell_command(ctx: typer.Context) -> None:
    """Start an interactive shell inside the container."""
    code = interact.open_shell(_state(ctx))
    if code != 0:
        raise typer.Exit(code=code)


@app.command("status")
@_exits_on_runtime_error
def status_command(ctx: typer.Context) -> None:
    """Show the status of the container."""
    lifecycle.show_status(_state(ctx))


@app.command("help")
def help_command(ctx: typer.Context) -> None:
    """Show this help message."""
    _print_banner(_state(ctx))
    parent = ctx.parent if ctx.parent is not None else ctx
    get_console().print(escape(parent.get_help()))


def _parser_exception(name: str) -> type[Exception]:
    # Typer may bundle its own Click; take the classes from what Typer raises.
    return next(cls for cls in typer.BadParameter.__mro__ if cls.__name__ == name)


_UsageError = _parser_exception("UsageError")
_ClickException = _parser_exception("ClickException")


def _report_usage_error(err: Any) -> None:
    console = get_console(stderr=True)
    console.print(f"Error: {escape(err.format_message())}")
    if err.ctx is not None:
        console.print("")
        console.print(escape(err.ctx.get_help()))


def main(argv: Sequence[str] | None = None) -> int:
    try:
        result = app(
            args=list(argv) if argv is not None else None,
            prog_name=PROG_NAME,
            standalone_mode=False,
        )
    except _UsageError as err:
        _report_usage_error(err)
        return 1
    except _ClickException as err:
        get_console(stderr=True).print(f"Error: {escape(err.format_message())}")  # type: ignore[attr-defined]
        return 1
    except typer.Abort:
        get_console(stderr=True).print("Aborted.")
        return 1
    return result if isinstance(result, int) else 0


def run_app() -> None:
    sys.exit(main())


if __name__ == "__main__":  # pragma: no cover
    run_app()
