from __future__ import annotations

from collections.abc import Sequence
import shlex
import sys

from rich.markup import escape

from ollamactl.utils.log_utils import get_console, logger
from ollamactl.utils.runtime.logging_utils import relay_lines

from .helpers import AppState, ensure_container_exists


DEFAULT_SHELL = "/bin/bash"


def _exec_flags() -> list[str]:
    # -t needs a terminal on stdin; piped input still works with -i alone.
    return ["-it"] if sys.stdin.isatty() else ["-i"]


def show_logs(state: AppState, args: Sequence[str]) -> None:
    """Relay ``logs`` output with each line prefixed by the container name."""
    ensure_container_exists(state)
    name = state.container_name
    lines = state.runtime.stream(["logs", *args, name])
    relay_lines(lines, name, get_console())


def exec_ollama(state: AppState, args: Sequence[str]) -> int:
    """Run the ``ollama`` CLI inside the container and return its exit status."""
    ensure_container_exists(state)
    name = state.container_name
    logger.debug(f"Running ollama {escape(shlex.join(args))} in container {escape(name)}")
    return state.runtime.call(["exec", *_exec_flags(), name, "ollama", *args])


def open_shell(state: AppState) -> int:
    ensure_container_exists(state)
    name = state.container_name
    logger.debug(f"Opening an interactive shell in container: {escape(name)}")
    return state.runtime.call(["exec", *_exec_flags(), name, DEFAULT_SHELL])
