"""Logging and console utilities shared across the ollamactl package."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from loguru import logger
from rich.console import Console
from rich.logging import RichHandler


_CONFIGURED: bool = False

DEFAULT_CONSOLE_LEVEL = "INFO"
VERBOSE_CONSOLE_LEVEL = "DEBUG"
DEFAULT_FILE_LEVEL = "DEBUG"
DEFAULT_FILE_ROTATION = "5 MB"
DEFAULT_FILE_RETENTION = 2

_RICH_HANDLER_KWARGS: dict[str, Any] = {
    "markup": True,
    "show_time": False,
    "show_level": False,
    "show_path": False,
}

_consoles: dict[str, Console] = {}


def _make_console(*, stderr: bool, color: bool) -> Console:
    return Console(
        stderr=stderr,
        color_system="auto" if color else None,
        highlight=False,
        soft_wrap=True,
    )


def get_console(*, stderr: bool = False) -> Console:
    """Return the shared stdout console, or the stderr one when requested."""
    key = "stderr" if stderr else "stdout"
    if key not in _consoles:
        _consoles[key] = _make_console(stderr=stderr, color=True)
    return _consoles[key]


def configure_logging(
    *,
    verbose: bool = False,
    color: bool = True,
    log_file: os.PathLike[str] | str | None = None,
    force: bool = False,
) -> None:
    """Configure the shared logger and consoles.

    Args:
        verbose: Emit ``DEBUG`` records (the ``==>`` trace) on the console.
        color: When False, every console renders plain text.
        log_file: Optional path for a rotating debug log.
        force: Reconfigure even if logging was already set up.
    """
    global _CONFIGURED
    if _CONFIGURED and not force:
        return

    _consoles["stdout"] = _make_console(stderr=False, color=color)
    _consoles["stderr"] = _make_console(stderr=True, color=color)

    logger.remove()

    arrow = "[cyan]==>[/cyan] " if color else "==> "
    logger.add(
        RichHandler(console=_consoles["stderr"], **_RICH_HANDLER_KWARGS),  # type: ignore[arg-type]
        level=VERBOSE_CONSOLE_LEVEL if verbose else DEFAULT_CONSOLE_LEVEL,
        format=arrow + "{message}",
    )

    if log_file:
        resolved_file_path = Path(log_file).expanduser().resolve()
        resolved_file_path.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            str(resolved_file_path),
            level=DEFAULT_FILE_LEVEL,
            format="{time:YYYY-MM-DD HH:mm:ss} | {level} | {name} | {message}",
            rotation=DEFAULT_FILE_ROTATION,
            retention=DEFAULT_FILE_RETENTION,
            enqueue=True,
        )

    _CONFIGURED = True


__all__ = ["logger", "configure_logging", "get_console"]

# Configure logging on import so callers only need to import `logger`.
configure_logging()
