"""Helpers for relaying container log output with a per-container prefix."""

from __future__ import annotations

from collections.abc import Iterable

from rich.console import Console
from rich.text import Text


PREFIX_STYLE = "green"


def format_prefix(name: str) -> Text:
    """Return the ``[name] | `` prefix shown before each relayed log line."""
    return Text.assemble((f"[{name}]", PREFIX_STYLE), " | ")


def prefix_line(name: str, line: str) -> Text:
    """Prefix one log line, keeping any ANSI styling the container emitted."""
    text = format_prefix(name)
    text.append_text(Text.from_ansi(line.replace("\r", "")))
    return text


def relay_lines(lines: Iterable[str], name: str, console: Console) -> None:
    """Print each line with the container prefix as soon as it arrives."""
    for line in lines:
        console.print(prefix_line(name, line))


__all__ = ["format_prefix", "prefix_line", "relay_lines"]
