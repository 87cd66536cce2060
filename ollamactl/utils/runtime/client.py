"""Thin wrapper around a Docker- or Podman-compatible runtime binary.

Every method maps to exactly one invocation of the external binary. Output is
passed through unless a method documents otherwise, and failures surface as
``RuntimeCommandError`` carrying the runtime's exit status.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass
import json
import shlex
import subprocess
from typing import IO, Any, cast

from rich.markup import escape

from ollamactl.utils.log_utils import logger

from .errors import InspectParseError, RuntimeCommandError


@dataclass(frozen=True, slots=True)
class ContainerRuntime:
    """Handle to the runtime binary.

    Attributes:
        name: Binary name (``podman`` or ``docker``).
        path: Resolved executable path.
    """

    name: str
    path: str

    @property
    def is_podman(self) -> bool:
        return self.name == "podman"

    @property
    def display_name(self) -> str:
        return self.name.capitalize()

    def gpu_args(self) -> list[str]:
        """Return the flag that exposes all NVIDIA GPUs to a container."""
        if self.is_podman:
            return ["--device=nvidia.com/gpu=all"]
        return ["--gpus=all"]

    def argv(self, args: Sequence[str]) -> list[str]:
        return [self.path, *args]

    def call(self, args: Sequence[str], *, quiet: bool = False) -> int:
        """Run the binary with inherited stdio and return its exit status.

        Args:
            args: Arguments following the binary name.
            quiet: Discard stdout (stderr still reaches the terminal).
        """
        argv = self.argv(args)
        logger.debug(f"Executing: {escape(shlex.join([self.name, *args]))}")
        completed = subprocess.run(
            argv,
            check=False,
            stdout=subprocess.DEVNULL if quiet else None,
        )
        return completed.returncode

    def check(self, args: Sequence[str], *, quiet: bool = False) -> None:
        """Like ``call`` but raise ``RuntimeCommandError`` on failure."""
        returncode = self.call(args, quiet=quiet)
        if returncode != 0:
            raise RuntimeCommandError([self.name, *args], returncode)

    def output(self, args: Sequence[str]) -> str:
        """Run the binary and return its captured stdout.

        Raises:
            RuntimeCommandError: On non-zero exit.
        """
        argv = self.argv(args)
        logger.debug(f"Executing: {escape(shlex.join([self.name, *args]))}")
        completed = subprocess.run(
            argv,
            check=False,
            capture_output=True,
            text=True,
        )
        if completed.returncode != 0:
            raise RuntimeCommandError([self.name, *args], completed.returncode)
        return completed.stdout

    def stream(self, args: Sequence[str]) -> Iterator[str]:
        """Yield combined stdout/stderr lines as the binary produces them.

        Raises:
            RuntimeCommandError: After the stream ends, if the exit status is non-zero.
        """
        argv = self.argv(args)
        logger.debug(f"Executing: {escape(shlex.join([self.name, *args]))}")
        with subprocess.Popen(
            argv,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            errors="replace",
            bufsize=1,
        ) as proc:
            stdout = cast(IO[str], proc.stdout)
            try:
                for line in stdout:
                    yield line.rstrip("\r\n")
            except BaseException:
                proc.terminate()
                raise
            returncode = proc.wait()
        if returncode != 0:
            raise RuntimeCommandError([self.name, *args], returncode)

    def container_exists(self, name: str) -> bool:
        """Return True if a container with this name exists in any state."""
        completed = subprocess.run(
            self.argv(["container", "inspect", name]),
            check=False,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
        )
        return completed.returncode == 0

    def inspect_container(self, name: str) -> dict[str, Any]:
        """Return the parsed ``container inspect`` document for one container."""
        raw = self.output(["container", "inspect", name])
        try:
            payload = json.loads(raw)
        except json.JSONDecodeError as e:
            raise InspectParseError(f"Could not parse inspect output for '{name}'.") from e
        if isinstance(payload, list):
            if not payload:
                raise InspectParseError(f"Inspect output for '{name}' is empty.")
            payload = payload[0]
        if not isinstance(payload, dict):
            raise InspectParseError(f"Unexpected inspect output for '{name}'.")
        return payload

    def image_id(self, image: str) -> str | None:
        """Return the local image id, or None if the image is not present."""
        completed = subprocess.run(
            self.argv(["image", "inspect", image, "--format", "{{.Id}}"]),
            check=False,
            capture_output=True,
            text=True,
        )
        if completed.returncode != 0:
            return None
        return completed.stdout.strip() or None


__all__ = ["ContainerRuntime"]
