"""Dataclasses describing the Ollama container and its inspected state."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from .errors import InspectParseError


CONTAINER_PORT = 11434
MODELS_MOUNT_TARGET = "/root/.ollama"
SERVER_ENV_PREFIX = "OLLAMA_"


@dataclass(slots=True)
class ContainerSpec:
    """Everything needed to render a ``run`` command for the Ollama container.

    Attributes:
        name: Container name.
        image: Image reference to run.
        host_port: Host port published to the server's port.
        volume_source: Named volume or host path mounted at the models directory.
        gpu_args: Runtime-specific GPU flags, empty for CPU-only.
        env: Variables passed with ``--env``, in command-line order.
    """

    name: str
    image: str
    host_port: int | str
    volume_source: str
    gpu_args: list[str] = field(default_factory=list)
    env: dict[str, str] = field(default_factory=dict)

    def run_args(self) -> list[str]:
        """Return the arguments that follow ``<runtime> run``."""
        args = [
            "--detach",
            f"--volume={self.volume_source}:{MODELS_MOUNT_TARGET}",
            f"--publish={self.host_port}:{CONTAINER_PORT}",
            f"--name={self.name}",
            *self.gpu_args,
        ]
        for key, value in self.env.items():
            args += ["--env", f"{key}={value}"]
        args.append(self.image)
        return args


@dataclass(slots=True)
class ContainerSnapshot:
    """Settings recovered from ``container inspect`` output."""

    id: str
    host_port: str
    volume_source: str
    env: dict[str, str]

    @classmethod
    def from_inspect(cls, payload: Mapping[str, Any]) -> ContainerSnapshot:
        port_key = f"{CONTAINER_PORT}/tcp"
        bindings = (payload.get("HostConfig") or {}).get("PortBindings") or {}
        try:
            host_port = str(bindings[port_key][0]["HostPort"])
        except (KeyError, IndexError, TypeError) as e:
            raise InspectParseError(
                f"Container has no host port bound to {port_key}; cannot re-create it."
            ) from e
        if not host_port:
            raise InspectParseError(f"Container's {port_key} binding has no host port.")

        mounts = payload.get("Mounts") or []
        if not mounts:
            raise InspectParseError("Container has no mounts; cannot locate the models volume.")
        mount = next(
            (m for m in mounts if m.get("Destination") == MODELS_MOUNT_TARGET),
            mounts[0],
        )
        if mount.get("Type") == "volume":
            volume_source = mount.get("Name") or ""
        else:
            volume_source = mount.get("Source") or ""
        if not volume_source:
            raise InspectParseError("Could not determine the source of the models volume.")

        env: dict[str, str] = {}
        for entry in (payload.get("Config") or {}).get("Env") or []:
            if not entry.startswith(SERVER_ENV_PREFIX):
                continue
            key, _, value = entry.partition("=")
            env[key] = value

        return cls(
            id=str(payload.get("Id", "")),
            host_port=host_port,
            volume_source=volume_source,
            env=env,
        )

    def to_spec(self, *, name: str, image: str, gpu_args: list[str]) -> ContainerSpec:
        return ContainerSpec(
            name=name,
            image=image,
            host_port=self.host_port,
            volume_source=self.volume_source,
            gpu_args=list(gpu_args),
            env=dict(self.env),
        )


__all__ = [
    "CONTAINER_PORT",
    "MODELS_MOUNT_TARGET",
    "ContainerSpec",
    "ContainerSnapshot",
]
