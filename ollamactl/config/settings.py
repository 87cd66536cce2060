"""Centralised environment configuration for ollamactl.

This module ensures `.env` loading happens in one place and exposes a typed
snapshot of the container defaults and the Ollama server variables forwarded
into the container. Command-line flags override these values; nothing here is
ever written back.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from functools import lru_cache
import os
from pathlib import Path

from dotenv import load_dotenv


ENV_FILE_ENV_VAR = "OLLAMACTL_ENV_FILE"
LOG_FILE_ENV_VAR = "OLLAMACTL_LOG_FILE"

DEFAULT_CONTAINER_NAME = "ollama"
DEFAULT_VOLUME_NAME = "ollama"
DEFAULT_IMAGE = "docker.io/ollama/ollama"
DEFAULT_PORT = 11434

DEFAULT_FLASH_ATTENTION = "1"
DEFAULT_MAX_LOADED_MODELS = "2"
DEFAULT_NUM_PARALLEL = "1"


def _coerce_int(value: str | None) -> int | None:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except ValueError:
        return None


def _env_or_default(key: str, default: str) -> str:
    value = os.getenv(key)
    return value if value else default


def _server_value(key: str, default: str) -> str:
    # An explicitly empty value is kept; `ServerEnv.as_env` drops it from the command line.
    return os.getenv(key, default)


@dataclass(frozen=True)
class ServerEnv:
    """Ollama server variables passed to the container with ``--env``.

    Field order is the order the variables appear on the run command line.
    """

    debug: str | None = None
    flash_attention: str | None = DEFAULT_FLASH_ATTENTION
    keep_alive: str | None = None
    max_loaded_models: str | None = DEFAULT_MAX_LOADED_MODELS
    num_parallel: str | None = DEFAULT_NUM_PARALLEL

    @staticmethod
    def variable_name(field_name: str) -> str:
        return f"OLLAMA_{field_name.upper()}"

    def as_env(self) -> dict[str, str]:
        """Return the non-empty variables keyed by their ``OLLAMA_*`` names."""
        env: dict[str, str] = {}
        for item in fields(self):
            value = getattr(self, item.name)
            if value:
                env[self.variable_name(item.name)] = value
        return env


@dataclass(frozen=True)
class ContainerSettings:
    name: str
    volume: str
    image: str
    port: int
    runtime: str | None


@dataclass(frozen=True)
class OllamaSettings:
    """Top-level snapshot of configuration values."""

    env_file: Path
    container: ContainerSettings
    server: ServerEnv
    log_file: Path | None = None


def _resolve_env_path(env_file: os.PathLike[str] | str | None) -> Path:
    if env_file is None:
        env_file = os.getenv(ENV_FILE_ENV_VAR) or Path.cwd() / ".env"
    return Path(env_file).resolve()


@lru_cache(maxsize=4)
def _load_settings(env_path: Path) -> OllamaSettings:
    # Existing environment variables take precedence over `.env` defaults.
    load_dotenv(dotenv_path=env_path, override=False)

    container = ContainerSettings(
        name=_env_or_default("OLLAMACTL_CONTAINER_NAME", DEFAULT_CONTAINER_NAME),
        volume=_env_or_default("OLLAMACTL_VOLUME_NAME", DEFAULT_VOLUME_NAME),
        image=_env_or_default("OLLAMACTL_IMAGE", DEFAULT_IMAGE),
        port=_coerce_int(os.getenv("OLLAMACTL_PORT")) or DEFAULT_PORT,
        runtime=os.getenv("OLLAMACTL_RUNTIME") or None,
    )

    server = ServerEnv(
        debug=os.getenv("OLLAMA_DEBUG") or None,
        flash_attention=_server_value("OLLAMA_FLASH_ATTENTION", DEFAULT_FLASH_ATTENTION),
        keep_alive=os.getenv("OLLAMA_KEEP_ALIVE") or None,
        max_loaded_models=_server_value("OLLAMA_MAX_LOADED_MODELS", DEFAULT_MAX_LOADED_MODELS),
        num_parallel=_server_value("OLLAMA_NUM_PARALLEL", DEFAULT_NUM_PARALLEL),
    )

    log_file = os.getenv(LOG_FILE_ENV_VAR)

    return OllamaSettings(
        env_file=env_path,
        container=container,
        server=server,
        log_file=Path(log_file).expanduser() if log_file else None,
    )


def get_settings(
    env_file: os.PathLike[str] | str | None = None,
    *,
    reload: bool = False,
) -> OllamaSettings:
    """Return the cached settings snapshot.

    Args:
        env_file: Optional explicit path to a `.env` file. When omitted,
            ``OLLAMACTL_ENV_FILE`` or `.env` in the working directory is used.
        reload: When True the cached snapshot is cleared before loading.
    """
    env_path = _resolve_env_path(env_file)
    if reload:
        _load_settings.cache_clear()
    return _load_settings(env_path)
