"""Configuration helpers for ollamactl.

Expose `get_settings` as the canonical accessor for environment-driven
configuration. Modules should avoid reading `os.environ` or loading `.env`
directly and instead import from this package to retrieve typed snapshots.
"""

from .settings import ContainerSettings, OllamaSettings, ServerEnv, get_settings


__all__ = ["ContainerSettings", "OllamaSettings", "ServerEnv", "get_settings"]
