"""Lifecycle manager for a local Ollama container on Docker or Podman."""

__version__ = "0.1.0"

__all__ = ["__version__"]
