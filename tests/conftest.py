"""Shared fixtures: an isolated environment and a fake container runtime."""

from __future__ import annotations

from collections.abc import Iterator
import os
from pathlib import Path

import pytest

from ollamactl.config import settings as settings_module
from ollamactl.utils.runtime import client as client_module
from ollamactl.utils.runtime import probe as probe_module

from .fakes import FakeEngine


_ISOLATED_PREFIXES = ("OLLAMA_", "OLLAMACTL_", "NO_COLOR", "FORCE_COLOR")


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Iterator[None]:
    """Give each test its own environment mapping and a fresh settings cache."""
    environ = {k: v for k, v in os.environ.items() if not k.startswith(_ISOLATED_PREFIXES)}
    environ["OLLAMACTL_ENV_FILE"] = str(tmp_path / "absent.env")
    monkeypatch.setattr(os, "environ", environ)
    settings_module._load_settings.cache_clear()
    yield
    settings_module._load_settings.cache_clear()


@pytest.fixture
def engine(monkeypatch: pytest.MonkeyPatch) -> FakeEngine:
    fake = FakeEngine()
    monkeypatch.setattr(client_module.subprocess, "run", fake.run)
    monkeypatch.setattr(client_module.subprocess, "Popen", fake.popen)
    monkeypatch.setattr(probe_module.shutil, "which", fake.which)
    return fake
