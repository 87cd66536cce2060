from __future__ import annotations

import io
from pathlib import Path
import sys

import pytest

from ollamactl import __version__
from ollamactl.cli.main import main
from ollamactl.utils.log_utils import configure_logging

from .fakes import FakeEngine


def test_version_does_not_probe_runtime(
    engine: FakeEngine, capsys: pytest.CaptureFixture[str]
) -> None:
    engine.binaries = set()

    assert main(["--version"]) == 0
    assert f"ollamactl version {__version__}" in capsys.readouterr().out


def test_missing_runtime_exits_with_error(
    engine: FakeEngine, capsys: pytest.CaptureFixture[str]
) -> None:
    engine.binaries = set()

    assert main(["status"]) == 1
    err = capsys.readouterr().err
    assert "Neither 'podman' nor 'docker' found in your PATH." in err
    assert engine.calls == []


def test_podman_is_preferred_over_docker(
    engine: FakeEngine, capsys: pytest.CaptureFixture[str]
) -> None:
    engine.binaries = {"podman", "docker"}

    assert main(["help"]) == 0
    assert "(using Podman)" in capsys.readouterr().out


def test_configured_runtime_must_exist(
    engine: FakeEngine, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setenv("OLLAMACTL_RUNTIME", "nerdctl")

    assert main(["status"]) == 1
    assert "Container runtime 'nerdctl' not found" in capsys.readouterr().err


def test_no_command_prints_help(engine: FakeEngine, capsys: pytest.CaptureFixture[str]) -> None:
    assert main([]) == 0
    out = capsys.readouterr().out
    assert "Ollama Container Manager" in out
    for command in ("run", "stop", "restart", "pull", "update", "recreate", "logs", "status"):
        assert command in out


def test_unknown_command_exits_nonzero_with_usage(
    engine: FakeEngine, capsys: pytest.CaptureFixture[str]
) -> None:
    assert main(["launch"]) == 1
    err = capsys.readouterr().err
    assert "launch" in err
    assert "Usage:" in err
    assert engine.calls == []


def test_missing_flag_argument_exits_nonzero(
    engine: FakeEngine, capsys: pytest.CaptureFixture[str]
) -> None:
    assert main(["run", "--keep-alive"]) == 1
    err = capsys.readouterr().err
    assert "--keep-alive" in err
    assert engine.commands("run") == []


def test_invalid_port_is_rejected(engine: FakeEngine, capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["run", "--port", "not-a-port"]) == 1
    assert "Usage:" in capsys.readouterr().err
    assert engine.commands("run") == []


def test_unknown_run_option_is_rejected(engine: FakeEngine) -> None:
    assert main(["run", "--bogus"]) == 1
    assert engine.commands("run") == []


@pytest.mark.parametrize(
    "argv",
    [
        ["restart"],
        ["recreate"],
        ["logs", "-f"],
        ["ollama", "list"],
        ["shell"],
    ],
)
def test_commands_require_existing_container(
    engine: FakeEngine, capsys: pytest.CaptureFixture[str], argv: list[str]
) -> None:
    assert main(argv) == 1
    err = capsys.readouterr().err
    assert "Container ollama is not running. Use 'run' to start it." in err
    assert {call[0] for call in engine.calls} == {"container"}


def test_run_then_stop_leaves_no_container(
    engine: FakeEngine, capsys: pytest.CaptureFixture[str]
) -> None:
    assert main(["run"]) == 0
    assert "ollama" in engine.containers
    assert "Container ollama started." in capsys.readouterr().out

    assert main(["stop"]) == 0
    assert engine.containers == {}
    assert "Container ollama stopped and removed." in capsys.readouterr().out

    assert main(["status"]) == 0
    assert "Container ollama is not running." in capsys.readouterr().out


def test_run_assembles_default_arguments(engine: FakeEngine) -> None:
    assert main(["run"]) == 0

    assert engine.commands("run") == [
        [
            "run",
            "--detach",
            "--volume=ollama:/root/.ollama",
            "--publish=11434:11434",
            "--name=ollama",
            "--env",
            "OLLAMA_FLASH_ATTENTION=1",
            "--env",
            "OLLAMA_MAX_LOADED_MODELS=2",
            "--env",
            "OLLAMA_NUM_PARALLEL=1",
            "docker.io/ollama/ollama",
        ]
    ]


def test_run_flags_override_defaults(engine: FakeEngine) -> None:
    argv = ["run", "-p", "8080", "-d", "-k", "5m", "-m", "4", "-n", "2"]
    assert main(argv) == 0

    (run_call,) = engine.commands("run")
    assert "--publish=8080:11434" in run_call
    env = [run_call[i + 1] for i, arg in enumerate(run_call) if arg == "--env"]
    assert env == [
        "OLLAMA_DEBUG=1",
        "OLLAMA_FLASH_ATTENTION=1",
        "OLLAMA_KEEP_ALIVE=5m",
        "OLLAMA_MAX_LOADED_MODELS=4",
        "OLLAMA_NUM_PARALLEL=2",
    ]


@pytest.mark.parametrize(
    ("binaries", "gpu_flag"),
    [
        ({"docker"}, "--gpus=all"),
        ({"podman"}, "--device=nvidia.com/gpu=all"),
    ],
)
def test_run_adds_gpu_flag_for_runtime(
    engine: FakeEngine, binaries: set[str], gpu_flag: str
) -> None:
    engine.binaries = binaries
    engine.gpu = True

    assert main(["run"]) == 0
    (run_call,) = engine.commands("run")
    assert gpu_flag in run_call
    assert run_call.index(gpu_flag) < run_call.index("--env")


def test_run_without_gpu_has_no_gpu_flag(engine: FakeEngine) -> None:
    assert main(["run"]) == 0
    (run_call,) = engine.commands("run")
    assert not any("gpu" in arg for arg in run_call)


def test_run_refuses_existing_container_without_force(
    engine: FakeEngine, capsys: pytest.CaptureFixture[str]
) -> None:
    engine.add_container()

    assert main(["run"]) == 1
    err = capsys.readouterr().err
    assert "Container 'ollama' already exists." in err
    assert "--force" in err
    assert engine.commands("run") == []
    assert engine.commands("rm") == []


def test_run_force_replaces_existing_container(engine: FakeEngine) -> None:
    engine.add_container()
    old_id = engine.containers["ollama"].id

    assert main(["run", "--force", "--port", "9000"]) == 0
    assert engine.commands("rm") == [["rm", "--force", "ollama"]]
    assert engine.containers["ollama"].id != old_id
    assert "--publish=9000:11434" in engine.containers["ollama"].run_args


def test_run_volume_path_creates_directory(engine: FakeEngine, tmp_path: Path) -> None:
    models = tmp_path / "models" / "nested"

    assert main(["run", "--volume-path", str(models)]) == 0
    assert models.is_dir()
    (run_call,) = engine.commands("run")
    assert f"--volume={models.resolve()}:/root/.ollama" in run_call


def test_run_volume_path_rejects_file(
    engine: FakeEngine, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    target = tmp_path / "models.txt"
    target.write_text("not a directory")

    assert main(["run", "-V", str(target)]) == 1
    assert "exists but is not a directory" in capsys.readouterr().err
    assert engine.commands("run") == []


def test_run_failure_propagates_runtime_status(
    engine: FakeEngine, capsys: pytest.CaptureFixture[str]
) -> None:
    engine.failures["run"] = 125

    assert main(["run"]) == 125
    assert "exited with status 125" in capsys.readouterr().err


def test_verbose_run_echoes_command_and_status(
    engine: FakeEngine, capsys: pytest.CaptureFixture[str]
) -> None:
    assert main(["--verbose", "run"]) == 0
    captured = capsys.readouterr()
    assert "RUNNING: docker run --detach" in captured.out
    assert "Status for container: ollama" in captured.out
    assert "CONTAINER ID" in captured.out
    assert "Dispatching command 'run'" in captured.err


def test_environment_configures_container(
    engine: FakeEngine, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("OLLAMACTL_CONTAINER_NAME", "llm")
    monkeypatch.setenv("OLLAMACTL_IMAGE", "docker.io/ollama/ollama:0.5.0")
    monkeypatch.setenv("OLLAMA_KEEP_ALIVE", "-1")

    assert main(["run"]) == 0
    (run_call,) = engine.commands("run")
    assert "--name=llm" in run_call
    assert run_call[-1] == "docker.io/ollama/ollama:0.5.0"
    assert "OLLAMA_KEEP_ALIVE=-1" in run_call


def test_stop_without_container_is_a_noop(
    engine: FakeEngine, capsys: pytest.CaptureFixture[str]
) -> None:
    assert main(["stop"]) == 0
    assert "Nothing to do." in capsys.readouterr().out
    assert engine.commands("rm") == []


def test_restart_existing_container(
    engine: FakeEngine, capsys: pytest.CaptureFixture[str]
) -> None:
    engine.add_container()

    assert main(["restart"]) == 0
    assert engine.commands("restart") == [["restart", "ollama"]]
    assert "Container ollama restarted." in capsys.readouterr().out


def test_pull_passes_output_through(
    engine: FakeEngine, capsys: pytest.CaptureFixture[str]
) -> None:
    assert main(["pull"]) == 0
    assert engine.commands("pull") == [["pull", "docker.io/ollama/ollama"]]
    assert "Pulled docker.io/ollama/ollama" in capsys.readouterr().out


def test_status_shows_runtime_listing(
    engine: FakeEngine, capsys: pytest.CaptureFixture[str]
) -> None:
    engine.add_container()

    assert main(["status"]) == 0
    out = capsys.readouterr().out
    assert "Status for container: ollama" in out
    assert engine.commands("ps") == [["ps", "--filter", "name=ollama"]]


def test_logs_prefixes_lines_and_forwards_arguments(
    engine: FakeEngine, capsys: pytest.CaptureFixture[str]
) -> None:
    engine.add_container()
    engine.log_lines = ["listening on [::]:11434", "loaded model"]

    assert main(["logs", "-f", "--tail", "10"]) == 0
    assert engine.commands("logs") == [["logs", "-f", "--tail", "10", "ollama"]]
    out = capsys.readouterr().out
    assert "[ollama] | listening on [::]:11434" in out
    assert "[ollama] | loaded model" in out


def test_logs_failure_propagates_status(engine: FakeEngine) -> None:
    engine.add_container()
    engine.failures["logs"] = 3

    assert main(["logs"]) == 3


def test_ollama_forwards_arguments_and_exit_status(
    engine: FakeEngine, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(sys, "stdin", io.StringIO())
    engine.add_container()
    engine.exec_returncode = 2

    assert main(["ollama", "run", "llama3", "--verbose", "--help"]) == 2
    # stdin is not a terminal, so no TTY is requested.
    assert engine.commands("exec") == [
        ["exec", "-i", "ollama", "ollama", "run", "llama3", "--verbose", "--help"]
    ]


def test_shell_opens_bash(engine: FakeEngine, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(sys, "stdin", io.StringIO())
    engine.add_container()

    assert main(["shell"]) == 0
    assert engine.commands("exec") == [["exec", "-i", "ollama", "/bin/bash"]]


@pytest.mark.parametrize("flag", ["-V", "-k"])
def test_run_rejects_empty_option_value(
    engine: FakeEngine, capsys: pytest.CaptureFixture[str], flag: str
) -> None:
    assert main(["run", flag, ""]) == 1
    err = capsys.readouterr().err
    assert "non-empty value" in err
    assert "Usage:" in err
    assert engine.commands("run") == []


def test_empty_server_variable_is_left_off_the_command_line(
    engine: FakeEngine, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("OLLAMA_FLASH_ATTENTION", "")
    monkeypatch.setenv("OLLAMA_NUM_PARALLEL", "")

    assert main(["run"]) == 0
    (run_call,) = engine.commands("run")
    env = [run_call[i + 1] for i, arg in enumerate(run_call) if arg == "--env"]
    assert env == ["OLLAMA_MAX_LOADED_MODELS=2"]


def test_flash_attention_flag_overrides_empty_setting(
    engine: FakeEngine, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("OLLAMA_FLASH_ATTENTION", "")

    assert main(["run", "-f"]) == 0
    (run_call,) = engine.commands("run")
    assert "OLLAMA_FLASH_ATTENTION=1" in run_call


def test_no_color_disables_styling_on_a_terminal(
    engine: FakeEngine, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setenv("FORCE_COLOR", "1")
    monkeypatch.setenv("TERM", "xterm-256color")
    monkeypatch.delenv("TTY_COMPATIBLE", raising=False)
    engine.add_container()

    assert main(["status"]) == 0
    assert "\x1b[" in capsys.readouterr().out

    assert main(["--no-color", "status"]) == 0
    out = capsys.readouterr().out
    assert "Status for container: ollama" in out
    assert "\x1b[" not in out


def test_log_file_from_env_file_receives_debug_records(
    engine: FakeEngine, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    log_path = tmp_path / "logs" / "ollamactl.log"
    env_file = tmp_path / "ollamactl.env"
    env_file.write_text(f"OLLAMACTL_LOG_FILE={log_path}\n", encoding="utf-8")
    monkeypatch.setenv("OLLAMACTL_ENV_FILE", str(env_file))

    assert main(["status"]) == 0
    # Reconfiguring closes the file sink and drains its queue.
    configure_logging(force=True)

    content = log_path.read_text(encoding="utf-8")
    assert "Dispatching command 'status'" in content
