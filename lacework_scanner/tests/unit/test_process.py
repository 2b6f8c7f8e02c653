"""Unit tests for the scanner process runner."""

import sys
from pathlib import Path

import pytest
from structlog.testing import capture_logs

from lacework_scanner import process
from lacework_scanner.arguments import MASK, Argv
from lacework_scanner.exceptions import ScannerLaunchError
from lacework_scanner.process import ProcessRunner


def _argv() -> Argv:
    return Argv().add("lw-scanner", "image", "evaluate", "nginx", "latest", "--access-token").add_masked("tok-123")


def test_run_returns_launcher_exit_code(tmp_path: Path):
    runner = ProcessRunner(launcher=lambda command, cwd, stdout: 7)

    assert runner.run(_argv(), cwd=tmp_path, capture_path=tmp_path / "output") == 7


def test_run_passes_unmasked_command_to_launcher(tmp_path: Path):
    seen = {}

    def launcher(command, cwd, stdout):
        seen["command"] = command
        seen["cwd"] = cwd
        return 0

    ProcessRunner(launcher=launcher).run(_argv(), cwd=tmp_path, capture_path=tmp_path / "output")

    assert seen["command"][-1] == "tok-123"
    assert seen["cwd"] == tmp_path


def test_command_logged_masked_before_process_runs(tmp_path: Path):
    with capture_logs() as logs:

        def launcher(command, cwd, stdout):
            assert [entry["event"] for entry in logs] == ["scanner.command"]
            return 0

        ProcessRunner(launcher=launcher).run(_argv(), cwd=tmp_path, capture_path=tmp_path / "output")

    command_log = logs[0]
    assert command_log["command"] == f"lw-scanner image evaluate nginx latest --access-token {MASK}"
    assert all("tok-123" not in str(entry) for entry in logs)


def test_output_written_to_capture_and_stream_closed(tmp_path: Path):
    streams = []

    def launcher(command, cwd, stdout):
        streams.append(stdout)
        stdout.write(b"scanner says hi\n")
        return 0

    capture = tmp_path / "output"
    ProcessRunner(launcher=launcher).run(_argv(), cwd=tmp_path, capture_path=capture)

    assert capture.read_bytes() == b"scanner says hi\n"
    assert streams[0].closed


def test_launch_failure_raises_and_closes_stream(tmp_path: Path):
    streams = []

    def launcher(command, cwd, stdout):
        streams.append(stdout)
        raise FileNotFoundError(2, "No such file or directory", "lw-scanner")

    with capture_logs() as logs:
        with pytest.raises(ScannerLaunchError) as excinfo:
            ProcessRunner(launcher=launcher).run(_argv(), cwd=tmp_path, capture_path=tmp_path / "output")

    assert streams[0].closed
    assert excinfo.value.details["kind"] == "FileNotFoundError"
    assert excinfo.value.error_code == "launch_failed"
    failure = [entry for entry in logs if entry["event"] == "scanner.launch_failed"]
    assert failure and failure[0]["kind"] == "FileNotFoundError"


def test_unwritable_capture_raises_launch_error(tmp_path: Path):
    called = []
    runner = ProcessRunner(launcher=lambda command, cwd, stdout: called.append(command) or 0)

    with pytest.raises(ScannerLaunchError):
        runner.run(_argv(), cwd=tmp_path, capture_path=tmp_path / "missing" / "output")

    assert called == []


def test_default_launcher_merges_stdout_and_stderr(tmp_path: Path):
    script = "import sys; print('out', flush=True); print('err', file=sys.stderr, flush=True); sys.exit(3)"
    argv = Argv().add(sys.executable, "-c", script)
    capture = tmp_path / "output"

    exit_code = ProcessRunner().run(argv, cwd=tmp_path, capture_path=capture)

    assert exit_code == 3
    lines = capture.read_text().split()
    assert sorted(lines) == ["err", "out"]


def test_default_launcher_closes_stdin(tmp_path: Path):
    script = "import sys; data = sys.stdin.read(); print(repr(data))"
    argv = Argv().add(sys.executable, "-c", script)
    capture = tmp_path / "output"

    assert ProcessRunner().run(argv, cwd=tmp_path, capture_path=capture) == 0
    assert capture.read_text().strip() == "''"


def test_default_launcher_missing_binary(tmp_path: Path):
    argv = Argv().add(str(tmp_path / "no-such-lw-scanner"), "image", "evaluate")

    with pytest.raises(ScannerLaunchError) as excinfo:
        ProcessRunner().run(argv, cwd=tmp_path, capture_path=tmp_path / "output")

    assert excinfo.value.details["kind"] == "FileNotFoundError"


def test_default_launcher_kills_scanner_when_interrupted(tmp_path: Path, monkeypatch):
    events = []

    class InterruptedPopen:
        def __init__(self, command, **kwargs):
            events.append("start")

        def __enter__(self):
            return self

        def __exit__(self, *exc_info):
            events.append("reaped")
            return False

        def wait(self):
            raise KeyboardInterrupt

        def kill(self):
            events.append("killed")

    monkeypatch.setattr(process.subprocess, "Popen", InterruptedPopen)

    with pytest.raises(KeyboardInterrupt):
        ProcessRunner().run(_argv(), cwd=tmp_path, capture_path=tmp_path / "output")

    assert events == ["start", "killed", "reaped"]
