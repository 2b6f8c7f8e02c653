"""Synchronous execution of the scanner binary."""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import IO, Callable

from lacework_scanner.arguments import Argv
from lacework_scanner.exceptions import ScannerLaunchError
from lacework_scanner.logging import get_logger

logger = get_logger(__name__)

Launcher = Callable[[list[str], Path, IO[bytes]], int]


def _default_launcher(command: list[str], cwd: Path, stdout: IO[bytes]) -> int:
    with subprocess.Popen(
        command,
        cwd=str(cwd),
        stdin=subprocess.DEVNULL,
        stdout=stdout,
        stderr=subprocess.STDOUT,
    ) as process:
        try:
            return process.wait()
        except BaseException:
            # Interrupted while waiting; do not leave the scanner running.
            process.kill()
            raise


class ProcessRunner:
    """Run the scanner with stdout and stderr merged into one capture file."""

    def __init__(self, launcher: Launcher | None = None) -> None:
        self._launcher = launcher or _default_launcher

    def run(self, argv: Argv, cwd: Path, capture_path: Path) -> int:
        """Block until the scanner exits and return its exit code.

        Raises:
            ScannerLaunchError: the capture file could not be opened or the
                process could not be started.
        """
        try:
            with Path(capture_path).open("wb") as capture:
                logger.info("scanner.command", command=str(argv))
                exit_code = self._launcher(argv.to_command(), Path(cwd), capture)
        except (OSError, ValueError, subprocess.SubprocessError) as exc:
            kind = type(exc).__name__
            logger.error("scanner.launch_failed", kind=kind, error=str(exc))
            raise ScannerLaunchError(
                message=f"{kind}: {exc}",
                error_code="launch_failed",
                details={"kind": kind, "capture": str(capture_path)},
            ) from exc

        logger.info("scanner.exited", exit_code=exit_code)
        return exit_code
