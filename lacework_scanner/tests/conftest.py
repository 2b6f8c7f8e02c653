"""Shared fixtures for the Lacework scanner build step tests."""

from pathlib import Path
from typing import IO

import pytest
from pydantic import SecretStr

from lacework_scanner.models import ScanOptions
from lacework_scanner.settings import LaceworkScannerSettings

SAMPLE_CAPTURE = (
    "preamble\n"
    "<!DOCTYPE html><html><head><style>body{color:red}</style></head><body></body></html>"
    "postamble-ignored"
)


class FakeScanner:
    """Launcher stand-in that behaves like lw-scanner writing its report."""

    def __init__(self, output: str = SAMPLE_CAPTURE, exit_code: int = 0, write_html: bool = True) -> None:
        self.output = output
        self.exit_code = exit_code
        self.write_html = write_html
        self.commands: list[list[str]] = []
        self.cwd: Path | None = None

    def __call__(self, command: list[str], cwd: Path, stdout: IO[bytes]) -> int:
        self.commands.append(command)
        self.cwd = cwd
        stdout.write(self.output.encode("utf-8"))
        if self.write_html:
            html_file = Path(command[command.index("--html-file") + 1])
            html_file.write_text(self.output, encoding="utf-8")
        return self.exit_code


@pytest.fixture
def sample_options() -> ScanOptions:
    """Scan options with credentials and no toggles set."""
    return ScanOptions(
        image_name="library/nginx",
        image_tag="1.25",
        output_html_name="report.html",
        build_id="42",
        build_plan="my job",
        account_name="acme",
        access_token=SecretStr("s3cr3t-token"),
    )


@pytest.fixture
def build_root(tmp_path: Path) -> Path:
    path = tmp_path / "build"
    path.mkdir()
    return path


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    path = tmp_path / "workspace"
    path.mkdir()
    return path


@pytest.fixture
def scanner_settings() -> LaceworkScannerSettings:
    return LaceworkScannerSettings(_env_file=None)


@pytest.fixture
def fake_scanner() -> FakeScanner:
    return FakeScanner()


@pytest.fixture
def scanner_factory() -> type[FakeScanner]:
    """Build fake scanners with custom output, exit code, or no HTML file."""
    return FakeScanner
