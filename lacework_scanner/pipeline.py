from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable

from lacework_scanner.arguments import build_arguments
from lacework_scanner.exceptions import ReportWriteError, ScannerLaunchError
from lacework_scanner.logging import get_logger
from lacework_scanner.models import CredentialOverrides, PipelineStage, ScanOptions, ScanResult
from lacework_scanner.process import ProcessRunner
from lacework_scanner.report import (
    copy_artifact,
    extract_css,
    extract_html,
    read_report,
    sanitize_html,
    write_artifact,
)
from lacework_scanner.settings import LaceworkScannerSettings, settings

logger = get_logger(__name__)

ORCHESTRATION_FAILURE = -1


def _default_settings() -> LaceworkScannerSettings:
    return settings


@dataclass(slots=True)
class LaceworkScannerExecutor:
    """Run one scanner build step and publish its report into the workspace.

    The scanner's exit code is authoritative: report formatting problems are
    logged but never change it. Only a failure of the step itself (the scanner
    could not be launched, the build root could not be created) yields ``-1``.
    """

    runner: ProcessRunner | None = None
    settings: LaceworkScannerSettings = field(default_factory=_default_settings)

    def __post_init__(self) -> None:
        if self.runner is None:
            self.runner = ProcessRunner()

    # Public API ----------------------------------------------------------------

    def execute(
        self,
        options: ScanOptions,
        build_root: Path | str,
        workspace: Path | str,
        overrides: CredentialOverrides | None = None,
    ) -> ScanResult:
        build_root = Path(build_root)
        workspace = Path(workspace)
        capture_path = build_root / self.settings.capture_file_name
        result = ScanResult(exit_code=ORCHESTRATION_FAILURE, stage=PipelineStage.INIT)
        log = logger.bind(image_name=options.image_name, image_tag=options.image_tag, build_id=options.build_id)

        try:
            build_root.mkdir(parents=True, exist_ok=True)
            html_file = build_root / options.output_html_name
            argv = build_arguments(options, html_file, overrides, binary=self.settings.scanner_binary)
            result.stage = PipelineStage.ARGS_BUILT

            result.exit_code = self.runner.run(argv, cwd=workspace, capture_path=capture_path)
            result.stage = PipelineStage.PROCESS_RUN

            self._publish_reports(result, options, build_root, workspace, capture_path)
            result.stage = PipelineStage.DONE
        except ScannerLaunchError as exc:
            log.error("scan.failed", stage=result.stage.value, **exc.to_dict())
            return ScanResult(exit_code=ORCHESTRATION_FAILURE, stage=PipelineStage.FAILED)
        except Exception as exc:
            log.exception("scan.failed", stage=result.stage.value, kind=type(exc).__name__, error=str(exc))
            return ScanResult(exit_code=ORCHESTRATION_FAILURE, stage=PipelineStage.FAILED)
        finally:
            if not self.settings.keep_capture:
                self._discard_capture(capture_path)

        log.info("scan.complete", exit_code=result.exit_code, report_found=result.report_found)
        return result

    # Internal helpers ----------------------------------------------------------

    def _publish_reports(
        self,
        result: ScanResult,
        options: ScanOptions,
        build_root: Path,
        workspace: Path,
        capture_path: Path,
    ) -> None:
        html_file = build_root / options.output_html_name
        html_target = workspace / options.output_html_name
        css_file = build_root / self.settings.css_file_name
        css_target = workspace / self.settings.css_file_name

        # Partial reports from failed scans are still worth publishing.
        report_text = self._store(read_report, html_file, "HTML report")
        if report_text is None:
            logger.warning("report.not_written", path=str(html_file), exit_code=result.exit_code)
            report_text = self._store(read_report, capture_path, "scanner output") or ""
        else:
            result.html_path = self._store(copy_artifact, html_file, html_target, "HTML report")
            result.stage = PipelineStage.HTML_COPIED

        extracted = extract_html(report_text)
        result.report_found = extracted is not None
        if extracted is not None:
            cleaned = sanitize_html(extracted.html, self.settings.css_file_name)
            written = self._store(write_artifact, html_target, cleaned, "HTML report")
            result.html_path = written or result.html_path
            result.stage = PipelineStage.HTML_SANITIZED

        css_text = extract_css(report_text)
        result.stage = PipelineStage.CSS_EXTRACTED

        if self._store(write_artifact, css_file, css_text, "CSS") is not None:
            result.css_path = self._store(copy_artifact, css_file, css_target, "CSS")
            result.stage = PipelineStage.CSS_COPIED

    @staticmethod
    def _store(action: Callable[..., Any], *args: Any) -> Any:
        try:
            return action(*args)
        except ReportWriteError as exc:
            event = "report.read_failed" if exc.error_code == "report_read_failed" else "report.save_failed"
            logger.error(event, **exc.to_dict())
            return None

    @staticmethod
    def _discard_capture(capture_path: Path) -> None:
        try:
            capture_path.unlink(missing_ok=True)
        except OSError as exc:
            logger.warning("scanner.capture_cleanup_failed", path=str(capture_path), error=str(exc))
