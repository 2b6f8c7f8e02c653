"""Turn the scanner's HTML report into a CSP-friendly HTML + CSS pair.

Host UIs that forbid inline styles cannot render the report as the scanner
writes it. The helpers here cut the HTML document out of the scanner output,
collect every inline ``<style>`` block into a stylesheet, and rewrite the
document to link that stylesheet instead.
"""

from __future__ import annotations

import re
import shutil
from pathlib import Path
from typing import NamedTuple

from lacework_scanner.exceptions import ReportWriteError
from lacework_scanner.logging import get_logger

logger = get_logger(__name__)

DOCTYPE_MARKER = "<!DOCTYPE html>"
HTML_CLOSE = "</html>"
HEAD_CLOSE = "</head>"
BODY_CLOSE = "</body>"
DEFAULT_CSS_FILE_NAME = "laceworkstyles.css"

_CSS_BLOCK = re.compile(r"<style>(.*?)</style>", re.DOTALL)
_STYLE_ELEMENT = re.compile(r"<style.*?(?:/>|</style>)", re.DOTALL)


class ExtractedReport(NamedTuple):
    html: str
    preamble: str


def stylesheet_link(css_file_name: str = DEFAULT_CSS_FILE_NAME) -> str:
    return f'<link rel="stylesheet" type="text/css" href="{css_file_name}">'


def extract_html(text: str) -> ExtractedReport | None:
    """Return the embedded HTML document, or ``None`` when there is none.

    Anything printed before the doctype marker is logged as scanner output.
    Without a marker the whole text is logged in its place.
    """
    start = text.find(DOCTYPE_MARKER)
    if start == -1:
        logger.warning("scanner.output", output=text, report_found=False)
        return None

    preamble = text[:start]
    logger.info("scanner.output", output=preamble, report_found=True)

    end = text.rfind(HTML_CLOSE)
    if end < start:
        end = len(text)
    else:
        end += len(HTML_CLOSE)
    return ExtractedReport(html=text[start:end], preamble=preamble)


def extract_css(text: str) -> str:
    """Concatenate the bodies of every ``<style>`` block, one per line.

    The whole text is searched, not just the HTML document, so style blocks
    echoed before the doctype marker are collected too.
    """
    return "".join(f"{match.group(1)}\n" for match in _CSS_BLOCK.finditer(text))


def sanitize_html(html: str, css_file_name: str = DEFAULT_CSS_FILE_NAME) -> str:
    """Drop inline style elements and link the external stylesheet instead."""
    stripped = _STYLE_ELEMENT.sub("", html)
    link = stylesheet_link(css_file_name)

    index = stripped.rfind(HEAD_CLOSE)
    if index == -1:
        index = stripped.rfind(BODY_CLOSE)
    if index == -1:
        return stripped + link
    return stripped[:index] + link + stripped[index:]


def _save_failed(kind: str, path: Path, exc: OSError) -> ReportWriteError:
    return ReportWriteError(
        message=f"Failed to save {kind} file.",
        error_code="report_save_failed",
        details={"path": str(path), "kind": type(exc).__name__, "error": str(exc)},
    )


def write_artifact(path: Path, text: str, kind: str) -> Path:
    """Write a report artifact as UTF-8.

    Raises:
        ReportWriteError: the file could not be written.
    """
    path = Path(path)
    try:
        path.write_text(text, encoding="utf-8")
    except OSError as exc:
        raise _save_failed(kind, path, exc) from exc
    return path


def copy_artifact(source: Path, target: Path, kind: str) -> Path:
    """Copy a report artifact into place, replacing any previous copy.

    Raises:
        ReportWriteError: the source is missing or the target is not writable.
    """
    target = Path(target)
    try:
        shutil.copyfile(source, target)
    except OSError as exc:
        raise _save_failed(kind, target, exc) from exc
    return target


def read_report(path: Path, kind: str = "HTML report") -> str | None:
    """Read a report written by the scanner, or ``None`` if there is none.

    Raises:
        ReportWriteError: the file exists but could not be read.
    """
    path = Path(path)
    try:
        return path.read_text(encoding="utf-8", errors="replace")
    except FileNotFoundError:
        return None
    except OSError as exc:
        raise ReportWriteError(
            message=f"Failed to read {kind} file.",
            error_code="report_read_failed",
            details={"path": str(path), "kind": type(exc).__name__, "error": str(exc)},
        ) from exc
