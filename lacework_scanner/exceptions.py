"""Exceptions raised by the Lacework scanner build step.

Exception Hierarchy:
    LaceworkScannerError (base)
    ├── ScannerLaunchError
    └── ReportWriteError

A scanner that runs and exits non-zero is not an exception; its exit code is
passed back to the caller unchanged. A capture without an HTML document is not
an exception either; the extractor returns ``None`` and logs the raw output.
"""

from __future__ import annotations


class LaceworkScannerError(Exception):
    """Base exception for all scanner build step errors.

    Attributes:
        message: Descriptive error message
        error_code: Machine-readable error identifier
        details: Additional context about the error
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict | None = None,
    ) -> None:
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict:
        """Convert exception to a dictionary suitable for structured logs."""
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details if self.details else None,
        }


class ScannerLaunchError(LaceworkScannerError):
    """The scanner process could not be started or its output stream opened.

    Example:
        >>> raise ScannerLaunchError(
        ...     message="lw-scanner: No such file or directory",
        ...     error_code="launch_failed",
        ...     details={"kind": "FileNotFoundError"}
        ... )
    """


class ReportWriteError(LaceworkScannerError):
    """A report artifact could not be copied or written."""
