"""Lacework image scanner build step.

Runs ``lw-scanner image evaluate`` for one build and publishes its HTML report
in a form that hosts with a strict content security policy can display.
"""

from lacework_scanner.arguments import Argv, PlainToken, SecretToken, build_arguments
from lacework_scanner.models import CredentialOverrides, PipelineStage, ScanOptions, ScanResult
from lacework_scanner.pipeline import LaceworkScannerExecutor
from lacework_scanner.process import ProcessRunner

__all__ = [
    "Argv",
    "CredentialOverrides",
    "LaceworkScannerExecutor",
    "PipelineStage",
    "PlainToken",
    "ProcessRunner",
    "ScanOptions",
    "ScanResult",
    "SecretToken",
    "build_arguments",
]
