"""CLI wrapper that runs one Lacework scanner build step."""

from __future__ import annotations

import argparse
import os
import sys
from collections.abc import Mapping
from pathlib import Path
from string import Template

from lacework_scanner.logging import configure_logging
from lacework_scanner.models import CredentialOverrides, ScanOptions
from lacework_scanner.pipeline import LaceworkScannerExecutor
from lacework_scanner.settings import LaceworkScannerSettings, settings

BUILD_ID_ENV = "BUILD_ID"
JOB_NAME_ENV = "JOB_NAME"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Evaluate a container image with lw-scanner and publish its report.")
    parser.add_argument("image_name", help="Image to evaluate; $VAR references are expanded from the environment")
    parser.add_argument("image_tag", help="Tag to evaluate; $VAR references are expanded from the environment")
    parser.add_argument(
        "--output-html",
        dest="output_html_name",
        default="lacework-report.html",
        help="Report file name in the workspace (default: %(default)s)",
    )
    parser.add_argument(
        "--workspace",
        default=".",
        help="Directory receiving the final report (default: current directory)",
    )
    parser.add_argument(
        "--build-root",
        default=None,
        help="Scratch directory for scanner output (default: <workspace>/.lacework)",
    )
    parser.add_argument("--build-id", default=None, help=f"Build identifier (default: ${BUILD_ID_ENV})")
    parser.add_argument("--build-plan", default=None, help=f"Build plan / job name (default: ${JOB_NAME_ENV})")
    parser.add_argument("--account-name", default=None, help="Lacework account (default: LW_SCANNER_ACCOUNT_NAME)")
    parser.add_argument(
        "--fixable",
        dest="fixable_only",
        action="store_true",
        help="Only report fixable vulnerabilities",
    )
    parser.add_argument("--no-pull", action="store_true", help="Do not pull the image before scanning")
    parser.add_argument("--policy", dest="evaluate_policies", action="store_true", help="Evaluate Lacework policies")
    parser.add_argument("--save", dest="save_to_lacework", action="store_true", help="Save results to Lacework")
    parser.add_argument(
        "--scan-library-packages",
        action="store_true",
        help="Also scan language library packages",
    )
    parser.add_argument("--tags", default=None, help="Comma separated tags attached to the scan")
    parser.add_argument(
        "--custom-flags",
        default=None,
        help="Extra lw-scanner flags, split on whitespace with shell quoting rules",
    )
    return parser


def build_options(
    args: argparse.Namespace,
    environ: Mapping[str, str],
    cfg: LaceworkScannerSettings,
) -> ScanOptions:
    return ScanOptions(
        image_name=_expand(args.image_name, environ),
        image_tag=_expand(args.image_tag, environ),
        output_html_name=args.output_html_name,
        build_id=args.build_id if args.build_id is not None else environ.get(BUILD_ID_ENV),
        build_plan=args.build_plan if args.build_plan is not None else environ.get(JOB_NAME_ENV),
        account_name=args.account_name or cfg.account_name,
        access_token=cfg.access_token,
        custom_flags=args.custom_flags,
        fixable_only=args.fixable_only,
        no_pull=args.no_pull,
        evaluate_policies=args.evaluate_policies,
        save_to_lacework=args.save_to_lacework,
        scan_library_packages=args.scan_library_packages,
        tags=args.tags,
    )


def _expand(value: str, environ: Mapping[str, str]) -> str:
    """Expand $VAR and ${VAR} references; unknown variables are left untouched."""
    return Template(value).safe_substitute(environ)


def main(argv: list[str] | None = None, environ: Mapping[str, str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    environ = os.environ if environ is None else environ

    configure_logging(settings.log_level, json_output=settings.json_logs)

    workspace = Path(args.workspace).expanduser().resolve()
    build_root = Path(args.build_root).expanduser().resolve() if args.build_root else workspace / ".lacework"

    options = build_options(args, environ, settings)
    executor = LaceworkScannerExecutor(settings=settings)
    result = executor.execute(
        options,
        build_root=build_root,
        workspace=workspace,
        overrides=CredentialOverrides.from_environ(environ),
    )
    return result.exit_code


if __name__ == "__main__":
    sys.exit(main())
