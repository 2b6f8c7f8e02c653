from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, SecretStr

ACCOUNT_NAME_ENV = "LW_ACCOUNT_NAME"
ACCESS_TOKEN_ENV = "LW_ACCESS_TOKEN"


class ScanOptions(BaseModel):
    """Everything one build step needs to evaluate an image.

    Image name and tag are expected to be environment-expanded already. Empty
    values are passed through to the scanner, which validates them.
    """

    model_config = ConfigDict(frozen=True)

    image_name: str | None = Field(..., description="Image repository to evaluate")
    image_tag: str | None = Field(..., description="Image tag to evaluate")
    output_html_name: str = Field(..., description="File name of the HTML report in the workspace")
    build_id: str | None = Field(..., description="Identifier of the running build")
    build_plan: str | None = Field(..., description="Job name of the running build")
    account_name: str | None = None
    access_token: SecretStr | None = None
    custom_flags: str | None = None
    fixable_only: bool = False
    no_pull: bool = False
    evaluate_policies: bool = False
    save_to_lacework: bool = False
    scan_library_packages: bool = False
    tags: str | None = None


@dataclass(frozen=True, slots=True)
class CredentialOverrides:
    """Which credentials the build environment already provides to the scanner."""

    account_name_present: bool = False
    access_token_present: bool = False

    @classmethod
    def from_environ(cls, environ: Mapping[str, str]) -> CredentialOverrides:
        # Presence is what matters; an empty value still counts as an override.
        return cls(
            account_name_present=environ.get(ACCOUNT_NAME_ENV) is not None,
            access_token_present=environ.get(ACCESS_TOKEN_ENV) is not None,
        )


class PipelineStage(str, Enum):
    INIT = "INIT"
    ARGS_BUILT = "ARGS_BUILT"
    PROCESS_RUN = "PROCESS_RUN"
    HTML_COPIED = "HTML_COPIED"
    HTML_SANITIZED = "HTML_SANITIZED"
    CSS_EXTRACTED = "CSS_EXTRACTED"
    CSS_COPIED = "CSS_COPIED"
    DONE = "DONE"
    FAILED = "FAILED"


@dataclass(slots=True)
class ScanResult:
    """Outcome of one build step invocation.

    ``exit_code`` is the scanner's own exit code, or ``-1`` when the step itself
    failed (for example the scanner could not be launched). Callers should
    treat any non-zero value as "scan step did not succeed".
    """

    exit_code: int
    stage: PipelineStage
    html_path: Path | None = None
    css_path: Path | None = None
    report_found: bool = False

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0
