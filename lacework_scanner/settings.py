from __future__ import annotations

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class LaceworkScannerSettings(BaseSettings):
    """Configuration for the Lacework scanner build step.

    All values can be overridden via environment variables. Prefix: ``LW_SCANNER_``.
    """

    scanner_binary: str = "lw-scanner"
    css_file_name: str = Field(default="laceworkstyles.css")
    capture_file_name: str = Field(default="output")
    keep_capture: bool = Field(
        default=False,
        description="Keep the combined stdout/stderr capture in the build root after the report is extracted.",
    )
    account_name: str | None = None
    access_token: SecretStr | None = None
    log_level: str = "INFO"
    json_logs: bool = False

    model_config = SettingsConfigDict(env_prefix="LW_SCANNER_", extra="ignore")


settings = LaceworkScannerSettings()
