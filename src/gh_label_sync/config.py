"""Configuration for gh-label-sync.

Configuration is loaded from:
- environment variables
- and a local `.env` file (if present)

The token is looked up under ``LABEL_SYNC_GITHUB_TOKEN`` first so the tool can
be given a dedicated token, then under the ``GH_TOKEN`` / ``GITHUB_TOKEN``
variables used by the GitHub CLI and Actions.
"""

from __future__ import annotations

from pydantic import AliasChoices, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LabelSyncSettings(BaseSettings):
    """Settings for the label sync CLI.

    Environment variables:
    - LABEL_SYNC_GITHUB_TOKEN | GH_TOKEN | GITHUB_TOKEN
    - GITHUB_BASE_URL             (optional)
    - GH_REPO                     (optional)
    - LOG_LEVEL                   (optional)
    - LABEL_SYNC_REQUEST_TIMEOUT  (optional)

    Notes:
        Pydantic-settings supports overriding the env file in tests via:
        `LabelSyncSettings(_env_file=path_to_env)`.
    """

    github_token: str = Field(
        default="",
        validation_alias=AliasChoices("LABEL_SYNC_GITHUB_TOKEN", "GH_TOKEN", "GITHUB_TOKEN"),
        description="GitHub token used for API authentication",
    )
    github_base_url: str = Field(
        default="https://api.github.com",
        validation_alias="GITHUB_BASE_URL",
        description="GitHub API base URL (useful for GitHub Enterprise)",
    )
    default_repository: str = Field(
        default="",
        validation_alias="GH_REPO",
        description="Repository used when --repo is not given, in the form 'owner/repo'",
    )

    log_level: str = Field(
        default="WARNING",
        validation_alias="LOG_LEVEL",
        description="Root logging level",
    )

    request_timeout: float = Field(
        default=30.0,
        gt=0,
        validation_alias="LABEL_SYNC_REQUEST_TIMEOUT",
        description="Timeout in seconds for each GitHub API request",
    )

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        extra="ignore",
    )

    @model_validator(mode="after")
    def _require_github_auth(self) -> LabelSyncSettings:
        if not self.github_token.strip():
            raise ValueError(
                "A GitHub token is required (set LABEL_SYNC_GITHUB_TOKEN, GH_TOKEN or GITHUB_TOKEN)"
            )
        return self
