"""Application settings."""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Settings for a sync run.

    Passed explicitly into the client and engine; nothing reads ambient
    state after construction.
    """

    api_url: str = Field(
        default="https://api.github.com",
        description="GitHub REST API base URL (override for Enterprise)",
    )

    api_version: str = Field(
        default="2022-11-28",
        description="Value sent in the X-GitHub-Api-Version header",
    )

    api_delay: float = Field(
        default=0.1,
        ge=0,
        description="Seconds to wait between consecutive items in a sync loop",
    )

    page_size: int = Field(
        default=100,
        ge=1,
        le=100,
        description="per_page used for the single-page label and issue listings",
    )

    marker_label: str = Field(
        default="ringmaster",
        min_length=1,
        description="Label identifying issues managed by the sync engine",
    )

    timeout: float = Field(
        default=30.0,
        gt=0,
        description="HTTP timeout in seconds",
    )

    config_file: Path = Field(
        default_factory=lambda: Path.home() / ".ringmaster" / "config.json",
        description="User config file holding a fallback GitHub token",
    )

    verbose: int = Field(
        default=0,
        description="Verbosity level (0=off, 1=INFO, 2+=DEBUG)",
    )

    log_file: Path | None = Field(
        default=None,
        description="Optional path to write logs to file",
    )

    model_config = {
        "env_prefix": "RINGSYNC_",
    }
