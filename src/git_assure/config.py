"""Runtime configuration for git-assure."""

from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Endpoints, credentials and rate-limit tuning, read from the environment."""

    model_config = SettingsConfigDict(
        env_prefix="GIT_ASSURE_",
        env_file=".env",
        extra="ignore",
        populate_by_name=True,
    )

    github_token: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("GIT_ASSURE_GITHUB_TOKEN", "GITHUB_TOKEN", "GH_TOKEN"),
        description="Token attached to every GitHub API request",
    )
    api_url: str = Field(default="https://api.github.com", description="GitHub REST API root")
    osv_url: str = Field(default="https://api.osv.dev/v1/query", description="OSV query endpoint")
    npm_registry_url: str = Field(default="https://registry.npmjs.org")
    pypi_url: str = Field(default="https://pypi.org/pypi")

    request_timeout: float = Field(default=30.0, gt=0)
    vulnerability_batch_size: int = Field(default=10, ge=1)
    registry_batch_size: int = Field(default=5, ge=1)
    batch_pause: float = Field(
        default=0.5,
        ge=0,
        description="Seconds to wait between batches of third-party lookups",
    )
