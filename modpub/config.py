"""Configuration loading from YAML and environment.

Secrets (tokens) are taken from environment variables or from files
(Docker secrets, CI secret mounts). Never put real tokens in config files
committed to the repo.
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _read_secret(env_key: str, file_env_key: str) -> str | None:
    """Read secret from env var or from file path in env (e.g. Docker
    secrets)."""
    value = _current_env.get(env_key)
    if value:
        return value.strip()
    file_path = _current_env.get(file_env_key)
    if file_path:
        return Path(file_path).read_text().strip()
    return None


# Injected by load_config so properties can read env/file
_current_env: dict[str, str] = {}


class GitHubConfig(BaseSettings):
    """GitHub API settings."""

    model_config = SettingsConfigDict(env_prefix="GITHUB_", extra="ignore")

    token: str | None = Field(default=None, description="PAT or app token; use env or secret file")
    api_url: str = Field(default="https://api.github.com", description="API base URL")
    timeout: int = Field(default=30, ge=1, description="HTTP timeout in seconds")


class CatalogConfig(BaseSettings):
    """Catalog repository that receives the pull request, and the fork used
    to stage it."""

    model_config = SettingsConfigDict(env_prefix="CATALOG_", extra="ignore")

    owner: str = Field(default="QuestPackageManager", description="Upstream catalog owner")
    name: str = Field(default="mods", description="Upstream catalog repository name")
    fork_owner: str | None = Field(default=None, description="Fork owner; defaults to the token's user")
    fork_name: str | None = Field(default=None, description="Fork name; defaults to the catalog name")
    mods_dir: str = Field(default="mods", description="Directory of catalog entries")
    blacklist_path: str = Field(default="repo-blacklist.txt", description="List of publishing repositories")
    sync_fork_default_branch: bool = Field(
        default=False,
        description="Reset the fork's default branch to upstream before reconciling",
    )

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"


class SourceConfig(BaseSettings):
    """Repository the mod is published from."""

    model_config = SettingsConfigDict(env_prefix="SOURCE_", extra="ignore")

    repository: str | None = Field(default=None, description="owner/name; falls back to GITHUB_REPOSITORY")
    funding: list[str] = Field(default_factory=list, description="Funding links for the catalog entry")
    website: str | None = Field(default=None, description="Website; defaults to the repository page")


class ForkConfig(BaseSettings):
    """Polling budget while GitHub provisions a new fork."""

    model_config = SettingsConfigDict(env_prefix="FORK_", extra="ignore")

    poll_attempts: int = Field(default=10, ge=1, le=100, description="Attempts before giving up")
    poll_delay_seconds: float = Field(default=5.0, ge=0, description="Seconds between attempts")


class LoggingConfig(BaseSettings):
    """Logging settings."""

    model_config = SettingsConfigDict(env_prefix="LOGGING_", extra="ignore")

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log format",
    )


class AppConfig(BaseSettings):
    """Root application config from YAML + env."""

    model_config = SettingsConfigDict(extra="ignore")

    package_url: str | None = Field(default=None, description="URL of the mod package to publish")
    github: GitHubConfig = Field(default_factory=GitHubConfig)
    catalog: CatalogConfig = Field(default_factory=CatalogConfig)
    source: SourceConfig = Field(default_factory=SourceConfig)
    fork: ForkConfig = Field(default_factory=ForkConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @property
    def github_token_resolved(self) -> str | None:
        """Resolve GitHub token from config, env or secret file."""
        t = self.github.token
        if t and not t.startswith("$"):
            return t
        return _read_secret("GITHUB_TOKEN", "GITHUB_TOKEN_FILE")

    @property
    def source_repository_resolved(self) -> str | None:
        """Publishing repository; GitHub Actions sets GITHUB_REPOSITORY."""
        r = self.source.repository
        if r and not r.startswith("$"):
            return r
        return _current_env.get("GITHUB_REPOSITORY") or None


def _substitute_env(value: Any) -> Any:
    """Replace ${VAR} and $VAR in strings with os.environ."""
    if isinstance(value, str):
        if value.startswith("${") and value.endswith("}"):
            key = value[2:-1].strip()
            return _current_env.get(key, value)
        if value.startswith("$") and not value.startswith("${"):
            key = value[1:].strip()
            return _current_env.get(key, value)
        return value
    if isinstance(value, dict):
        return {k: _substitute_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_substitute_env(v) for v in value]
    return value


def load_config(config_path: Path | None = None) -> AppConfig:
    """Load config from YAML file and environment.

    Secrets: GITHUB_TOKEN or GITHUB_TOKEN_FILE.
    """
    global _current_env
    import os

    _current_env = dict(os.environ)

    path = config_path or Path("config.yaml")
    if not path.is_file():
        return AppConfig(package_url=_current_env.get("PACKAGE_URL"))

    raw = yaml.safe_load(path.read_text()) or {}
    raw = _substitute_env(raw)

    # Unset ${VAR} placeholders survive substitution verbatim
    package_url = raw.get("package_url")
    if not package_url or str(package_url).startswith("$"):
        package_url = _current_env.get("PACKAGE_URL")

    return AppConfig(
        package_url=package_url,
        github=GitHubConfig(**(raw.get("github") or {})),
        catalog=CatalogConfig(**(raw.get("catalog") or {})),
        source=SourceConfig(**(raw.get("source") or {})),
        fork=ForkConfig(**(raw.get("fork") or {})),
        logging=LoggingConfig(**(raw.get("logging") or {})),
    )
