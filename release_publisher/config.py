"""Pydantic models describing publishing configuration."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Literal, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import ConfigurationError
from .models import CommitAuthor, ReleaseNotesMode, Repo


class RepoConfig(BaseModel):
    owner: str
    name: str
    branch: Optional[str] = None

    model_config = ConfigDict(extra="forbid")

    def to_repo(self) -> Repo:
        return Repo(owner=self.owner, name=self.name, branch=self.branch)


class ProviderURLs(BaseModel):
    api: str = Field(..., description="Templated API endpoint of the hosting provider.")
    download: str = Field(..., description="Templated base URL used for asset downloads.")
    upload: Optional[str] = Field(default=None, description="Templated upload endpoint, when it differs from the API.")
    skip_tls_verify: bool = False

    model_config = ConfigDict(extra="forbid")


class CommitAuthorConfig(BaseModel):
    name: str = "release-publisher"
    email: str = "bot@release-publisher.invalid"

    model_config = ConfigDict(extra="forbid")

    def to_author(self) -> CommitAuthor:
        return CommitAuthor(name=self.name, email=self.email)


class ReleaseConfig(BaseModel):
    repo: RepoConfig
    name_template: str = "{tag}"
    draft: bool = False
    prerelease: Union[bool, Literal["auto"]] = False
    target_commitish: Optional[str] = Field(default=None, description="Templated commit or branch to tag.")
    mode: ReleaseNotesMode = ReleaseNotesMode.KEEP_EXISTING
    header: Optional[str] = None
    footer: Optional[str] = None
    disable: bool = False
    skip_upload: bool = False
    parallelism: int = Field(default=4, ge=1)
    upload_attempts: int = Field(default=10, ge=1)

    model_config = ConfigDict(extra="forbid")


class MilestoneConfig(BaseModel):
    repo: Optional[RepoConfig] = None
    close: bool = False
    fail_on_error: bool = False
    name_template: str = "{tag}"

    model_config = ConfigDict(extra="forbid")


class ManifestConfig(BaseModel):
    """A package-manager manifest rendered from release assets and pushed to a repo."""

    name: str
    repo: RepoConfig
    path: str
    template: str = Field(..., description="Manifest body; {entries} expands to one rendered entry_template per artifact.")
    entry_template: str = "{artifact_name} {url} {sha256}"
    commit_message_template: str = "{name}: update to {version}"
    artifact_type: str = "archive"
    ids: List[str] = Field(default_factory=list)
    skip_upload: bool = False

    model_config = ConfigDict(extra="forbid")


class PublisherConfig(BaseModel):
    """A custom command run once per matching artifact."""

    name: str
    command: str
    ids: List[str] = Field(default_factory=list)
    artifact_types: List[str] = Field(default_factory=lambda: ["archive", "checksum", "binary", "package"])
    env: Dict[str, str] = Field(default_factory=dict)
    continue_on_error: bool = True

    model_config = ConfigDict(extra="forbid")


class Config(BaseModel):
    project_name: str
    provider: Literal["github", "gitea", "forgejo"] = "github"
    provider_urls: Optional[ProviderURLs] = None
    token_env: str = "GITHUB_TOKEN"
    timeout: float = Field(default=30.0, gt=0)
    release: ReleaseConfig
    milestones: List[MilestoneConfig] = Field(default_factory=list)
    manifests: List[ManifestConfig] = Field(default_factory=list)
    publishers: List[PublisherConfig] = Field(default_factory=list)
    commit_author: CommitAuthorConfig = Field(default_factory=CommitAuthorConfig)

    model_config = ConfigDict(extra="forbid")

    def urls(self) -> ProviderURLs:
        if self.provider_urls is not None:
            return self.provider_urls
        return DEFAULT_URLS[self.provider]


DEFAULT_URLS: Dict[str, ProviderURLs] = {
    "github": ProviderURLs(
        api="https://api.github.com/",
        download="https://github.com",
        upload="https://uploads.github.com/",
    ),
    "gitea": ProviderURLs(
        api="https://gitea.com/api/v1",
        download="https://gitea.com",
    ),
    "forgejo": ProviderURLs(
        api="https://codeberg.org/api/v1",
        download="https://codeberg.org",
    ),
}


def load_config(path: str | Path) -> Config:
    """Load and validate a YAML configuration file."""

    config_path = Path(path)
    try:
        payload = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise ConfigurationError(f"configuration file not found: {config_path}") from exc
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"invalid YAML in {config_path}: {exc}") from exc
    if not isinstance(payload, dict):
        raise ConfigurationError(f"configuration in {config_path} must be a mapping")
    try:
        return Config.model_validate(payload)
    except ValidationError as exc:
        raise ConfigurationError(f"invalid configuration in {config_path}: {exc}") from exc
