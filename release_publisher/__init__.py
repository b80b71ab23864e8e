"""Publish releases, files and assets to source-control hosting providers."""

__version__ = "0.1.0"

from .artifact import Artifact, Artifacts
from .client import GiteaClient, GitHubClient, ReleaseClient, build_client
from .config import Config, load_config
from .context import Context, GitInfo
from .errors import (
    ConfigurationError,
    MilestoneNotFoundError,
    NotFoundError,
    ProviderError,
    ReleaseNotesConflictError,
    ReleasePublisherError,
    RetriableError,
    TemplateError,
)
from .models import ChangelogItem, CommitAuthor, ReleaseNotesMode, Repo, merge_release_notes
from .pipeline import (
    ErrorMemo,
    FunctionStage,
    MemoizedErrors,
    PipelineAbortedError,
    SkipStage,
    Stage,
    StageError,
    run_pipeline,
)
from .stages import default_stages, run_publish

__all__ = [
    "__version__",
    "Artifact",
    "Artifacts",
    "ChangelogItem",
    "CommitAuthor",
    "Config",
    "ConfigurationError",
    "Context",
    "ErrorMemo",
    "FunctionStage",
    "GitHubClient",
    "GitInfo",
    "GiteaClient",
    "MemoizedErrors",
    "MilestoneNotFoundError",
    "NotFoundError",
    "PipelineAbortedError",
    "ProviderError",
    "ReleaseClient",
    "ReleaseNotesConflictError",
    "ReleaseNotesMode",
    "ReleasePublisherError",
    "Repo",
    "RetriableError",
    "SkipStage",
    "Stage",
    "StageError",
    "TemplateError",
    "build_client",
    "default_stages",
    "load_config",
    "merge_release_notes",
    "run_pipeline",
    "run_publish",
]
