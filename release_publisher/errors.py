"""Error taxonomy shared by release clients, stages and the pipeline runner."""

from __future__ import annotations

from typing import Optional


class ReleasePublisherError(RuntimeError):
    """Base class for every error raised by release-publisher."""


class ConfigurationError(ReleasePublisherError):
    """Raised when configuration cannot be turned into a usable value."""

    def __init__(self, message: str, *, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.field = field


class TemplateError(ConfigurationError):
    """Raised when a template string cannot be rendered."""


class ProviderError(ReleasePublisherError):
    """Raised when a hosting provider call fails."""

    def __init__(
        self,
        message: str,
        *,
        operation: str,
        repo: Optional[str] = None,
        status_code: Optional[int] = None,
    ) -> None:
        context = operation if not repo else f"{operation} {repo}"
        super().__init__(f"{context}: {message}")
        self.operation = operation
        self.repo = repo
        self.status_code = status_code


class NotFoundError(ProviderError):
    """Raised when the provider reports the requested resource does not exist."""


class MilestoneNotFoundError(NotFoundError):
    """Raised when closing a milestone that the provider does not know about."""

    def __init__(self, title: str, *, repo: Optional[str] = None) -> None:
        super().__init__(
            f"no milestone found with title {title!r}",
            operation="close milestone",
            repo=repo,
            status_code=404,
        )
        self.title = title


class ReleaseNotesConflictError(ReleasePublisherError):
    """Raised when release notes exist and the mode forbids touching them."""


class RetriableError(ReleasePublisherError):
    """Wraps a failure that callers may reasonably retry."""

    def __init__(self, cause: BaseException) -> None:
        super().__init__(str(cause))
        self.cause = cause
        self.__cause__ = cause


__all__ = [
    "ConfigurationError",
    "MilestoneNotFoundError",
    "NotFoundError",
    "ProviderError",
    "ReleaseNotesConflictError",
    "ReleasePublisherError",
    "RetriableError",
    "TemplateError",
]
