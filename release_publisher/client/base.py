"""Provider-neutral release client contract."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, BinaryIO, Dict, List, Mapping, Optional
from urllib.parse import urlsplit, urlunsplit

import requests
from requests import Response, Session
from requests.exceptions import RequestException

from ..artifact import Artifact
from ..errors import ConfigurationError, NotFoundError, ProviderError
from ..models import ChangelogItem, CommitAuthor, ReleaseNotesMode, Repo
from ..templates import render

FALLBACK_BRANCH = "master"


def resolve_instance_url(api_template: str, data: Mapping[str, Any]) -> str:
    """Render a templated API endpoint and strip it down to the instance root."""

    rendered = render(api_template, data, field="provider_urls.api")
    try:
        parts = urlsplit(rendered.strip())
    except ValueError as exc:
        raise ConfigurationError(f"invalid URL for provider_urls.api: {api_template!r}", field="provider_urls.api") from exc
    root = urlunsplit((parts.scheme, parts.netloc, "", "", ""))
    if not root or not parts.netloc:
        raise ConfigurationError(f"invalid URL for provider_urls.api: {api_template!r}", field="provider_urls.api")
    return root


class ReleaseClient(ABC):
    """Idempotent release, file and asset operations against one hosting provider."""

    name: str

    def __init__(
        self,
        *,
        base_url: str,
        token: Optional[str],
        release_repo: Repo,
        download_url: str,
        session: Optional[Session] = None,
        timeout: float = 30.0,
        verify: bool = True,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.release_repo = release_repo
        self.download_url = download_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout
        self.verify = verify
        self.log = logger or logging.getLogger(type(self).__module__)

    @abstractmethod
    def changelog(self, repo: Repo, prev: str, current: str) -> List[ChangelogItem]:
        ...

    @abstractmethod
    def close_milestone(self, repo: Repo, title: str) -> None:
        ...

    @abstractmethod
    def default_branch(self, repo: Repo) -> str:
        ...

    @abstractmethod
    def create_or_update_file(
        self,
        repo: Repo,
        commit_author: CommitAuthor,
        content: bytes,
        path: str,
        message: str,
    ) -> None:
        ...

    @abstractmethod
    def create_or_update_release(
        self,
        repo: Repo,
        tag: str,
        title: str,
        body: str,
        *,
        draft: bool = False,
        prerelease: bool = False,
        target: Optional[str] = None,
        notes_mode: ReleaseNotesMode | str = ReleaseNotesMode.KEEP_EXISTING,
    ) -> str:
        ...

    @abstractmethod
    def publish_release(self, release_id: str, repo: Optional[Repo] = None) -> None:
        ...

    @abstractmethod
    def upload(self, release_id: str, artifact: Artifact, file: BinaryIO, repo: Optional[Repo] = None) -> None:
        ...

    def release_url_template(self, repo: Optional[Repo] = None) -> str:
        """Download URL pattern for release assets, rendered with ``tag`` and ``artifact_name``."""

        target = repo or self.release_repo
        return f"{self.download_url}/{target.owner}/{target.name}/releases/download/{{tag!u}}/{{artifact_name}}"

    def resolve_branch(self, repo: Repo, *, path: str) -> str:
        if repo.branch:
            return repo.branch
        try:
            return self.default_branch(repo)
        except ProviderError as exc:
            self.log.warning(
                "error checking for default branch, using %s (file=%s repo=%s): %s",
                FALLBACK_BRANCH,
                path,
                repo,
                exc,
            )
            return FALLBACK_BRANCH

    def _headers(self) -> Dict[str, str]:
        return {}

    def _request(
        self,
        method: str,
        url: str,
        *,
        operation: str,
        repo: Optional[Repo] = None,
        expected: tuple[int, ...] = (200, 201),
        **kwargs: Any,
    ) -> Response:
        headers = {**self._headers(), **kwargs.pop("headers", {})}
        try:
            response = self.session.request(
                method,
                url,
                headers=headers,
                timeout=self.timeout,
                verify=self.verify,
                **kwargs,
            )
        except RequestException as exc:
            raise ProviderError(str(exc), operation=operation, repo=str(repo) if repo else None) from exc

        if response.status_code in expected:
            return response
        error_cls = NotFoundError if response.status_code == 404 else ProviderError
        raise error_cls(
            f"{response.status_code} {self._error_text(response)}",
            operation=operation,
            repo=str(repo) if repo else None,
            status_code=response.status_code,
        )

    @staticmethod
    def _error_text(response: Response) -> str:
        try:
            payload = response.json()
        except ValueError:
            return response.text or response.reason or ""
        if isinstance(payload, dict) and payload.get("message"):
            return str(payload["message"])
        return response.text or response.reason or ""
