"""Release clients for supported hosting providers."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

from requests import Session

from ..errors import ConfigurationError
from ..templates import render
from .base import FALLBACK_BRANCH, ReleaseClient, resolve_instance_url
from .gitea import GiteaClient
from .github import GitHubClient

if TYPE_CHECKING:
    from ..context import Context

CLIENTS = {
    "github": GitHubClient,
    "gitea": GiteaClient,
    "forgejo": GiteaClient,
}


def build_client(
    ctx: "Context",
    *,
    session: Optional[Session] = None,
    logger: Optional[logging.Logger] = None,
) -> ReleaseClient:
    """Construct the release client configured for ``ctx``."""

    provider = (ctx.config.provider or "github").lower()
    client_cls = CLIENTS.get(provider)
    if client_cls is None:
        raise ConfigurationError(f"Unknown release provider '{provider}'", field="provider")

    urls = ctx.config.urls()
    data = ctx.template_data()
    options = dict(
        base_url=resolve_instance_url(urls.api, data),
        token=ctx.token,
        release_repo=ctx.config.release.repo.to_repo(),
        download_url=render(urls.download, data, field="provider_urls.download"),
        session=session,
        timeout=ctx.config.timeout,
        verify=not urls.skip_tls_verify,
        logger=logger,
    )
    if client_cls is GitHubClient:
        upload = render(urls.upload, data, field="provider_urls.upload") if urls.upload else None
        return GitHubClient(upload_url=upload, **options)
    return client_cls(**options)


__all__ = [
    "CLIENTS",
    "FALLBACK_BRANCH",
    "GitHubClient",
    "GiteaClient",
    "ReleaseClient",
    "build_client",
    "resolve_instance_url",
]
