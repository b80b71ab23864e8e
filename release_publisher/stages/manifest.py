"""Render package-manager manifests and commit them to their repositories.

Manifests embed asset download URLs, so this stage runs after the release
stage has recorded ``ctx.release_url``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable, List

from ..config import ManifestConfig
from ..errors import ConfigurationError
from ..pipeline import Stage
from ..templates import render
from ..utils import compute_sha256

if TYPE_CHECKING:
    from ..client import ReleaseClient
    from ..context import Context

logger = logging.getLogger(__name__)


def render_manifest(ctx: "Context", manifest: ManifestConfig) -> str:
    if not ctx.release_url:
        raise ConfigurationError(
            f"manifest {manifest.name!r} needs the release download URL; is the release stage disabled?",
            field="manifests",
        )

    artifacts = [item for item in ctx.artifacts.by_ids(manifest.ids) if item.type == manifest.artifact_type]
    if not artifacts:
        raise ConfigurationError(f"no {manifest.artifact_type} artifacts found for manifest {manifest.name!r}", field="manifests")

    entries: List[str] = []
    for artifact in artifacts:
        url = render(
            ctx.release_url,
            ctx.template_data(artifact_name=artifact.name),
            field="release url",
        )
        entry_data = ctx.template_data(**{key: value for key, value in artifact.extra.items() if isinstance(key, str)})
        entry_data.update(
            name=manifest.name,
            artifact_name=artifact.name,
            url=url,
            sha256=compute_sha256(artifact.path),
        )
        entries.append(render(manifest.entry_template, entry_data, field="manifests.entry_template"))

    data = ctx.template_data(name=manifest.name, entries="\n".join(entries))
    return render(manifest.template, data, field="manifests.template")


class ManifestStage(Stage):
    name = "manifests"

    def __init__(self, client_factory: Callable[["Context"], "ReleaseClient"]) -> None:
        self.client_factory = client_factory
        self.continuable = True
        self.skip_if = lambda ctx: not ctx.config.manifests

    def run(self, ctx: "Context") -> None:
        client = self.client_factory(ctx)
        author = ctx.config.commit_author.to_author()
        for manifest in ctx.config.manifests:
            content = render_manifest(ctx, manifest)
            if manifest.skip_upload:
                logger.info("manifest %s rendered, upload skipped", manifest.name)
                continue
            message = render(
                manifest.commit_message_template,
                ctx.template_data(name=manifest.name),
                field="manifests.commit_message_template",
            )
            client.create_or_update_file(
                manifest.repo.to_repo(),
                author,
                content.encode("utf-8"),
                manifest.path,
                message,
            )
            logger.info("manifest %s pushed to %s:%s", manifest.name, manifest.repo.to_repo(), manifest.path)
