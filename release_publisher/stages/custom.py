"""Custom publishers: user-provided commands run once per matching artifact."""

from __future__ import annotations

import logging
import os
import shlex
import subprocess
from typing import TYPE_CHECKING, Dict, List

from ..artifact import Artifact
from ..config import PublisherConfig
from ..errors import ReleasePublisherError
from ..logext import LogWriter
from ..pipeline import Stage
from ..templates import render

if TYPE_CHECKING:
    from ..context import Context

logger = logging.getLogger(__name__)


class PublisherCommandError(ReleasePublisherError):
    """Raised when a custom publisher command exits with a non-zero status."""


def _build_env(ctx: "Context", artifact: Artifact, publisher: PublisherConfig) -> Dict[str, str]:
    env: Dict[str, str] = {
        "RELEASE_PUBLISHER_TAG": ctx.git.current_tag,
        "RELEASE_PUBLISHER_VERSION": ctx.version,
        "RELEASE_PUBLISHER_ARTIFACT_NAME": artifact.name,
        "RELEASE_PUBLISHER_ARTIFACT_PATH": str(artifact.path),
    }
    if ctx.release_id:
        env["RELEASE_PUBLISHER_RELEASE_ID"] = ctx.release_id
    data = ctx.template_data(artifact_name=artifact.name, artifact_path=str(artifact.path))
    for key, value in publisher.env.items():
        env[key] = render(value, data, field=f"publishers.{publisher.name}.env.{key}")
    return env


def render_command(ctx: "Context", artifact: Artifact, publisher: PublisherConfig) -> str:
    data = ctx.template_data(
        artifact_name=shlex.quote(artifact.name),
        artifact_path=shlex.quote(str(artifact.path)),
        artifact_type=shlex.quote(artifact.type),
    )
    return render(publisher.command, data, field=f"publishers.{publisher.name}.command")


def run_publisher(ctx: "Context", publisher: PublisherConfig) -> None:
    artifacts = [item for item in ctx.artifacts.by_ids(publisher.ids) if item.type in publisher.artifact_types]
    if not artifacts:
        logger.info("publisher %s: no matching artifacts", publisher.name)
        return

    output_log = logging.getLogger(f"{__name__}.{publisher.name}")
    for artifact in artifacts:
        cmd = render_command(ctx, artifact, publisher)
        logger.info("publisher %s: running %s", publisher.name, cmd)
        proc = subprocess.run(
            cmd,
            shell=True,
            check=False,
            capture_output=True,
            text=True,
            env={**os.environ, **_build_env(ctx, artifact, publisher)},
        )
        for stream in (proc.stdout, proc.stderr):
            if stream:
                with LogWriter(output_log) as writer:
                    writer.write(stream)
        if proc.returncode != 0:
            raise PublisherCommandError(
                f"publisher {publisher.name} failed for {artifact.name} (exit {proc.returncode}): "
                f"{(proc.stderr or proc.stdout).strip()}"
            )


class CustomPublisherStage(Stage):
    def __init__(self, publisher: PublisherConfig) -> None:
        self.publisher = publisher
        self.name = f"publisher:{publisher.name}"
        self.continuable = publisher.continue_on_error
        self.skip_if = None

    def run(self, ctx: "Context") -> None:
        run_publisher(ctx, self.publisher)


def publisher_stages(ctx: "Context") -> List[Stage]:
    return [CustomPublisherStage(publisher) for publisher in ctx.config.publishers]
