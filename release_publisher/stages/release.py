"""Create or update the release and attach uploadable artifacts."""

from __future__ import annotations

import contextvars
import logging
import time
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING, Callable, List, Optional

from ..artifact import Artifact
from ..errors import RetriableError
from ..pipeline import Stage
from ..templates import render
from .changelog import build_release_notes

if TYPE_CHECKING:
    from ..client import ReleaseClient
    from ..context import Context

logger = logging.getLogger(__name__)

MAX_IDENTICAL_FAILURES = 3


def upload_with_retry(
    client: "ReleaseClient",
    release_id: str,
    artifact: Artifact,
    *,
    attempts: int = 10,
    delay: float = 1.0,
    sleep: Callable[[float], None] = time.sleep,
) -> None:
    """Upload ``artifact``, retrying only failures the client marked retriable.

    Gives up early when the same failure text comes back
    ``MAX_IDENTICAL_FAILURES`` times in a row.
    """

    previous: Optional[str] = None
    repeats = 0
    for attempt in range(1, attempts + 1):
        try:
            with artifact.open() as handle:
                client.upload(release_id, artifact, handle)
            return
        except RetriableError as exc:
            message = str(exc)
            repeats = repeats + 1 if message == previous else 1
            previous = message
            if attempt == attempts or repeats >= MAX_IDENTICAL_FAILURES:
                raise
            logger.warning(
                "failed to upload %s (attempt %d/%d), will retry: %s",
                artifact.name,
                attempt,
                attempts,
                exc,
            )
            sleep(delay * attempt)


class ReleaseStage(Stage):
    name = "release"

    def __init__(self, client_factory: Callable[["Context"], "ReleaseClient"], *, sleep: Callable[[float], None] = time.sleep) -> None:
        self.client_factory = client_factory
        self.sleep = sleep
        self.continuable = False
        self.skip_if = lambda ctx: ctx.config.release.disable

    def run(self, ctx: "Context") -> None:
        release = ctx.config.release
        client = self.client_factory(ctx)
        repo = release.repo.to_repo()
        data = ctx.template_data()

        title = render(release.name_template, data, field="release.name_template")
        target = ctx.git.commit or None
        if release.target_commitish:
            target = render(release.target_commitish, data, field="release.target_commitish")
        body = build_release_notes(ctx, client)
        uploads = [] if release.skip_upload else ctx.artifacts.filter(lambda item: item.uploadable)

        # held as a draft until every asset is attached
        release_id = client.create_or_update_release(
            repo,
            ctx.git.current_tag,
            title,
            body,
            draft=release.draft or bool(uploads),
            prerelease=ctx.prerelease,
            target=target,
            notes_mode=release.mode,
        )
        ctx.release_id = release_id
        ctx.release_url = client.release_url_template(repo)
        logger.info("release %s ready for %s (id=%s)", ctx.git.current_tag, repo, release_id)

        if release.skip_upload:
            logger.info("asset upload disabled")
        else:
            self._upload_all(ctx, client, release_id, uploads)

        if not release.draft:
            client.publish_release(release_id, repo)

    def _upload_all(self, ctx: "Context", client: "ReleaseClient", release_id: str, artifacts: List[Artifact]) -> None:
        release = ctx.config.release
        if not artifacts:
            logger.info("no artifacts to upload")
            return

        failures: List[BaseException] = []
        with ThreadPoolExecutor(max_workers=release.parallelism) as pool:
            futures = {
                pool.submit(
                    contextvars.copy_context().run,
                    upload_with_retry,
                    client,
                    release_id,
                    artifact,
                    attempts=release.upload_attempts,
                    sleep=self.sleep,
                ): artifact
                for artifact in artifacts
            }
            for future, artifact in futures.items():
                exc = future.exception()
                if exc is None:
                    logger.info("uploaded %s", artifact.name)
                    continue
                logger.error("failed to upload %s: %s", artifact.name, exc)
                failures.append(exc)
        if failures:
            raise failures[0]
