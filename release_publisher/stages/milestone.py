"""Close the milestone matching the released version."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable

from ..errors import MilestoneNotFoundError
from ..pipeline import Stage
from ..templates import render

if TYPE_CHECKING:
    from ..client import ReleaseClient
    from ..context import Context

logger = logging.getLogger(__name__)


def _nothing_to_close(ctx: "Context") -> bool:
    return not any(milestone.close for milestone in ctx.config.milestones)


class MilestoneStage(Stage):
    name = "milestones"

    def __init__(self, client_factory: Callable[["Context"], "ReleaseClient"]) -> None:
        self.client_factory = client_factory
        self.continuable = True
        self.skip_if = _nothing_to_close

    def run(self, ctx: "Context") -> None:
        client = self.client_factory(ctx)
        data = ctx.template_data()
        for milestone in ctx.config.milestones:
            if not milestone.close:
                continue
            repo = (milestone.repo or ctx.config.release.repo).to_repo()
            title = render(milestone.name_template, data, field="milestones.name_template")
            try:
                client.close_milestone(repo, title)
            except MilestoneNotFoundError as exc:
                if milestone.fail_on_error:
                    raise
                logger.warning("milestone %r not found in %s, nothing to close: %s", title, repo, exc)
                continue
            logger.info("closed milestone %r in %s", title, repo)
