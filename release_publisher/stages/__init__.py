"""Concrete publishing stages and the default publish pipeline."""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Callable, List, Optional

from ..client import ReleaseClient, build_client
from ..pipeline import PipelineReport, Stage, run_pipeline
from .custom import CustomPublisherStage, publisher_stages
from .manifest import ManifestStage
from .milestone import MilestoneStage
from .release import ReleaseStage, upload_with_retry

if TYPE_CHECKING:
    from requests import Session

    from ..context import Context

logger = logging.getLogger(__name__)

ClientFactory = Callable[["Context"], ReleaseClient]


def lazy_client_factory(session: Optional["Session"] = None) -> ClientFactory:
    """Build the release client on first use and hand the same one to every stage."""

    lock = threading.Lock()
    built: List[ReleaseClient] = []

    def factory(ctx: "Context") -> ReleaseClient:
        with lock:
            if not built:
                built.append(build_client(ctx, session=session))
            return built[0]

    return factory


def default_stages(ctx: "Context", client_factory: Optional[ClientFactory] = None) -> List[Stage]:
    """Stages in publishing order.

    The release stage runs before anything that embeds release download URLs;
    custom publishers run last.
    """

    factory = client_factory or lazy_client_factory()
    return [
        ReleaseStage(factory),
        ManifestStage(factory),
        MilestoneStage(factory),
        *publisher_stages(ctx),
    ]


def run_publish(ctx: "Context", client_factory: Optional[ClientFactory] = None) -> Optional[PipelineReport]:
    if ctx.skip_publish:
        logger.info("publishing skipped")
        return None
    return run_pipeline(default_stages(ctx, client_factory), ctx)


__all__ = [
    "ClientFactory",
    "CustomPublisherStage",
    "ManifestStage",
    "MilestoneStage",
    "ReleaseStage",
    "default_stages",
    "lazy_client_factory",
    "run_publish",
    "upload_with_retry",
]
