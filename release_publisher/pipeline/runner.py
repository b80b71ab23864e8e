"""Sequential runner for publishing stages."""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Iterator, List, Optional, Sequence

from .memo import ErrorMemo
from .stage import PipelineAbortedError, SkipStage, Stage, StageError

if TYPE_CHECKING:
    from ..context import Context

logger = logging.getLogger(__name__)

PAD = 4

_current_stage: ContextVar[Optional[str]] = ContextVar("release_publisher_stage", default=None)
_factory_lock = threading.Lock()
_factory_installed = False


def current_stage() -> Optional[str]:
    return _current_stage.get()


def _install_record_factory() -> None:
    """Prefix every record created while a stage is active with the padded stage name."""

    global _factory_installed
    with _factory_lock:
        if _factory_installed:
            return
        previous = logging.getLogRecordFactory()

        def factory(*args: Any, **kwargs: Any) -> logging.LogRecord:
            record = previous(*args, **kwargs)
            stage = _current_stage.get()
            if stage is not None:
                prefix = f"{' ' * PAD}{stage}: "
                if record.args:
                    prefix = prefix.replace("%", "%%")
                record.msg = f"{prefix}{record.msg}"
                record.stage = stage
            return record

        logging.setLogRecordFactory(factory)
        _factory_installed = True


@contextmanager
def stage_scope(name: str) -> Iterator[None]:
    """Attribute every log record emitted in this context to stage ``name``.

    Worker threads do not inherit the scope; submit work through
    ``contextvars.copy_context().run`` to keep the prefix.
    """

    _install_record_factory()
    token = _current_stage.set(name)
    try:
        yield
    finally:
        _current_stage.reset(token)


@dataclass
class PipelineReport:
    executed: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, object]:
        return {
            "executed": list(self.executed),
            "skipped": list(self.skipped),
            "failed": list(self.failed),
        }


def run_pipeline(
    stages: Sequence[Stage],
    ctx: "Context",
    *,
    fail_fast: Optional[bool] = None,
    log: Optional[logging.Logger] = None,
) -> PipelineReport:
    """Run ``stages`` in order.

    A continuable stage's failure is memorized and reported after the last
    stage, unless the run is fail-fast. Any other failure aborts immediately
    with :class:`PipelineAbortedError`. Memorized failures are raised together
    as :class:`MemoizedErrors` once every stage has had its turn.
    """

    base = log or logger
    fail_fast = ctx.fail_fast if fail_fast is None else fail_fast
    memo = ErrorMemo()
    report = PipelineReport()

    for stage in stages:
        with stage_scope(stage.name):
            if stage.should_skip(ctx):
                base.info("skipped")
                report.skipped.append(stage.name)
                continue

            try:
                _handle(stage, ctx, base, report)
            except Exception as exc:
                report.failed.append(stage.name)
                if stage.continuable and not fail_fast:
                    base.warning("failed, continuing: %s", exc)
                    memo.memorize(StageError(stage.name, exc))
                    continue
                raise PipelineAbortedError(stage.name, exc) from exc

    error = memo.error()
    if error is not None:
        raise error
    return report


def _handle(stage: Stage, ctx: "Context", log: logging.Logger, report: PipelineReport) -> None:
    log.info("running")
    try:
        stage.run(ctx)
    except SkipStage as skip:
        log.info("skipped: %s", skip.reason)
        report.skipped.append(stage.name)
        return
    report.executed.append(stage.name)
