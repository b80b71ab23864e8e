"""Stage contract for the publishing pipeline.

Every stage carries its failure policy as plain attributes so the whole
pipeline can be inspected before it runs:

* ``continuable`` - a failure is memorized and the run goes on (unless the run
  is fail-fast);
* ``skip_if`` - optional predicate; when it returns true the stage is not run.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Callable, Optional

from ..errors import ReleasePublisherError

if TYPE_CHECKING:
    from ..context import Context

SkipPredicate = Callable[["Context"], bool]


class SkipStage(Exception):
    """Raised by a stage that decides at run time it has nothing to do."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class StageError(ReleasePublisherError):
    """A continuable stage failure recorded in the error memo."""

    def __init__(self, stage: str, cause: BaseException) -> None:
        super().__init__(f"{stage}: {cause}")
        self.stage = stage
        self.cause = cause
        self.__cause__ = cause


class PipelineAbortedError(ReleasePublisherError):
    """A fatal stage failure; no later stage ran."""

    def __init__(self, stage: str, cause: BaseException) -> None:
        super().__init__(f"{stage}: failed to publish artifacts: {cause}")
        self.stage = stage
        self.cause = cause
        self.__cause__ = cause


class Stage(ABC):
    name: str = ""
    continuable: bool = False
    skip_if: Optional[SkipPredicate] = None

    @abstractmethod
    def run(self, ctx: "Context") -> None:
        ...

    def should_skip(self, ctx: "Context") -> bool:
        if ctx.skips(self.name):
            return True
        predicate = self.skip_if
        return bool(predicate and predicate(ctx))

    def __str__(self) -> str:
        return self.name

    def describe(self) -> dict[str, object]:
        return {
            "name": self.name,
            "continuable": self.continuable,
            "conditional": self.skip_if is not None,
        }


class FunctionStage(Stage):
    """Adapts a plain callable to the stage contract."""

    def __init__(
        self,
        name: str,
        func: Callable[["Context"], None],
        *,
        continuable: bool = False,
        skip_if: Optional[SkipPredicate] = None,
    ) -> None:
        self.name = name
        self.func = func
        self.continuable = continuable
        self.skip_if = skip_if

    def run(self, ctx: "Context") -> None:
        self.func(ctx)
