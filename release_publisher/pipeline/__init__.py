"""Publishing pipeline: stage contract, runner and error memo."""

from .memo import ErrorMemo, MemoizedErrors
from .runner import PipelineReport, current_stage, run_pipeline, stage_scope
from .stage import FunctionStage, PipelineAbortedError, SkipStage, Stage, StageError

__all__ = [
    "ErrorMemo",
    "FunctionStage",
    "MemoizedErrors",
    "PipelineAbortedError",
    "PipelineReport",
    "SkipStage",
    "Stage",
    "StageError",
    "current_stage",
    "run_pipeline",
    "stage_scope",
]
