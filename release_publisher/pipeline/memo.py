"""Accumulator for failures that must not abort the run."""

from __future__ import annotations

from typing import List, Optional

from ..errors import ReleasePublisherError


class MemoizedErrors(ReleasePublisherError):
    """Raised at the end of a run when continuable stages failed."""

    def __init__(self, errors: List[BaseException]) -> None:
        super().__init__("\n".join(str(error) for error in errors))
        self.errors = list(errors)


class ErrorMemo:
    def __init__(self) -> None:
        self._errors: List[BaseException] = []

    def memorize(self, error: BaseException) -> None:
        self._errors.append(error)

    @property
    def errors(self) -> List[BaseException]:
        return list(self._errors)

    def error(self) -> Optional[MemoizedErrors]:
        if not self._errors:
            return None
        return MemoizedErrors(self._errors)

    def __len__(self) -> int:
        return len(self._errors)

    def __bool__(self) -> bool:
        return bool(self._errors)
