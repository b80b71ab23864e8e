"""Bridge arbitrary text output (e.g. subprocess output) into logging."""

from __future__ import annotations

import io
import logging
from typing import Optional


class LogWriter(io.TextIOBase):
    """Text stream that logs every complete line at DEBUG level.

    Nothing is emitted unless the logger is enabled for DEBUG; the number of
    characters written is always reported back to the caller.
    """

    def __init__(self, logger: Optional[logging.Logger | logging.LoggerAdapter] = None, *, level: int = logging.DEBUG) -> None:
        super().__init__()
        self.logger = logger or logging.getLogger(__name__)
        self.level = level
        self._buffer = ""

    def writable(self) -> bool:
        return True

    def write(self, text: str) -> int:
        self._buffer += text
        *lines, self._buffer = self._buffer.split("\n")
        for line in lines:
            if line:
                self.logger.log(self.level, line)
        return len(text)

    def flush(self) -> None:
        if self._buffer:
            self.logger.log(self.level, self._buffer)
            self._buffer = ""

    def close(self) -> None:
        self.flush()
        super().close()
