from __future__ import annotations

import logging

import pytest

from release_publisher.logext import LogWriter


def test_writer_is_silent_at_info(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.INFO, logger="release_publisher.tests.writer")
    writer = LogWriter(logging.getLogger("release_publisher.tests.writer"))

    assert writer.write("line one\nline two\n") == len("line one\nline two\n")
    writer.close()

    assert caplog.records == []


def test_writer_logs_lines_at_debug(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.DEBUG, logger="release_publisher.tests.writer")
    writer = LogWriter(logging.getLogger("release_publisher.tests.writer"))

    writer.write("first\nsec")
    assert [record.getMessage() for record in caplog.records] == ["first"]

    writer.write("ond\n\n")
    writer.write("tail")
    writer.flush()

    assert [record.getMessage() for record in caplog.records] == ["first", "second", "tail"]
    assert all(record.levelno == logging.DEBUG for record in caplog.records)
