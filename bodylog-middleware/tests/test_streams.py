"""Tests for output sinks."""

from __future__ import annotations

import asyncio
import io
import logging

import pytest

from bodylog.streams import BufferedStream, LoggingStream


class RecordingStream:
    def __init__(self):
        self.writes: list[str] = []

    def write(self, text: str) -> None:
        self.writes.append(text)


def test_interval_must_be_positive():
    with pytest.raises(ValueError):
        BufferedStream(io.StringIO(), interval_ms=0)


@pytest.mark.asyncio
async def test_writes_are_batched_until_timer_fires():
    target = RecordingStream()
    stream = BufferedStream(target, interval_ms=10)

    stream.write("a\n")
    stream.write("b\n")
    assert stream.pending
    assert target.writes == []

    await asyncio.sleep(0.2)
    assert target.writes == ["a\nb\n"]
    assert not stream.pending


@pytest.mark.asyncio
async def test_order_is_preserved_across_flushes():
    target = RecordingStream()
    stream = BufferedStream(target, interval_ms=10)

    stream.write("1\n")
    await asyncio.sleep(0.2)
    stream.write("2\n")
    stream.write("3\n")
    await asyncio.sleep(0.2)

    assert target.writes == ["1\n", "2\n3\n"]


@pytest.mark.asyncio
async def test_manual_flush_consumes_timer():
    target = RecordingStream()
    stream = BufferedStream(target, interval_ms=10_000)

    stream.write("x\n")
    stream.flush()
    assert target.writes == ["x\n"]
    assert not stream.pending

    # Nothing left to write; no empty write on a second flush
    stream.flush()
    assert target.writes == ["x\n"]


@pytest.mark.asyncio
async def test_close_flushes():
    target = RecordingStream()
    stream = BufferedStream(target, interval_ms=10_000)
    stream.write("bye\n")
    stream.close()
    assert target.writes == ["bye\n"]


def test_logging_stream_emits_one_record_per_line(caplog):
    stream = LoggingStream(logging.getLogger("bodylog.test.access"))
    with caplog.at_level(logging.INFO, logger="bodylog.test.access"):
        stream.write("GET / 200\nPOST /x 201\n")
    assert [r.getMessage() for r in caplog.records] == ["GET / 200", "POST /x 201"]


def test_logging_stream_default_logger_and_level(caplog):
    stream = LoggingStream(level=logging.WARNING)
    with caplog.at_level(logging.WARNING, logger="bodylog.access"):
        stream.write("line\n")
    assert caplog.records[0].name == "bodylog.access"
    assert caplog.records[0].levelno == logging.WARNING
