from __future__ import annotations

import io
import threading

import allure
import pytest

from bb_tasks.sinks import BufferSink, SinkRegistry, StreamSink, sink_name

pytestmark = [
    allure.epic("Task Execution"),
    allure.feature("Output Sinks"),
]


def test_sink_name_labels_task() -> None:
    assert sink_name("build") == "task: build"


def test_buffer_sink_collects_and_resets() -> None:
    sink = BufferSink("task: build")
    sink.write("one\ntw")
    sink.write("o\n")

    assert sink.text() == "one\ntwo\n"
    assert sink.lines() == ["one", "two"]

    sink.close()
    assert sink.closed
    assert sink.wait_closed(timeout=0)

    sink.reset()
    assert sink.text() == ""
    assert not sink.closed


def test_buffer_sink_concurrent_writers_keep_every_chunk() -> None:
    sink = BufferSink("task: load")

    def _writer(prefix: str) -> None:
        for index in range(200):
            sink.write(f"{prefix}{index}\n")

    threads = [threading.Thread(target=_writer, args=(p,)) for p in "ab"]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(sink.lines()) == 400


def test_registry_reuses_sink_per_name_and_resets_it() -> None:
    registry = SinkRegistry()
    first = registry.open("task: build")
    first.write("old output\n")
    first.close()

    again = registry.open("task: build")

    assert again is first
    assert isinstance(again, BufferSink)
    assert again.text() == ""
    assert not again.closed


def test_registry_gives_distinct_sinks_to_distinct_names() -> None:
    registry = SinkRegistry()
    build = registry.open("task: build")
    test = registry.open("task: test")

    assert build is not test
    assert registry.names() == ["task: build", "task: test"]
    assert registry.get("task: test") is test
    assert registry.get("task: other") is None


def test_stream_sink_writes_to_stream_with_optional_prefix() -> None:
    stream = io.StringIO()
    sink = StreamSink("task: build", stream, prefix=True)

    sink.write("compiling\ndone\n")

    assert stream.getvalue() == "[task: build] compiling\n[task: build] done\n"


def test_stream_sink_prefix_survives_chunks_split_mid_line() -> None:
    stream = io.StringIO()
    sink = StreamSink("task: build", stream, prefix=True)

    sink.write("comp")
    sink.write("iling\ndo")
    sink.write("ne\n")

    assert stream.getvalue() == "[task: build] compiling\n[task: build] done\n"


def test_stream_sink_uses_echo_callable() -> None:
    received: list[str] = []
    sink = StreamSink("task: build", echo=received.append)

    sink.write("chunk")
    sink.close()

    assert received == ["chunk"]
    assert sink.closed


def test_stream_sink_requires_destination() -> None:
    with pytest.raises(ValueError, match="needs a stream"):
        StreamSink("task: build")
