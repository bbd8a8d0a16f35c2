"""Named output sinks receiving a task's combined stdout/stderr."""

from __future__ import annotations

import threading
from collections.abc import Callable
from typing import Protocol, TextIO


def sink_name(task: str) -> str:
    """Label of the sink that collects output for `task`."""

    return f"task: {task}"


class OutputSink(Protocol):
    """Destination for streamed process output."""

    name: str

    @property
    def closed(self) -> bool: ...

    def write(self, chunk: str) -> None: ...

    def reset(self) -> None: ...

    def close(self) -> None: ...


class BufferSink:
    """In-memory sink; safe to read while a reader thread writes."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._lock = threading.Lock()
        self._chunks: list[str] = []
        self._closed = threading.Event()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def write(self, chunk: str) -> None:
        with self._lock:
            self._chunks.append(chunk)

    def reset(self) -> None:
        with self._lock:
            self._chunks.clear()
        self._closed.clear()

    def close(self) -> None:
        self._closed.set()

    def wait_closed(self, timeout: float | None = None) -> bool:
        return self._closed.wait(timeout)

    def text(self) -> str:
        with self._lock:
            return "".join(self._chunks)

    def lines(self) -> list[str]:
        return self.text().splitlines()


class StreamSink:
    """Forwards chunks to a text stream as they arrive."""

    def __init__(
        self,
        name: str,
        stream: TextIO | None = None,
        *,
        echo: Callable[[str], None] | None = None,
        prefix: bool = False,
    ) -> None:
        if stream is None and echo is None:
            raise ValueError("StreamSink needs a stream or an echo callable.")
        self.name = name
        self._stream = stream
        self._echo = echo
        self._prefix = prefix
        self._lock = threading.Lock()
        self._closed = False
        self._at_line_start = True

    @property
    def closed(self) -> bool:
        return self._closed

    def write(self, chunk: str) -> None:
        with self._lock:
            if self._prefix:
                chunk = self._prefixed(chunk)
            if self._echo is not None:
                self._echo(chunk)
                return
            assert self._stream is not None
            self._stream.write(chunk)
            self._stream.flush()

    def _prefixed(self, chunk: str) -> str:
        # Chunks split lines arbitrarily; only label text that starts a line.
        parts: list[str] = []
        for line in chunk.splitlines(keepends=True):
            if self._at_line_start:
                parts.append(f"[{self.name}] ")
            parts.append(line)
            self._at_line_start = line.endswith(("\n", "\r"))
        return "".join(parts)

    def reset(self) -> None:
        self._closed = False
        self._at_line_start = True

    def close(self) -> None:
        self._closed = True


SinkFactory = Callable[[str], OutputSink]


class SinkRegistry:
    """Keeps one sink per name; reopening a name resets and reuses its sink."""

    def __init__(self, factory: SinkFactory = BufferSink) -> None:
        self._factory = factory
        self._lock = threading.Lock()
        self._sinks: dict[str, OutputSink] = {}

    def open(self, name: str) -> OutputSink:
        with self._lock:
            sink = self._sinks.get(name)
            if sink is None:
                sink = self._factory(name)
                self._sinks[name] = sink
            else:
                sink.reset()
            return sink

    def get(self, name: str) -> OutputSink | None:
        with self._lock:
            return self._sinks.get(name)

    def names(self) -> list[str]:
        with self._lock:
            return list(self._sinks)
