"""Subprocess-based task runner with streamed, per-task output sinks."""

from __future__ import annotations

import codecs
import logging
import os
import shlex
import shutil
import signal
import subprocess
import threading
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from functools import partial
from pathlib import Path

from bb_tasks.config import Settings
from bb_tasks.errors import SpawnError
from bb_tasks.sinks import OutputSink, SinkRegistry, sink_name

logger = logging.getLogger(__name__)

_READ_CHUNK_BYTES = 65_536


@dataclass(slots=True)
class RunRequest:
    """Inputs for one task invocation.

    `raw_args` is spliced into the shell line verbatim, so shell features work
    in it and so does injection; `args` are quoted one by one.
    """

    task: str
    working_directory: Path
    raw_args: str = ""
    interactive: bool = False
    args: tuple[str, ...] = ()


@dataclass(slots=True)
class RunResult:
    """Outcome of a finished run. A non-zero exit code is not an error."""

    task: str
    command: str
    exit_code: int
    sink: OutputSink
    terminated: bool = False

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0


def build_command_line(
    runner_argv: Sequence[str],
    task: str,
    *,
    args: Sequence[str] = (),
    raw_args: str = "",
) -> str:
    """Render `<runner> <task> [args...] [raw_args]` for `/bin/sh -c`."""

    if not task.strip():
        raise ValueError("Task name must not be empty.")
    if not runner_argv:
        raise ValueError("Runner command must not be empty.")

    parts = [shlex.join(runner_argv), shlex.quote(task)]
    parts.extend(shlex.quote(arg) for arg in args)
    line = " ".join(parts)
    if raw_args.strip():
        line = f"{line} {raw_args}"
    return line


class RunHandle:
    """Live view of a spawned task: wait for it, stop it, or feed it input."""

    def __init__(  # noqa: PLR0913
        self,
        *,
        request: RunRequest,
        command: str,
        process: subprocess.Popen[bytes],
        sink: OutputSink,
        grace_seconds: float,
        on_exit: Callable[[RunHandle], None],
    ) -> None:
        self.request = request
        self.command = command
        self.sink = sink
        self._process = process
        self._grace_seconds = grace_seconds
        self._on_exit = on_exit
        self._done = threading.Event()
        self._terminated = False
        self._exit_code: int | None = None
        self._input_lock = threading.Lock()
        self._reader = threading.Thread(
            target=self._pump_output,
            daemon=True,
            name=f"bb-task-{request.task}",
        )

    @property
    def task(self) -> str:
        return self.request.task

    @property
    def pid(self) -> int:
        return self._process.pid

    @property
    def running(self) -> bool:
        return not self._done.is_set()

    def poll(self) -> int | None:
        """Exit code once the process has exited and its output is drained."""

        if self._done.is_set():
            return self._exit_code
        return None

    def wait(self, timeout: float | None = None) -> RunResult:
        """Block until the run finishes; the process is left alive on timeout."""

        if not self._done.wait(timeout):
            raise subprocess.TimeoutExpired(self.command, timeout or 0)
        assert self._exit_code is not None
        return RunResult(
            task=self.task,
            command=self.command,
            exit_code=self._exit_code,
            sink=self.sink,
            terminated=self._terminated,
        )

    def terminate(self, grace_seconds: float | None = None) -> RunResult:
        """Send SIGTERM to the run's process group, then SIGKILL after the grace period."""

        if self._process.poll() is None:
            self._terminated = True
            grace = self._grace_seconds if grace_seconds is None else grace_seconds
            _terminate_process(self._process, grace)
        return self.wait()

    def send_input(self, text: str) -> None:
        """Forward `text` to the child's stdin (interactive runs only)."""

        stdin = self._process.stdin
        if not self.request.interactive or stdin is None:
            raise RuntimeError(f"Task {self.task!r} was not started in interactive mode.")
        with self._input_lock:
            stdin.write(text.encode("utf-8"))
            stdin.flush()

    def close_input(self) -> None:
        stdin = self._process.stdin
        if stdin is None:
            return
        with self._input_lock:
            if not stdin.closed:
                stdin.close()

    def _start(self) -> None:
        self._reader.start()

    def _pump_output(self) -> None:
        stdout = self._process.stdout
        assert stdout is not None
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        try:
            for data in iter(partial(stdout.read1, _READ_CHUNK_BYTES), b""):
                text = decoder.decode(data)
                if text:
                    self.sink.write(text)
            tail = decoder.decode(b"", final=True)
            if tail:
                self.sink.write(tail)
        finally:
            stdout.close()
            self._exit_code = self._process.wait()
            try:
                self.close_input()
            except OSError:
                logger.debug("stdin of task %s already broken", self.task, exc_info=True)
            logger.info(
                "Task %s exited with code %s%s",
                self.task,
                self._exit_code,
                " (terminated)" if self._terminated else "",
            )
            self._on_exit(self)
            self._done.set()


class ProcessRunner:
    """Launch the task runner binary for one task per call."""

    def __init__(self, settings: Settings | None = None, sinks: SinkRegistry | None = None) -> None:
        self.settings = settings or Settings()
        self.sinks = sinks or SinkRegistry()
        self._lock = threading.Lock()
        self._active: list[RunHandle] = []

    def active_runs(self) -> list[RunHandle]:
        with self._lock:
            return list(self._active)

    def run(self, request: RunRequest) -> RunHandle:
        """Spawn the task and return immediately; output streams to its sink."""

        runner_argv = self.settings.runner.argv()
        command = build_command_line(
            runner_argv,
            request.task,
            args=request.args,
            raw_args=request.raw_args,
        )
        env = os.environ.copy()
        env.update(self.settings.runner.extra_env)
        _ensure_runner_available(runner_argv[0], command=command, env=env)

        # Spawn before touching the previous run or its sink, so a failed start
        # leaves both as they were. Output waits in the pipe until `_start`.
        process = _spawn(command, request=request, env=env)
        try:
            self._stop_previous(request.task)
        except BaseException:
            _terminate_process(process, 0)
            raise
        with self._lock:
            # `_finished` checks sharing under this lock, so a previous run
            # exiting now either closes the sink before the reset or sees us.
            sink = self.sinks.open(sink_name(request.task))
            handle = RunHandle(
                request=request,
                command=command,
                process=process,
                sink=sink,
                grace_seconds=self.settings.runner.terminate_grace_seconds,
                on_exit=self._finished,
            )
            self._active.append(handle)
        logger.info(
            "Started task %s (pid %s) in %s: %s",
            request.task,
            process.pid,
            request.working_directory,
            command,
        )
        handle._start()
        return handle

    def _stop_previous(self, task: str) -> None:
        with self._lock:
            previous = [handle for handle in self._active if handle.task == task]
        for handle in previous:
            if not handle.running:
                continue
            if not self.settings.runner.restart_running:
                logger.info("Task %s is still running; sharing its output sink", task)
                continue
            logger.warning("Terminating previous run of task %s (pid %s)", task, handle.pid)
            handle.terminate()

    def _finished(self, handle: RunHandle) -> None:
        # A sink shared by overlapping runs closes when the last of them exits.
        with self._lock:
            if handle in self._active:
                self._active.remove(handle)
            shared = any(other.sink is handle.sink for other in self._active)
        if not shared:
            handle.sink.close()


def _ensure_runner_available(head: str, *, command: str, env: dict[str, str]) -> None:
    if shutil.which(head, path=env.get("PATH")) is None:
        raise SpawnError(
            f"Task runner command not found: {head}",
            command=command,
            transient=False,
        )


def _spawn(command: str, *, request: RunRequest, env: dict[str, str]) -> subprocess.Popen[bytes]:
    try:
        return subprocess.Popen(  # noqa: S602
            command,
            shell=True,
            cwd=request.working_directory,
            env=env,
            stdin=subprocess.PIPE if request.interactive else subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            start_new_session=True,
        )
    except (FileNotFoundError, NotADirectoryError) as error:
        raise SpawnError(
            f"Task runner failed to start in {request.working_directory}: {error}",
            command=command,
            transient=False,
        ) from error
    except OSError as error:
        raise SpawnError(
            f"Task runner failed to start: {error}",
            command=command,
            transient=True,
        ) from error


def _terminate_process(process: subprocess.Popen[bytes], grace_seconds: float) -> None:
    try:
        _signal_group(process, signal.SIGTERM)
    except OSError:
        return
    try:
        process.wait(timeout=grace_seconds)
    except subprocess.TimeoutExpired:
        try:
            _signal_group(process, signal.SIGKILL)
        except OSError:
            return
        process.wait(timeout=2)


def _signal_group(process: subprocess.Popen[bytes], sig: signal.Signals) -> None:
    # The shell runs in its own session, so its pid is the process group id.
    try:
        os.killpg(process.pid, sig)
    except ProcessLookupError:
        process.send_signal(sig)
