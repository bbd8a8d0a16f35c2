"""Controllers for task CLI commands."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import TextIO

from bb_tasks.config import Settings
from bb_tasks.runner import RunHandle
from bb_tasks.session import TaskSession
from bb_tasks.sinks import SinkRegistry, StreamSink

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ProjectRootCommand:
    """CLI input for project root lookup."""

    start_dir: Path
    override_root: Path | None


@dataclass(slots=True)
class ListTasksCommand:
    """CLI input for task listing."""

    start_dir: Path
    override_root: Path | None
    sort: bool = False


@dataclass(slots=True)
class RunTaskCommand:
    """CLI input for one task run."""

    start_dir: Path
    override_root: Path | None
    task: str | None
    args: tuple[str, ...] = ()
    raw_args: str = ""
    interactive: bool | None = None
    prefix_output: bool = False


@dataclass(slots=True)
class RunTaskOutcome:
    """Finished run summary to render in CLI."""

    task: str
    exit_code: int
    terminated: bool


class TaskCliController:
    """Coordinates root lookup, listing and task runs for the CLI."""

    def project_root(self, command: ProjectRootCommand) -> list[str]:
        session = _session(command.override_root)
        return [str(session.resolve_project_root(command.start_dir))]

    def list_tasks(self, command: ListTasksCommand) -> list[str]:
        session = _session(command.override_root)
        return session.list_tasks(command.start_dir, sort=command.sort)

    def run_task(
        self,
        command: RunTaskCommand,
        *,
        echo: Callable[[str], None],
        input_stream: TextIO | None = None,
    ) -> RunTaskOutcome:
        """Run a task, streaming its output through `echo` until it exits."""

        sinks = SinkRegistry(
            factory=lambda name: StreamSink(name, echo=echo, prefix=command.prefix_output),
        )
        session = _session(command.override_root, sinks=sinks)
        task = command.task or _default_task(session, command.start_dir)
        handle = session.run(
            task,
            command.raw_args,
            start_dir=command.start_dir,
            args=command.args,
            interactive=command.interactive,
        )
        if handle.request.interactive and input_stream is not None:
            _forward_input(handle, input_stream)

        try:
            result = handle.wait()
        except KeyboardInterrupt:
            logger.info("Interrupted; terminating task %s", task)
            result = handle.terminate()
        return RunTaskOutcome(
            task=result.task,
            exit_code=result.exit_code,
            terminated=result.terminated,
        )


def _session(override_root: Path | None, sinks: SinkRegistry | None = None) -> TaskSession:
    settings = Settings.from_env(override_root=override_root)
    settings.validate()
    return TaskSession(settings, sinks=sinks)


def _default_task(session: TaskSession, start_dir: Path) -> str:
    available = session.list_tasks(start_dir)
    suggested = session.suggested_task(available)
    if suggested is None:
        if session.default_task:
            raise ValueError(
                f"Default task {session.default_task!r} is not defined in the task file.",
            )
        raise ValueError("No task given and BB_TASKS_DEFAULT_TASK is not set.")
    return suggested


def _forward_input(handle: RunHandle, input_stream: TextIO) -> None:
    def _pump() -> None:
        try:
            for line in input_stream:
                if not handle.running:
                    break
                handle.send_input(line)
        except (BrokenPipeError, ValueError):
            logger.debug("Stopped forwarding input to task %s", handle.task, exc_info=True)
        finally:
            handle.close_input()

    threading.Thread(target=_pump, daemon=True, name=f"bb-input-{handle.task}").start()
