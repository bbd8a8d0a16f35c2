"""Project-relative discovery and execution of Babashka tasks."""

from bb_tasks.config import MARKER_FILE, Settings
from bb_tasks.errors import (
    ProjectRootNotFoundError,
    SpawnError,
    TaskEngineError,
    TaskFileParseError,
    TaskFileReadError,
)
from bb_tasks.locator import resolve_project_root
from bb_tasks.registry import TaskRegistry
from bb_tasks.runner import ProcessRunner, RunHandle, RunRequest, RunResult, build_command_line
from bb_tasks.session import TaskSession
from bb_tasks.sinks import BufferSink, SinkRegistry, StreamSink, sink_name
from bb_tasks.taskfile import TaskFile, list_task_names, parse_task_file

__version__ = "0.1.0"

__all__ = [
    "MARKER_FILE",
    "BufferSink",
    "ProcessRunner",
    "ProjectRootNotFoundError",
    "RunHandle",
    "RunRequest",
    "RunResult",
    "Settings",
    "SinkRegistry",
    "SpawnError",
    "StreamSink",
    "TaskEngineError",
    "TaskFile",
    "TaskFileParseError",
    "TaskFileReadError",
    "TaskRegistry",
    "TaskSession",
    "build_command_line",
    "list_task_names",
    "parse_task_file",
    "resolve_project_root",
    "sink_name",
]
