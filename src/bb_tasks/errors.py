"""Error taxonomy shared by the locator, parser and runner."""

from __future__ import annotations

from pathlib import Path


class TaskEngineError(RuntimeError):
    """Base class for failures surfaced to task-engine callers."""


class ProjectRootNotFoundError(TaskEngineError):
    """No ancestor of the start directory contains the marker file."""

    def __init__(self, start_dir: Path, marker: str) -> None:
        super().__init__(f"No {marker} found in {start_dir} or any parent directory.")
        self.start_dir = start_dir
        self.marker = marker


class TaskFileReadError(TaskEngineError):
    """Task file is missing or unreadable under a resolved root."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"Cannot read task file {path}: {reason}")
        self.path = path


class TaskFileParseError(TaskEngineError):
    """Task file content is not valid EDN or has the wrong top-level shape."""

    def __init__(self, path: Path | None, reason: str) -> None:
        location = str(path) if path is not None else "<string>"
        super().__init__(f"Malformed task file {location}: {reason}")
        self.path = path
        self.reason = reason


class SpawnError(TaskEngineError):
    """Runner binary could not be launched. Never retried."""

    def __init__(self, message: str, *, command: str, transient: bool) -> None:
        super().__init__(message)
        self.command = command
        self.transient = transient
