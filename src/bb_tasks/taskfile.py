"""Task file reading and task-name extraction."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from bb_tasks.config import MARKER_FILE
from bb_tasks.edn import EdnKind, EdnValue, decode
from bb_tasks.errors import TaskFileParseError, TaskFileReadError

logger = logging.getLogger(__name__)

TASKS_KEY = EdnValue.keyword("tasks")
RESERVED_TASK_KEYS: tuple[str, ...] = ("requires",)


@dataclass(frozen=True, slots=True)
class TaskDefinition:
    """One entry of the `:tasks` map; the body is left uninterpreted."""

    name: str
    key: EdnValue
    body: EdnValue


@dataclass(frozen=True, slots=True)
class TaskFile:
    """Decoded task file."""

    path: Path
    root: EdnValue
    tasks_map: EdnValue | None

    @property
    def tasks(self) -> tuple[TaskDefinition, ...]:
        if self.tasks_map is None:
            return ()
        return tuple(
            TaskDefinition(name=key.name(), key=key, body=value)
            for key, value in self.tasks_map.items()
        )


def parse_task_file(project_root: Path | str, *, marker: str = MARKER_FILE) -> TaskFile:
    """Read and decode `<project_root>/<marker>`."""

    path = Path(project_root) / marker
    try:
        text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as error:
        raise TaskFileReadError(path, f"not valid UTF-8 ({error.reason})") from error
    except OSError as error:
        raise TaskFileReadError(path, error.strerror or str(error)) from error

    return parse_task_text(text, path=path)


def parse_task_text(text: str, *, path: Path | None = None) -> TaskFile:
    """Decode task file content that has already been read."""

    root = decode(text, path=path)
    if root.kind is EdnKind.NIL:
        tasks_map = None
    elif root.is_map:
        tasks_map = root.get(TASKS_KEY)
        if tasks_map is not None and not tasks_map.is_map:
            logger.debug("Ignoring non-map :tasks value (%s) in %s", tasks_map.kind.value, path)
            tasks_map = None
    else:
        raise TaskFileParseError(path, f"top-level form must be a map, got {root.kind.value}")

    return TaskFile(path=path or Path(MARKER_FILE), root=root, tasks_map=tasks_map)


def list_task_names(
    task_file: TaskFile,
    *,
    reserved: Iterable[str] = RESERVED_TASK_KEYS,
) -> list[str]:
    """Task names in document order, without reserved keyword keys like `:requires`."""

    excluded = [EdnValue.keyword(name) for name in reserved]
    return [task.name for task in task_file.tasks if task.key not in excluded]
