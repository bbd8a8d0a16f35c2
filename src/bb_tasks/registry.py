"""Task listing composed from root lookup and task file parsing."""

from __future__ import annotations

import logging
from pathlib import Path

from bb_tasks.config import Settings
from bb_tasks.locator import resolve_project_root
from bb_tasks.taskfile import TaskFile, list_task_names, parse_task_file

logger = logging.getLogger(__name__)


class TaskRegistry:
    """Lists tasks for a project; re-reads the task file on every call."""

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or Settings()

    def resolve_project_root(
        self,
        start_dir: Path | str,
        override: Path | str | None = None,
    ) -> Path:
        return resolve_project_root(
            start_dir,
            override if override is not None else self.settings.project.override_root,
            marker=self.settings.project.marker_file,
        )

    def load_task_file(
        self,
        start_dir: Path | str,
        override: Path | str | None = None,
    ) -> TaskFile:
        root = self.resolve_project_root(start_dir, override)
        return parse_task_file(root, marker=self.settings.project.marker_file)

    def list_tasks(
        self,
        start_dir: Path | str,
        override: Path | str | None = None,
        *,
        sort: bool = False,
    ) -> list[str]:
        """Task names for the project containing `start_dir`.

        Lookup and parse errors propagate unchanged; only a missing `:tasks`
        key yields an empty list.
        """

        task_file = self.load_task_file(start_dir, override)
        names = list_task_names(task_file)
        logger.debug("Found %d tasks in %s", len(names), task_file.path)
        if sort:
            return sorted(names)
        return names
