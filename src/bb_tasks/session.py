"""Per-session UI state: task history, default task and override root."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

from bb_tasks.config import Settings
from bb_tasks.registry import TaskRegistry
from bb_tasks.runner import ProcessRunner, RunHandle, RunRequest
from bb_tasks.sinks import SinkRegistry


class TaskSession:
    """State a front end keeps between prompts; nothing here is persisted."""

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        history_size: int | None = None,
        sinks: SinkRegistry | None = None,
    ) -> None:
        self.settings = settings or Settings()
        if history_size is None:
            history_size = self.settings.session.history_size
        if history_size < 0:
            raise ValueError("history_size must not be negative.")
        self.history_size = history_size
        self.default_task: str | None = self.settings.session.default_task
        self.override_root: Path | None = self.settings.project.override_root
        self.history: list[str] = []
        self.registry = TaskRegistry(self.settings)
        self.runner = ProcessRunner(self.settings, sinks)

    @property
    def last_task(self) -> str | None:
        return self.history[0] if self.history else None

    def record(self, task: str) -> None:
        """Move `task` to the front of the history."""

        self.history = [task, *(item for item in self.history if item != task)]
        del self.history[self.history_size :]

    def suggested_task(self, available: Iterable[str] | None = None) -> str | None:
        """Default task if usable, else the most recent task still available."""

        names = set(available) if available is not None else None
        if self.default_task and (names is None or self.default_task in names):
            return self.default_task
        for task in self.history:
            if names is None or task in names:
                return task
        return None

    def resolve_project_root(self, start_dir: Path | str) -> Path:
        return self.registry.resolve_project_root(start_dir, self.override_root)

    def list_tasks(self, start_dir: Path | str, *, sort: bool = False) -> list[str]:
        return self.registry.list_tasks(start_dir, self.override_root, sort=sort)

    def run(  # noqa: PLR0913
        self,
        task: str,
        raw_args: str = "",
        *,
        start_dir: Path | str,
        args: tuple[str, ...] = (),
        interactive: bool | None = None,
    ) -> RunHandle:
        """Resolve the project root and launch `task` there."""

        root = self.resolve_project_root(start_dir)
        request = RunRequest(
            task=task,
            working_directory=root,
            raw_args=raw_args,
            interactive=self.settings.runner.interactive if interactive is None else interactive,
            args=args,
        )
        handle = self.runner.run(request)
        self.record(task)
        return handle
