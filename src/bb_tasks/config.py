"""Runtime configuration for task discovery and execution."""

from __future__ import annotations

import os
import shlex
from dataclasses import dataclass, field
from pathlib import Path

MARKER_FILE = "bb.edn"


@dataclass(slots=True)
class RunnerSettings:
    """External runner binary settings."""

    command: str = "bb"
    interactive: bool = False
    restart_running: bool = True
    terminate_grace_seconds: float = 2.0
    extra_env: dict[str, str] = field(default_factory=dict)

    def argv(self) -> list[str]:
        """Runner command split into argv tokens."""

        return shlex.split(self.command)


@dataclass(slots=True)
class ProjectSettings:
    """Project root lookup settings."""

    override_root: Path | None = None
    marker_file: str = MARKER_FILE


@dataclass(slots=True)
class SessionSettings:
    """Interactive session defaults."""

    default_task: str | None = None
    history_size: int = 20


@dataclass(slots=True)
class Settings:
    """Application settings grouped by domain concerns."""

    runner: RunnerSettings = field(default_factory=RunnerSettings)
    project: ProjectSettings = field(default_factory=ProjectSettings)
    session: SessionSettings = field(default_factory=SessionSettings)

    @classmethod
    def from_env(cls, override_root: Path | None = None) -> Settings:
        """Load settings from environment with defaults matching a stock `bb` install."""

        env_root = os.getenv("BB_TASKS_PROJECT_ROOT", "").strip()
        return cls(
            runner=RunnerSettings(
                command=os.getenv("BB_TASKS_RUNNER", "bb"),
                interactive=_env_bool("BB_TASKS_INTERACTIVE", default=False),
                restart_running=_env_bool("BB_TASKS_RESTART_RUNNING", default=True),
                terminate_grace_seconds=float(
                    os.getenv("BB_TASKS_TERMINATE_GRACE_SECONDS", "2.0"),
                ),
            ),
            project=ProjectSettings(
                override_root=override_root or (Path(env_root) if env_root else None),
                marker_file=os.getenv("BB_TASKS_MARKER_FILE", MARKER_FILE),
            ),
            session=SessionSettings(
                default_task=os.getenv("BB_TASKS_DEFAULT_TASK", "").strip() or None,
                history_size=int(os.getenv("BB_TASKS_HISTORY_SIZE", "20")),
            ),
        )

    def validate(self) -> None:
        """Raise configuration error for values the engine cannot work with."""

        if not self.runner.command.strip():
            raise ValueError("BB_TASKS_RUNNER must not be empty.")
        try:
            argv = self.runner.argv()
        except ValueError as error:
            raise ValueError(f"BB_TASKS_RUNNER is not a valid command: {error}") from error
        if not argv:
            raise ValueError("BB_TASKS_RUNNER must not be empty.")
        if self.runner.terminate_grace_seconds < 0:
            raise ValueError("BB_TASKS_TERMINATE_GRACE_SECONDS must be >= 0.")
        marker = self.project.marker_file
        if not marker or "/" in marker or os.sep in marker:
            raise ValueError(
                f"BB_TASKS_MARKER_FILE must be a plain file name, got {marker!r}.",
            )
        if self.session.history_size <= 0:
            raise ValueError("BB_TASKS_HISTORY_SIZE must be > 0.")


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    raise ValueError(f"Invalid boolean value for {name}: {value!r}")
