"""Shared test fixtures."""

from __future__ import annotations

import shlex
import sys
from collections.abc import Callable
from pathlib import Path

import pytest

from bb_tasks import echo_runner
from bb_tasks.config import RunnerSettings, Settings

ECHO_RUNNER_COMMAND = shlex.join([sys.executable, str(Path(echo_runner.__file__).resolve())])

BB_EDN = """\
{:paths ["src"]
 :tasks {:requires ([babashka.fs :as fs])
         build (shell "make")
         test {:doc "Run tests" :task (shell "make test")}
         clean (fs/delete-tree "target")}}
"""


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Keep the developer's BB_TASKS_* settings out of the tests."""
    for name in (
        "BB_TASKS_RUNNER",
        "BB_TASKS_INTERACTIVE",
        "BB_TASKS_RESTART_RUNNING",
        "BB_TASKS_TERMINATE_GRACE_SECONDS",
        "BB_TASKS_PROJECT_ROOT",
        "BB_TASKS_MARKER_FILE",
        "BB_TASKS_DEFAULT_TASK",
        "BB_TASKS_HISTORY_SIZE",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture()
def project(tmp_path: Path) -> Path:
    """Project directory with a representative bb.edn."""
    root = tmp_path / "project"
    root.mkdir()
    (root / "bb.edn").write_text(BB_EDN, "utf-8")
    return root


@pytest.fixture()
def echo_runner_command() -> str:
    """BB_TASKS_RUNNER value that launches the local echo runner."""
    return ECHO_RUNNER_COMMAND


@pytest.fixture()
def echo_settings() -> Callable[..., Settings]:
    """Settings factory pointing the runner at the local echo runner."""

    def _factory(**runner_overrides) -> Settings:
        runner = RunnerSettings(command=ECHO_RUNNER_COMMAND, terminate_grace_seconds=5.0)
        for key, value in runner_overrides.items():
            setattr(runner, key, value)
        return Settings(runner=runner)

    return _factory
