from __future__ import annotations

import json
from pathlib import Path

import allure

from bb_tasks.config import ProjectSettings, SessionSettings, Settings
from bb_tasks.session import TaskSession

pytestmark = [
    allure.epic("Task Execution"),
    allure.feature("Session State"),
]


def test_record_keeps_most_recent_first_without_duplicates() -> None:
    session = TaskSession(history_size=3)

    for task in ["build", "test", "build", "lint", "clean"]:
        session.record(task)

    assert session.history == ["clean", "lint", "build"]
    assert session.last_task == "clean"


def test_last_task_is_none_for_fresh_session() -> None:
    assert TaskSession().last_task is None


def test_suggested_task_prefers_default_when_available() -> None:
    session = TaskSession(Settings(session=SessionSettings(default_task="test")))
    session.record("build")

    assert session.suggested_task() == "test"
    assert session.suggested_task(["build", "test"]) == "test"
    assert session.suggested_task(["build"]) == "build"
    assert session.suggested_task(["clean"]) is None


def test_suggested_task_falls_back_to_history() -> None:
    session = TaskSession()
    session.record("build")
    session.record("test")

    assert session.suggested_task() == "test"
    assert session.suggested_task(["build"]) == "build"


def test_override_root_is_session_state(project: Path, tmp_path: Path) -> None:
    outside = tmp_path / "outside"
    outside.mkdir()
    session = TaskSession(Settings(project=ProjectSettings(override_root=project)))

    assert session.resolve_project_root(outside) == project
    assert session.list_tasks(outside, sort=True) == ["build", "clean", "test"]

    session.override_root = None
    assert session.resolve_project_root(project / "bb.edn") == project


def test_run_resolves_root_and_records_history(project: Path, echo_settings) -> None:
    nested = project / "src"
    nested.mkdir()
    session = TaskSession(echo_settings())

    handle = session.run("build", "--fast", start_dir=nested)
    result = handle.wait(30)

    assert result.exit_code == 0
    report = json.loads(result.sink.lines()[0])
    assert report["args"] == ["--fast"]
    assert Path(report["cwd"]).resolve() == project.resolve()
    assert session.history == ["build"]


def test_run_interactive_defaults_to_settings(project: Path, echo_settings) -> None:
    session = TaskSession(echo_settings(interactive=True))

    handle = session.run("echo-input", start_dir=project)
    handle.send_input("ping\n")
    handle.close_input()

    assert handle.request.interactive
    assert handle.wait(30).sink.lines()[1:] == ["input: ping"]


def test_explicit_zero_history_size_keeps_no_history() -> None:
    session = TaskSession(history_size=0)

    session.record("build")

    assert session.history_size == 0
    assert session.last_task is None
