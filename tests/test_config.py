from __future__ import annotations

from pathlib import Path

import allure
import pytest

from bb_tasks.config import ProjectSettings, RunnerSettings, SessionSettings, Settings

pytestmark = [
    allure.epic("Configuration"),
    allure.feature("Environment Settings"),
]


def test_from_env_defaults() -> None:
    settings = Settings.from_env()

    assert settings.runner.command == "bb"
    assert settings.runner.interactive is False
    assert settings.runner.restart_running is True
    assert settings.project.override_root is None
    assert settings.project.marker_file == "bb.edn"
    assert settings.session.default_task is None
    assert settings.session.history_size == 20
    settings.validate()


def test_from_env_reads_variables(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("BB_TASKS_RUNNER", "/usr/local/bin/bb --debug")
    monkeypatch.setenv("BB_TASKS_INTERACTIVE", "yes")
    monkeypatch.setenv("BB_TASKS_RESTART_RUNNING", "off")
    monkeypatch.setenv("BB_TASKS_TERMINATE_GRACE_SECONDS", "0.5")
    monkeypatch.setenv("BB_TASKS_PROJECT_ROOT", str(tmp_path))
    monkeypatch.setenv("BB_TASKS_DEFAULT_TASK", " test ")
    monkeypatch.setenv("BB_TASKS_HISTORY_SIZE", "5")

    settings = Settings.from_env()

    assert settings.runner.argv() == ["/usr/local/bin/bb", "--debug"]
    assert settings.runner.interactive is True
    assert settings.runner.restart_running is False
    assert settings.runner.terminate_grace_seconds == 0.5
    assert settings.project.override_root == tmp_path
    assert settings.session.default_task == "test"
    assert settings.session.history_size == 5


def test_explicit_override_root_beats_environment(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("BB_TASKS_PROJECT_ROOT", "/somewhere/else")

    assert Settings.from_env(override_root=tmp_path).project.override_root == tmp_path


def test_invalid_boolean_is_rejected(monkeypatch) -> None:
    monkeypatch.setenv("BB_TASKS_INTERACTIVE", "maybe")

    with pytest.raises(ValueError, match="Invalid boolean value for BB_TASKS_INTERACTIVE"):
        Settings.from_env()


@pytest.mark.parametrize(
    ("settings", "message"),
    [
        (Settings(runner=RunnerSettings(command="  ")), "BB_TASKS_RUNNER must not be empty"),
        (Settings(runner=RunnerSettings(command="bb 'oops")), "not a valid command"),
        (
            Settings(runner=RunnerSettings(terminate_grace_seconds=-1)),
            "BB_TASKS_TERMINATE_GRACE_SECONDS",
        ),
        (Settings(project=ProjectSettings(marker_file="conf/bb.edn")), "plain file name"),
        (Settings(session=SessionSettings(history_size=0)), "BB_TASKS_HISTORY_SIZE"),
    ],
)
def test_validate_rejects_unusable_values(settings: Settings, message: str) -> None:
    with pytest.raises(ValueError, match=message):
        settings.validate()
