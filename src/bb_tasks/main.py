"""CLI entrypoint for bb-tasks."""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import rich_click as click

from bb_tasks import __version__
from bb_tasks.controllers import (
    ListTasksCommand,
    ProjectRootCommand,
    RunTaskCommand,
    TaskCliController,
)
from bb_tasks.errors import TaskEngineError

click.rich_click.USE_MARKDOWN = True
CONTROLLER = TaskCliController()

_DIR_OPTION = click.option(
    "--dir",
    "start_dir",
    type=click.Path(path_type=Path, file_okay=False),
    default=Path("."),
    show_default=True,
    help="Directory to start the `bb.edn` search from.",
)
_ROOT_OPTION = click.option(
    "--root",
    "override_root",
    type=click.Path(path_type=Path, file_okay=False),
    default=None,
    help="Use this project root as-is instead of searching for `bb.edn`.",
)


@click.group()
@click.version_option(version=__version__, prog_name="bb-tasks")
@click.option("--verbose", "-v", is_flag=True, help="Log engine activity to stderr.")
def bb_tasks(verbose: bool) -> None:
    """Find and run Babashka tasks for the current project."""

    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            stream=sys.stderr,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )


@bb_tasks.command("root")
@_DIR_OPTION
@_ROOT_OPTION
def project_root(start_dir: Path, override_root: Path | None) -> None:
    """Print the project root: the nearest directory holding `bb.edn`."""

    with _engine_errors():
        lines = CONTROLLER.project_root(
            ProjectRootCommand(start_dir=start_dir, override_root=override_root),
        )
    _emit_lines(lines)


@bb_tasks.command("list")
@_DIR_OPTION
@_ROOT_OPTION
@click.option("--sort", is_flag=True, help="Sort task names alphabetically.")
def list_tasks(start_dir: Path, override_root: Path | None, sort: bool) -> None:
    """List task names from the project's `bb.edn`, one per line."""

    with _engine_errors():
        lines = CONTROLLER.list_tasks(
            ListTasksCommand(start_dir=start_dir, override_root=override_root, sort=sort),
        )
    _emit_lines(lines)


@bb_tasks.command(
    "run",
    context_settings={"ignore_unknown_options": True, "allow_interspersed_args": False},
)
@_DIR_OPTION
@_ROOT_OPTION
@click.option(
    "--raw-args",
    default="",
    help="Argument string appended to the command line verbatim (shell syntax applies).",
)
@click.option(
    "--interactive/--no-interactive",
    default=None,
    help="Forward stdin to the task. Defaults to BB_TASKS_INTERACTIVE.",
)
@click.option("--prefix", is_flag=True, help="Prefix each output line with the task label.")
@click.argument("task", required=False)
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
def run_task(  # noqa: PLR0913
    start_dir: Path,
    override_root: Path | None,
    raw_args: str,
    interactive: bool | None,
    prefix: bool,
    task: str | None,
    args: tuple[str, ...],
) -> None:
    """Run TASK (or the default task) from the project root and exit with its code."""

    with _engine_errors():
        outcome = CONTROLLER.run_task(
            RunTaskCommand(
                start_dir=start_dir,
                override_root=override_root,
                task=task,
                args=args,
                raw_args=raw_args,
                interactive=interactive,
                prefix_output=prefix,
            ),
            echo=lambda chunk: click.echo(chunk, nl=False),
            input_stream=click.get_text_stream("stdin"),
        )
    if outcome.terminated:
        click.echo(f"Task {outcome.task} terminated.", err=True)
    # Signal deaths come back negative; report them the way a shell does.
    sys.exit(outcome.exit_code if outcome.exit_code >= 0 else 128 - outcome.exit_code)


@contextmanager
def _engine_errors() -> Iterator[None]:
    try:
        yield
    except (TaskEngineError, ValueError) as error:
        raise click.ClickException(str(error)) from error


def _emit_lines(lines: list[str]) -> None:
    for line in lines:
        click.echo(line)


if __name__ == "__main__":  # pragma: no cover
    bb_tasks()
