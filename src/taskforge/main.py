"""CLI entrypoint for taskforge."""

import logging
from collections.abc import Callable
from pathlib import Path

import rich_click as click

from taskforge import __version__
from taskforge.bridge.controllers import (
    AddTaskCommand,
    AnalyzeComplexityCommand,
    BridgeCliController,
    ExpandTaskCommand,
    ParsePrdCommand,
    UpdateSubtaskCommand,
    UpdateTaskCommand,
    UpdateTasksCommand,
)
from taskforge.bridge.errors import BridgeError
from taskforge.bridge.models import TASK_PRIORITIES

click.rich_click.USE_MARKDOWN = True
BRIDGE_CONTROLLER = BridgeCliController()

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")

_research_option = click.option(
    "--research",
    is_flag=True,
    default=False,
    help="Ask the model to research current practices before answering.",
)
_output_option = click.option(
    "--output",
    "output_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write the JSON result to this file instead of stdout.",
)
_tasks_file_argument = click.argument(
    "tasks_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)


@click.group()
@click.version_option(version=__version__, prog_name="taskforge")
@click.option(
    "--log-level",
    type=click.Choice(_LOG_LEVELS, case_sensitive=False),
    default="WARNING",
    show_default=True,
    help="Logging verbosity for bridge diagnostics (written to stderr).",
)
def taskforge(log_level: str) -> None:
    """Taskforge CLI."""

    logging.basicConfig(
        level=log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@taskforge.group()
def ai() -> None:
    """Task operations through the local AI CLI.

    Requires `TASKFORGE_CLAUDE_CLI_MODE=true`. The executable is taken from
    `TASKFORGE_CLAUDE_CLI_PATH` (default `claude`).
    """


@ai.command("parse-prd")
@click.argument("prd_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--num-tasks",
    type=click.IntRange(min=1),
    default=10,
    show_default=True,
    help="Approximate number of tasks to generate.",
)
@click.option(
    "--next-id",
    type=click.IntRange(min=1),
    default=1,
    show_default=True,
    help="Id of the first generated task.",
)
@_research_option
@_output_option
def parse_prd(
    prd_file: Path,
    num_tasks: int,
    next_id: int,
    research: bool,
    output_path: Path | None,
) -> None:
    """Generate a task list from a PRD document."""

    _run(
        lambda: BRIDGE_CONTROLLER.parse_prd(
            ParsePrdCommand(
                prd_path=prd_file,
                num_tasks=num_tasks,
                next_id=next_id,
                research=research,
                output_path=output_path,
            ),
        ),
    )


@ai.command("expand")
@_tasks_file_argument
@click.option("--id", "task_id", type=int, required=True, help="Task id to expand.")
@click.option(
    "--num",
    "num_subtasks",
    type=click.IntRange(min=1),
    default=3,
    show_default=True,
    help="Number of subtasks to generate.",
)
@click.option(
    "--next-subtask-id",
    type=click.IntRange(min=1),
    default=None,
    help="Id of the first subtask. Defaults to the count of existing subtasks + 1.",
)
@click.option("--context", default="", help="Additional context for the expansion.")
@_research_option
@_output_option
def expand(  # noqa: PLR0913
    tasks_file: Path,
    task_id: int,
    num_subtasks: int,
    next_subtask_id: int | None,
    context: str,
    research: bool,
    output_path: Path | None,
) -> None:
    """Break one task into subtasks."""

    _run(
        lambda: BRIDGE_CONTROLLER.expand(
            ExpandTaskCommand(
                tasks_path=tasks_file,
                task_id=task_id,
                num_subtasks=num_subtasks,
                next_subtask_id=next_subtask_id,
                research=research,
                context=context,
                output_path=output_path,
            ),
        ),
    )


@ai.command("add-task")
@_tasks_file_argument
@click.option("--prompt", required=True, help="Description of the task to add.")
@click.option(
    "--dependency",
    "dependencies",
    type=int,
    multiple=True,
    help="Id of a task the new task depends on. Can be repeated.",
)
@click.option(
    "--priority",
    type=click.Choice(TASK_PRIORITIES),
    default="medium",
    show_default=True,
    help="Priority of the new task.",
)
@_research_option
@_output_option
def add_task(  # noqa: PLR0913
    tasks_file: Path,
    prompt: str,
    dependencies: tuple[int, ...],
    priority: str,
    research: bool,
    output_path: Path | None,
) -> None:
    """Create one new task from a free-form request."""

    _run(
        lambda: BRIDGE_CONTROLLER.add_task(
            AddTaskCommand(
                tasks_path=tasks_file,
                prompt=prompt,
                dependencies=dependencies,
                priority=priority,
                research=research,
                output_path=output_path,
            ),
        ),
    )


@ai.command("analyze-complexity")
@_tasks_file_argument
@click.option(
    "--threshold",
    type=click.IntRange(min=1, max=10),
    default=5,
    show_default=True,
    help="Score at which a task is recommended for expansion.",
)
@_research_option
@_output_option
def analyze_complexity(
    tasks_file: Path,
    threshold: int,
    research: bool,
    output_path: Path | None,
) -> None:
    """Rate the complexity of every task in a tasks file."""

    _run(
        lambda: BRIDGE_CONTROLLER.analyze_complexity(
            AnalyzeComplexityCommand(
                tasks_path=tasks_file,
                threshold=threshold,
                research=research,
                output_path=output_path,
            ),
        ),
    )


@ai.command("update-subtask")
@_tasks_file_argument
@click.option("--id", "subtask_ref", required=True, help="Subtask id as PARENT.SUB, e.g. 3.2.")
@click.option("--prompt", required=True, help="What to add to the subtask notes.")
@_research_option
def update_subtask(tasks_file: Path, subtask_ref: str, prompt: str, research: bool) -> None:
    """Generate implementation notes for one subtask."""

    _run(
        lambda: BRIDGE_CONTROLLER.update_subtask(
            UpdateSubtaskCommand(
                tasks_path=tasks_file,
                subtask_ref=subtask_ref,
                prompt=prompt,
                research=research,
            ),
        ),
    )


@ai.command("update-task")
@_tasks_file_argument
@click.option("--id", "task_id", type=int, required=True, help="Task id to rewrite.")
@click.option("--prompt", required=True, help="New context for the task.")
@_research_option
@_output_option
def update_task(
    tasks_file: Path,
    task_id: int,
    prompt: str,
    research: bool,
    output_path: Path | None,
) -> None:
    """Rewrite one task with new context."""

    _run(
        lambda: BRIDGE_CONTROLLER.update_task(
            UpdateTaskCommand(
                tasks_path=tasks_file,
                task_id=task_id,
                prompt=prompt,
                research=research,
                output_path=output_path,
            ),
        ),
    )


@ai.command("update-tasks")
@_tasks_file_argument
@click.option("--from", "from_id", type=int, required=True, help="First task id to rewrite.")
@click.option("--prompt", required=True, help="New context for the tasks.")
@_research_option
@_output_option
def update_tasks(
    tasks_file: Path,
    from_id: int,
    prompt: str,
    research: bool,
    output_path: Path | None,
) -> None:
    """Rewrite every task from an id onward with new context."""

    _run(
        lambda: BRIDGE_CONTROLLER.update_tasks(
            UpdateTasksCommand(
                tasks_path=tasks_file,
                from_id=from_id,
                prompt=prompt,
                research=research,
                output_path=output_path,
            ),
        ),
    )


@ai.command("doctor")
def doctor() -> None:
    """Check AI CLI configuration and availability without running a prompt."""

    try:
        result = BRIDGE_CONTROLLER.doctor()
    except ValueError as error:
        raise click.ClickException(str(error)) from error
    _emit_lines(result.lines)
    if not result.success:
        raise click.ClickException("AI CLI doctor check failed.")


def _run(action: Callable[[], list[str]]) -> None:
    try:
        lines = action()
    except BridgeError as error:
        raise click.ClickException(f"{error} [{error.failure_class.value}]") from error
    except (ValueError, TypeError, OSError) as error:
        raise click.ClickException(str(error)) from error
    _emit_lines(lines)


def _emit_lines(lines: list[str]) -> None:
    for line in lines:
        click.echo(line)


if __name__ == "__main__":  # pragma: no cover
    taskforge()
