"""Controllers for AI CLI bridge commands."""

from __future__ import annotations

import json
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from taskforge.bridge.errors import BridgeError
from taskforge.bridge.models import (
    AddTaskOptions,
    AnalyzeComplexityOptions,
    ExpandTaskOptions,
    GenerateTasksOptions,
    OperationResult,
    Subtask,
    Task,
    UpdateSubtaskOptions,
    UpdateTaskOptions,
    UpdateTasksOptions,
)
from taskforge.bridge.schemas import validate_subtask, validate_task
from taskforge.bridge.service import ClaudeCliBridge
from taskforge.config import OPERATION_NAMES, Settings


@dataclass(slots=True)
class ParsePrdCommand:
    """CLI input for task generation from a PRD file."""

    prd_path: Path
    num_tasks: int
    next_id: int
    research: bool
    output_path: Path | None


@dataclass(slots=True)
class ExpandTaskCommand:
    """CLI input for task expansion."""

    tasks_path: Path
    task_id: int
    num_subtasks: int
    next_subtask_id: int | None
    research: bool
    context: str
    output_path: Path | None


@dataclass(slots=True)
class AddTaskCommand:
    """CLI input for single-task addition."""

    tasks_path: Path
    prompt: str
    dependencies: tuple[int, ...]
    priority: str
    research: bool
    output_path: Path | None


@dataclass(slots=True)
class AnalyzeComplexityCommand:
    """CLI input for complexity analysis."""

    tasks_path: Path
    threshold: int
    research: bool
    output_path: Path | None


@dataclass(slots=True)
class UpdateSubtaskCommand:
    """CLI input for subtask note generation."""

    tasks_path: Path
    subtask_ref: str
    prompt: str
    research: bool


@dataclass(slots=True)
class UpdateTaskCommand:
    """CLI input for single-task rewrite."""

    tasks_path: Path
    task_id: int
    prompt: str
    research: bool
    output_path: Path | None


@dataclass(slots=True)
class UpdateTasksCommand:
    """CLI input for rewriting tasks from an id onward."""

    tasks_path: Path
    from_id: int
    prompt: str
    research: bool
    output_path: Path | None


@dataclass(slots=True)
class DoctorResult:
    """Integration self-check outcome."""

    success: bool
    lines: list[str]


class BridgeCliController:
    """Coordinates AI CLI bridge command execution."""

    def __init__(
        self,
        *,
        settings_factory: Callable[[], Settings] = Settings.from_env,
        bridge_factory: Callable[[Settings], ClaudeCliBridge] | None = None,
    ) -> None:
        self.settings_factory = settings_factory
        self.bridge_factory = bridge_factory or _default_bridge_factory

    def parse_prd(self, command: ParsePrdCommand) -> list[str]:
        bridge = self._bridge()
        result = bridge.generate_tasks(
            GenerateTasksOptions(
                prd_content=command.prd_path.read_text("utf-8"),
                num_tasks=command.num_tasks,
                next_id=command.next_id,
                research=command.research,
                prd_path=str(command.prd_path),
            ),
        )
        return [
            *_emit_payload(result.data.to_dict(), command.output_path),
            _summary_line(result, f"tasks={len(result.data.tasks)}"),
        ]

    def expand(self, command: ExpandTaskCommand) -> list[str]:
        raw_tasks = load_tasks_file(command.tasks_path)
        task = _find_task(raw_tasks, command.task_id)
        bridge = self._bridge()
        next_subtask_id = command.next_subtask_id
        if next_subtask_id is None:
            next_subtask_id = len(_raw_subtasks(raw_tasks, command.task_id)) + 1
        result = bridge.expand_task(
            ExpandTaskOptions(
                task=task,
                num_subtasks=command.num_subtasks,
                next_subtask_id=next_subtask_id,
                research=command.research,
                additional_context=command.context,
            ),
        )
        return [
            *_emit_payload(result.data.to_dict(), command.output_path),
            _summary_line(result, f"subtasks={len(result.data.subtasks)}"),
        ]

    def add_task(self, command: AddTaskCommand) -> list[str]:
        tasks = _validated_tasks(load_tasks_file(command.tasks_path))
        known_ids = {task.id for task in tasks}
        unknown = [dep for dep in command.dependencies if dep not in known_ids]
        if unknown:
            raise ValueError(f"Unknown dependency ids: {', '.join(map(str, unknown))}")
        bridge = self._bridge()
        result = bridge.add_task(
            AddTaskOptions(
                prompt=command.prompt,
                new_task_id=max(known_ids, default=0) + 1,
                existing_tasks=tuple(tasks),
                dependencies=command.dependencies,
                priority=command.priority,
                research=command.research,
            ),
        )
        return [
            *_emit_payload(result.data.to_dict(), command.output_path),
            _summary_line(result, f"task_id={result.data.id}"),
        ]

    def analyze_complexity(self, command: AnalyzeComplexityCommand) -> list[str]:
        tasks = _validated_tasks(load_tasks_file(command.tasks_path))
        bridge = self._bridge()
        result = bridge.analyze_complexity(
            AnalyzeComplexityOptions(
                tasks=tuple(tasks),
                threshold=command.threshold,
                research=command.research,
            ),
        )
        report = result.data
        lines = _emit_payload(report.to_list(), command.output_path)
        for entry in report.above_threshold(command.threshold):
            lines.append(
                f"Expand task {entry.task_id} ({entry.task_title}): "
                f"score={entry.complexity_score} subtasks={entry.recommended_subtasks}",
            )
        lines.append(_summary_line(result, f"analyzed={len(report.entries)}"))
        return lines

    def update_subtask(self, command: UpdateSubtaskCommand) -> list[str]:
        parent_id, subtask_id = _parse_subtask_ref(command.subtask_ref)
        raw_tasks = load_tasks_file(command.tasks_path)
        parent = _find_task(raw_tasks, parent_id)
        subtask = _find_subtask(raw_tasks, parent_id, subtask_id)
        bridge = self._bridge()
        result = bridge.update_subtask(
            UpdateSubtaskOptions(
                parent_task=parent,
                subtask=subtask,
                prompt=command.prompt,
                research=command.research,
            ),
        )
        return [result.data, _summary_line(result, f"subtask={command.subtask_ref}")]

    def update_task(self, command: UpdateTaskCommand) -> list[str]:
        task = _find_task(load_tasks_file(command.tasks_path), command.task_id)
        bridge = self._bridge()
        result = bridge.update_task(
            UpdateTaskOptions(task=task, prompt=command.prompt, research=command.research),
        )
        return [
            *_emit_payload(result.data.to_dict(), command.output_path),
            _summary_line(result, f"task_id={result.data.id}"),
        ]

    def update_tasks(self, command: UpdateTasksCommand) -> list[str]:
        tasks = _validated_tasks(load_tasks_file(command.tasks_path))
        if not any(task.id >= command.from_id for task in tasks):
            raise ValueError(f"No tasks with id >= {command.from_id} in {command.tasks_path}")
        bridge = self._bridge()
        result = bridge.update_tasks(
            UpdateTasksOptions(
                tasks=tuple(tasks),
                from_id=command.from_id,
                prompt=command.prompt,
                research=command.research,
            ),
        )
        payload = {"tasks": [task.to_dict() for task in result.data]}
        return [
            *_emit_payload(payload, command.output_path),
            _summary_line(result, f"tasks={len(result.data)}"),
        ]

    def doctor(self) -> DoctorResult:
        """Check configuration and executable availability without running a prompt."""

        lines: list[str] = []
        success = True
        settings = self.settings_factory()
        bridge_settings = settings.bridge

        if bridge_settings.cli_mode:
            lines.append("[ok] CLI mode enabled")
        else:
            lines.append("[warn] CLI mode disabled: set TASKFORGE_CLAUDE_CLI_MODE=true")
        lines.append(f"CLI command: {bridge_settings.cli_path}")
        lines.append(f"Probe timeout: {bridge_settings.probe_timeout_ms}ms")
        for operation in OPERATION_NAMES:
            lines.append(f"Timeout {operation}: {bridge_settings.timeout_for(operation)}ms")

        try:
            bridge = self.bridge_factory(settings)
            bridge.check_availability()
        except (BridgeError, ValueError) as error:
            success = False
            lines.append(f"[fail] {error}")
        else:
            version = bridge.availability.version or "<no version output>"
            lines.append(f"[ok] CLI available: {version}")

        lines.append("Doctor: passed" if success else "Doctor: failed")
        return DoctorResult(success=success, lines=lines)

    def _bridge(self) -> ClaudeCliBridge:
        settings = self.settings_factory()
        settings.validate_for_cli()
        return self.bridge_factory(settings)


def load_tasks_file(path: Path) -> list[dict[str, Any]]:
    """Load the raw ``tasks`` array of a tasks JSON file."""

    payload = json.loads(path.read_text("utf-8"))
    if not isinstance(payload, dict):
        raise TypeError(f"Expected JSON object in {path}")
    raw_tasks = payload.get("tasks")
    if not isinstance(raw_tasks, list):
        raise TypeError(f"{path}: tasks must be an array")
    for index, item in enumerate(raw_tasks):
        if not isinstance(item, dict):
            raise TypeError(f"{path}: tasks[{index}] must be an object")
    return raw_tasks


def write_json(path: Path, payload: Any) -> None:
    """Persist JSON payload using deterministic formatting."""

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, ensure_ascii=False, indent=2) + "\n", "utf-8")


def _default_bridge_factory(settings: Settings) -> ClaudeCliBridge:
    return ClaudeCliBridge.from_settings(settings.bridge)


def _validated_tasks(raw_tasks: list[dict[str, Any]]) -> list[Task]:
    return [validate_task(item, path=f"tasks[{index}]") for index, item in enumerate(raw_tasks)]


def _find_task(raw_tasks: list[dict[str, Any]], task_id: int) -> Task:
    for index, item in enumerate(raw_tasks):
        if item.get("id") == task_id:
            return validate_task(item, path=f"tasks[{index}]")
    raise ValueError(f"Task {task_id} not found.")


def _raw_subtasks(raw_tasks: list[dict[str, Any]], task_id: int) -> list[Any]:
    for item in raw_tasks:
        if item.get("id") == task_id:
            subtasks = item.get("subtasks")
            return subtasks if isinstance(subtasks, list) else []
    return []


def _find_subtask(raw_tasks: list[dict[str, Any]], parent_id: int, subtask_id: int) -> Subtask:
    for index, item in enumerate(_raw_subtasks(raw_tasks, parent_id)):
        if isinstance(item, dict) and item.get("id") == subtask_id:
            return validate_subtask(item, path=f"task {parent_id}.subtasks[{index}]")
    raise ValueError(f"Subtask {parent_id}.{subtask_id} not found.")


def _parse_subtask_ref(value: str) -> tuple[int, int]:
    parent, _, child = value.strip().partition(".")
    if not parent.isdigit() or not child.isdigit():
        raise ValueError(f"Invalid subtask id {value!r}. Expected '<parent>.<subtask>', e.g. 3.2.")
    return int(parent), int(child)


def _emit_payload(payload: Any, output_path: Path | None) -> list[str]:
    if output_path is None:
        return [json.dumps(payload, ensure_ascii=False, indent=2)]
    write_json(output_path, payload)
    return [f"Wrote {output_path}"]


def _summary_line(result: OperationResult[Any], detail: str) -> str:
    cost = f"{result.cost_usd:.4f}" if result.cost_usd is not None else "n/a"
    duration = f"{result.duration_ms:.0f}ms" if result.duration_ms is not None else "n/a"
    strategy = result.extraction_strategy or "text"
    return (
        f"operation={result.operation.value} {detail} "
        f"cost_usd={cost} duration={duration} extraction={strategy}"
    )
