"""Typed task data and per-operation options for the CLI bridge."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, TypeVar

TASK_PRIORITIES = ("high", "medium", "low")
DEFAULT_PRIORITY = "medium"
DEFAULT_STATUS = "pending"

T = TypeVar("T")


class OperationKind(str, Enum):
    """Operations supported by the bridge."""

    GENERATE_TASKS = "generate_tasks"
    EXPAND_TASK = "expand_task"
    ADD_TASK = "add_task"
    ANALYZE_COMPLEXITY = "analyze_complexity"
    UPDATE_SUBTASK = "update_subtask"
    UPDATE_TASK = "update_task"
    UPDATE_TASKS = "update_tasks"


@dataclass(slots=True)
class Task:
    """One top-level development task."""

    id: int
    title: str
    description: str
    details: str = ""
    test_strategy: str = ""
    priority: str = DEFAULT_PRIORITY
    dependencies: list[int] = field(default_factory=list)
    status: str = DEFAULT_STATUS

    def to_dict(self) -> dict[str, Any]:
        """Serialize using the wire field names."""

        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "details": self.details,
            "testStrategy": self.test_strategy,
            "priority": self.priority,
            "dependencies": list(self.dependencies),
            "status": self.status,
        }


@dataclass(slots=True)
class Subtask:
    """One subtask produced by task expansion."""

    id: int
    title: str
    description: str
    details: str
    dependencies: list[int] = field(default_factory=list)
    status: str = DEFAULT_STATUS
    test_strategy: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "details": self.details,
            "dependencies": list(self.dependencies),
            "status": self.status,
            "testStrategy": self.test_strategy,
        }


@dataclass(slots=True)
class TaskSetMetadata:
    """Generation metadata attached to a task set."""

    project_name: str
    total_tasks: int | float
    source_file: str
    generated_at: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "projectName": self.project_name,
            "totalTasks": self.total_tasks,
            "sourceFile": self.source_file,
            "generatedAt": self.generated_at,
        }


@dataclass(slots=True)
class TaskSet:
    """Tasks generated from a PRD."""

    tasks: list[Task]
    metadata: TaskSetMetadata

    def to_dict(self) -> dict[str, Any]:
        return {
            "tasks": [task.to_dict() for task in self.tasks],
            "metadata": self.metadata.to_dict(),
        }


@dataclass(slots=True)
class SubtaskSet:
    """Subtasks generated by expanding one task."""

    subtasks: list[Subtask]

    def to_dict(self) -> dict[str, Any]:
        return {"subtasks": [subtask.to_dict() for subtask in self.subtasks]}


@dataclass(slots=True)
class ComplexityEntry:
    """Complexity assessment for one task."""

    task_id: int
    task_title: str
    complexity_score: int
    recommended_subtasks: int
    expansion_prompt: str
    reasoning: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "taskId": self.task_id,
            "taskTitle": self.task_title,
            "complexityScore": self.complexity_score,
            "recommendedSubtasks": self.recommended_subtasks,
            "expansionPrompt": self.expansion_prompt,
            "reasoning": self.reasoning,
        }


@dataclass(slots=True)
class ComplexityReport:
    """Complexity assessments for a list of tasks."""

    entries: list[ComplexityEntry]

    def to_list(self) -> list[dict[str, Any]]:
        return [entry.to_dict() for entry in self.entries]

    def above_threshold(self, threshold: int) -> list[ComplexityEntry]:
        """Return entries whose score is at least ``threshold``."""

        return [entry for entry in self.entries if entry.complexity_score >= threshold]


@dataclass(slots=True)
class OperationResult(Generic[T]):
    """Validated operation output with envelope diagnostics."""

    operation: OperationKind
    data: T
    success: bool = True
    cost_usd: float | None = None
    duration_ms: float | None = None
    session_id: str | None = None
    extraction_strategy: str | None = None


@dataclass(slots=True)
class GenerateTasksOptions:
    """Inputs for task-set generation from a PRD."""

    prd_content: str
    num_tasks: int = 10
    next_id: int = 1
    research: bool = False
    prd_path: str = "Unknown"
    timeout_ms: int | None = None


@dataclass(slots=True)
class ExpandTaskOptions:
    """Inputs for breaking one task into subtasks."""

    task: Task
    num_subtasks: int = 3
    next_subtask_id: int = 1
    research: bool = False
    additional_context: str = ""
    timeout_ms: int | None = None


@dataclass(slots=True)
class AddTaskOptions:
    """Inputs for creating one new task from a free-form request."""

    prompt: str
    new_task_id: int
    existing_tasks: tuple[Task, ...] = ()
    dependencies: tuple[int, ...] = ()
    priority: str = DEFAULT_PRIORITY
    research: bool = False
    timeout_ms: int | None = None


@dataclass(slots=True)
class AnalyzeComplexityOptions:
    """Inputs for complexity analysis of existing tasks."""

    tasks: tuple[Task, ...]
    threshold: int = 5
    research: bool = False
    timeout_ms: int | None = None


@dataclass(slots=True)
class UpdateSubtaskOptions:
    """Inputs for appending generated notes to a subtask."""

    parent_task: Task
    subtask: Subtask
    prompt: str
    research: bool = False
    timeout_ms: int | None = None


@dataclass(slots=True)
class UpdateTaskOptions:
    """Inputs for rewriting one task with new context."""

    task: Task
    prompt: str
    research: bool = False
    timeout_ms: int | None = None


@dataclass(slots=True)
class UpdateTasksOptions:
    """Inputs for rewriting every task from ``from_id`` onward."""

    tasks: tuple[Task, ...]
    from_id: int
    prompt: str
    research: bool = False
    timeout_ms: int | None = None
